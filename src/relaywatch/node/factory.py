# node/factory.py

import importlib
import inspect

from relaywatch.models.errors import ConfigError
from relaywatch.node.protocol import NodeFactory


def load_node_factory(path: str) -> NodeFactory:
    """
    Resolve ``package.module:callable`` to an async node factory.

    The callable receives the NodeConfig section and must return an
    awaitable resolving to a NodeHandle.

    Raises:
        ConfigError: path malformed, module missing, or target not callable
    """
    module_name, sep, attr = path.partition(":")
    if not sep or not module_name or not attr:
        raise ConfigError(f"Invalid node factory path: '{path}'")

    try:
        module = importlib.import_module(module_name)
    except ImportError as ex:
        raise ConfigError(f"Cannot import node factory module '{module_name}': {ex}") from ex

    target = module
    for part in attr.split("."):
        try:
            target = getattr(target, part)
        except AttributeError as ex:
            raise ConfigError(f"Node factory '{path}' not found") from ex

    if not callable(target):
        raise ConfigError(f"Node factory '{path}' is not callable")
    if inspect.isclass(target):
        raise ConfigError(f"Node factory '{path}' must be a function, not a class")

    return target
