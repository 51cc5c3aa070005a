import pytest

from relaywatch.models.errors import ConfigError
from relaywatch.node.factory import load_node_factory
from relaywatch.node.local import LocalRelayNode, start_local_relay


def test_loads_default_factory():
    assert load_node_factory("relaywatch.node.local:start_local_relay") is start_local_relay


@pytest.mark.parametrize(
    "path",
    [
        "relaywatch.node.local",
        ":start_local_relay",
        "relaywatch.node.local:",
        "relaywatch.does_not_exist:start",
        "relaywatch.node.local:missing",
        "relaywatch.node.local:_LISTEN_ADDR",
        "relaywatch.node.local:LocalRelayNode",
    ],
)
def test_bad_factory_paths_raise_config_error(path):
    with pytest.raises(ConfigError):
        load_node_factory(path)


def test_dotted_attribute_path():
    target = load_node_factory("relaywatch.node.local:LocalRelayNode.start")
    assert target is LocalRelayNode.start
