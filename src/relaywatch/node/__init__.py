"""
Relay node seam
---------------

The supervisor only talks to a node through NodeHandle. The node itself is
produced by a factory resolved from config (``node.factory``); the bundled
LocalRelayNode is the default.
"""

from .addresses import trim_address, trim_addresses
from .factory import load_node_factory
from .protocol import NodeHandle, NodeFactory, Connection

__all__ = [
    "trim_address",
    "trim_addresses",
    "load_node_factory",
    "NodeHandle",
    "NodeFactory",
    "Connection",
]
