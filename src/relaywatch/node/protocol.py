# node/protocol.py
"""
NodeHandle Protocol
===================
Narrow capability set the supervisor consumes from a running relay node.
The node's own networking (discovery, multiplexing, peer bookkeeping) stays
behind this interface.
"""

from __future__ import annotations
from typing import Any, Awaitable, Callable, List, Protocol, Sequence

from relaywatch.models.config import NodeConfig


class Connection(Protocol):
    """An active connection; only the remote peer identity is consumed."""

    @property
    def remote_peer(self) -> Any:
        ...


class NodeHandle(Protocol):
    """
    Protocol for a started relay node.

    All implementations must provide:
    - stop: async teardown, called at most once
    - get_multiaddrs: listening addresses (objects whose str() is a multiaddr)
    - get_peers: connected peer ids
    - get_protocols: supported protocol ids
    - get_connections: active connections
    """

    async def stop(self) -> None:
        ...

    def get_multiaddrs(self) -> Sequence[Any]:
        ...

    def get_peers(self) -> Sequence[Any]:
        ...

    def get_protocols(self) -> List[str]:
        ...

    def get_connections(self) -> Sequence[Connection]:
        ...


NodeFactory = Callable[[NodeConfig], Awaitable[NodeHandle]]
