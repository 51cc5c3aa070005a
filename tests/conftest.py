import asyncio
from dataclasses import dataclass
from typing import List, Optional

import pytest

from relaywatch.lifecycle.task_registry import TaskRegistry
from relaywatch.models.config import NodeConfig
from relaywatch.models.state import ProcessState
from relaywatch.utils.logger import configure_logger
from relaywatch.models.enums import LogLevel


@dataclass(frozen=True)
class FakeConnection:
    remote_peer: str
    transport: str = "tcp"


class FakeNode:
    """In-memory NodeHandle that counts stop() calls."""

    def __init__(
        self,
        addresses: Optional[List[str]] = None,
        peers: Optional[list] = None,
        protocols: Optional[List[str]] = None,
        connections: Optional[List[FakeConnection]] = None,
        stop_delay: float = 0.0,
        stop_error: Optional[BaseException] = None,
    ):
        self.addresses = addresses if addresses is not None else ["/ip4/1.2.3.4/tcp/4001"]
        self.peers = peers or []
        self.protocols = protocols if protocols is not None else ["/relay/1.0"]
        self.connections = connections or []
        self.stop_delay = stop_delay
        self.stop_error = stop_error
        self.stop_calls = 0

    async def stop(self) -> None:
        self.stop_calls += 1
        if self.stop_delay:
            await asyncio.sleep(self.stop_delay)
        if self.stop_error is not None:
            raise self.stop_error

    def get_multiaddrs(self):
        return list(self.addresses)

    def get_peers(self):
        return list(self.peers)

    def get_protocols(self):
        return list(self.protocols)

    def get_connections(self):
        return list(self.connections)


class GatedFactory:
    """Node factory whose start completes only when release() is called."""

    def __init__(self, node: Optional[FakeNode] = None, error: Optional[BaseException] = None):
        self.node = node or FakeNode()
        self.error = error
        self.calls = 0
        self._gate = asyncio.Event()

    def release(self) -> None:
        self._gate.set()

    async def __call__(self, config: NodeConfig):
        self.calls += 1
        await self._gate.wait()
        if self.error is not None:
            raise self.error
        return self.node


def immediate_factory(node: FakeNode):
    async def factory(config: NodeConfig):
        return node
    return factory


def failing_factory(error: BaseException):
    async def factory(config: NodeConfig):
        raise error
    return factory


@pytest.fixture(autouse=True)
def _fresh_registry():
    TaskRegistry.reset()
    configure_logger(LogLevel.DEBUG, use_colors=False)
    yield
    TaskRegistry.reset()


@pytest.fixture
def state():
    return ProcessState()


@pytest.fixture
def fake_node():
    return FakeNode()
