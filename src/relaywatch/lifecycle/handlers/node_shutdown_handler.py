from __future__ import annotations
from typing import TYPE_CHECKING

from relaywatch.lifecycle.shutdown_protocol import IShutdownHandler
from relaywatch.utils.logger import get_logger, LogCategory

if TYPE_CHECKING:
    from relaywatch.lifecycle.supervisor import RelaySupervisor

log = get_logger().for_category(LogCategory.SHUTDOWN)


class NodeShutdownHandler(IShutdownHandler):
    """
    Shutdown handler for the relay node.

    Registered before the node starts, so a trigger that fires while start is
    still in flight is covered too: the supervisor waits for the start to
    settle and stops whatever handle came out of it.

    Priority: 100 (the node goes first)
    """

    def __init__(self, supervisor: "RelaySupervisor"):
        self.supervisor = supervisor

    @property
    def shutdown_priority(self) -> int:
        return 100

    @property
    def shutdown_timeout(self) -> float:
        # start grace and stop deadline are both enforced inside stop_node()
        return self.supervisor.start_grace + self.supervisor.stop_timeout + 1.0

    async def shutdown(self) -> None:
        log.debug("Relay node shutdown", timeout=f"{self.shutdown_timeout:.1f}s")
        await self.supervisor.stop_node()
