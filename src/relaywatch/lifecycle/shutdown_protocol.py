"""
Shutdown handler protocol.

Each component with something to release during process shutdown implements
IShutdownHandler to take part in the coordinator's stop sequence.
"""

from typing import Protocol


class IShutdownHandler(Protocol):
    """
    Protocol for components that need graceful shutdown.

    The ShutdownCoordinator calls shutdown() on each registered handler in
    descending priority order, once per process.

    Example:
        class NodeShutdownHandler:
            @property
            def shutdown_priority(self) -> int:
                return 100  # stop the relay node first

            async def shutdown(self) -> None:
                await self.supervisor.stop_node()
    """

    @property
    def shutdown_priority(self) -> int:
        """
        Higher priority shuts down earlier.
        """
        ...

    async def shutdown(self) -> None:
        """
        Called during coordinated shutdown.
        """
        ...
