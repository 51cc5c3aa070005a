from __future__ import annotations
from typing import TYPE_CHECKING

from relaywatch.lifecycle.shutdown_protocol import IShutdownHandler
from relaywatch.utils.logger import get_logger, LogCategory

if TYPE_CHECKING:
    from relaywatch.lifecycle.api_server_wrapper import APIServerWrapper

log = get_logger().for_category(LogCategory.SHUTDOWN)


class APIServerShutdownHandler(IShutdownHandler):
    """
    Shutdown handler for the status channel server (FastAPI + Socket.IO + Uvicorn).

    Priority: 40 (after the node and the status streams)
    """

    def __init__(self, api_wrapper: "APIServerWrapper"):
        self.api_wrapper = api_wrapper

    @property
    def shutdown_priority(self) -> int:
        return 40

    async def shutdown(self) -> None:
        log.info("Stopping status server...")

        if not self.api_wrapper.is_running:
            log.debug("Status server not running")
            return

        try:
            await self.api_wrapper.stop()
        except Exception as e:
            log.error(f"Error stopping status server: {e}")
