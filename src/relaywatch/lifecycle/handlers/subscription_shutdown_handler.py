from __future__ import annotations
from typing import TYPE_CHECKING

from relaywatch.lifecycle.shutdown_protocol import IShutdownHandler
from relaywatch.utils.logger import get_logger, LogCategory

if TYPE_CHECKING:
    from relaywatch.services.status_bridge import StatusBridge

log = get_logger().for_category(LogCategory.SHUTDOWN)


class SubscriptionShutdownHandler(IShutdownHandler):
    """
    Shutdown handler for status streams.

    Streams already stop on their own at the next liveness check; this
    cancels the ones sleeping between deliveries so they do not hold the
    loop open for up to one poll interval.

    Priority: 60
    """

    def __init__(self, bridge: "StatusBridge"):
        self.bridge = bridge

    @property
    def shutdown_priority(self) -> int:
        return 60

    async def shutdown(self) -> None:
        count = self.bridge.subscriber_count
        if count:
            log.info(f"Cancelling {count} status stream(s)...")
        await self.bridge.cancel_all()
