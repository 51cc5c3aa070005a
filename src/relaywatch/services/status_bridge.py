"""
Status bridge between ProcessState and status consumers.

Builds StatusSnapshots from the published NodeHandle and pushes them to
subscribers on a fixed interval for as long as the supervisor is live.
Liveness is "shutdown not requested", read fresh from ProcessState on every
iteration: streams run through the pre-start window (reporting "not
initialized") and end once shutdown begins.
"""

from __future__ import annotations

import asyncio
import json
from typing import Awaitable, Callable, Dict, Hashable, Optional

from relaywatch.lifecycle.task_registry import TaskRegistry, create_tracked_task
from relaywatch.models.enums import TaskCategory
from relaywatch.models.snapshot import (
    SERIALIZATION_FAILED,
    ConnectionSnapshot,
    NodeStatus,
    NodeUnavailable,
    StatusSnapshot,
)
from relaywatch.models.state import ProcessState
from relaywatch.node.addresses import trim_addresses
from relaywatch.utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.BRIDGE)

Reply = Callable[[str], Awaitable[None]]
ERROR_MARKER = json.dumps({"error": SERIALIZATION_FAILED})


def encode_snapshot(snapshot: StatusSnapshot) -> str:
    """Serialize a snapshot to JSON text. Raises TypeError/ValueError on bad payloads."""
    return json.dumps(snapshot.to_dict())


class StatusBridge:
    """
    Responsibilities:
    - build_snapshot(): pure read of ProcessState
    - stream(): push-on-interval delivery loop for one consumer
    - subscribe()/unsubscribe(): one tracked stream task per consumer id

    Example:
        bridge = StatusBridge(state, poll_interval=4.0)
        bridge.subscribe(sid, lambda payload: sio.emit("ipc-update", payload, to=sid))
    """

    def __init__(
        self,
        state: ProcessState,
        *,
        poll_interval: float = 4.0,
        liveness: Optional[Callable[[], bool]] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        registry: Optional[TaskRegistry] = None,
    ):
        self._state = state
        self.poll_interval = poll_interval
        self._liveness = liveness
        self._sleep = sleep
        self._registry = registry
        self._streams: Dict[Hashable, asyncio.Task] = {}

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def build_snapshot(self) -> StatusSnapshot:
        handle = self._state.handle
        if handle is None:
            return NodeUnavailable()

        return NodeStatus(
            addresses=trim_addresses(handle.get_multiaddrs()),
            peers=list(dict.fromkeys(str(peer) for peer in handle.get_peers())),
            protocols=list(handle.get_protocols()),
            connections=[
                ConnectionSnapshot(peer=str(conn.remote_peer))
                for conn in handle.get_connections()
            ],
        )

    def render(self) -> str:
        """Snapshot as JSON text; the error marker if it cannot be built or encoded."""
        try:
            return encode_snapshot(self.build_snapshot())
        except Exception as ex:
            log.warn("Snapshot could not be serialized", error=f"{type(ex).__name__}: {ex}")
            return ERROR_MARKER

    # ------------------------------------------------------------------
    # Delivery loop
    # ------------------------------------------------------------------

    def is_live(self) -> bool:
        if self._liveness is not None:
            return self._liveness()
        return not self._state.shutdown_requested

    async def stream(self, reply: Reply) -> int:
        """
        Deliver a snapshot, wait poll_interval, repeat while live.

        A failed delivery is logged and the loop carries on.

        Returns:
            Number of snapshots delivered
        """
        delivered = 0
        while self.is_live():
            payload = self.render()
            try:
                await reply(payload)
                delivered += 1
            except asyncio.CancelledError:
                raise
            except Exception as ex:
                log.warn("Status delivery failed", error=f"{type(ex).__name__}: {ex}")

            await self._sleep(self.poll_interval)

        return delivered

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, subscriber_id: Hashable, reply: Reply) -> Optional[asyncio.Task]:
        """
        Start a stream for one consumer.

        Returns:
            The stream task, or None when that consumer already has a live stream.
        """
        existing = self._streams.get(subscriber_id)
        if existing is not None and not existing.done():
            log.debug(f"Subscriber {subscriber_id} already streaming; request ignored")
            return None

        task = create_tracked_task(
            self._run_stream(subscriber_id, reply),
            category=TaskCategory.BRIDGE,
            description=f"Status stream {subscriber_id}",
            registry=self._registry,
        )
        self._streams[subscriber_id] = task
        log.info(f"Status stream started for {subscriber_id}")
        return task

    async def _run_stream(self, subscriber_id: Hashable, reply: Reply) -> int:
        try:
            delivered = await self.stream(reply)
            log.debug(f"Status stream for {subscriber_id} ended", delivered=delivered)
            return delivered
        finally:
            if self._streams.get(subscriber_id) is asyncio.current_task():
                del self._streams[subscriber_id]

    def unsubscribe(self, subscriber_id: Hashable) -> bool:
        task = self._streams.pop(subscriber_id, None)
        if task is None or task.done():
            return False
        task.cancel()
        log.debug(f"Status stream for {subscriber_id} cancelled")
        return True

    @property
    def subscriber_count(self) -> int:
        return sum(1 for task in self._streams.values() if not task.done())

    async def cancel_all(self) -> None:
        tasks = list(self._streams.values())
        self._streams.clear()
        for task in tasks:
            if not task.done():
                task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
