"""
Status channel client.

Subscribes to a running supervisor's status channel and hands every
snapshot to a callback (the `relaywatch watch` command prints them).
"""

import asyncio
import json
from typing import Any, Callable, Dict, Optional

import socketio

from relaywatch.utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.SOCKETIO)


async def watch_status(
    url: str,
    on_snapshot: Callable[[Dict[str, Any]], None],
    *,
    channel: str = "ipc-update",
    count: Optional[int] = None,
    client: Optional[socketio.AsyncClient] = None,
) -> int:
    """
    Subscribe on `channel` and deliver snapshots until `count` arrived or the
    server goes away.

    Returns:
        Number of snapshots received
    """
    sio = client or socketio.AsyncClient(reconnection=False)
    received = 0
    finished = asyncio.Event()

    async def on_update(payload):
        nonlocal received
        try:
            snapshot = json.loads(payload) if isinstance(payload, str) else payload
        except json.JSONDecodeError as ex:
            log.warn("Unreadable snapshot", error=str(ex))
            return
        received += 1
        on_snapshot(snapshot)
        if count is not None and received >= count:
            finished.set()

    async def on_disconnect(*args):
        log.info("Disconnected from status server")
        finished.set()

    sio.on(channel, on_update)
    sio.on("disconnect", on_disconnect)

    await sio.connect(url)
    log.info(f"Connected to {url}; subscribing to '{channel}'")
    await sio.emit(channel, {})

    try:
        await finished.wait()
    finally:
        if sio.connected:
            await sio.disconnect()

    return received
