from relaywatch.services.status_bridge import StatusBridge
from relaywatch.utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.SOCKETIO)


def register_status_channel(sio, bridge: StatusBridge, channel: str = "ipc-update") -> None:
    """
    Registers the status request/reply channel.

    A message on `channel` (payload ignored) subscribes the sender: it gets
    a JSON snapshot on the same channel now and every poll interval after,
    until the supervisor shuts down or the client disconnects.
    """

    async def on_status_request(sid: str, data=None):
        async def reply(payload: str) -> None:
            await sio.emit(channel, payload, to=sid)

        bridge.subscribe(sid, reply)

    async def on_disconnect(sid: str, reason=None):
        if bridge.unsubscribe(sid):
            log.info(f"Client {sid} disconnected; status stream stopped")

    sio.on(channel, on_status_request)
    sio.on("disconnect", on_disconnect)
