from relaywatch.api.socketio.status.channel import register_status_channel
from relaywatch.services.status_bridge import StatusBridge


def register_socketio(sio, bridge: StatusBridge, channel: str = "ipc-update") -> None:
    register_status_channel(sio, bridge, channel)
