from .registry import register_socketio
from .server import create_socketio_server, wrap_app_with_socketio

__all__ = [
    "register_socketio",
    "create_socketio_server",
    "wrap_app_with_socketio",
]
