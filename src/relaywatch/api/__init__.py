"""
Status server: FastAPI routes plus the Socket.IO `ipc-update` channel.
"""

from .main import create_app, create_asgi_app

__all__ = ["create_app", "create_asgi_app"]
