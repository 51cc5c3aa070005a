"""
Status server application factory

Assembles the FastAPI app (HTTP status routes) and the Socket.IO server
carrying the `ipc-update` channel, and returns the combined ASGI app that
uvicorn serves.
"""

from typing import Optional, Tuple

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from socketio import ASGIApp, AsyncServer

from relaywatch.api.routes import status
from relaywatch.api.socketio import create_socketio_server, register_socketio, wrap_app_with_socketio
from relaywatch.models.state import ProcessState
from relaywatch.services.status_bridge import StatusBridge
from relaywatch import __version__
from relaywatch.utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.API)


def create_app(
    bridge: StatusBridge,
    state: ProcessState,
    *,
    cors_origins: Optional[list[str]] = None,
) -> FastAPI:
    """
    Create the FastAPI application for HTTP status queries.

    Args:
        bridge: StatusBridge the routes read snapshots from
        state: Shared process state (health route)
        cors_origins: CORS allowed origins (default: all)
    """
    app = FastAPI(
        title="relaywatch",
        description="Relay node supervisor status API",
        version=__version__,
    )
    app.state.bridge = bridge
    app.state.process_state = state

    cors_origins = cors_origins or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    app.include_router(status.router)

    @app.get("/", include_in_schema=False)
    async def root():
        return JSONResponse(
            {
                "message": "relaywatch status server",
                "status": "/status",
                "health": "/health",
                "docs": "/docs",
            }
        )

    log.debug("Routes registered: /status, /health")
    return app


def create_asgi_app(
    bridge: StatusBridge,
    state: ProcessState,
    *,
    channel: str = "ipc-update",
    cors_origins: Optional[list[str]] = None,
) -> Tuple[ASGIApp, AsyncServer]:
    """Build FastAPI + Socket.IO and wrap them into one ASGI app."""
    cors_origins = cors_origins or ["*"]
    app = create_app(bridge, state, cors_origins=cors_origins)
    sio = create_socketio_server(cors_origins)
    register_socketio(sio, bridge, channel)
    log.info(f"Status channel '{channel}' registered")
    return wrap_app_with_socketio(app, sio), sio
