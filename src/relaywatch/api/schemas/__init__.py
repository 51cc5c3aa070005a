from .status import (
    ConnectionResponse,
    NodeStatusResponse,
    NodeUnavailableResponse,
    HealthResponse,
)

__all__ = [
    "ConnectionResponse",
    "NodeStatusResponse",
    "NodeUnavailableResponse",
    "HealthResponse",
]
