"""
Pydantic schemas for status endpoints.

The status payload mirrors the Socket.IO snapshot: either the full node
status or the single-field "not initialized" error.
"""

from typing import List

from pydantic import BaseModel, ConfigDict, Field


class ConnectionResponse(BaseModel):
    peer: str = Field(..., description="Remote peer id of an active connection")


class NodeStatusResponse(BaseModel):
    """Live relay node status."""
    model_config = ConfigDict(
        extra="forbid",
        json_schema_extra={
            "example": {
                "addresses": ["/ip4/1.2.3.4/tcp/4001"],
                "peers": [],
                "protocols": ["/relay/1.0"],
                "connections": [{"peer": "Qm123"}],
            }
        },
    )

    addresses: List[str] = Field(..., description="Trimmed listening multiaddresses")
    peers: List[str] = Field(..., description="Connected peer ids")
    protocols: List[str] = Field(..., description="Supported protocol ids")
    connections: List[ConnectionResponse] = Field(..., description="One entry per active connection")


class NodeUnavailableResponse(BaseModel):
    """Returned while no node is published (not started, failed, or stopped)."""
    model_config = ConfigDict(
        extra="forbid",
        json_schema_extra={"example": {"error": "Node is not initialized"}},
    )

    error: str


class HealthResponse(BaseModel):
    node_running: bool = Field(..., description="A node handle is currently published")
    shutdown_requested: bool = Field(..., description="The shutdown sequence has started")
    subscribers: int = Field(..., description="Live status streams")
