"""
Status snapshot DTOs

A snapshot is a tagged union: either the full four-field ``NodeStatus`` or
the single-field ``NodeUnavailable`` error value. Consumers tell them apart
by the presence of the ``error`` key.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Union

NOT_INITIALIZED = "Node is not initialized"
SERIALIZATION_FAILED = "Snapshot serialization failed"


@dataclass(frozen=True)
class ConnectionSnapshot:
    peer: str


@dataclass(frozen=True)
class NodeStatus:
    addresses: List[str] = field(default_factory=list)
    peers: List[str] = field(default_factory=list)
    protocols: List[str] = field(default_factory=list)
    connections: List[ConnectionSnapshot] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class NodeUnavailable:
    error: str = NOT_INITIALIZED

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


StatusSnapshot = Union[NodeStatus, NodeUnavailable]
