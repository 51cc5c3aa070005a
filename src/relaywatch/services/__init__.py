from .status_bridge import StatusBridge, encode_snapshot, ERROR_MARKER

__all__ = [
    "StatusBridge",
    "encode_snapshot",
    "ERROR_MARKER",
]
