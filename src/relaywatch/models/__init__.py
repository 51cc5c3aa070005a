from .config import (
    RelaywatchConfig,
    NodeConfig,
    BridgeConfig,
    ShutdownConfig,
    ServerConfig,
    LoggingConfig,
)
from .enums import LogLevel, LogCategory, TerminationTrigger, TaskCategory
from .errors import RelaywatchError, StartError, StopError, ConfigError
from .snapshot import (
    StatusSnapshot,
    NodeStatus,
    NodeUnavailable,
    ConnectionSnapshot,
    NOT_INITIALIZED,
    SERIALIZATION_FAILED,
)
from .state import ProcessState

__all__ = [
    "RelaywatchConfig",
    "NodeConfig",
    "BridgeConfig",
    "ShutdownConfig",
    "ServerConfig",
    "LoggingConfig",
    "LogLevel",
    "LogCategory",
    "TerminationTrigger",
    "TaskCategory",
    "RelaywatchError",
    "StartError",
    "StopError",
    "ConfigError",
    "StatusSnapshot",
    "NodeStatus",
    "NodeUnavailable",
    "ConnectionSnapshot",
    "NOT_INITIALIZED",
    "SERIALIZATION_FAILED",
    "ProcessState",
]
