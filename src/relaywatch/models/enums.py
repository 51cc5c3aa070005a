"""
Enums for the relay supervisor
"""

from enum import Enum, auto


class LogLevel(Enum):
    """Log levels"""
    DEBUG = auto()
    INFO = auto()
    WARN = auto()
    ERROR = auto()


class LogCategory(Enum):
    """Log categories for grouping related events"""
    CONFIG = auto()      # Configuration loading, validation
    SYSTEM = auto()      # Startup, runner, fatal errors
    NODE = auto()        # Relay node start/stop/queries
    SHUTDOWN = auto()    # Termination triggers and stop sequence
    BRIDGE = auto()      # Status snapshots and polling streams
    SOCKETIO = auto()
    API = auto()
    TASK = auto()

    GENERAL = auto()     # Default general category


class TerminationTrigger(Enum):
    """
    Every runtime avenue that can initiate process shutdown.

    The value is the signal name for OS signals, or a lifecycle event name
    for everything the runtime reports on its own.
    """
    SIGINT = "SIGINT"
    SIGTERM = "SIGTERM"
    SIGHUP = "SIGHUP"
    SIGQUIT = "SIGQUIT"
    SIGUSR1 = "SIGUSR1"
    SIGUSR2 = "SIGUSR2"

    EXIT = "exit"                              # interpreter exit (atexit)
    BEFORE_EXIT = "beforeExit"                 # main coroutine about to return
    UNCAUGHT_EXCEPTION = "uncaughtException"   # sys / threading excepthook
    UNHANDLED_REJECTION = "unhandledRejection" # failed task / loop exception handler

    @property
    def is_signal(self) -> bool:
        return self.value.startswith("SIG")

    @property
    def is_fault(self) -> bool:
        return self in (
            TerminationTrigger.UNCAUGHT_EXCEPTION,
            TerminationTrigger.UNHANDLED_REJECTION,
        )


class TaskCategory(Enum):
    """Logical grouping of asynchronous tasks."""
    NODE = auto()
    BRIDGE = auto()
    API = auto()
    SYSTEM = auto()
    GENERAL = auto()
