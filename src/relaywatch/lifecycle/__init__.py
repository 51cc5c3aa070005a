"""
Lifecycle subsystem
-------------------

Exports the public API for:
- relay node supervision
- one-time shutdown on any termination trigger
- task tracking & introspection
- shutdown handlers

External code should import from:
    from relaywatch.lifecycle import ShutdownCoordinator, RelaySupervisor
    from relaywatch.lifecycle.handlers import NodeShutdownHandler
"""

from .shutdown_coordinator import ShutdownCoordinator, TRIGGER_EXIT_CODES, resolve_exit_code
from .supervisor import RelaySupervisor
from .task_registry import TaskRegistry, TaskInfo, TaskRecord, create_tracked_task
from .shutdown_protocol import IShutdownHandler
from . import handlers

__all__ = [
    "ShutdownCoordinator",
    "TRIGGER_EXIT_CODES",
    "resolve_exit_code",
    "RelaySupervisor",
    "TaskRegistry",
    "TaskInfo",
    "TaskRecord",
    "create_tracked_task",
    "IShutdownHandler",
    "handlers",
]
