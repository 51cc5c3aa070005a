"""
Task Registry
-------------

Centralized tracking of asyncio tasks created by the supervisor.

Features:
- Register tasks with metadata (category, description)
- Track completion state, cancellation, errors
- Failure listeners: a task dying with an exception is reported to every
  listener (the shutdown coordinator routes it into an unhandled-rejection
  trigger)
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from relaywatch.models.enums import TaskCategory
from relaywatch.utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.TASK)

FailureListener = Callable[["TaskRecord", BaseException], None]


# ---------------------------------------------------------------------------
# TASK METADATA
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TaskInfo:
    """Immutable metadata captured at task creation time."""
    id: int
    category: TaskCategory
    description: str
    created_at: str  # ISO UTC string


@dataclass
class TaskRecord:
    """Internal structure tracking task state."""
    task: asyncio.Task
    info: TaskInfo
    cancelled: bool = False
    finished_with_error: Optional[BaseException] = None
    finished_return: Optional[Any] = None
    finished_at: Optional[str] = None

    @property
    def status(self) -> str:
        if not self.task.done():
            return "running"
        if self.cancelled:
            return "cancelled"
        if self.finished_with_error is not None:
            return "failed"
        return "completed"


# ---------------------------------------------------------------------------
# TASK REGISTRY
# ---------------------------------------------------------------------------

class TaskRegistry:
    """
    Registry for the asyncio tasks of one supervisor run.

    Responsibilities:
    - Track tasks and metadata
    - Detect and log task failures, notify failure listeners
    - Expose active tasks for shutdown
    """

    _instance: Optional["TaskRegistry"] = None

    def __init__(self) -> None:
        self._records: Dict[int, TaskRecord] = {}
        self._by_task: Dict[asyncio.Task, int] = {}
        self._next_id: int = 1
        self._failure_listeners: List[FailureListener] = []

    # -----------------------------
    # Shared accessor
    # -----------------------------
    @classmethod
    def instance(cls) -> "TaskRegistry":
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Drop the shared registry (tests, repeated runs in one interpreter)."""
        cls._instance = None

    # -----------------------------
    # Register new task
    # -----------------------------
    def register(
        self,
        task: asyncio.Task,
        category: TaskCategory,
        description: str,
    ) -> int:
        task_id = self._next_id
        self._next_id += 1

        info = TaskInfo(
            id=task_id,
            category=category,
            description=description,
            created_at=datetime.now(timezone.utc).isoformat(),
        )
        self._records[task_id] = TaskRecord(task=task, info=info)
        self._by_task[task] = task_id

        log.debug(f"[Task {task_id}] Registered ({category.name}) - {description}")

        task.add_done_callback(self._on_task_done)
        return task_id

    def add_failure_listener(self, listener: FailureListener) -> None:
        self._failure_listeners.append(listener)

    # -----------------------------
    # Internal completion handler
    # -----------------------------
    def _on_task_done(self, task: asyncio.Task) -> None:
        record = self._get_record_by_task(task)
        if record is None:
            return

        record.finished_at = datetime.now(timezone.utc).isoformat()

        if task.cancelled():
            record.cancelled = True
            log.debug(f"[Task {record.info.id}] Cancelled")
            return

        exc = task.exception()
        if exc is None:
            record.finished_return = task.result()
            log.debug(f"[Task {record.info.id}] Completed successfully")
            return

        record.finished_with_error = exc
        log.error(
            f"[Task {record.info.id}] FAILED: {record.info.description}",
            error=f"{type(exc).__name__}: {exc}",
        )
        for listener in list(self._failure_listeners):
            listener(record, exc)

    def _get_record_by_task(self, task: asyncio.Task) -> Optional[TaskRecord]:
        task_id = self._by_task.get(task)
        return self._records.get(task_id) if task_id is not None else None

    # -----------------------------
    # Public API
    # -----------------------------

    def list_all(self) -> List[TaskRecord]:
        return list(self._records.values())

    def active(self, category: Optional[TaskCategory] = None) -> List[TaskRecord]:
        """Return only tasks that are still running."""
        return [
            r for r in self._records.values()
            if not r.task.done() and (category is None or r.info.category is category)
        ]

    def failed(self) -> List[TaskRecord]:
        return [r for r in self._records.values() if r.finished_with_error is not None]

    def cancelled(self) -> List[TaskRecord]:
        return [r for r in self._records.values() if r.cancelled]

    def summary(self) -> str:
        """Return human-readable summary for logs."""
        return (
            f"Tasks: total={len(self._records)}, running={len(self.active())}, "
            f"failed={len(self.failed())}, cancelled={len(self.cancelled())}"
        )

    def get_all_as_dicts(self) -> List[Dict[str, Any]]:
        return [
            {
                "id": r.info.id,
                "category": r.info.category.name,
                "description": r.info.description,
                "created_at": r.info.created_at,
                "finished_at": r.finished_at,
                "status": r.status,
                "error": str(r.finished_with_error) if r.finished_with_error else None,
            }
            for r in self._records.values()
        ]


# ---------------------------------------------------------------------------
# Convenience wrapper function
# ---------------------------------------------------------------------------

def create_tracked_task(
    coro,
    *,
    category: TaskCategory,
    description: str,
    registry: Optional[TaskRegistry] = None,
) -> asyncio.Task:
    """
    Create and register a task in a single call.
    """
    loop = asyncio.get_running_loop()
    task = loop.create_task(coro, name=description)
    (registry or TaskRegistry.instance()).register(
        task=task,
        category=category,
        description=description,
    )
    return task
