"""
Process-wide supervisor state

One instance per process, created by the runner and injected into the
supervisor, the shutdown coordinator and the status bridge. All reads and
writes of the handle slot and the shutdown flag go through one lock, so
triggers arriving from signal handlers, excepthooks or foreign threads see
a consistent view.
"""

from __future__ import annotations

import asyncio
import threading
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from relaywatch.node.protocol import NodeHandle


class ProcessState:
    """
    Holds the current NodeHandle and the shutdown-completion flag.

    Invariants:
    - ``shutdown_requested`` goes False -> True exactly once
    - the handle slot is either empty or holds a live handle
    - once the slot is claimed for stopping it is sealed: later publishes fail
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._handle: Optional["NodeHandle"] = None
        self._shutdown_requested = False
        self._sealed = False
        self._start_pending = False
        self._start_settled = asyncio.Event()

    # ------------------------------------------------------------------
    # Shutdown flag
    # ------------------------------------------------------------------

    def request_shutdown(self) -> bool:
        """
        Atomically set the shutdown flag.

        Returns:
            True for the caller that flipped the flag, False for everyone after.
        """
        with self._lock:
            if self._shutdown_requested:
                return False
            self._shutdown_requested = True
            return True

    @property
    def shutdown_requested(self) -> bool:
        with self._lock:
            return self._shutdown_requested

    # ------------------------------------------------------------------
    # Handle slot
    # ------------------------------------------------------------------

    @property
    def handle(self) -> Optional["NodeHandle"]:
        with self._lock:
            return self._handle

    @property
    def start_pending(self) -> bool:
        with self._lock:
            return self._start_pending

    def begin_start(self) -> None:
        with self._lock:
            self._start_pending = True
            self._start_settled.clear()

    def publish(self, handle: "NodeHandle") -> bool:
        """
        Store a freshly started handle.

        Returns:
            False when shutdown already claimed the slot; the caller then
            still owns the handle and must stop it itself.
        """
        with self._lock:
            self._start_pending = False
            accepted = not self._sealed
            if accepted:
                self._handle = handle
        self._start_settled.set()
        return accepted

    def mark_start_failed(self) -> None:
        with self._lock:
            self._start_pending = False
        self._start_settled.set()

    async def wait_start_settled(self) -> None:
        if not self.start_pending:
            return
        await self._start_settled.wait()

    def claim_handle(self) -> Optional["NodeHandle"]:
        """
        Take the handle out of the slot for stopping and seal the slot.

        The slot is left empty, so nothing queries a handle that is being
        (or has been) stopped.
        """
        with self._lock:
            self._sealed = True
            handle, self._handle = self._handle, None
            return handle
