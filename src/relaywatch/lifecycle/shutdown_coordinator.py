"""
Shutdown coordinator that turns every termination trigger into one stop
sequence.

Signals, interpreter exit, uncaught exceptions (sync and async) and the
runner's before-exit notification all dispatch synchronously into
``trigger()``. The first call wins the shutdown flag in ProcessState and
runs the registered shutdown handlers in priority order; every later call is
a no-op.
"""

import asyncio
import atexit
import signal
import sys
import threading
import traceback
from typing import Callable, Dict, List, Optional

from relaywatch.lifecycle.task_registry import TaskRecord, TaskRegistry
from relaywatch.models.enums import TerminationTrigger
from relaywatch.models.state import ProcessState
from relaywatch.utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.SHUTDOWN)


# Exit code used when a trigger carries no explicit code.
TRIGGER_EXIT_CODES: Dict[TerminationTrigger, int] = {
    trigger: (1 if trigger.is_fault else 0) for trigger in TerminationTrigger
}


def resolve_exit_code(trigger: TerminationTrigger, hint: Optional[int] = None) -> int:
    return hint if hint is not None else TRIGGER_EXIT_CODES[trigger]


class ShutdownCoordinator:
    """
    Coordinates the one-time shutdown of the relay supervisor.

    Maintains a list of shutdown handlers and executes them in priority order
    when the first termination trigger fires, then exits with the resolved
    code.

    Example:
        coordinator = ShutdownCoordinator(state)
        coordinator.register(NodeShutdownHandler(supervisor))
        coordinator.register(APIServerShutdownHandler(api_wrapper))

        coordinator.install(loop)
        exit_code = await coordinator.wait_for_exit()
    """

    def __init__(
        self,
        state: ProcessState,
        *,
        timeout_per_handler: float = 5.0,
        total_timeout: float = 15.0,
        exit_fn: Optional[Callable[[int], None]] = None,
    ):
        """
        Initialize shutdown coordinator.

        Args:
            state: Shared process state holding the shutdown flag
            timeout_per_handler: Default timeout for each handler (seconds)
            total_timeout: Timeout for the entire shutdown sequence (seconds)
            exit_fn: Called exactly once with the exit code when the sequence
                ends. The runner leaves it unset and awaits wait_for_exit().
        """
        self._state = state
        self._handlers: List = []
        self._timeout_per_handler = timeout_per_handler
        self._total_timeout = total_timeout
        self._exit_fn = exit_fn

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._exit_event = asyncio.Event()
        self._shutdown_task: Optional[asyncio.Task] = None
        self._shutdown_trigger: Dict[str, Optional[str]] = {"reason": None}
        self.exit_code: Optional[int] = None

        self._installed_signals: List[signal.Signals] = []
        self._fallback_signals: Dict[signal.Signals, object] = {}
        self._previous_excepthook = None
        self._previous_threading_excepthook = None
        self._registry: Optional[TaskRegistry] = None

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def register(self, handler) -> None:
        """
        Register a shutdown handler.

        Handler must have:
        - shutdown_priority property (int)
        - async shutdown() method
        and may have a shutdown_timeout attribute overriding the default
        per-handler timeout.
        """
        if not hasattr(handler, "shutdown_priority"):
            raise ValueError(f"Handler {handler} missing shutdown_priority property")
        if not hasattr(handler, "shutdown"):
            raise ValueError(f"Handler {handler} missing shutdown() method")

        self._handlers.append(handler)
        log.debug(f"Registered shutdown handler: {handler.__class__.__name__}")

    def get_handler(self, handler_type: type):
        for handler in self._handlers:
            if isinstance(handler, handler_type):
                return handler
        return None

    # ------------------------------------------------------------------
    # Trigger installation
    # ------------------------------------------------------------------

    def install(
        self,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        registry: Optional[TaskRegistry] = None,
    ) -> None:
        """
        Hook every termination avenue the runtime exposes.

        Walks TRIGGER_EXIT_CODES once; each trigger kind is wired to the
        runtime mechanism that delivers it. BEFORE_EXIT has no runtime hook:
        the runner fires it when its main coroutine unwinds.

        Args:
            loop: Running asyncio event loop
            registry: Task registry whose task failures count as
                unhandled rejections
        """
        self._loop = loop or asyncio.get_running_loop()
        self._registry = registry

        for trigger in TRIGGER_EXIT_CODES:
            if trigger.is_signal:
                self._install_signal(trigger)
            elif trigger is TerminationTrigger.EXIT:
                atexit.register(self._on_interpreter_exit)
            elif trigger is TerminationTrigger.UNCAUGHT_EXCEPTION:
                self._previous_excepthook = sys.excepthook
                self._previous_threading_excepthook = threading.excepthook
                sys.excepthook = self._on_uncaught_exception
                threading.excepthook = self._on_thread_exception
            elif trigger is TerminationTrigger.UNHANDLED_REJECTION:
                self._loop.set_exception_handler(self._on_loop_exception)
                if registry is not None:
                    registry.add_failure_listener(self._on_task_failed)

        names = [s.name for s in self._installed_signals] + [s.name for s in self._fallback_signals]
        log.info("Termination triggers installed", signals=", ".join(names))

    def _install_signal(self, trigger: TerminationTrigger) -> None:
        sig = getattr(signal, trigger.value, None)
        if sig is None:
            log.debug(f"Signal {trigger.value} not available on this platform")
            return

        try:
            self._loop.add_signal_handler(sig, self.trigger, trigger)
            self._installed_signals.append(sig)
        except (NotImplementedError, RuntimeError, ValueError):
            # Loops without add_signal_handler (Windows, non-main thread)
            loop = self._loop

            def _handler(signum, frame, _trigger=trigger):
                loop.call_soon_threadsafe(self.trigger, _trigger)

            try:
                self._fallback_signals[sig] = signal.signal(sig, _handler)
            except (OSError, ValueError) as ex:
                log.warn(f"Cannot install handler for {trigger.value}", error=str(ex))

    def uninstall(self) -> None:
        """Restore every hook install() replaced."""
        for sig in self._installed_signals:
            if self._loop is not None and not self._loop.is_closed():
                self._loop.remove_signal_handler(sig)
        self._installed_signals.clear()

        for sig, previous in self._fallback_signals.items():
            signal.signal(sig, previous)
        self._fallback_signals.clear()

        atexit.unregister(self._on_interpreter_exit)

        if self._previous_excepthook is not None:
            sys.excepthook = self._previous_excepthook
            threading.excepthook = self._previous_threading_excepthook
            self._previous_excepthook = None
            self._previous_threading_excepthook = None

        if self._loop is not None and not self._loop.is_closed():
            self._loop.set_exception_handler(None)

    # ------------------------------------------------------------------
    # Runtime hooks (all funnel into trigger())
    # ------------------------------------------------------------------

    def _on_interpreter_exit(self) -> None:
        self.trigger(TerminationTrigger.EXIT)

    def _on_uncaught_exception(self, exc_type, exc, tb) -> None:
        kind = (
            TerminationTrigger.SIGINT
            if issubclass(exc_type, KeyboardInterrupt)
            else TerminationTrigger.UNCAUGHT_EXCEPTION
        )
        if not self.trigger(kind, error=exc) and self._previous_excepthook:
            self._previous_excepthook(exc_type, exc, tb)

    def _on_thread_exception(self, args) -> None:
        if issubclass(args.exc_type, SystemExit):
            return
        if not self.trigger(TerminationTrigger.UNCAUGHT_EXCEPTION, error=args.exc_value):
            if self._previous_threading_excepthook:
                self._previous_threading_excepthook(args)

    def _on_loop_exception(self, loop: asyncio.AbstractEventLoop, context: dict) -> None:
        exc = context.get("exception")
        if exc is None or isinstance(exc, asyncio.CancelledError):
            loop.default_exception_handler(context)
            return
        if not self.trigger(TerminationTrigger.UNHANDLED_REJECTION, error=exc):
            loop.default_exception_handler(context)

    def _on_task_failed(self, record: TaskRecord, exc: BaseException) -> None:
        self.trigger(
            TerminationTrigger.UNHANDLED_REJECTION,
            error=exc,
            source=record.info.description,
        )

    # ------------------------------------------------------------------
    # Single entry point
    # ------------------------------------------------------------------

    def trigger(
        self,
        kind: TerminationTrigger,
        exit_code: Optional[int] = None,
        error: Optional[BaseException] = None,
        source: Optional[str] = None,
    ) -> bool:
        """
        Start the shutdown sequence unless it already started.

        Safe to call from signal handlers, excepthooks and foreign threads.

        Args:
            kind: Which termination trigger fired
            exit_code: Runtime-supplied code; falls back to TRIGGER_EXIT_CODES
            error: Exception behind a fault trigger (logged with traceback)
            source: Optional origin hint for the log

        Returns:
            True if this call started the shutdown, False if it was ignored.
        """
        if not self._state.request_shutdown():
            return False

        code = resolve_exit_code(kind, exit_code)
        self._shutdown_trigger["reason"] = kind.value
        self._log_trigger(kind, code, error, source)
        self._launch(code)
        return True

    def _log_trigger(
        self,
        kind: TerminationTrigger,
        code: int,
        error: Optional[BaseException],
        source: Optional[str],
    ) -> None:
        if kind.is_fault:
            details = []
            if source:
                details.append(f"source: {source}")
            if error is not None:
                details.append(f"error: {type(error).__name__}: {error}")
                tb = "".join(traceback.format_exception(type(error), error, error.__traceback__))
                details.extend(line for line in tb.rstrip().splitlines())
            log.error(f"{kind.value} → triggering shutdown", details=details, exit_code=code)
        elif kind.is_signal:
            log.info(f"Signal {kind.value} received → triggering shutdown", exit_code=code)
        else:
            log.info(f"Process {kind.value} → triggering shutdown", exit_code=code)

    def _launch(self, code: int) -> None:
        loop = self._loop
        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                loop = None

        if loop is not None and loop.is_running() and not loop.is_closed():
            try:
                current = asyncio.get_running_loop()
            except RuntimeError:
                current = None

            if current is loop:
                self._start_sequence_task(code)
            else:
                loop.call_soon_threadsafe(self._start_sequence_task, code)
            return

        # No live loop (interpreter exit, crash after the loop closed)
        self._run_blocking(code)

    def _start_sequence_task(self, code: int) -> None:
        loop = self._loop or asyncio.get_running_loop()
        self._shutdown_task = loop.create_task(
            self._run_sequence(code), name="ShutdownSequence"
        )

    def _run_blocking(self, code: int) -> None:
        try:
            asyncio.run(self._run_sequence(code))
        except Exception as ex:
            log.error(f"Blocking shutdown sequence failed: {ex}")
            self._finish(code)

    async def _run_sequence(self, code: int) -> None:
        try:
            await self.shutdown_all()
        finally:
            self._finish(code)

    def _finish(self, code: int) -> None:
        if self._exit_event.is_set():
            return
        self.exit_code = code
        self._exit_event.set()
        log.info("👋 Exiting", exit_code=code)
        if self._exit_fn is not None:
            self._exit_fn(code)

    # ------------------------------------------------------------------
    # Stop sequence
    # ------------------------------------------------------------------

    async def shutdown_all(self) -> None:
        """
        Execute shutdown of all handlers in priority order.

        Handlers are called in descending priority order (highest first).
        Each handler has its own timeout and the whole sequence has a global
        timeout. A failing or hanging handler is logged and skipped.
        """
        log.info("🛑 Initiating shutdown sequence...")
        log.info(f"   Reason: {self._shutdown_trigger.get('reason') or 'UNKNOWN'}")

        sorted_handlers = sorted(
            self._handlers, key=lambda h: h.shutdown_priority, reverse=True
        )

        loop = asyncio.get_running_loop()
        start_time = loop.time()

        for handler in sorted_handlers:
            handler_name = handler.__class__.__name__
            priority = handler.shutdown_priority

            elapsed = loop.time() - start_time
            remaining = self._total_timeout - elapsed
            if remaining <= 0:
                log.error(
                    f"⚠️  Total shutdown timeout exceeded ({elapsed:.1f}s > {self._total_timeout}s)"
                )
                break

            timeout = getattr(handler, "shutdown_timeout", None) or self._timeout_per_handler
            timeout = min(timeout, remaining)

            try:
                log.debug(f"Shutting down {handler_name} (priority={priority})...")
                await asyncio.wait_for(handler.shutdown(), timeout=timeout)
                log.debug(f"✓ {handler_name} shutdown complete")

            except asyncio.TimeoutError:
                log.error(f"⚠️  {handler_name} shutdown timeout ({timeout:.1f}s)")

            except asyncio.CancelledError:
                log.debug(f"{handler_name} shutdown was cancelled")
                raise

            except Exception as e:
                log.error(f"❌ Error shutting down {handler_name}: {e}")

        log.info("✓ Shutdown sequence complete")

    # ------------------------------------------------------------------
    # Waiting
    # ------------------------------------------------------------------

    @property
    def shutdown_started(self) -> bool:
        return self._state.shutdown_requested

    @property
    def reason(self) -> Optional[str]:
        return self._shutdown_trigger.get("reason")

    async def wait_for_exit(self) -> int:
        """Block until the shutdown sequence finished; return the exit code."""
        await self._exit_event.wait()
        return self.exit_code
