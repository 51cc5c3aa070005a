from __future__ import annotations
import asyncio
import uvicorn
from typing import Optional
from relaywatch.utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.API)


class APIServerWrapper:
    """
    Runs uvicorn inside an asyncio task without uvicorn's own signal handlers,
    so termination signals reach the ShutdownCoordinator only.

    Behaviour:
      - start() launches uvicorn.Server.serve() as a background task and awaits
        an internal stop event. start() returns only after stop() was called.
      - stop() sets the stop event, asks uvicorn to exit, closes sockets and
        cancels the serve task if it does not finish in time.
      - A bind failure (uvicorn calls sys.exit) surfaces as a RuntimeError from
        start(), so it fails like any other task instead of tearing the loop down.
    """

    def __init__(self, app, host: str = "127.0.0.1", port: int = 8765):
        self.app = app
        self.host = host
        self.port = port
        self._server: Optional[uvicorn.Server] = None
        self._serve_task: Optional[asyncio.Task] = None
        self._stop_event: asyncio.Event = asyncio.Event()

    # ----------------------------------------------------------------------
    # INTERNAL
    # ----------------------------------------------------------------------
    def _create_server(self) -> uvicorn.Server:
        config = uvicorn.Config(
            app=self.app,
            host=self.host,
            port=self.port,
            loop="asyncio",
            log_level="warning",
            access_log=False,
            server_header=False,
        )
        server = uvicorn.Server(config)
        server.install_signal_handlers = lambda: None  # type: ignore
        return server

    async def _serve(self) -> None:
        try:
            await self._server.serve()
        except SystemExit as ex:
            raise RuntimeError(f"Status server exited during startup (code {ex.code})") from None

    # ----------------------------------------------------------------------
    # PUBLIC API
    # ----------------------------------------------------------------------
    async def start(self, *, wait_started_timeout: float = 5.0) -> None:
        """
        Start uvicorn in the background and block until stop() is called.

        Schedule it with create_tracked_task() for a non-blocking start.

        Raises:
            RuntimeError: already started, or uvicorn died before/while serving
        """
        if self._serve_task is not None and not self._serve_task.done():
            raise RuntimeError("Status server already started")

        self._server = self._create_server()
        self._stop_event.clear()

        log.info(f"🌐 Launching status server on http://{self.host}:{self.port}")
        self._serve_task = asyncio.create_task(self._serve(), name="UvicornServeInternal")

        loop = asyncio.get_running_loop()
        deadline = loop.time() + wait_started_timeout
        while loop.time() < deadline:
            if self._serve_task.done():
                break
            if getattr(self._server, "started", False):
                log.info("🌐 Status server started")
                break
            await asyncio.sleep(0.05)

        stop_waiter = asyncio.ensure_future(self._stop_event.wait())
        try:
            done, _ = await asyncio.wait(
                {stop_waiter, self._serve_task}, return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            stop_waiter.cancel()
            log.debug("start() cancelled externally, invoking stop()")
            await self.stop()
            raise

        if self._serve_task in done and not self._stop_event.is_set():
            stop_waiter.cancel()
            exc = self._serve_task.exception()
            self._server = None
            if exc is not None:
                raise exc
            raise RuntimeError("Status server stopped unexpectedly")

        log.debug("APIServerWrapper.start() exiting (stop_event set)")

    async def stop(self, *, shutdown_timeout: float = 2.0) -> None:
        """
        Stop the server and release the port.

        Steps:
          1. set stop_event so start() unblocks
          2. set server.should_exit / force_exit
          3. wait for the serve task, cancel it on timeout
        """
        self._stop_event.set()

        if self._server is None:
            log.debug("Status server stop() called but server was not running")
            return

        log.info("🌐 Stopping status server...")
        self._server.should_exit = True
        self._server.force_exit = True

        if self._serve_task and not self._serve_task.done():
            try:
                await asyncio.wait_for(asyncio.shield(self._serve_task), timeout=shutdown_timeout)
            except asyncio.TimeoutError:
                log.warn("🌐 Status server shutdown timeout; cancelling serve task")
                self._serve_task.cancel()
                await asyncio.gather(self._serve_task, return_exceptions=True)
            except Exception as e:
                log.debug(f"Serve task ended with error: {e}")

        for s in getattr(self._server, "servers", None) or []:
            s.close()

        self._server = None
        self._serve_task = None
        log.info("🌐 Status server stopped and port released")

    # ----------------------------------------------------------------------
    # PROPERTIES
    # ----------------------------------------------------------------------
    @property
    def is_running(self) -> bool:
        return self._serve_task is not None and not self._serve_task.done()

    @property
    def server(self) -> Optional[uvicorn.Server]:
        return self._server
