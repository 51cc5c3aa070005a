"""
Relay lifecycle supervisor.

Owns the single NodeHandle of the process: starts it once, publishes it into
ProcessState, and stops it when the shutdown coordinator asks. A failed start
is logged and tolerated; the host keeps running and the status bridge keeps
reporting "not initialized".
"""

from __future__ import annotations

import asyncio
from typing import Optional

from relaywatch.lifecycle.task_registry import create_tracked_task
from relaywatch.models.config import NodeConfig, ShutdownConfig
from relaywatch.models.enums import TaskCategory
from relaywatch.models.errors import StartError, StopError
from relaywatch.models.state import ProcessState
from relaywatch.node.addresses import trim_addresses
from relaywatch.node.protocol import NodeFactory, NodeHandle
from relaywatch.utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.NODE)


class RelaySupervisor:
    """
    Example:
        supervisor = RelaySupervisor(state, start_local_relay, NodeConfig())
        coordinator.register(NodeShutdownHandler(supervisor))
        await supervisor.start()
    """

    def __init__(
        self,
        state: ProcessState,
        node_factory: NodeFactory,
        node_config: Optional[NodeConfig] = None,
        shutdown_config: Optional[ShutdownConfig] = None,
    ):
        self._state = state
        self._node_factory = node_factory
        self._node_config = node_config or NodeConfig()
        shutdown_config = shutdown_config or ShutdownConfig()
        self.stop_timeout = shutdown_config.stop_timeout
        self.start_grace = shutdown_config.start_grace
        self._started = False
        self.last_error: Optional[StartError] = None

    @property
    def state(self) -> ProcessState:
        return self._state

    async def start(self) -> Optional[NodeHandle]:
        """
        Start the relay node. Callable once per process.

        Returns:
            The published handle, or None when start failed or shutdown
            began before the node came up.

        Raises:
            RuntimeError: start() was already called
        """
        if self._started:
            raise RuntimeError("Relay node already started")
        self._started = True

        if self._state.shutdown_requested:
            log.warn("Shutdown already requested; relay node not started")
            self._state.mark_start_failed()
            return None

        self._state.begin_start()
        log.info("Starting relay node...")

        try:
            handle = await self._node_factory(self._node_config)
        except asyncio.CancelledError:
            self._state.mark_start_failed()
            raise
        except Exception as ex:
            self.last_error = ex if isinstance(ex, StartError) else StartError(str(ex), cause=ex)
            self._state.mark_start_failed()
            log.error(
                "Error starting relay",
                error=f"{type(ex).__name__}: {ex}",
            )
            return None

        if not self._state.publish(handle):
            # shutdown already claimed the slot and will not look again
            log.warn("Relay node came up after shutdown; stopping it now")
            await self.stop_handle(handle)
            return None

        log.info("Relay Node started", addresses=trim_addresses(handle.get_multiaddrs()))
        return handle

    async def stop_node(self) -> None:
        """
        Stop the published node, if any. Used by the shutdown sequence only.

        Waits (bounded by start_grace) for an in-flight start so a node that
        is still coming up is stopped too, then claims the handle out of
        ProcessState and stops it.
        """
        if self._state.start_pending:
            log.info("Waiting for relay start to settle before stopping...")
            try:
                await asyncio.wait_for(self._state.wait_start_settled(), timeout=self.start_grace)
            except asyncio.TimeoutError:
                log.warn(f"Relay start still pending after {self.start_grace}s; not waiting longer")
            except asyncio.CancelledError:
                # seal the slot so a start resolving later stops its own handle
                handle = self._state.claim_handle()
                if handle is not None:
                    create_tracked_task(
                        self.stop_handle(handle),
                        category=TaskCategory.NODE,
                        description="Relay node stop",
                    )
                log.warn("Relay stop cancelled while start was pending; slot sealed")
                raise

        handle = self._state.claim_handle()
        if handle is None:
            log.debug("No relay node to stop")
            return

        await self.stop_handle(handle)

    async def stop_handle(self, handle: NodeHandle) -> None:
        """Bounded, best-effort stop. Never raises except on cancellation."""
        log.info("Stopping relay node...")
        try:
            await asyncio.wait_for(handle.stop(), timeout=self.stop_timeout)
            log.info("Relay node stopped")
        except asyncio.TimeoutError:
            log.error(f"⚠️  Relay node stop timeout ({self.stop_timeout}s)")
        except asyncio.CancelledError:
            raise
        except Exception as ex:
            err = StopError(str(ex), cause=ex)
            log.error("Error stopping relay", error=f"{type(ex).__name__}: {err}")
