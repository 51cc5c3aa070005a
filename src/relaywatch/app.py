"""
app.py - supervisor runner
--------------------------

Responsible for:
- building the process state, supervisor, coordinator and status bridge
- wiring shutdown handlers and installing termination triggers
- starting the relay node and the status server as tracked tasks
- returning the exit code decided by the shutdown coordinator
"""

import asyncio
from typing import Optional

from relaywatch.api.main import create_asgi_app
from relaywatch.lifecycle import RelaySupervisor, ShutdownCoordinator
from relaywatch.lifecycle.api_server_wrapper import APIServerWrapper
from relaywatch.lifecycle.handlers import (
    APIServerShutdownHandler,
    NodeShutdownHandler,
    SubscriptionShutdownHandler,
)
from relaywatch.lifecycle.task_registry import TaskRegistry, create_tracked_task
from relaywatch.models.config import RelaywatchConfig
from relaywatch.models.enums import TaskCategory, TerminationTrigger
from relaywatch.models.state import ProcessState
from relaywatch.node.factory import load_node_factory
from relaywatch.node.protocol import NodeFactory
from relaywatch.services.status_bridge import StatusBridge
from relaywatch.utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.SYSTEM)


def _system_exit_code(ex: SystemExit) -> int:
    """Status the interpreter will exit with for this SystemExit."""
    if ex.code is None:
        return 0
    if isinstance(ex.code, int):
        return ex.code
    return 1


async def run_supervisor(
    config: RelaywatchConfig,
    *,
    node_factory: Optional[NodeFactory] = None,
    registry: Optional[TaskRegistry] = None,
) -> int:
    """
    Run until a termination trigger completes the shutdown sequence.

    Args:
        config: Loaded configuration
        node_factory: Overrides config.node.factory (tests, embedding hosts)
        registry: Task registry (default: shared instance)

    Returns:
        Process exit code

    Raises:
        ConfigError: node factory path cannot be resolved
    """
    node_factory = node_factory or load_node_factory(config.node.factory)
    registry = registry or TaskRegistry.instance()
    loop = asyncio.get_running_loop()

    # ========================================================================
    # 1. STATE & CORE COMPONENTS
    # ========================================================================

    state = ProcessState()
    coordinator = ShutdownCoordinator(
        state,
        timeout_per_handler=config.shutdown.stop_timeout,
        total_timeout=config.shutdown.total_timeout,
    )
    supervisor = RelaySupervisor(state, node_factory, config.node, config.shutdown)
    bridge = StatusBridge(state, poll_interval=config.bridge.poll_interval, registry=registry)

    coordinator.register(NodeShutdownHandler(supervisor))
    coordinator.register(SubscriptionShutdownHandler(bridge))

    # ========================================================================
    # 2. STATUS SERVER
    # ========================================================================

    api_wrapper: Optional[APIServerWrapper] = None
    if config.server.enabled:
        asgi_app, _ = create_asgi_app(
            bridge,
            state,
            channel=config.bridge.channel,
            cors_origins=config.server.cors_origins,
        )
        api_wrapper = APIServerWrapper(asgi_app, host=config.server.host, port=config.server.port)
        coordinator.register(APIServerShutdownHandler(api_wrapper))

    # ========================================================================
    # 3. TRIGGERS & START
    # ========================================================================

    coordinator.install(loop, registry)
    exit_hint: Optional[int] = None
    try:
        create_tracked_task(
            supervisor.start(),
            category=TaskCategory.NODE,
            description="Relay node start",
            registry=registry,
        )
        if api_wrapper is not None:
            create_tracked_task(
                api_wrapper.start(),
                category=TaskCategory.API,
                description="Status server",
                registry=registry,
            )

        log.info("🏁 Supervisor running. Waiting for termination trigger...")
        return await coordinator.wait_for_exit()

    except Exception as ex:
        coordinator.trigger(TerminationTrigger.UNCAUGHT_EXCEPTION, error=ex)
        return await coordinator.wait_for_exit()

    except SystemExit as ex:
        exit_hint = _system_exit_code(ex)
        raise

    finally:
        # no-op when a trigger already ran the sequence
        if coordinator.trigger(TerminationTrigger.BEFORE_EXIT, exit_code=exit_hint):
            await coordinator.wait_for_exit()
        coordinator.uninstall()
        log.debug(registry.summary())
