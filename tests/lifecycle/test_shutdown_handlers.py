import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from relaywatch.lifecycle.handlers import (
    APIServerShutdownHandler,
    NodeShutdownHandler,
    SubscriptionShutdownHandler,
)
from relaywatch.lifecycle.supervisor import RelaySupervisor
from relaywatch.models.config import ShutdownConfig
from relaywatch.services.status_bridge import StatusBridge

from conftest import immediate_factory


def test_priorities_put_node_first():
    node = NodeShutdownHandler(MagicMock())
    streams = SubscriptionShutdownHandler(MagicMock())
    api = APIServerShutdownHandler(MagicMock())

    assert node.shutdown_priority > streams.shutdown_priority > api.shutdown_priority


def test_node_handler_timeout_covers_grace_and_stop(state, fake_node):
    supervisor = RelaySupervisor(
        state,
        immediate_factory(fake_node),
        shutdown_config=ShutdownConfig(stop_timeout=2.0, start_grace=3.0),
    )

    assert NodeShutdownHandler(supervisor).shutdown_timeout == 6.0


@pytest.mark.asyncio
async def test_node_handler_stops_published_node(state, fake_node):
    supervisor = RelaySupervisor(state, immediate_factory(fake_node))
    await supervisor.start()

    await NodeShutdownHandler(supervisor).shutdown()

    assert fake_node.stop_calls == 1
    assert state.handle is None


@pytest.mark.asyncio
async def test_subscription_handler_cancels_streams(state):
    bridge = StatusBridge(state, poll_interval=10)
    task = bridge.subscribe("sid-1", AsyncMock())
    await asyncio.sleep(0)

    await SubscriptionShutdownHandler(bridge).shutdown()

    assert task.cancelled()
    assert bridge.subscriber_count == 0


@pytest.mark.asyncio
async def test_api_handler_skips_idle_server():
    wrapper = MagicMock(is_running=False)
    wrapper.stop = AsyncMock()

    await APIServerShutdownHandler(wrapper).shutdown()

    wrapper.stop.assert_not_awaited()


@pytest.mark.asyncio
async def test_api_handler_logs_stop_errors(capsys):
    wrapper = MagicMock(is_running=True)
    wrapper.stop = AsyncMock(side_effect=RuntimeError("socket stuck"))

    await APIServerShutdownHandler(wrapper).shutdown()

    assert "socket stuck" in capsys.readouterr().err
