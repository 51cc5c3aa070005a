"""
Supervisor runner end to end, status server disabled.
"""

import asyncio
import os
import signal

import pytest

from relaywatch.app import run_supervisor
from relaywatch.lifecycle.task_registry import TaskRegistry, create_tracked_task
from relaywatch.models.config import RelaywatchConfig
from relaywatch.models.enums import TaskCategory
from relaywatch.models.errors import ConfigError

from conftest import FakeNode, failing_factory, immediate_factory


def _config():
    config = RelaywatchConfig()
    config.server.enabled = False
    config.bridge.poll_interval = 0.01
    return config


async def _later(delay, fn, *args):
    await asyncio.sleep(delay)
    fn(*args)


@pytest.mark.asyncio
async def test_sigterm_stops_node_and_returns_zero():
    node = FakeNode()
    asyncio.create_task(_later(0.05, os.kill, os.getpid(), signal.SIGTERM))

    code = await asyncio.wait_for(
        run_supervisor(_config(), node_factory=immediate_factory(node), registry=TaskRegistry()),
        timeout=5.0,
    )

    assert code == 0
    assert node.stop_calls == 1


@pytest.mark.asyncio
async def test_failed_start_keeps_running_until_triggered(capsys):
    asyncio.create_task(_later(0.05, os.kill, os.getpid(), signal.SIGINT))

    code = await asyncio.wait_for(
        run_supervisor(_config(), node_factory=failing_factory(OSError("port taken")), registry=TaskRegistry()),
        timeout=5.0,
    )

    assert code == 0
    assert "Error starting relay" in capsys.readouterr().err


@pytest.mark.asyncio
async def test_failed_task_exits_with_one():
    node = FakeNode()
    registry = TaskRegistry()

    async def crash():
        await asyncio.sleep(0.05)
        raise RuntimeError("background job died")

    async def spawn():
        await asyncio.sleep(0)
        create_tracked_task(crash(), category=TaskCategory.GENERAL, description="Background job", registry=registry)

    asyncio.create_task(spawn())
    code = await asyncio.wait_for(
        run_supervisor(_config(), node_factory=immediate_factory(node), registry=registry),
        timeout=5.0,
    )

    assert code == 1
    assert node.stop_calls == 1


@pytest.mark.asyncio
async def test_cancelled_runner_still_stops_node():
    node = FakeNode()
    runner = asyncio.create_task(
        run_supervisor(_config(), node_factory=immediate_factory(node), registry=TaskRegistry())
    )
    await asyncio.sleep(0.05)

    runner.cancel()
    with pytest.raises(asyncio.CancelledError):
        await asyncio.wait_for(runner, timeout=5.0)

    assert node.stop_calls == 1


@pytest.mark.asyncio
async def test_unresolvable_factory_raises_config_error():
    config = _config()
    config.node.factory = "relaywatch.nowhere:start"

    with pytest.raises(ConfigError):
        await run_supervisor(config, registry=TaskRegistry())


@pytest.mark.asyncio
async def test_system_exit_code_reaches_before_exit(monkeypatch, capsys):
    def exit_on_first_task(coro, **kwargs):
        coro.close()
        raise SystemExit(3)

    monkeypatch.setattr("relaywatch.app.create_tracked_task", exit_on_first_task)

    with pytest.raises(SystemExit) as exc_info:
        await run_supervisor(_config(), node_factory=immediate_factory(FakeNode()), registry=TaskRegistry())

    assert exc_info.value.code == 3
    err = capsys.readouterr().err
    assert "beforeExit" in err
    assert "exit_code: 3" in err
