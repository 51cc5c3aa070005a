import asyncio

import pytest

from relaywatch.lifecycle.task_registry import TaskRegistry, create_tracked_task
from relaywatch.models.enums import TaskCategory


@pytest.mark.asyncio
async def test_tracks_completed_cancelled_and_failed_tasks():
    registry = TaskRegistry()

    async def ok():
        return 42

    async def boom():
        raise ValueError("nope")

    async def forever():
        await asyncio.sleep(10)

    t_ok = create_tracked_task(ok(), category=TaskCategory.GENERAL, description="ok", registry=registry)
    t_boom = create_tracked_task(boom(), category=TaskCategory.NODE, description="boom", registry=registry)
    t_forever = create_tracked_task(forever(), category=TaskCategory.BRIDGE, description="forever", registry=registry)

    await asyncio.gather(t_ok, t_boom, return_exceptions=True)
    assert [r.info.description for r in registry.active()] == ["forever"]
    assert registry.active(TaskCategory.NODE) == []

    t_forever.cancel()
    await asyncio.gather(t_forever, return_exceptions=True)
    await asyncio.sleep(0)

    statuses = {d["description"]: d["status"] for d in registry.get_all_as_dicts()}
    assert statuses == {"ok": "completed", "boom": "failed", "forever": "cancelled"}
    assert registry.list_all()[0].finished_return == 42
    assert "failed=1" in registry.summary()


@pytest.mark.asyncio
async def test_failure_listener_receives_record_and_exception():
    registry = TaskRegistry()
    seen = []
    registry.add_failure_listener(lambda record, exc: seen.append((record.info.description, exc)))

    async def boom():
        raise RuntimeError("died")

    task = create_tracked_task(boom(), category=TaskCategory.API, description="Status server", registry=registry)
    await asyncio.gather(task, return_exceptions=True)
    await asyncio.sleep(0)

    assert len(seen) == 1
    assert seen[0][0] == "Status server"
    assert isinstance(seen[0][1], RuntimeError)


@pytest.mark.asyncio
async def test_cancelled_task_does_not_notify_listeners():
    registry = TaskRegistry()
    seen = []
    registry.add_failure_listener(lambda record, exc: seen.append(exc))

    task = create_tracked_task(asyncio.sleep(10), category=TaskCategory.GENERAL, description="sleep", registry=registry)
    await asyncio.sleep(0)
    task.cancel()
    await asyncio.gather(task, return_exceptions=True)
    await asyncio.sleep(0)

    assert seen == []


def test_shared_instance_and_reset():
    first = TaskRegistry.instance()
    assert TaskRegistry.instance() is first
    TaskRegistry.reset()
    assert TaskRegistry.instance() is not first
