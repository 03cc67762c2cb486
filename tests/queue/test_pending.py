"""Tests for PendingQueue deduplication and drain semantics."""

import asyncio

import pytest

from modelcache import PendingQueue


def make_queue():
    calls = []

    async def task(entity):
        calls.append(entity)
        return entity.get("id")

    return PendingQueue(task, "save"), calls


def test_add_is_idempotent_by_reference():
    queue, _ = make_queue()
    entity = {"name": "a"}

    queue.add(entity)
    queue.add(entity)

    assert len(queue) == 1
    assert entity in queue


def test_equal_but_distinct_entities_are_both_queued():
    queue, _ = make_queue()

    queue.add([{"name": "a"}, {"name": "a"}])

    assert len(queue) == 2
    assert {"name": "a"} not in queue


def test_remove_ignores_unqueued_entities():
    queue, _ = make_queue()
    entity = {"id": 1}
    queue.add(entity)

    queue.remove({"id": 1})
    assert len(queue) == 1

    queue.remove(entity)
    assert len(queue) == 0


def test_iteration_preserves_insertion_order():
    queue, _ = make_queue()
    entities = [{"id": 3}, {"id": 1}, {"id": 2}]
    queue.add(entities)

    assert list(queue) == entities


def test_empty_drops_without_running():
    queue, calls = make_queue()
    queue.add([{"id": 1}, {"id": 2}])

    queue.empty()

    assert len(queue) == 0
    assert calls == []


@pytest.mark.asyncio
async def test_run_empty_queue_returns_empty_list():
    queue, calls = make_queue()

    assert await queue.run() == []
    assert calls == []


@pytest.mark.asyncio
async def test_run_drains_and_returns_results_in_order():
    queue, calls = make_queue()
    queue.add([{"id": 1}, {"id": 2}, {"id": 3}])

    results = await queue.run()

    assert results == [1, 2, 3]
    assert len(calls) == 3
    assert len(queue) == 0


@pytest.mark.asyncio
async def test_run_accepts_sync_task():
    queue = PendingQueue(lambda entity: entity["id"] * 10)
    queue.add([{"id": 1}, {"id": 2}])

    assert await queue.run() == [10, 20]


@pytest.mark.asyncio
async def test_entities_queued_during_run_wait_for_next_run():
    """CRITICAL: the queue is drained before any task starts.

    Why: a task that re-queues (e.g. save re-adding its entity) must not
    extend the current run.
    """
    late = {"id": "late"}
    queue = None

    async def task(entity):
        queue.add(late)
        await asyncio.sleep(0)
        return entity["id"]

    queue = PendingQueue(task)
    queue.add({"id": 1})

    assert await queue.run() == [1]
    assert list(queue) == [late]


@pytest.mark.asyncio
async def test_tasks_run_concurrently():
    started = []
    release = asyncio.Event()

    async def task(entity):
        started.append(entity["id"])
        await release.wait()
        return entity["id"]

    queue = PendingQueue(task)
    queue.add([{"id": 1}, {"id": 2}])

    run = asyncio.ensure_future(queue.run())
    await asyncio.sleep(0)
    await asyncio.sleep(0)
    assert started == [1, 2]

    release.set()
    assert await run == [1, 2]


@pytest.mark.asyncio
async def test_failure_propagates_without_requeue():
    """CRITICAL: a failed run loses the drained entities.

    Why: retry is the caller's job; the queue never re-queues on its own.
    """

    async def task(entity):
        if entity["id"] == 2:
            raise RuntimeError("server down")
        return entity["id"]

    queue = PendingQueue(task)
    queue.add([{"id": 1}, {"id": 2}])

    with pytest.raises(RuntimeError, match="server down"):
        await queue.run()

    assert len(queue) == 0
