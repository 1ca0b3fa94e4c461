import asyncio

import pytest

from storewizard.services.work_queue import WorkQueue
from storewizard.services.zid import RemoteResult


@pytest.mark.asyncio
async def test_sequential_queue_runs_in_order_and_isolates_failures():
    started = []
    progress = []

    async def worker(item):
        started.append(item)
        if item == "b":
            raise ValueError("bad item")
        if item == "c":
            return RemoteResult(success=False, error="rejected")
        return RemoteResult(success=True, data=item.upper())

    async def on_progress(result, completed, total):
        progress.append((result.index, result.done, completed, total))

    queue = WorkQueue(concurrency=1, on_progress=on_progress)
    results = await queue.run(["a", "b", "c", "d"], worker)

    assert started == ["a", "b", "c", "d"]
    assert [r.done for r in results] == [True, False, False, True]
    assert results[1].error == "bad item"
    assert results[2].error == "rejected"
    assert results[3].value.data == "D"
    assert progress == [(0, True, 1, 4), (1, False, 2, 4), (2, False, 3, 4), (3, True, 4, 4)]
    assert queue.percentage == 100


@pytest.mark.asyncio
async def test_concurrency_is_bounded_and_results_keep_order():
    running = 0
    peak = 0

    async def worker(item):
        nonlocal running, peak
        running += 1
        peak = max(peak, running)
        await asyncio.sleep(0.01 * (5 - item))
        running -= 1
        return item * 10

    queue = WorkQueue(concurrency=2)
    results = await queue.run([1, 2, 3, 4], worker)

    assert peak == 2
    assert [r.value for r in results] == [10, 20, 30, 40]
    assert all(r.done for r in results)


@pytest.mark.asyncio
async def test_empty_queue_is_complete():
    queue = WorkQueue()
    assert await queue.run([], lambda item: item) == []
    assert queue.percentage == 100
