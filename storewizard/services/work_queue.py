"""Bounded-concurrency worker queue for per-item remote pushes.

Items are started in list order and results always come back in list order.
With ``concurrency=1`` the pushes are strictly sequential, which keeps the
progress indicator meaningful for the merchant.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Worker = Callable[[T], Awaitable[Any]]
# async def on_progress(result, completed, total) -> None
ProgressCallback = Callable[["ItemResult[Any]", int, int], Awaitable[None]]


@dataclass
class ItemResult(Generic[T]):
    index: int
    item: T
    done: bool
    value: Any = None
    error: str | None = None


class WorkQueue(Generic[T]):
    def __init__(self, concurrency: int = 1, on_progress: ProgressCallback | None = None):
        self.concurrency = max(1, concurrency)
        self.on_progress = on_progress
        self.completed = 0
        self.total = 0

    @property
    def percentage(self) -> int:
        if not self.total:
            return 100
        return round(self.completed * 100 / self.total)

    async def run(self, items: list[T], worker: Worker) -> list[ItemResult[T]]:
        """Run ``worker`` over ``items``; a failing item never stops the rest.

        A worker signals failure either by raising or by returning an object
        whose ``success`` attribute is false.
        """
        self.completed = 0
        self.total = len(items)
        semaphore = asyncio.Semaphore(self.concurrency)
        lock = asyncio.Lock()

        async def _run_one(index: int, item: T) -> ItemResult[T]:
            async with semaphore:
                try:
                    value = await worker(item)
                except Exception as exc:
                    logger.warning("Queue item %d failed: %s", index, exc)
                    result = ItemResult(index=index, item=item, done=False, error=str(exc) or type(exc).__name__)
                else:
                    if getattr(value, "success", True):
                        result = ItemResult(index=index, item=item, done=True, value=value)
                    else:
                        result = ItemResult(
                            index=index, item=item, done=False, value=value, error=getattr(value, "error", None)
                        )

            async with lock:
                self.completed += 1
                if self.on_progress is not None:
                    await self.on_progress(result, self.completed, self.total)
            return result

        if self.concurrency == 1:
            return [await _run_one(i, item) for i, item in enumerate(items)]
        return list(await asyncio.gather(*(_run_one(i, item) for i, item in enumerate(items))))
