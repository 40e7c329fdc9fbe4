"""Bounded fan-out of async workers with cooperative cancellation."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Iterable, TypeVar

T = TypeVar("T")


class ConcurrencyGate:
    """Run one worker per item while at most ``limit`` workers execute at once.

    Setting ``cancel`` stops the batch: workers still waiting for a slot never
    get one and in-flight workers are cancelled at their current await.
    """

    def __init__(self, limit: int, cancel: asyncio.Event | None = None) -> None:
        if limit < 1:
            raise ValueError("limit must be >= 1")
        self.limit = limit
        self.cancel = cancel if cancel is not None else asyncio.Event()
        self._semaphore = asyncio.Semaphore(limit)
        self._active = 0
        self.peak_active = 0

    @property
    def active(self) -> int:
        return self._active

    async def run(self, items: Iterable[T], worker: Callable[[T], Awaitable[None]]) -> None:
        """Fan ``worker`` out over ``items`` and wait for all of them or cancellation.

        Exceptions escaping a worker are re-raised once the batch has settled;
        workers are expected to handle their own recoverable errors.
        """

        if self.cancel.is_set():
            return
        tasks = [asyncio.create_task(self._guarded(worker, item)) for item in items]
        if not tasks:
            return
        batch = asyncio.gather(*tasks, return_exceptions=True)
        watcher = asyncio.ensure_future(self.cancel.wait())
        try:
            await asyncio.wait({batch, watcher}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            watcher.cancel()
            if not batch.done():
                for task in tasks:
                    task.cancel()
            outcomes = await batch
        for outcome in outcomes:
            if isinstance(outcome, Exception):
                raise outcome

    async def _guarded(self, worker: Callable[[T], Awaitable[None]], item: T) -> None:
        async with self._semaphore:
            if self.cancel.is_set():
                return
            self._active += 1
            self.peak_active = max(self.peak_active, self._active)
            try:
                await worker(item)
            finally:
                self._active -= 1


async def until_cancelled(awaitable: Awaitable[T], cancel: asyncio.Event | None) -> T | None:
    """Await ``awaitable`` unless ``cancel`` fires first, in which case return ``None``."""

    if cancel is None:
        return await awaitable
    if cancel.is_set():
        # Close the coroutine so it is not reported as never awaited.
        if asyncio.iscoroutine(awaitable):
            awaitable.close()
        return None
    task = asyncio.ensure_future(awaitable)
    watcher = asyncio.ensure_future(cancel.wait())
    try:
        await asyncio.wait({task, watcher}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        watcher.cancel()
        if not task.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
    if task.cancelled():
        return None
    return task.result()


__all__ = ["ConcurrencyGate", "until_cancelled"]
