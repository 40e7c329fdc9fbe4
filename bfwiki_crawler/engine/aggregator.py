"""Concurrency-safe accumulation of crawl results and progress counters."""

from __future__ import annotations

from threading import Lock
from typing import Any, Generic, Iterable, TypeVar

R = TypeVar("R")


class AtomicCounter:
    """Integer counter safe to mutate from any task or thread."""

    __slots__ = ("_value", "_lock")

    def __init__(self, value: int = 0) -> None:
        self._value = value
        self._lock = Lock()

    def increment(self, amount: int = 1) -> int:
        with self._lock:
            self._value += amount
            return self._value

    def decrement(self, amount: int = 1) -> int:
        with self._lock:
            self._value -= amount
            return self._value

    @property
    def value(self) -> int:
        return self._value


class TargetSet:
    """Deduplicating set of crawl targets shared by link-extraction workers."""

    def __init__(self) -> None:
        self._items: set[str] = set()
        self._lock = Lock()

    def add_all(self, urls: Iterable[str]) -> int:
        """Merge ``urls`` and return how many were new."""

        with self._lock:
            before = len(self._items)
            self._items.update(urls)
            return len(self._items) - before

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, url: object) -> bool:
        return url in self._items

    def to_set(self) -> set[str]:
        with self._lock:
            return set(self._items)


class CrawlProgress(Generic[R]):
    """Result collection plus live counters for one crawl invocation.

    Workers merge records and bump counters concurrently; a reporting consumer
    may read the counters at any time. Each counter is atomic on its own, so a
    reader can see e.g. a success counted before the matching record landed.
    """

    def __init__(self) -> None:
        self._pages_discovered = AtomicCounter()
        self._items_succeeded = AtomicCounter()
        self._items_failed = AtomicCounter()
        self._active_workers = AtomicCounter()
        self._results: list[R] = []
        self._results_lock = Lock()

    # -- mutation ------------------------------------------------------
    def merge_result(self, record: R) -> None:
        with self._results_lock:
            self._results.append(record)

    def merge_results(self, records: Iterable[R]) -> None:
        batch = list(records)
        with self._results_lock:
            self._results.extend(batch)

    def increment_discovered(self, amount: int = 1) -> int:
        return self._pages_discovered.increment(amount)

    def increment_succeeded(self) -> int:
        return self._items_succeeded.increment()

    def increment_failed(self) -> int:
        return self._items_failed.increment()

    def increment_active(self) -> int:
        return self._active_workers.increment()

    def decrement_active(self) -> int:
        return self._active_workers.decrement()

    # -- observation ---------------------------------------------------
    @property
    def pages_discovered(self) -> int:
        return self._pages_discovered.value

    @property
    def items_succeeded(self) -> int:
        return self._items_succeeded.value

    @property
    def items_failed(self) -> int:
        return self._items_failed.value

    @property
    def active_workers(self) -> int:
        return self._active_workers.value

    @property
    def result_count(self) -> int:
        return len(self._results)

    def snapshot(self) -> dict[str, Any]:
        return {
            "pages_discovered": self.pages_discovered,
            "items_succeeded": self.items_succeeded,
            "items_failed": self.items_failed,
            "active_workers": self.active_workers,
        }

    def take_results(self) -> list[R]:
        """Hand the collected records over to the caller and reset the buffer."""

        with self._results_lock:
            results, self._results = self._results, []
        return results


__all__ = ["AtomicCounter", "CrawlProgress", "TargetSet"]
