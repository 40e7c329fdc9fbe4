"""Progress event sink consumed by the crawl stages."""

from __future__ import annotations

from typing import Any, Protocol


class ProgressSink(Protocol):
    """Receiver of discrete "task added / advanced / completed" events."""

    def add_task(self, description: str, total: int | None = None) -> Any:
        ...

    def advance(self, task_id: Any, amount: int = 1) -> None:
        ...

    def complete(self, task_id: Any) -> None:
        ...


class NullProgressSink:
    """Sink that ignores every event."""

    def add_task(self, description: str, total: int | None = None) -> int:
        return 0

    def advance(self, task_id: Any, amount: int = 1) -> None:
        return

    def complete(self, task_id: Any) -> None:
        return


class RecordingProgressSink:
    """Sink that keeps every event in memory, handy for summaries and tests."""

    def __init__(self) -> None:
        self.tasks: dict[int, dict[str, Any]] = {}
        self._next_id = 0

    def add_task(self, description: str, total: int | None = None) -> int:
        task_id = self._next_id
        self._next_id += 1
        self.tasks[task_id] = {
            "description": description,
            "total": total,
            "completed": 0,
            "finished": False,
        }
        return task_id

    def advance(self, task_id: int, amount: int = 1) -> None:
        self.tasks[task_id]["completed"] += amount

    def complete(self, task_id: int) -> None:
        self.tasks[task_id]["finished"] = True

    def by_description(self, description: str) -> dict[str, Any]:
        for task in self.tasks.values():
            if task["description"] == description:
                return task
        raise KeyError(description)


__all__ = ["NullProgressSink", "ProgressSink", "RecordingProgressSink"]
