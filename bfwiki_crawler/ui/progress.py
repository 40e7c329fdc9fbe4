"""Terminal progress helpers with Rich-based rendering."""

from __future__ import annotations

from datetime import datetime
from threading import Lock
from typing import Any

from rich import box
from rich.console import Console, Group, RenderableType
from rich.errors import LiveError
from rich.live import Live
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    ProgressColumn,
    SpinnerColumn,
    Task,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table
from rich.text import Text

from ..engine import CrawlProgress


class RateColumn(ProgressColumn):
    """显示抓取速率的自定义列，格式为 "X.X page/s"。"""

    def render(self, task: Task) -> Text:
        speed = task.finished_speed or task.speed
        if speed is None:
            return Text("", style="progress.percentage")
        return Text(f"{speed:.1f} page/s", style="progress.percentage")


class CrawlDashboard:
    """Live terminal view of one crawl: a counter table above per-stage bars.

    Doubles as the ``ProgressSink`` handed to the orchestrator. Rich refreshes
    from its own thread and reads the counters without taking any crawl lock.
    Falls back to a silent sink when the console is not a terminal.
    """

    def __init__(
        self,
        counters: CrawlProgress[Any],
        title: str = "Scraping Progress",
        item_label: str = "Units Scraped",
        failure_label: str = "Failed Units",
        enabled: bool = True,
        console: Console | None = None,
        refresh_per_second: float = 4.0,
    ) -> None:
        self.counters = counters
        self.title = title
        self.item_label = item_label
        self.failure_label = failure_label
        self.console = console or Console()
        self.enabled = enabled and self.console.is_terminal
        self.refresh_per_second = refresh_per_second
        self._progress = Progress(
            SpinnerColumn(style="cyan"),
            TextColumn("[bold blue]{task.description:<24}", justify="left"),
            BarColumn(bar_width=None, complete_style="green", finished_style="green", pulse_style="cyan"),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            RateColumn(),
            console=self.console,
            expand=True,
        )
        self._live: Live | None = None
        self._lock = Lock()

    def __enter__(self) -> "CrawlDashboard":
        if not self.enabled:
            return self
        self._live = Live(
            get_renderable=self._render,
            console=self.console,
            refresh_per_second=self.refresh_per_second,
            transient=False,
        )
        try:
            self._live.start()
        except LiveError:
            # 同一控制台已存在活动显示，退化为静默模式
            self._live = None
            self.enabled = False
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._live is not None:
            try:
                self._live.refresh()
            finally:
                self._live.stop()
                self._live = None

    # -- ProgressSink --------------------------------------------------
    def add_task(self, description: str, total: int | None = None) -> TaskID:
        with self._lock:
            return self._progress.add_task(description, total=total)

    def advance(self, task_id: TaskID, amount: int = 1) -> None:
        with self._lock:
            self._progress.advance(task_id, amount)

    def complete(self, task_id: TaskID) -> None:
        with self._lock:
            task = self._progress.tasks[self._task_index(task_id)]
            self._progress.update(task_id, total=task.completed)
            self._progress.stop_task(task_id)

    def _task_index(self, task_id: TaskID) -> int:
        for index, task in enumerate(self._progress.tasks):
            if task.id == task_id:
                return index
        raise KeyError(task_id)

    # -- rendering -----------------------------------------------------
    def build_table(self) -> Table:
        table = Table(title=f"[bold cyan]{self.title}[/]", box=box.ROUNDED)
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="green", justify="right")
        table.add_row("Pages Discovered", str(self.counters.pages_discovered))
        table.add_row(self.item_label, str(self.counters.items_succeeded))
        table.add_row(self.failure_label, str(self.counters.items_failed))
        table.add_row("Active Tasks", str(self.counters.active_workers))
        table.add_row("Last Updated", datetime.now().strftime("%H:%M:%S"))
        return table

    def _render(self) -> RenderableType:
        return Group(self.build_table(), self._progress)


__all__ = ["CrawlDashboard", "RateColumn"]
