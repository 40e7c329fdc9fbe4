"""Typer CLI entrypoint for the Brave Frontier wiki crawler."""

from __future__ import annotations

import asyncio
import json
import signal
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Coroutine, Optional

import typer
import yaml
from pydantic import ValidationError
from rich import box
from rich.console import Console
from rich.table import Table

from .config import MAX_CONCURRENCY, MIN_CONCURRENCY, ConfigRepository, OutputFormat
from .engine import CrawlProgress
from .engine.exporter import create_exporter, default_output_path
from .errors import CrawlError, FetchError, WriteError
from .logging_conf import available_logs, configure_logging, default_log_dir, tail_log
from .models import CrawlResult, RecordKind
from .orchestrator import Orchestrator
from .ui import CrawlDashboard, CrawlWizard

app = typer.Typer(
    help="Brave Frontier Wiki 数据抓取工具",
    no_args_is_help=True,
    rich_markup_mode=None,
)
config_app = typer.Typer(
    name="config",
    help="配置管理命令",
    no_args_is_help=True,
    rich_markup_mode=None,
)
log_app = typer.Typer(
    name="log",
    help="日志查看命令",
    no_args_is_help=True,
    rich_markup_mode=None,
)

console = Console()


@dataclass
class AppState:
    repository: ConfigRepository
    orchestrator: Orchestrator
    wizard: CrawlWizard


def build_state(verbose: bool) -> AppState:
    repository = ConfigRepository()
    config = repository.load_config()
    configure_logging(verbose=verbose)
    return AppState(
        repository=repository,
        orchestrator=Orchestrator(config),
        wizard=CrawlWizard(repository),
    )


def _get_state(ctx: typer.Context) -> AppState:
    state = ctx.obj
    if state is None:
        state = build_state(verbose=False)
        ctx.obj = state
    return state


# 进度面板策略：默认在交互式终端显示，非TTY自动降级为静默
def _progress_default_enabled() -> bool:
    return bool(getattr(sys.stdout, "isatty", lambda: False)())


def _run_with_cancellation(factory: Callable[[asyncio.Event], Coroutine[Any, Any, CrawlResult]]) -> CrawlResult:
    """Run a crawl coroutine, turning Ctrl+C into a cooperative cancel."""

    async def _main() -> CrawlResult:
        cancel = asyncio.Event()
        loop = asyncio.get_running_loop()
        try:
            loop.add_signal_handler(signal.SIGINT, cancel.set)
        except (NotImplementedError, RuntimeError):
            # Windows or a non-main thread: Ctrl+C falls back to KeyboardInterrupt.
            pass
        try:
            return await factory(cancel)
        finally:
            try:
                loop.remove_signal_handler(signal.SIGINT)
            except (NotImplementedError, RuntimeError):
                pass

    return asyncio.run(_main())


def _resolve_options(
    state: AppState,
    kind: RecordKind,
    fmt: Optional[OutputFormat],
    concurrency: Optional[int],
    output: Optional[Path],
) -> tuple[OutputFormat, int, Path]:
    if fmt is None:
        fmt = state.wizard.choose_format()
    if concurrency is None:
        concurrency = state.wizard.choose_concurrency()
    if output is None:
        output = default_output_path(kind, fmt, state.repository.outputs_dir())
    return fmt, concurrency, output


def _render_result(title: str, result: CrawlResult, item_label: str, failure_label: str, output: Path) -> Table:
    table = Table(title=title, box=box.SIMPLE_HEAD)
    table.add_column("指标", style="cyan")
    table.add_column("数量", style="green", justify="right")
    table.add_row("发现页面", str(result.pages_discovered))
    table.add_row(item_label, str(len(result.records)))
    table.add_row(failure_label, str(result.failed))
    table.add_row("输出文件", str(output))
    return table


def _export(kind: RecordKind, fmt: OutputFormat, output: Path, result: CrawlResult) -> Path:
    exporter = create_exporter(fmt, kind)
    try:
        return exporter.write(output, result.records)
    except WriteError as exc:
        console.print(f"写入输出文件失败：{exc}", style="red")
        raise typer.Exit(code=1)


def _crawl(
    state: AppState,
    kind: RecordKind,
    fmt: Optional[OutputFormat],
    concurrency: Optional[int],
    output: Optional[Path],
    quiet: bool,
) -> None:
    fmt, concurrency, output = _resolve_options(state, kind, fmt, concurrency, output)
    config = state.repository.load_config()
    counters: CrawlProgress[Any] = CrawlProgress()
    if kind is RecordKind.UNITS:
        labels = ("Units Scraped", "Failed Units")
    else:
        labels = ("Pages Scraped", "Failed Pages")
    dashboard = CrawlDashboard(
        counters,
        item_label=labels[0],
        failure_label=labels[1],
        enabled=_progress_default_enabled() and not quiet,
        console=console,
        refresh_per_second=config.live_refresh_per_second,
    )

    async def _start(cancel: asyncio.Event) -> CrawlResult:
        with dashboard:
            if kind is RecordKind.UNITS:
                return await state.orchestrator.run_unit_crawl(
                    concurrency=concurrency, cancel=cancel, progress=counters, events=dashboard
                )
            return await state.orchestrator.run_level_crawl(
                concurrency=concurrency, cancel=cancel, progress=counters, events=dashboard
            )

    try:
        result = _run_with_cancellation(_start)
    except FetchError as exc:
        console.print(f"入口页面无法访问，抓取中止：{exc}", style="red")
        raise typer.Exit(code=1)
    except CrawlError as exc:
        console.print(f"抓取失败：{exc}", style="red")
        raise typer.Exit(code=1)

    written = _export(kind, fmt, output, result)
    if quiet:
        console.print(
            f"运行完成：记录 {len(result.records)}，发现页面 {result.pages_discovered}，失败 {result.failed}，输出 {written}"
        )
        return
    if kind is RecordKind.UNITS:
        table = _render_result("单位抓取结果", result, "单位数量", "失败单位", written)
    else:
        table = _render_result("等级抓取结果", result, "等级数量", "失败页面", written)
    console.print(table)


app.add_typer(config_app, name="config", help="查看或编辑抓取配置")
app.add_typer(log_app, name="log", help="查看日志文件")


@app.callback()
def main(
    ctx: typer.Context, verbose: bool = typer.Option(False, "--verbose", help="开启调试日志", is_flag=True)
) -> None:
    ctx.obj = build_state(verbose)


_FORMAT_OPTION = typer.Option(None, "--format", "-f", help="输出格式（csv/json/msgpack），留空时将提示选择。", case_sensitive=False)
_CONCURRENCY_OPTION = typer.Option(
    None,
    "--concurrency",
    "-c",
    min=MIN_CONCURRENCY,
    max=MAX_CONCURRENCY,
    help="并发抓取数，留空时将提示输入。",
)
_OUTPUT_OPTION = typer.Option(None, "--output", "-o", help="输出文件路径（默认写入 data/outputs）。")
_QUIET_OPTION = typer.Option(False, "--quiet", help="只输出精简结果。", is_flag=True)


@app.command("units", help="抓取全部单位数据。")
def units(
    ctx: typer.Context,
    fmt: Optional[OutputFormat] = _FORMAT_OPTION,
    concurrency: Optional[int] = _CONCURRENCY_OPTION,
    output: Optional[Path] = _OUTPUT_OPTION,
    quiet: bool = _QUIET_OPTION,
) -> None:
    _crawl(_get_state(ctx), RecordKind.UNITS, fmt, concurrency, output, quiet)


@app.command("levels", help="抓取玩家等级经验表。")
def levels(
    ctx: typer.Context,
    fmt: Optional[OutputFormat] = _FORMAT_OPTION,
    concurrency: Optional[int] = _CONCURRENCY_OPTION,
    output: Optional[Path] = _OUTPUT_OPTION,
    quiet: bool = _QUIET_OPTION,
) -> None:
    _crawl(_get_state(ctx), RecordKind.LEVELS, fmt, concurrency, output, quiet)


@config_app.command("show", help="显示当前配置。")
def config_show(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    config = state.repository.load_config()
    table = Table(title="抓取配置", box=box.SIMPLE_HEAD)
    table.add_column("键", style="cyan", no_wrap=True)
    table.add_column("值", style="green", overflow="fold")
    for key, value in config.model_dump(mode="json").items():
        if isinstance(value, list):
            value = "\n".join(str(item) for item in value)
        table.add_row(key, str(value))
    console.print(table)
    console.print(f"配置文件：{state.repository.locator.config_path()}", style="dim")


@config_app.command("edit", help="在编辑器中修改配置。")
def config_edit(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    config = state.repository.load_config()
    content = yaml.safe_dump(
        json.loads(config.model_dump_json()),
        allow_unicode=True,
        sort_keys=False,
    )
    edited = typer.edit(text=content)
    if edited is None:
        console.print("未更新配置（可能未保存或取消编辑）。", style="yellow")
        raise typer.Exit(code=0)
    payload = yaml.safe_load(edited)
    if not isinstance(payload, dict):
        console.print("配置内容解析失败，请检查格式。", style="red")
        raise typer.Exit(code=1)
    try:
        state.wizard.from_payload(payload)
    except ValidationError as exc:
        console.print(f"配置校验失败：{exc}", style="red")
        raise typer.Exit(code=1)
    console.print("配置已更新完成。", style="green")


@log_app.command("tail", help="查看日志末尾内容。")
def log_tail(
    name: str = typer.Argument("crawler", help="日志名称（crawler 或 error）。"),
    lines: int = typer.Option(50, "--lines", "-n", min=1, help="显示的行数。"),
) -> None:
    path = default_log_dir() / f"{name}.log"
    if not path.exists():
        choices = ", ".join(p.stem for p in available_logs()) or "无"
        console.print(f"未找到日志 `{name}`，可用日志：{choices}", style="yellow")
        raise typer.Exit(code=1)
    for line in tail_log(path, lines):
        console.print(line.rstrip("\n"), markup=False, highlight=False)


def cli() -> None:
    app()


__all__ = ["AppState", "app", "build_state", "cli"]


if __name__ == "__main__":  # pragma: no cover
    cli()
