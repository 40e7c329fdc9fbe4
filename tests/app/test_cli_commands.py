from __future__ import annotations

import json
from pathlib import Path
from types import SimpleNamespace

from typer.testing import CliRunner

from bfwiki_crawler.app import AppState, app
from bfwiki_crawler.config import CrawlerConfig, OutputFormat
from bfwiki_crawler.errors import FetchError
from bfwiki_crawler.models import CrawlResult, LevelRecord, UnitRecord
from bfwiki_crawler.ui import CrawlWizard


class StubOrchestrator:
    def __init__(self, result: CrawlResult | None = None, error: Exception | None = None) -> None:
        self.result = result
        self.error = error
        self.calls: list[tuple[str, int]] = []

    async def run_unit_crawl(self, concurrency=None, cancel=None, progress=None, events=None) -> CrawlResult:
        self.calls.append(("units", concurrency))
        if self.error is not None:
            raise self.error
        return self.result

    async def run_level_crawl(self, concurrency=None, cancel=None, progress=None, events=None) -> CrawlResult:
        self.calls.append(("levels", concurrency))
        return self.result


def make_state(tmp_path: Path, orchestrator: StubOrchestrator, wizard=None) -> AppState:
    config = CrawlerConfig()
    repository = SimpleNamespace(
        load_config=lambda: config,
        outputs_dir=lambda: tmp_path / "outputs",
    )
    return AppState(repository=repository, orchestrator=orchestrator, wizard=wizard or SimpleNamespace())


def test_cli_units_writes_output(monkeypatch, tmp_path) -> None:
    result = CrawlResult([UnitRecord("1", "Vargas", "3", "10011", "https://img.test/v.png")], 3, 2)
    state = make_state(tmp_path, StubOrchestrator(result))
    monkeypatch.setattr("bfwiki_crawler.app.build_state", lambda verbose: state)
    output = tmp_path / "units.json"

    runner = CliRunner()
    invocation = runner.invoke(app, ["units", "-f", "json", "-c", "4", "-o", str(output)])
    assert invocation.exit_code == 0, invocation.stdout
    assert state.orchestrator.calls == [("units", 4)]
    assert json.loads(output.read_text(encoding="utf-8"))[0]["unitDataId"] == "10011"
    text = invocation.stdout
    assert "单位抓取结果" in text
    assert "失败单位" in text


def test_cli_levels_prompts_for_missing_options(monkeypatch, tmp_path) -> None:
    result = CrawlResult([LevelRecord(1, 0), LevelRecord(2, 150)], 10, 0)
    wizard = SimpleNamespace(
        choose_format=lambda: OutputFormat.CSV,
        choose_concurrency=lambda: 6,
    )
    state = make_state(tmp_path, StubOrchestrator(result), wizard)
    monkeypatch.setattr("bfwiki_crawler.app.build_state", lambda verbose: state)

    runner = CliRunner()
    invocation = runner.invoke(app, ["levels", "--quiet"])
    assert invocation.exit_code == 0, invocation.stdout
    assert state.orchestrator.calls == [("levels", 6)]
    written = tmp_path / "outputs" / "brave_frontier_levels.csv"
    assert written.read_text(encoding="utf-8").splitlines() == ["Level;XpRequired", "1;0", "2;150"]
    assert "运行完成" in invocation.stdout


def test_cli_units_reports_fatal_seed_error(monkeypatch, tmp_path) -> None:
    error = FetchError("https://wiki.test/wiki/Unit_List", status_code=500)
    state = make_state(tmp_path, StubOrchestrator(error=error))
    monkeypatch.setattr("bfwiki_crawler.app.build_state", lambda verbose: state)

    runner = CliRunner()
    invocation = runner.invoke(app, ["units", "-f", "csv", "-c", "2"])
    assert invocation.exit_code == 1
    assert "抓取中止" in invocation.stdout
    assert not (tmp_path / "outputs" / "brave_frontier_units.csv").exists()


def test_cli_config_show_and_edit(monkeypatch, temp_config_repository) -> None:
    state = AppState(
        repository=temp_config_repository,
        orchestrator=SimpleNamespace(),
        wizard=CrawlWizard(temp_config_repository),
    )
    monkeypatch.setattr("bfwiki_crawler.app.build_state", lambda verbose: state)
    runner = CliRunner()

    shown = runner.invoke(app, ["config", "show"])
    assert shown.exit_code == 0, shown.stdout
    assert "抓取配置" in shown.stdout
    assert "base_url" in shown.stdout

    def fake_edit(text: str) -> str:
        return text.replace("concurrency: 8", "concurrency: 12")

    monkeypatch.setattr("bfwiki_crawler.app.typer.edit", fake_edit)
    edited = runner.invoke(app, ["config", "edit"])
    assert edited.exit_code == 0, edited.stdout
    assert temp_config_repository.load_config().concurrency == 12


def test_cli_config_edit_rejects_invalid_values(monkeypatch, temp_config_repository) -> None:
    state = AppState(
        repository=temp_config_repository,
        orchestrator=SimpleNamespace(),
        wizard=CrawlWizard(temp_config_repository),
    )
    monkeypatch.setattr("bfwiki_crawler.app.build_state", lambda verbose: state)
    monkeypatch.setattr(
        "bfwiki_crawler.app.typer.edit", lambda text: text.replace("concurrency: 8", "concurrency: 99")
    )

    invocation = CliRunner().invoke(app, ["config", "edit"])
    assert invocation.exit_code == 1
    assert "配置校验失败" in invocation.stdout
    assert temp_config_repository.load_config().concurrency == 8


def test_cli_log_tail(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("BFWIKI_CRAWLER_HOME", str(tmp_path))
    monkeypatch.setattr("bfwiki_crawler.app.build_state", lambda verbose: SimpleNamespace())
    log_dir = tmp_path / "logs"
    log_dir.mkdir()
    (log_dir / "crawler.log").write_text("first\nsecond\nthird\n", encoding="utf-8")

    runner = CliRunner()
    invocation = runner.invoke(app, ["log", "tail", "crawler", "-n", "2"])
    assert invocation.exit_code == 0, invocation.stdout
    assert "first" not in invocation.stdout
    assert "second" in invocation.stdout and "third" in invocation.stdout

    missing = runner.invoke(app, ["log", "tail", "error"])
    assert missing.exit_code == 1
    assert "crawler" in missing.stdout
