"""Interactive prompts for crawl options."""

from __future__ import annotations

from typing import Any, Mapping

import click
import typer

from ..config import MAX_CONCURRENCY, MIN_CONCURRENCY, ConfigRepository, CrawlerConfig, OutputFormat


class CrawlWizard:
    """Ask for the options a crawl needs when they were not given on the command line."""

    def __init__(self, repository: ConfigRepository) -> None:
        self.repository = repository

    def choose_format(self, default: OutputFormat | None = None) -> OutputFormat:
        default = default or self.repository.load_config().output_format
        choice = typer.prompt(
            "请选择输出格式",
            default=default.value,
            type=click.Choice([fmt.value for fmt in OutputFormat], case_sensitive=False),
        )
        return OutputFormat(choice.lower())

    def choose_concurrency(self, default: int | None = None) -> int:
        default = default or self.repository.load_config().concurrency
        return typer.prompt(
            f"请输入并发数 ({MIN_CONCURRENCY}-{MAX_CONCURRENCY})",
            default=default,
            type=click.IntRange(MIN_CONCURRENCY, MAX_CONCURRENCY),
        )

    def from_payload(self, payload: Mapping[str, Any]) -> CrawlerConfig:
        config = CrawlerConfig.model_validate(dict(payload))
        self.repository.save_config(config)
        return config


__all__ = ["CrawlWizard"]
