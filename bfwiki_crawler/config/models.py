"""Pydantic models describing crawler configuration."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

DEFAULT_BASE_URL = "https://bravefrontierglobal.fandom.com"
DEFAULT_LEVEL_PAGE_URLS = [
    f"{DEFAULT_BASE_URL}/wiki/Player_Level#Level_{start}_-_{end}"
    for start, end in (
        (1, 100),
        (101, 200),
        (201, 300),
        (301, 400),
        (401, 500),
        (501, 600),
        (601, 700),
        (701, 800),
        (801, 900),
        (901, 999),
    )
]
MIN_CONCURRENCY = 1
MAX_CONCURRENCY = 32


class OutputFormat(str, Enum):
    """Supported serialisation formats."""

    CSV = "csv"
    JSON = "json"
    MSGPACK = "msgpack"


class CrawlerConfig(BaseModel):
    """Settings shared by the unit and level crawls."""

    base_url: str = DEFAULT_BASE_URL
    unit_list_path: str = "/wiki/Unit_List"
    level_page_urls: list[str] = Field(default_factory=lambda: list(DEFAULT_LEVEL_PAGE_URLS))
    concurrency: int = 8
    request_timeout: float = 30.0
    # Seconds an idle pooled connection is kept before being recycled.
    pool_lifetime: float = 300.0
    user_agent: str = "Mozilla/5.0 (compatible; BFWikiCrawler/0.1; +https://bravefrontierglobal.fandom.com/)"
    output_format: OutputFormat = OutputFormat.CSV
    outputs_dir: Path = Field(default=Path("data/outputs"))
    live_refresh_per_second: float = 4.0

    @field_validator("base_url", mode="before")
    @classmethod
    def _strip_base_url(cls, value: Any) -> str:
        text = str(value or "").strip().rstrip("/")
        if not text.startswith(("http://", "https://")):
            raise ValueError("base_url must be an absolute http(s) URL")
        return text

    @field_validator("unit_list_path", mode="before")
    @classmethod
    def _coerce_list_path(cls, value: Any) -> str:
        text = str(value or "").strip()
        if not text:
            raise ValueError("unit_list_path cannot be empty")
        return text if text.startswith("/") else f"/{text}"

    @field_validator("outputs_dir", mode="before")
    @classmethod
    def _coerce_dir(cls, value: Any) -> Path:
        return Path(value)

    @model_validator(mode="after")
    def _validate_ranges(self) -> "CrawlerConfig":
        if not MIN_CONCURRENCY <= self.concurrency <= MAX_CONCURRENCY:
            raise ValueError(
                f"concurrency must be between {MIN_CONCURRENCY} and {MAX_CONCURRENCY}"
            )
        if self.request_timeout <= 0:
            raise ValueError("request_timeout must be > 0")
        if self.pool_lifetime <= 0:
            raise ValueError("pool_lifetime must be > 0")
        if self.live_refresh_per_second <= 0:
            raise ValueError("live_refresh_per_second must be > 0")
        if not self.level_page_urls:
            raise ValueError("level_page_urls cannot be empty")
        return self

    def resolved_outputs_dir(self, base_dir: Path) -> Path:
        """Return outputs directory relative to the project root."""

        if not self.outputs_dir.is_absolute():
            return (base_dir / self.outputs_dir).resolve()
        return self.outputs_dir


__all__ = [
    "CrawlerConfig",
    "DEFAULT_BASE_URL",
    "DEFAULT_LEVEL_PAGE_URLS",
    "MAX_CONCURRENCY",
    "MIN_CONCURRENCY",
    "OutputFormat",
]
