"""Configuration package exports."""

from .loader import ConfigLocator, ConfigRepository
from .models import (
    DEFAULT_BASE_URL,
    DEFAULT_LEVEL_PAGE_URLS,
    MAX_CONCURRENCY,
    MIN_CONCURRENCY,
    CrawlerConfig,
    OutputFormat,
)

__all__ = [
    "ConfigLocator",
    "ConfigRepository",
    "CrawlerConfig",
    "DEFAULT_BASE_URL",
    "DEFAULT_LEVEL_PAGE_URLS",
    "MAX_CONCURRENCY",
    "MIN_CONCURRENCY",
    "OutputFormat",
]
