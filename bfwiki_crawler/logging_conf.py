"""Logging configuration built around structlog JSON logging."""

from __future__ import annotations

import logging.config
import os
from pathlib import Path
from typing import Any, Iterable

import structlog

LOGGER_NAME = "bfwiki_crawler"
LOG_FILES = {"crawler_file": ("crawler.log", "INFO"), "error_file": ("error.log", "ERROR")}

_LOGGING_INITIALISED = False


def default_log_dir() -> Path:
    env_root = os.environ.get("BFWIKI_CRAWLER_HOME")
    if env_root:
        return Path(env_root).expanduser().resolve() / "logs"
    return Path(__file__).resolve().parents[1] / "logs"


def _logging_dict(log_dir: Path, verbose: bool) -> dict[str, Any]:
    handlers: dict[str, dict[str, Any]] = {
        # The live dashboard owns the terminal, so the console only gets warnings.
        "console": {
            "class": "logging.StreamHandler",
            "level": "DEBUG" if verbose else "WARNING",
            "formatter": "json",
        },
    }
    for handler_name, (filename, level) in LOG_FILES.items():
        handlers[handler_name] = {
            "class": "logging.FileHandler",
            "level": level,
            "filename": str(log_dir / filename),
            "formatter": "json",
            "encoding": "utf-8",
        }
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": "pythonjsonlogger.jsonlogger.JsonFormatter",
                "fmt": "%(asctime)s %(levelname)s %(name)s %(message)s",
            }
        },
        "handlers": handlers,
        "loggers": {
            LOGGER_NAME: {
                "handlers": list(handlers),
                "level": "DEBUG" if verbose else "INFO",
                "propagate": False,
            },
            # httpx logs every request at INFO
            "httpx": {"level": "WARNING"},
        },
    }


def configure_logging(verbose: bool = False) -> structlog.BoundLogger:
    """Route structlog events through stdlib handlers writing JSON lines.

    Safe to call more than once; only the first call installs handlers.
    """

    global _LOGGING_INITIALISED
    log_dir = default_log_dir()
    log_dir.mkdir(parents=True, exist_ok=True)
    for filename, _ in LOG_FILES.values():
        (log_dir / filename).touch(exist_ok=True)

    if not _LOGGING_INITIALISED:
        logging.config.dictConfig(_logging_dict(log_dir, verbose))
        structlog.configure(
            processors=[
                structlog.contextvars.merge_contextvars,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.stdlib.add_log_level,
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
            ],
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )
        _LOGGING_INITIALISED = True
    return structlog.get_logger(LOGGER_NAME)


def tail_log(path: Path, line_count: int = 100) -> list[str]:
    """Return the last N lines from a log file."""

    if not path.exists():
        return []
    with path.open("r", encoding="utf-8", errors="ignore") as stream:
        lines = stream.readlines()
    return lines[-line_count:]


def available_logs() -> Iterable[Path]:
    log_dir = default_log_dir()
    if not log_dir.exists():
        return []
    return sorted(log_dir.glob("*.log"))


__all__ = ["available_logs", "configure_logging", "default_log_dir", "tail_log"]
