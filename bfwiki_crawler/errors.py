"""Error hierarchy shared by the crawl pipeline and the exporters."""

from __future__ import annotations


class CrawlError(Exception):
    """Base class for every error raised by the crawler."""


class FetchError(CrawlError):
    """Transport failure, timeout or non-success status for a URL."""

    def __init__(
        self,
        url: str,
        cause: BaseException | None = None,
        status_code: int | None = None,
    ) -> None:
        self.url = url
        self.cause = cause
        self.status_code = status_code
        if status_code is not None:
            detail = f"unexpected status {status_code}"
        elif cause is not None:
            detail = f"{type(cause).__name__}: {cause}"
        else:
            detail = "request failed"
        super().__init__(f"Failed to fetch {url}: {detail}")


class ParseError(CrawlError):
    """Document is malformed or does not have the expected shape."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to parse {url}: {reason}")


class FieldError(CrawlError):
    """A mandatory field is missing or failed its textual conversion."""

    def __init__(self, url: str, field: str, reason: str = "missing") -> None:
        self.url = url
        self.field = field
        self.reason = reason
        super().__init__(f"Field '{field}' {reason} on {url}")


class WriteError(CrawlError):
    """Output file could not be written."""

    def __init__(self, path: object, cause: BaseException | None = None) -> None:
        self.path = path
        self.cause = cause
        super().__init__(f"Failed to write {path}: {cause}")


__all__ = ["CrawlError", "FetchError", "FieldError", "ParseError", "WriteError"]
