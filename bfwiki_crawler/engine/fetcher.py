"""HTTP fetching and HTML parsing for wiki pages."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

import httpx
import structlog
from selectolax.parser import HTMLParser

from ..config import CrawlerConfig
from ..errors import FetchError, ParseError


@dataclass(slots=True)
class Page:
    """Parsed document together with the URL it was fetched from."""

    url: str
    tree: HTMLParser = field(repr=False)


class Fetcher:
    """Fetch pages over a pooled async client and hand back parsed documents.

    One instance is shared by every task of a crawl. The connection pool is
    sized by the crawl concurrency so each gate slot can hold a connection.
    """

    def __init__(
        self,
        config: CrawlerConfig,
        concurrency: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.config = config
        self.concurrency = concurrency or config.concurrency
        self.logger = logger or structlog.get_logger("bfwiki_crawler.fetcher")
        limits = httpx.Limits(
            max_connections=self.concurrency,
            max_keepalive_connections=self.concurrency,
            keepalive_expiry=config.pool_lifetime,
        )
        client_kwargs: dict[str, Any] = {
            "follow_redirects": True,
            "timeout": httpx.Timeout(config.request_timeout),
            "limits": limits,
            "headers": {"User-Agent": config.user_agent},
        }
        if transport is not None:
            client_kwargs["transport"] = transport
        self._client = httpx.AsyncClient(**client_kwargs)

    async def __aenter__(self) -> "Fetcher":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    async def fetch_and_parse(self, url: str) -> Page:
        """Fetch ``url`` and parse it; raise ``FetchError`` or ``ParseError``.

        ``request_timeout`` caps the whole request, body included; httpx's own
        timeout only bounds each connect/read/write phase.
        """

        try:
            response = await asyncio.wait_for(self._client.get(url), timeout=self.config.request_timeout)
        except asyncio.TimeoutError as exc:
            raise FetchError(url, cause=exc) from exc
        except httpx.HTTPError as exc:
            raise FetchError(url, cause=exc) from exc
        if self._is_failure(response):
            raise FetchError(url, status_code=response.status_code)
        text = response.text
        if not text.strip():
            raise ParseError(url, "empty document")
        tree = HTMLParser(text)
        if tree.body is None:
            raise ParseError(url, "document has no body")
        self.logger.debug("page_fetched", url=url, status=response.status_code, size=len(text))
        return Page(url=str(response.url), tree=tree)

    @staticmethod
    def _is_failure(response: Any) -> bool:
        status_code = getattr(response, "status_code", 0)
        return not 200 <= status_code < 300


__all__ = ["Fetcher", "Page"]
