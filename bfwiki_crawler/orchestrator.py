"""Crawl orchestrator wiring together discovery, link extraction and detail extraction."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Iterable, Sequence, TypeVar
from urllib.parse import urlsplit

import httpx
import structlog

from .config import CrawlerConfig
from .engine import ConcurrencyGate, CrawlProgress, Fetcher, NullProgressSink, Page, ProgressSink, TargetSet, WikiParser
from .engine.gate import until_cancelled
from .engine.parser import normalize_url
from .errors import CrawlError, ParseError
from .models import CrawlResult, LevelRecord, UnitRecord, canonicalize_levels

R = TypeVar("R")
Extractor = Callable[[Page], Sequence[R]]


class Orchestrator:
    """Central coordinator running the unit and level crawls.

    Each ``run_*`` call opens its own pooled ``Fetcher`` sized to the requested
    concurrency and closes it when the crawl ends.
    """

    def __init__(
        self,
        config: CrawlerConfig,
        transport: httpx.AsyncBaseTransport | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.config = config
        self.transport = transport
        self.parser = WikiParser(config.base_url)
        self.logger = logger or structlog.get_logger("bfwiki_crawler").bind(component="orchestrator")
        self._fetcher: Fetcher | None = None

    # ------------------------------------------------------------------
    # Public entry points
    # ------------------------------------------------------------------
    async def run_unit_crawl(
        self,
        seed_path: str | None = None,
        concurrency: int | None = None,
        cancel: asyncio.Event | None = None,
        progress: CrawlProgress[UnitRecord] | None = None,
        events: ProgressSink | None = None,
    ) -> CrawlResult:
        """Crawl the unit list and every unit page it links to.

        Returns ``(records, pages_discovered, failed_units)``. A seed page that
        cannot be fetched raises ``FetchError``; cancellation returns whatever
        was gathered so far.
        """

        seed_path = seed_path or self.config.unit_list_path
        concurrency = concurrency or self.config.concurrency
        cancel = cancel if cancel is not None else asyncio.Event()
        progress = progress if progress is not None else CrawlProgress()
        events = events or NullProgressSink()
        seed_url = normalize_url(seed_path, self.config.base_url)
        list_name = urlsplit(seed_url).path.rstrip("/").rsplit("/", 1)[-1]

        async with self.session(concurrency):
            list_pages = await self.discover_pages(seed_url, cancel)
            progress.increment_discovered(len(list_pages))
            targets = await self.extract_targets(list_pages, concurrency, cancel, events, list_name=list_name)
            self.logger.info("targets_collected", targets=len(targets), list_pages=len(list_pages))
            records, succeeded, failed = await self.extract_details(
                sorted(targets),
                concurrency,
                lambda page: [self.parser.parse_unit(page)],
                cancel,
                progress,
                events,
                label="Unit pages",
            )
        self.logger.info(
            "unit_crawl_finished",
            records=len(records),
            succeeded=succeeded,
            failed=failed,
            cancelled=cancel.is_set(),
        )
        return CrawlResult(records, progress.pages_discovered, failed)

    async def run_level_crawl(
        self,
        seed_urls: Iterable[str] | None = None,
        concurrency: int | None = None,
        cancel: asyncio.Event | None = None,
        progress: CrawlProgress[LevelRecord] | None = None,
        events: ProgressSink | None = None,
    ) -> CrawlResult:
        """Crawl the level tables and return ``(levels, pages_discovered, failed_pages)``.

        Levels are deduplicated by level number and sorted ascending once every
        page task has settled.
        """

        concurrency = concurrency or self.config.concurrency
        cancel = cancel if cancel is not None else asyncio.Event()
        progress = progress if progress is not None else CrawlProgress()
        events = events or NullProgressSink()

        discover_task = events.add_task("Discovering level pages", total=1)
        pages = [
            normalize_url(url, self.config.base_url, keep_fragment=True)
            for url in (seed_urls if seed_urls is not None else self.config.level_page_urls)
        ]
        progress.increment_discovered(len(pages))
        self.logger.info("level_pages_discovered", pages=len(pages))
        events.advance(discover_task)
        events.complete(discover_task)

        async with self.session(concurrency):
            records, _, failed = await self.extract_details(
                pages,
                concurrency,
                self.parser.parse_levels,
                cancel,
                progress,
                events,
                label="Scraped pages",
                failure_label="Failed pages",
            )
        levels = canonicalize_levels(records)
        self.logger.info(
            "level_crawl_finished",
            levels=len(levels),
            raw_rows=len(records),
            failed_pages=failed,
            cancelled=cancel.is_set(),
        )
        return CrawlResult(levels, progress.pages_discovered, failed)

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------
    async def discover_pages(self, seed_url: str, cancel: asyncio.Event | None = None) -> list[str]:
        """Return the seed list page followed by its pagination pages.

        A fetch failure here is fatal and propagates to the caller.
        """

        page = await until_cancelled(self.fetcher.fetch_and_parse(seed_url), cancel)
        if page is None:
            self.logger.info("discovery_cancelled", seed=seed_url)
            return []
        list_path = urlsplit(seed_url).path
        continuation = self.parser.parse_pagination(page, list_path)
        self.logger.info("list_pages_discovered", seed=seed_url, paginated=len(continuation))
        return [seed_url, *continuation]

    async def extract_targets(
        self,
        list_page_urls: Sequence[str],
        concurrency: int,
        cancel: asyncio.Event | None = None,
        events: ProgressSink | None = None,
        list_name: str = "",
    ) -> set[str]:
        """Collect deduplicated detail URLs from every list page."""

        events = events or NullProgressSink()
        targets = TargetSet()
        task_id = events.add_task("List pages", total=len(list_page_urls))

        async def _process(url: str) -> None:
            try:
                page = await self.fetcher.fetch_and_parse(url)
                links = self.parser.parse_unit_links(page, list_name)
                added = targets.add_all(links)
                self.logger.info("list_page_extracted", url=url, links=len(links), new=added)
            except CrawlError as exc:
                self.logger.warning("list_page_failed", url=url, error=str(exc))
            except Exception as exc:  # noqa: BLE001
                self.logger.error("list_page_error", url=url, error=str(exc))
            finally:
                events.advance(task_id)

        await ConcurrencyGate(concurrency, cancel).run(list_page_urls, _process)
        events.complete(task_id)
        return targets.to_set()

    async def extract_details(
        self,
        targets: Sequence[str],
        concurrency: int,
        extractor: Extractor,
        cancel: asyncio.Event | None = None,
        progress: CrawlProgress[Any] | None = None,
        events: ProgressSink | None = None,
        *,
        label: str = "Detail pages",
        failure_label: str | None = None,
    ) -> tuple[list[Any], int, int]:
        """Fetch every target and merge the records produced by ``extractor``.

        A target contributes either everything its extractor returned or
        nothing at all; failures are counted, never raised.
        """

        progress = progress if progress is not None else CrawlProgress()
        events = events or NullProgressSink()
        done_task = events.add_task(label, total=len(targets))
        failed_task = (
            events.add_task(failure_label, total=len(targets)) if failure_label else done_task
        )
        succeeded_before = progress.items_succeeded
        failed_before = progress.items_failed

        async def _process(url: str) -> None:
            progress.increment_active()
            try:
                page = await self.fetcher.fetch_and_parse(url)
                records = list(extractor(page))
                if not records:
                    raise ParseError(url, "no records extracted")
            except CrawlError as exc:
                self.logger.warning("detail_failed", url=url, error=str(exc))
                progress.increment_failed()
                events.advance(failed_task)
            except Exception as exc:  # noqa: BLE001
                self.logger.error("detail_error", url=url, error=str(exc))
                progress.increment_failed()
                events.advance(failed_task)
            else:
                progress.merge_results(records)
                progress.increment_succeeded()
                events.advance(done_task)
            finally:
                progress.decrement_active()

        await ConcurrencyGate(concurrency, cancel).run(targets, _process)
        events.complete(done_task)
        if failure_label:
            events.complete(failed_task)
        records = progress.take_results()
        return (
            records,
            progress.items_succeeded - succeeded_before,
            progress.items_failed - failed_before,
        )

    # ------------------------------------------------------------------
    @property
    def fetcher(self) -> Fetcher:
        if self._fetcher is None:
            raise RuntimeError("Fetcher is only available inside Orchestrator.session()")
        return self._fetcher

    @asynccontextmanager
    async def session(self, concurrency: int | None = None) -> AsyncIterator[Fetcher]:
        """Open a pooled ``Fetcher`` for the duration of one crawl."""

        fetcher = Fetcher(
            self.config,
            concurrency=concurrency or self.config.concurrency,
            transport=self.transport,
        )
        self._fetcher = fetcher
        try:
            yield fetcher
        finally:
            self._fetcher = None
            await fetcher.close()


__all__ = ["Orchestrator"]
