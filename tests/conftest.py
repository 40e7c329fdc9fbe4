"""Pytest configuration providing an in-memory wiki and shared fixtures."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Callable, Iterable, Sequence

import httpx
import pytest

from bfwiki_crawler.config import ConfigLocator, ConfigRepository, CrawlerConfig

BASE_URL = "https://wiki.test"


class FakeWiki:
    """Async ``MockTransport`` handler serving canned pages keyed by ``scheme://host/path``.

    Tracks every request and the peak number of requests in flight so tests
    can assert on the concurrency bound.
    """

    def __init__(self, delay: float = 0.0) -> None:
        self.pages: dict[str, tuple[int, str]] = {}
        self.broken: set[str] = set()
        self.requests: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.delay = delay
        self.on_request: Callable[[str], None] | None = None

    def add(self, path: str, body: str, status: int = 200) -> None:
        self.pages[f"{BASE_URL}{path}"] = (status, body)

    def break_connection(self, path: str) -> None:
        self.broken.add(f"{BASE_URL}{path}")

    def requested_paths(self) -> list[str]:
        return [url[len(BASE_URL):] for url in self.requests]

    async def handler(self, request: httpx.Request) -> httpx.Response:
        key = f"{request.url.scheme}://{request.url.host}{request.url.path}"
        self.requests.append(key)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.on_request is not None:
                self.on_request(key)
            if self.delay:
                await asyncio.sleep(self.delay)
            if key in self.broken:
                raise httpx.ConnectError("connection refused", request=request)
            status, body = self.pages.get(key, (404, "<html><body>missing</body></html>"))
            return httpx.Response(status, text=body, headers={"content-type": "text/html"})
        finally:
            self.in_flight -= 1

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


def list_page(unit_paths: Iterable[str], pagination: Sequence[str] = ()) -> str:
    nav = "".join(f'<a href="{href}">{index}</a>' for index, href in enumerate(pagination, start=2))
    rows = "".join(
        f'<tr><td><a href="/wiki/File:Icon.png">icon</a></td><td><a href="{path}">{path}</a></td></tr>'
        for path in unit_paths
    )
    return (
        "<html><body>"
        f'<div class="list-nav">{nav}</div>'
        f'<table class="wikitable"><tr><th>Unit</th></tr>{rows}'
        '<tr><td><a href="/wiki/Category:Units">all</a></td></tr></table>'
        "</body></html>"
    )


def unit_page(
    name: str = "Vargas",
    unit_id: str | None = "1",
    rarity: str | None = "3",
    data_id: str | None = "10011",
    images: Sequence[str] = (
        "https://static.wiki.test/images/unit_ills_thum_10011.png/revision/latest/scale-to-width-down/42?cb=1",
        "https://static.wiki.test/images/unit_ills_full_10011.png/revision/latest/scale-to-width-down/300?cb=1",
    ),
) -> str:
    rows = []
    for label, value in (("Unit No.", unit_id), ("Rarity", rarity), ("Data ID", data_id)):
        if value is not None:
            rows.append(f"<tr><th>{label}</th><td>{value}</td></tr>")
    links = "".join(
        f'<a class="mw-file-description image" href="{href}"><img src="x.png"></a>' for href in images
    )
    return (
        "<html><body>"
        f'<div class="unit-header"><b>{name}</b></div>'
        f'<div class="unit-info unit-box"><table>{"".join(rows)}</table></div>'
        f"{links}"
        "</body></html>"
    )


def level_page(rows: Iterable[tuple[str, str]]) -> str:
    body = "".join(
        f'<tr><td style="font-weight: bold;">{level}</td><td>-</td><td>{xp}</td></tr>' for level, xp in rows
    )
    return (
        "<html><body>"
        '<table class="article-table"><tr><th>Level</th><th>Cost</th><th>Exp</th></tr>'
        f"{body}</table>"
        "</body></html>"
    )


@pytest.fixture
def crawler_config() -> CrawlerConfig:
    return CrawlerConfig(base_url=BASE_URL, concurrency=4)


@pytest.fixture
def fake_wiki() -> FakeWiki:
    return FakeWiki()


@pytest.fixture
def temp_config_repository(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterable[ConfigRepository]:
    monkeypatch.setenv("BFWIKI_CRAWLER_HOME", str(tmp_path))
    locator = ConfigLocator(project_root=tmp_path)
    repository = ConfigRepository(locator)
    yield repository
