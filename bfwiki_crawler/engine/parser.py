"""DOM extraction rules for the Brave Frontier wiki."""

from __future__ import annotations

import re
from urllib.parse import urljoin, urlsplit, urlunsplit

import structlog
from selectolax.parser import Node

from ..errors import FieldError
from ..models import LevelRecord, UnitRecord
from .fetcher import Page

EXCLUDED_LINK_MARKERS = ("File:", "Category:", "Special:", "Template:")
UNIT_INFO_LABELS = {"Unit No.": "unit_id", "Data ID": "unit_data_id", "Rarity": "rarity"}
LEVEL_TABLE_SELECTOR = "table.article-table, table.wikitable, div.wds-tab__content table"
IMAGE_LINK_SELECTOR = "a.mw-file-description.image"
_BOLD_STYLE = re.compile(r"font-weight\s*:\s*bold", re.IGNORECASE)
_XP_SEPARATORS = re.compile(r"[,.\s]")


def normalize_url(href: str, base_url: str, *, keep_fragment: bool = False) -> str:
    """Resolve ``href`` against ``base_url`` into ``scheme://host/path``."""

    href = href.strip()
    if href.startswith("//"):
        href = "https:" + href
    absolute = urljoin(base_url.rstrip("/") + "/", href)
    parts = urlsplit(absolute)
    fragment = parts.fragment if keep_fragment else ""
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", fragment))


def normalize_image_url(href: str, base_url: str) -> str:
    """Strip wiki thumbnail scaling and make the image URL absolute."""

    clean = href.split("/scale-to-width-down/", 1)[0].strip()
    if clean.startswith("//"):
        return "https:" + clean
    if not clean.startswith("http"):
        return base_url.rstrip("/") + ("" if clean.startswith("/") else "/") + clean
    return clean


class WikiParser:
    """Parse list pages, unit detail pages and level tables."""

    def __init__(self, base_url: str, logger: structlog.BoundLogger | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.logger = logger or structlog.get_logger("bfwiki_crawler.parser")

    # ------------------------------------------------------------------
    # Discovery / link extraction
    # ------------------------------------------------------------------
    def parse_pagination(self, page: Page, list_path: str) -> list[str]:
        """Return continuation pages of ``list_path`` linked from ``page`` in document order."""

        seed = normalize_url(page.url, self.base_url)
        pages: list[str] = []
        seen: set[str] = {seed}
        for node in page.tree.css(f"a[href*='{list_path}:']"):
            href = (node.attributes.get("href") or "").strip()
            if not href:
                continue
            full_url = normalize_url(href, self.base_url)
            if full_url not in seen:
                seen.add(full_url)
                pages.append(full_url)
        return pages

    def parse_unit_links(self, page: Page, list_name: str) -> list[str]:
        """Return unit detail URLs listed in the wikitables of ``page``."""

        entries: list[str] = []
        seen: set[str] = set()
        for node in page.tree.css("table.wikitable a[href*='/wiki/']"):
            href = (node.attributes.get("href") or "").strip()
            if not href or self._is_excluded(href, list_name):
                continue
            full_url = normalize_url(href, self.base_url)
            if full_url not in seen:
                seen.add(full_url)
                entries.append(full_url)
        return entries

    @staticmethod
    def _is_excluded(href: str, list_name: str) -> bool:
        if any(marker in href for marker in EXCLUDED_LINK_MARKERS):
            return True
        return bool(list_name) and list_name in href

    # ------------------------------------------------------------------
    # Detail extraction
    # ------------------------------------------------------------------
    def parse_unit(self, page: Page) -> UnitRecord:
        """Build a ``UnitRecord`` or raise ``FieldError`` for the first missing field."""

        name_node = page.tree.css_first("div.unit-header b")
        name = name_node.text(strip=True) if name_node else ""

        fields = self._unit_info_fields(page)
        for label, key in UNIT_INFO_LABELS.items():
            if not fields.get(key):
                raise FieldError(page.url, label)

        image_url = self._splash_art_url(page)
        if not image_url:
            raise FieldError(page.url, "image")

        return UnitRecord(
            unit_id=fields["unit_id"],
            name=name,
            rarity=fields["rarity"],
            unit_data_id=fields["unit_data_id"],
            image_url=image_url,
        )

    def _unit_info_fields(self, page: Page) -> dict[str, str]:
        fields: dict[str, str] = {}
        info_box = page.tree.css_first("div.unit-info.unit-box")
        if info_box is None:
            return fields
        for row in info_box.css("tr"):
            header = row.css_first("th")
            value = row.css_first("td")
            if header is None or value is None:
                continue
            key = UNIT_INFO_LABELS.get(header.text(strip=True))
            text = value.text(strip=True)
            # A repeated label keeps its first non-empty value.
            if key and text and key not in fields:
                fields[key] = text
        return fields

    def _splash_art_url(self, page: Page) -> str:
        # The first file link is the unit thumbnail; the splash art is the second.
        links = page.tree.css(IMAGE_LINK_SELECTOR)
        if len(links) >= 2:
            chosen = links[1]
        elif links:
            self.logger.info("image_fallback_used", url=page.url)
            chosen = links[0]
        else:
            return ""
        href = (chosen.attributes.get("href") or "").strip()
        return normalize_image_url(href, self.base_url) if href else ""

    def parse_levels(self, page: Page) -> list[LevelRecord]:
        """Extract level rows from the experience tables of ``page``.

        Rows whose level or XP cannot be parsed are skipped; a page without a
        single usable row raises ``FieldError``.
        """

        levels: list[LevelRecord] = []
        tables = page.tree.css(LEVEL_TABLE_SELECTOR)
        self.logger.debug("level_tables_found", url=page.url, count=len(tables))
        for table in tables:
            for row in table.css("tr"):
                record = self._level_row(row, page.url)
                if record is not None:
                    levels.append(record)
        if not levels:
            raise FieldError(page.url, "level table", reason="has no parseable rows")
        self.logger.info("levels_extracted", url=page.url, count=len(levels))
        return levels

    def _level_row(self, row: Node, url: str) -> LevelRecord | None:
        cells = row.css("td")
        if not cells:
            return None
        first = cells[0]
        if not _BOLD_STYLE.search(first.attributes.get("style") or ""):
            return None
        level_text = first.text(strip=True)
        try:
            level = int(level_text)
        except ValueError:
            self.logger.warning("level_parse_failed", url=url, text=level_text)
            return None
        xp_text = _XP_SEPARATORS.sub("", cells[-1].text(strip=True))
        try:
            xp_required = int(xp_text)
        except ValueError:
            self.logger.warning("xp_parse_failed", url=url, level=level, text=xp_text)
            return None
        return LevelRecord(level=level, xp_required=xp_required)


__all__ = ["WikiParser", "normalize_image_url", "normalize_url"]
