"""Record types produced by the crawl pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, NamedTuple, Sequence


class RecordKind(str, Enum):
    """Kinds of records the crawler can produce."""

    UNITS = "units"
    LEVELS = "levels"


@dataclass(frozen=True, slots=True)
class UnitRecord:
    """Metadata scraped from a single unit detail page."""

    unit_id: str
    name: str
    rarity: str
    unit_data_id: str
    image_url: str

    CSV_HEADER: ClassVar[tuple[str, ...]] = ("UnitID", "Name", "Rarity", "UnitDataID", "ImageUrl")

    def as_row(self) -> tuple[Any, ...]:
        return (self.unit_id, self.name, self.rarity, self.unit_data_id, self.image_url)

    def as_json(self) -> dict[str, Any]:
        return {
            "unitId": self.unit_id,
            "name": self.name,
            "rarity": self.rarity,
            "unitDataId": self.unit_data_id,
            "imageUrl": self.image_url,
        }


@dataclass(frozen=True, slots=True)
class LevelRecord:
    """Experience required to reach a player level."""

    level: int
    xp_required: int

    CSV_HEADER: ClassVar[tuple[str, ...]] = ("Level", "XpRequired")

    def as_row(self) -> tuple[Any, ...]:
        return (self.level, self.xp_required)

    def as_json(self) -> dict[str, Any]:
        return {"level": self.level, "xpRequired": self.xp_required}


class CrawlResult(NamedTuple):
    """Finished crawl handed to the caller (and from there to one exporter)."""

    records: list[Any]
    pages_discovered: int
    failed: int


def canonicalize_levels(records: Sequence[LevelRecord]) -> list[LevelRecord]:
    """Keep the first record seen for each level and sort ascending by level."""

    unique: dict[int, LevelRecord] = {}
    for record in records:
        unique.setdefault(record.level, record)
    return [unique[level] for level in sorted(unique)]


__all__ = ["CrawlResult", "LevelRecord", "RecordKind", "UnitRecord", "canonicalize_levels"]
