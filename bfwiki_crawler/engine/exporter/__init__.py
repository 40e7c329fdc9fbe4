"""Exporter SPI and implementations."""

from __future__ import annotations

from pathlib import Path

from ...config import OutputFormat
from ...models import LevelRecord, RecordKind, UnitRecord
from .base import BaseExporter, ExportableRecord
from .binary_exporter import MsgpackExporter
from .file_exporter import CsvExporter, JsonExporter

OUTPUT_STEMS = {
    RecordKind.UNITS: "brave_frontier_units",
    RecordKind.LEVELS: "brave_frontier_levels",
}
RECORD_TYPES = {
    RecordKind.UNITS: UnitRecord,
    RecordKind.LEVELS: LevelRecord,
}


def create_exporter(fmt: OutputFormat | str, kind: RecordKind | None = None) -> BaseExporter:
    """Return the exporter implementation for ``fmt``."""

    fmt = OutputFormat(fmt)
    if fmt is OutputFormat.CSV:
        header = RECORD_TYPES[RecordKind(kind)].CSV_HEADER if kind else None
        return CsvExporter(header=header)
    if fmt is OutputFormat.JSON:
        return JsonExporter()
    if fmt is OutputFormat.MSGPACK:
        return MsgpackExporter()
    raise ValueError(f"Unsupported output format: {fmt}")


def default_output_path(kind: RecordKind | str, fmt: OutputFormat | str, outputs_dir: Path) -> Path:
    """Return ``<outputs_dir>/brave_frontier_<kind><ext>``."""

    exporter = create_exporter(fmt)
    return Path(outputs_dir) / f"{OUTPUT_STEMS[RecordKind(kind)]}{exporter.extension}"


__all__ = [
    "BaseExporter",
    "CsvExporter",
    "ExportableRecord",
    "JsonExporter",
    "MsgpackExporter",
    "create_exporter",
    "default_output_path",
]
