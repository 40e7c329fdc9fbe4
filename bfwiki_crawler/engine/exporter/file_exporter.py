"""Text based exporters writing CSV and JSON."""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Sequence

from .base import BaseExporter, ExportableRecord


class CsvExporter(BaseExporter):
    """Write records as semicolon separated values with a header row.

    ``header`` is used when the collection is empty; otherwise the header of
    the first record wins.
    """

    extension = ".csv"

    def __init__(self, header: Sequence[str] | None = None, delimiter: str = ";") -> None:
        self.header = tuple(header) if header else None
        self.delimiter = delimiter

    def _write(self, path: Path, records: Sequence[ExportableRecord]) -> None:
        header = records[0].CSV_HEADER if records else self.header
        with path.open("w", encoding="utf-8", newline="") as stream:
            writer = csv.writer(stream, delimiter=self.delimiter, lineterminator="\n")
            if header:
                writer.writerow(header)
            writer.writerows(record.as_row() for record in records)


class JsonExporter(BaseExporter):
    """Write records as an indented JSON array with camelCase keys."""

    extension = ".json"

    def _write(self, path: Path, records: Sequence[ExportableRecord]) -> None:
        payload = [record.as_json() for record in records]
        with path.open("w", encoding="utf-8") as stream:
            json.dump(payload, stream, ensure_ascii=False, indent=2)
            stream.write("\n")


__all__ = ["CsvExporter", "JsonExporter"]
