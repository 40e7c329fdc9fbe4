"""Compact binary exporter based on msgpack."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

import msgpack

from .base import BaseExporter, ExportableRecord


class MsgpackExporter(BaseExporter):
    """Write records as a msgpack array of positional field arrays."""

    extension = ".msgpack"

    def _write(self, path: Path, records: Sequence[ExportableRecord]) -> None:
        payload = msgpack.packb([list(record.as_row()) for record in records], use_bin_type=True)
        path.write_bytes(payload)


__all__ = ["MsgpackExporter"]
