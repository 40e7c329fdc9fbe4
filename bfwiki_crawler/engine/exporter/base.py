"""Exporter Service Provider Interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Protocol, Sequence

from ...errors import WriteError


class ExportableRecord(Protocol):
    """Shape every record must have to be handed to an exporter."""

    CSV_HEADER: tuple[str, ...]

    def as_row(self) -> tuple[Any, ...]:
        ...

    def as_json(self) -> dict[str, Any]:
        ...


class BaseExporter(ABC):
    """Uniform exporter contract: a finished collection in, one file out."""

    extension: str = ""

    def write(self, path: Path, records: Sequence[ExportableRecord]) -> Path:
        """Serialise ``records`` to ``path``; raise ``WriteError`` on any IO failure."""

        path = Path(path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            self._write(path, records)
        except (OSError, ValueError, TypeError) as exc:
            raise WriteError(path, exc) from exc
        return path

    @abstractmethod
    def _write(self, path: Path, records: Sequence[ExportableRecord]) -> None:
        """Persist the whole collection."""


__all__ = ["BaseExporter", "ExportableRecord"]
