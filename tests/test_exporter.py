from __future__ import annotations

import json
from pathlib import Path

import msgpack
import pytest

from bfwiki_crawler.config import OutputFormat
from bfwiki_crawler.engine.exporter import (
    CsvExporter,
    JsonExporter,
    MsgpackExporter,
    create_exporter,
    default_output_path,
)
from bfwiki_crawler.errors import WriteError
from bfwiki_crawler.models import LevelRecord, RecordKind, UnitRecord

UNITS = [
    UnitRecord("1", "Vargas", "3", "10011", "https://img.test/vargas.png"),
    UnitRecord("2", "Selena", "3", "20011", "https://img.test/selena.png"),
]


def test_csv_exporter_writes_semicolon_rows(tmp_path: Path) -> None:
    path = create_exporter(OutputFormat.CSV, RecordKind.UNITS).write(tmp_path / "units.csv", UNITS)
    lines = path.read_text(encoding="utf-8").splitlines()
    assert lines == [
        "UnitID;Name;Rarity;UnitDataID;ImageUrl",
        "1;Vargas;3;10011;https://img.test/vargas.png",
        "2;Selena;3;20011;https://img.test/selena.png",
    ]


def test_csv_exporter_keeps_header_for_empty_collection(tmp_path: Path) -> None:
    path = CsvExporter(header=LevelRecord.CSV_HEADER).write(tmp_path / "nested" / "levels.csv", [])
    assert path.read_text(encoding="utf-8") == "Level;XpRequired\n"


def test_json_exporter_uses_camel_case_keys(tmp_path: Path) -> None:
    path = JsonExporter().write(tmp_path / "levels.json", [LevelRecord(1, 0), LevelRecord(2, 1250)])
    assert json.loads(path.read_text(encoding="utf-8")) == [
        {"level": 1, "xpRequired": 0},
        {"level": 2, "xpRequired": 1250},
    ]


def test_msgpack_exporter_writes_positional_arrays(tmp_path: Path) -> None:
    path = MsgpackExporter().write(tmp_path / "units.msgpack", UNITS)
    decoded = msgpack.unpackb(path.read_bytes(), raw=False)
    assert decoded[0] == ["1", "Vargas", "3", "10011", "https://img.test/vargas.png"]
    assert len(decoded) == 2


def test_exporter_wraps_io_failure(tmp_path: Path) -> None:
    target = tmp_path / "occupied"
    target.mkdir()
    with pytest.raises(WriteError) as excinfo:
        JsonExporter().write(target, UNITS)
    assert excinfo.value.path == target


@pytest.mark.parametrize(
    ("kind", "fmt", "name"),
    [
        (RecordKind.UNITS, OutputFormat.CSV, "brave_frontier_units.csv"),
        (RecordKind.LEVELS, OutputFormat.JSON, "brave_frontier_levels.json"),
        ("levels", "msgpack", "brave_frontier_levels.msgpack"),
    ],
)
def test_default_output_path(tmp_path: Path, kind, fmt, name) -> None:
    assert default_output_path(kind, fmt, tmp_path) == tmp_path / name


def test_create_exporter_rejects_unknown_format() -> None:
    with pytest.raises(ValueError):
        create_exporter("xml")
