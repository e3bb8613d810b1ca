"""Tests for YAML reader configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from excelmap.config import load_reader_config, parse_replacements
from excelmap.errors import ConfigError


def _write(path: Path, payload: str) -> Path:
    path.write_text(payload, encoding="utf-8")
    return path


def test_load_reader_config_full_payload(tmp_path: Path) -> None:
    path = _write(
        tmp_path / "reader.yaml",
        "sheet_index: 1\n"
        "header_row: 2\n"
        "rewrite_unchanged: false\n"
        "require_header: true\n"
        "output_path: out/renamed.xlsx\n"
        "replacements:\n"
        "  'User name in Dept': UserName\n"
        "  ' ': ''\n"
        "  2024: Year\n",
    )

    config = load_reader_config(path)

    assert config["sheet_index"] == 1
    assert config["header_row"] == 2
    assert config["rewrite_unchanged"] is False
    assert config["require_header"] is True
    assert config["output_path"] == str(tmp_path / "out" / "renamed.xlsx")
    assert config["replacements"] == {"User name in Dept": "UserName", " ": "", "2024": "Year"}


def test_load_reader_config_minimal_payload(tmp_path: Path) -> None:
    config = load_reader_config(_write(tmp_path / "reader.yaml", "sheet_index: 0\nheader_row: 0\n"))

    assert config == {"sheet_index": 0, "header_row": 0}


def test_missing_required_keys(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="header_row"):
        load_reader_config(_write(tmp_path / "reader.yaml", "sheet_index: 0\n"))


@pytest.mark.parametrize(
    "payload",
    [
        "- not\n- a mapping\n",
        "sheet_index: -1\nheader_row: 0\n",
        "sheet_index: zero\nheader_row: 0\n",
        "sheet_index: 0\nheader_row: 0\nreplacements: [a, b]\n",
        "sheet_index: 0\nheader_row: 0\nrewrite_unchanged: sometimes\n",
        "sheet_index: 0\nheader_row: [\n",
    ],
)
def test_invalid_payloads_raise_config_error(tmp_path: Path, payload: str) -> None:
    with pytest.raises(ConfigError):
        load_reader_config(_write(tmp_path / "reader.yaml", payload))


def test_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="not found"):
        load_reader_config(tmp_path / "absent.yaml")


def test_parse_replacements_rejects_empty_keys() -> None:
    with pytest.raises(ConfigError):
        parse_replacements({"": "x"})
    assert parse_replacements(None) == {}
    assert parse_replacements({"a": None}) == {"a": ""}
