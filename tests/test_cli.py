"""Tests for the typer command line."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from excelmap.cli import app
from excelmap.workbook_io import LoadedWorkbook, open_workbook


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def test_headers_command_prints_header_texts(runner: CliRunner, make_xlsx, staff_rows) -> None:
    result = runner.invoke(app, ["headers", str(make_xlsx(staff_rows))])

    assert result.exit_code == 0
    assert result.stdout.splitlines() == ["User name in Dept", "Department Name", "Salary"]


def test_rename_command_rewrites_workbook(runner: CliRunner, make_xlsx, staff_rows, tmp_path: Path) -> None:
    source = make_xlsx(staff_rows)
    out = tmp_path / "renamed.xlsx"

    result = runner.invoke(
        app,
        ["rename", str(source), "-r", "User name in Dept=UserName", "-r", " Name=", "--out", str(out)],
    )

    assert result.exit_code == 0
    assert result.stdout.splitlines() == ["UserName", "Department", "Salary"]
    assert open_workbook(out).book.worksheets[0]["A1"].value == "UserName"
    assert open_workbook(source).book.worksheets[0]["A1"].value == "User name in Dept"


def test_rename_command_reads_config(runner: CliRunner, make_xlsx, staff_rows, tmp_path: Path) -> None:
    source = make_xlsx(staff_rows)
    config = tmp_path / "reader.yaml"
    config.write_text(
        "sheet_index: 0\nheader_row: 0\nreplacements:\n  Department Name: Department\n",
        encoding="utf-8",
    )

    result = runner.invoke(app, ["rename", str(source), "--config", str(config)])

    assert result.exit_code == 0
    assert "Department" in result.stdout.splitlines()


def test_rename_command_rejects_malformed_pair(runner: CliRunner, make_xlsx, staff_rows) -> None:
    result = runner.invoke(app, ["rename", str(make_xlsx(staff_rows)), "-r", "no-separator"])

    assert result.exit_code != 0


def test_dump_command_outputs_json_rows(runner: CliRunner, make_xlsx, staff_rows) -> None:
    result = runner.invoke(
        app,
        ["dump", str(make_xlsx(staff_rows)), "-r", "User name in Dept=UserName"],
    )

    assert result.exit_code == 0
    rows = json.loads(result.stdout)
    assert rows[0] == {"UserName": "alice", "Department Name": "Finance", "Salary": 5200.5}
    assert rows[1]["Salary"] == 4100


def test_dump_command_outputs_csv(runner: CliRunner, make_xlsx, staff_rows) -> None:
    result = runner.invoke(app, ["dump", str(make_xlsx(staff_rows)), "--format", "csv"])

    assert result.exit_code == 0
    assert result.stdout.splitlines()[0] == "User name in Dept,Department Name,Salary"


def test_dump_command_rejects_unknown_format(runner: CliRunner, make_xlsx, staff_rows) -> None:
    result = runner.invoke(app, ["dump", str(make_xlsx(staff_rows)), "--format", "xml"])

    assert result.exit_code == 2


def test_invalid_workbook_exits_with_error(runner: CliRunner, tmp_path: Path) -> None:
    broken = tmp_path / "broken.xlsx"
    broken.write_bytes(b"nope")

    result = runner.invoke(app, ["headers", str(broken)])

    assert result.exit_code == 1


def test_dump_with_replacements_leaves_source_untouched(runner: CliRunner, make_xlsx, staff_rows) -> None:
    source = make_xlsx(staff_rows)
    before = source.read_bytes()

    result = runner.invoke(app, ["dump", str(source), "-r", "Department Name=Department"])

    assert result.exit_code == 0
    assert json.loads(result.stdout)[0]["Department"] == "Finance"
    assert source.read_bytes() == before


def test_dump_keeps_renamed_copy_with_out(runner: CliRunner, make_xlsx, staff_rows, tmp_path: Path) -> None:
    source = make_xlsx(staff_rows)
    before = source.read_bytes()
    out = tmp_path / "renamed.xlsx"

    result = runner.invoke(
        app, ["dump", str(source), "-r", "Department Name=Department", "--out", str(out)]
    )

    assert result.exit_code == 0
    assert source.read_bytes() == before
    assert open_workbook(out).book.worksheets[0]["B1"].value == "Department"


def test_dump_rejects_out_equal_to_source(runner: CliRunner, make_xlsx, staff_rows) -> None:
    source = make_xlsx(staff_rows)
    before = source.read_bytes()

    result = runner.invoke(app, ["dump", str(source), "-r", "Salary=Pay", "--out", str(source)])

    assert result.exit_code == 2
    assert source.read_bytes() == before


def test_headers_command_closes_workbook(runner: CliRunner, make_xlsx, staff_rows, monkeypatch) -> None:
    closed: list[Path] = []
    monkeypatch.setattr(LoadedWorkbook, "close", lambda self: closed.append(self.path))
    source = make_xlsx(staff_rows)

    runner.invoke(app, ["headers", str(source)])
    runner.invoke(app, ["headers", str(source), "--header-row", "9"])

    assert len(closed) == 2
