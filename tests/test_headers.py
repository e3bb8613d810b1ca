"""Unit tests for header lookup and renaming."""

# Module responsibilities:
# - Validate sheet/row lookup reports absence as None and flags empty rows.
# - Assert substring replacement semantics, including the committed order for overlapping keys.

from __future__ import annotations

from pathlib import Path

from openpyxl import Workbook

from excelmap.headers import get_row, get_sheet, normalize_header, ordered_replacements
from excelmap.workbook_io import open_workbook


def _header_row(make_xlsx, headers: list[object]):
    workbook = open_workbook(make_xlsx([headers, ["x"] * len(headers)]))
    return get_row(get_sheet(workbook, 0), 0)


def test_get_sheet_returns_none_when_out_of_range(make_xlsx, staff_rows) -> None:
    workbook = open_workbook(make_xlsx(staff_rows))

    assert get_sheet(workbook, 0) is not None
    assert get_sheet(workbook, 1) is None
    assert get_sheet(workbook, -1) is None
    assert get_sheet(None, 0) is None


def test_get_row_distinguishes_absent_empty_and_filled(tmp_path: Path) -> None:
    wb = Workbook()
    ws = wb.active
    ws.cell(row=2, column=1, value="Name")
    path = tmp_path / "sparse.xlsx"
    wb.save(path)
    sheet = get_sheet(open_workbook(path), 0)

    empty = get_row(sheet, 0)
    filled = get_row(sheet, 1)

    assert empty is not None and not empty.has_data
    assert filled is not None and filled.has_data
    assert filled.texts() == ["Name"]
    assert get_row(sheet, 5) is None
    assert get_row(None, 0) is None


def test_normalize_header_renames_to_identifier_safe_names(make_xlsx) -> None:
    row = _header_row(make_xlsx, ["User name in Dept", "Department Name"])

    result = normalize_header(
        row, {"User name in Dept": "UserName", "Department Name": "Department"}
    )

    assert result is row
    assert row.texts() == ["UserName", "Department"]


def test_normalize_header_replaces_substrings_not_whole_values(make_xlsx) -> None:
    row = _header_row(make_xlsx, ["Unit Price (USD)", "Qty Ordered"])

    normalize_header(row, {" ": "", "(": "_", ")": ""})

    assert row.texts() == ["UnitPrice_USD", "QtyOrdered"]


def test_overlapping_keys_apply_longest_first(make_xlsx) -> None:
    row = _header_row(make_xlsx, ["User Name", "Name"])

    normalize_header(row, {"Name": "X", "User Name": "Y"})

    assert row.texts() == ["Y", "X"]


def test_normalize_without_matches_is_noop(make_xlsx) -> None:
    row = _header_row(make_xlsx, ["Alpha", "Beta"])

    normalize_header(row, {"Gamma": "Delta"})

    assert row.texts() == ["Alpha", "Beta"]


def test_normalize_is_idempotent_once_keys_are_gone(make_xlsx) -> None:
    row = _header_row(make_xlsx, ["First Name", "Last Name"])
    replacements = {" ": "_"}

    normalize_header(row, replacements)
    once = row.texts()
    normalize_header(row, replacements)

    assert row.texts() == once == ["First_Name", "Last_Name"]


def test_normalize_skips_empty_cells_and_coerces_others_to_text(make_xlsx) -> None:
    row = _header_row(make_xlsx, ["Name", None, 2024])

    normalize_header(row, {"20": "Y"})

    assert row.cells[1].value is None
    assert row.cells[2].value == "Y24"


def test_normalize_passes_through_missing_inputs(make_xlsx) -> None:
    row = _header_row(make_xlsx, ["User Name"])

    assert normalize_header(row, None) is row
    assert row.texts() == ["User Name"]
    assert normalize_header(None, {"a": "b"}) is None
    assert normalize_header(None, None) is None


def test_normalize_mutates_owning_workbook(make_xlsx) -> None:
    workbook = open_workbook(make_xlsx([["Dept Name"], ["Sales"]]))
    row = get_row(get_sheet(workbook, 0), 0)

    normalize_header(row, {"Dept Name": "Department"})

    assert workbook.book.worksheets[0]["A1"].value == "Department"


def test_ordered_replacements_drops_empty_keys() -> None:
    pairs = ordered_replacements({"a": "1", "": "boom", "abc": "3", "ab": "2", "xy": "4"})

    assert pairs == [("abc", "3"), ("ab", "2"), ("xy", "4"), ("a", "1")]
