from __future__ import annotations

import sys
from datetime import datetime
from pathlib import Path
from typing import Callable, Sequence

import pytest
import xlwt
from openpyxl import Workbook

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

Rows = Sequence[Sequence[object]]


def _build_xlsx(path: Path, rows: Rows, title: str = "Staff") -> Path:
    wb = Workbook()
    ws = wb.active
    ws.title = title
    for r_idx, row in enumerate(rows, start=1):
        for c_idx, value in enumerate(row, start=1):
            if value is not None:
                ws.cell(row=r_idx, column=c_idx, value=value)
    path.parent.mkdir(parents=True, exist_ok=True)
    wb.save(path)
    return path


def _build_xls(path: Path, rows: Rows, title: str = "Staff") -> Path:
    wb = xlwt.Workbook()
    ws = wb.add_sheet(title)
    date_style = xlwt.easyxf(num_format_str="YYYY-MM-DD")
    for r_idx, row in enumerate(rows):
        for c_idx, value in enumerate(row):
            if value is None:
                continue
            if isinstance(value, datetime):
                ws.write(r_idx, c_idx, value, date_style)
            else:
                ws.write(r_idx, c_idx, value)
    path.parent.mkdir(parents=True, exist_ok=True)
    wb.save(str(path))
    return path


@pytest.fixture
def make_xlsx(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing *rows* into ``tmp_path/name`` as a modern workbook."""

    def _factory(rows: Rows, name: str = "staff.xlsx", title: str = "Staff") -> Path:
        return _build_xlsx(tmp_path / name, rows, title)

    return _factory


@pytest.fixture
def make_xls(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing *rows* into ``tmp_path/name`` as a legacy workbook."""

    def _factory(rows: Rows, name: str = "staff.xls", title: str = "Staff") -> Path:
        return _build_xls(tmp_path / name, rows, title)

    return _factory


@pytest.fixture
def staff_rows() -> list[list[object]]:
    return [
        ["User name in Dept", "Department Name", "Salary"],
        ["alice", "Finance", 5200.5],
        ["bob", "Sales", 4100],
    ]
