"""Header row lookup and renaming."""

# Module responsibilities:
# - Locate a worksheet and a header row by zero-based index, reporting absence as None.
# - Rewrite header cell text in place by literal substring replacement.

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Mapping, Optional, Tuple

from openpyxl.cell.cell import Cell
from openpyxl.worksheet.worksheet import Worksheet

from .utils.log import get_logger
from .workbook_io import LoadedWorkbook

logger = get_logger("headers")


@dataclass
class HeaderRow:
    """A worksheet row selected as the header, with its live openpyxl cells."""

    sheet_title: str
    index: int
    cells: Tuple[Cell, ...]

    @property
    def has_data(self) -> bool:
        return any(cell.value is not None and str(cell.value) != "" for cell in self.cells)

    def texts(self) -> List[Optional[str]]:
        """Return the current text of every cell, None for empty cells."""

        return [None if cell.value is None else str(cell.value) for cell in self.cells]


def get_sheet(workbook: Optional[LoadedWorkbook], index: int) -> Optional[Worksheet]:
    """Return the worksheet at *index*, or None when it does not exist."""

    if workbook is None or workbook.sheet_count == 0:
        return None
    if index < 0 or index >= workbook.sheet_count:
        logger.warning(
            "Sheet index out of range",
            extra={"path": str(workbook.path), "sheet_index": index, "sheets": workbook.sheet_count},
        )
        return None
    return workbook.book.worksheets[index]


def get_row(sheet: Optional[Worksheet], index: int) -> Optional[HeaderRow]:
    """Return row *index* of *sheet*.

    None means the sheet is absent or no row exists at that index. A returned
    row whose cells are all empty has ``has_data == False``; callers should
    not use it as a header.
    """

    if sheet is None:
        return None

    if index < 0 or index >= sheet.max_row:
        logger.warning("Row is not defined", extra={"row": index, "sheet": sheet.title})
        return None

    row = HeaderRow(sheet_title=sheet.title, index=index, cells=tuple(sheet[index + 1]))
    if not row.has_data:
        logger.warning("Row does not contain any data", extra={"row": index, "sheet": sheet.title})
    return row


def ordered_replacements(replacements: Mapping[str, str]) -> List[Tuple[str, str]]:
    """Return replacement pairs in application order.

    Longer keys are applied first so that a key contained in another key
    cannot pre-empt it; keys of equal length keep the mapping's order.
    Empty keys are dropped.
    """

    pairs = [(str(old), str(new)) for old, new in replacements.items() if old]
    return sorted(pairs, key=lambda pair: len(pair[0]), reverse=True)


def normalize_header(
    row: Optional[HeaderRow], replacements: Optional[Mapping[str, str]]
) -> Optional[HeaderRow]:
    """Apply every replacement to every non-empty header cell, in place.

    Args:
        row: Header row to rewrite; None is passed through.
        replacements: Literal ``search -> replacement`` substrings; None is a no-op.

    Returns:
        The same row object, for chaining.
    """

    if replacements is None:
        return row
    if row is None:
        logger.warning("Workbook must have a header row")
        return None

    pairs = ordered_replacements(replacements)
    for cell in row.cells:
        value = cell.value
        if value is None or value == "":
            continue
        text = str(value)
        for old, new in pairs:
            text = text.replace(old, new)
        cell.value = text

    logger.debug(
        "Header normalized",
        extra={"sheet": row.sheet_title, "row": row.index, "headers": row.texts()},
    )
    return row
