"""Workbook load/save helpers for modern (.xlsx) and legacy (.xls) files."""

# Module responsibilities:
# - Detect the container format from the file extension and load it into one in-memory model.
# - Persist an in-memory workbook back in the requested format, releasing handles on every path.
# - Convert library failures into WorkbookOpenError / WorkbookWriteError with structured logs.

from __future__ import annotations

import io
import os
import zipfile
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import BinaryIO, Optional, Union

import xlrd
import xlwt
from openpyxl import Workbook, load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from xlrd.compdoc import CompDocError

from .errors import WorkbookOpenError, WorkbookWriteError
from .utils.log import get_logger

logger = get_logger("workbook_io")

PathLike = Union[str, Path]

MODERN_SUFFIX = ".xlsx"
LEGACY_MAX_TEXT = 32767
_LEGACY_DATE_STYLE = xlwt.easyxf(num_format_str="YYYY-MM-DD HH:MM:SS")


class WorkbookFormat(str, Enum):
    """Spreadsheet container formats understood by the accessor."""

    XLSX = "xlsx"
    XLS = "xls"


@dataclass
class LoadedWorkbook:
    """An in-memory workbook together with the path and format it belongs to."""

    path: Path
    fmt: WorkbookFormat
    book: Workbook

    @property
    def sheet_count(self) -> int:
        return len(self.book.worksheets)

    def close(self) -> None:
        self.book.close()


def detect_format(path: PathLike) -> WorkbookFormat:
    """Return XLSX for ``.xlsx`` paths and XLS for anything else."""

    if Path(path).suffix.lower() == MODERN_SUFFIX:
        return WorkbookFormat.XLSX
    return WorkbookFormat.XLS


def new_workbook(path: PathLike) -> LoadedWorkbook:
    """Create an empty workbook bound to *path* and the format its suffix implies."""

    target = Path(path)
    return LoadedWorkbook(path=target, fmt=detect_format(target), book=Workbook())


def _legacy_value(cell: xlrd.sheet.Cell, datemode: int) -> object:
    if cell.ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK, xlrd.XL_CELL_ERROR):
        return None
    if cell.ctype == xlrd.XL_CELL_DATE:
        return xlrd.xldate_as_datetime(cell.value, datemode)
    if cell.ctype == xlrd.XL_CELL_BOOLEAN:
        return bool(cell.value)
    if cell.ctype == xlrd.XL_CELL_NUMBER:
        value = float(cell.value)
        return int(value) if value.is_integer() else value
    return cell.value


def _load_legacy(handle: BinaryIO) -> Workbook:
    source = xlrd.open_workbook(file_contents=handle.read())
    book = Workbook()
    book.remove(book.active)
    try:
        for legacy_sheet in source.sheets():
            worksheet = book.create_sheet(title=legacy_sheet.name)
            for row_idx in range(legacy_sheet.nrows):
                for col_idx in range(legacy_sheet.ncols):
                    value = _legacy_value(legacy_sheet.cell(row_idx, col_idx), source.datemode)
                    if value is not None:
                        worksheet.cell(row=row_idx + 1, column=col_idx + 1, value=value)
    finally:
        source.release_resources()
    return book


def open_workbook(path: PathLike, *, data_only: bool = False) -> LoadedWorkbook:
    """Load the workbook at *path* fully into memory.

    Args:
        path: Location of an existing ``.xlsx`` or legacy ``.xls`` file.
        data_only: Read the cached result of formula cells instead of the formula
            text. Only affects ``.xlsx``; legacy files always yield values.

    Returns:
        LoadedWorkbook holding an openpyxl workbook regardless of the source format.

    Raises:
        WorkbookOpenError: When the file is missing, unreadable or not a valid
            workbook of the format implied by its extension.
    """

    source = Path(path)
    fmt = detect_format(source)
    logger.info("Opening workbook", extra={"path": str(source), "format": fmt.value})

    try:
        with source.open("rb") as handle:
            if fmt is WorkbookFormat.XLSX:
                book = load_workbook(handle, data_only=data_only)
            else:
                book = _load_legacy(handle)
    except FileNotFoundError as exc:
        logger.error("Workbook not found", extra={"path": str(source)})
        raise WorkbookOpenError(f"Workbook not found: {source}", source) from exc
    except OSError as exc:
        logger.error("Workbook unreadable", extra={"path": str(source), "error": str(exc)})
        raise WorkbookOpenError(f"Cannot read workbook {source}: {exc}", source) from exc
    except (
        InvalidFileException,
        zipfile.BadZipFile,
        xlrd.XLRDError,
        CompDocError,
        KeyError,
        ValueError,
    ) as exc:
        logger.error(
            "Workbook content is not a valid spreadsheet",
            extra={"path": str(source), "format": fmt.value, "error": str(exc)},
        )
        raise WorkbookOpenError(
            f"Invalid {fmt.value} workbook {source}: {exc}", source
        ) from exc

    logger.info(
        "Workbook loaded",
        extra={"path": str(source), "sheets": [ws.title for ws in book.worksheets]},
    )
    return LoadedWorkbook(path=source, fmt=fmt, book=book)


def _legacy_cell_value(value: object) -> object:
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, time):
        return value.isoformat()
    return value


def _save_legacy(book: Workbook, handle: BinaryIO) -> None:
    target = xlwt.Workbook(encoding="utf-8")
    for worksheet in book.worksheets:
        out = target.add_sheet(worksheet.title, cell_overwrite_ok=True)
        for row in worksheet.iter_rows():
            for cell in row:
                if cell.value is None:
                    continue
                value = _legacy_cell_value(cell.value)
                if isinstance(value, str) and len(value) > LEGACY_MAX_TEXT:
                    raise ValueError(
                        f"Cell {cell.coordinate} in sheet '{worksheet.title}' holds "
                        f"{len(value)} characters, .xls allows {LEGACY_MAX_TEXT}"
                    )
                if isinstance(value, (datetime, date)):
                    out.write(cell.row - 1, cell.column - 1, value, _LEGACY_DATE_STYLE)
                else:
                    out.write(cell.row - 1, cell.column - 1, value)
    target.save(handle)


def _serialize(workbook: LoadedWorkbook, fmt: WorkbookFormat) -> bytes:
    buffer = io.BytesIO()
    if fmt is WorkbookFormat.XLSX:
        workbook.book.save(buffer)
    else:
        _save_legacy(workbook.book, buffer)
    return buffer.getvalue()


def write_workbook(
    path: PathLike,
    workbook: LoadedWorkbook,
    *,
    fmt: Optional[WorkbookFormat] = None,
    atomic: bool = False,
) -> Path:
    """Persist *workbook* to *path*, overwriting any existing file.

    The workbook is serialized in memory first, so a serializer failure leaves
    the destination untouched.

    Args:
        path: Destination file.
        workbook: In-memory workbook to serialize; it is not modified.
        fmt: Output format; defaults to the format the workbook was loaded in.
        atomic: Write a sibling ``.tmp`` file first and swap it into place.

    Returns:
        The destination path.

    Raises:
        WorkbookWriteError: When the workbook cannot be serialized or the
            destination cannot be written.
    """

    destination = Path(path)
    out_fmt = fmt or workbook.fmt
    logger.info(
        "Writing workbook",
        extra={"path": str(destination), "format": out_fmt.value, "atomic": atomic},
    )

    try:
        payload = _serialize(workbook, out_fmt)
    # xlwt reports sheet and cell limits with a bare Exception
    except Exception as exc:
        logger.error(
            "Failed to serialize workbook",
            extra={"path": str(destination), "format": out_fmt.value, "error": str(exc)},
        )
        raise WorkbookWriteError(
            f"Cannot write workbook {destination}: {exc}", destination
        ) from exc

    staging = destination.with_name(destination.name + ".tmp") if atomic else destination
    try:
        with staging.open("wb") as handle:
            handle.write(payload)
        if atomic:
            os.replace(staging, destination)
    except OSError as exc:
        if atomic and staging.exists():
            staging.unlink()
        logger.error(
            "Failed to write workbook",
            extra={"path": str(destination), "error": str(exc)},
        )
        raise WorkbookWriteError(
            f"Cannot write workbook {destination}: {exc}", destination
        ) from exc

    logger.info("Workbook written", extra={"path": str(destination), "bytes": len(payload)})
    return destination
