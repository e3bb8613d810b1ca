"""`excelmap` top-level package exports the workbook, header and record mapping helpers."""

# Module responsibilities:
# - Re-export the reader facade, mapping functions and error types as a stable API surface.
# - Provide the package version.

from __future__ import annotations

from .errors import (
    ConfigError,
    ExcelMapError,
    HeaderMissingError,
    MappingError,
    WorkbookOpenError,
    WorkbookWriteError,
)
from .headers import HeaderRow, get_row, get_sheet, normalize_header
from .mapper import fetch, fetch_rows, records_to_frame, save
from .reader import ExcelFileReader, RenameResult, rename_headers
from .schema import column
from .workbook_io import LoadedWorkbook, WorkbookFormat, open_workbook, write_workbook

__all__ = [
    "ExcelFileReader",
    "RenameResult",
    "rename_headers",
    "column",
    "fetch",
    "fetch_rows",
    "save",
    "records_to_frame",
    "HeaderRow",
    "get_sheet",
    "get_row",
    "normalize_header",
    "LoadedWorkbook",
    "WorkbookFormat",
    "open_workbook",
    "write_workbook",
    "ExcelMapError",
    "WorkbookOpenError",
    "WorkbookWriteError",
    "HeaderMissingError",
    "MappingError",
    "ConfigError",
]

__version__ = "0.1.0"
