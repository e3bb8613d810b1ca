"""Exceptions raised across excelmap."""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class ExcelMapError(Exception):
    """Base error for the package."""


class WorkbookOpenError(ExcelMapError):
    """Raised when a workbook is missing, unreadable or malformed for its format."""

    def __init__(self, message: str, path: Optional[Path] = None) -> None:
        super().__init__(message)
        self.path = path


class WorkbookWriteError(ExcelMapError):
    """Raised when a workbook cannot be persisted to its destination."""

    def __init__(self, message: str, path: Optional[Path] = None) -> None:
        super().__init__(message)
        self.path = path


class HeaderMissingError(ExcelMapError):
    """Raised when no usable header row exists and one is required."""


class MappingError(ExcelMapError):
    """Raised when worksheet columns cannot be bound to or coerced into a record type."""


class ConfigError(ExcelMapError):
    """Configuration related error."""
