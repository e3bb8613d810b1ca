"""Header-aware reading of worksheets into typed records."""

# Module responsibilities:
# - Rename incompatible header text, persist the workbook, then map rows into records.
# - Keep the "no header row yields no records" contract while surfacing every other failure.

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Generic, List, Mapping, Optional, Type, TypeVar, Union

from . import mapper
from .config import load_reader_config
from .errors import HeaderMissingError, MappingError
from .headers import HeaderRow, get_row, get_sheet, normalize_header
from .utils.log import get_logger
from .workbook_io import PathLike, detect_format, open_workbook, write_workbook

logger = get_logger("reader")

T = TypeVar("T")

Normalizer = Callable[[HeaderRow, Optional[Mapping[str, str]]], Optional[HeaderRow]]


@dataclass(frozen=True)
class RenameResult:
    """Outcome of a header rename pass."""

    headers: List[Optional[str]]
    original_headers: List[Optional[str]]
    path: Path
    written: bool

    @property
    def changed(self) -> bool:
        return self.headers != self.original_headers


def rename_headers(
    path: PathLike,
    replacements: Optional[Mapping[str, str]],
    *,
    sheet_index: int,
    header_row: int,
    output_path: Optional[PathLike] = None,
    rewrite_unchanged: bool = True,
    atomic: bool = False,
    normalizer: Normalizer = normalize_header,
) -> Optional[RenameResult]:
    """Rewrite the header row of a workbook and persist it.

    Args:
        path: Source workbook.
        replacements: Literal ``search -> replacement`` substrings; None renames nothing.
        sheet_index: Zero-based worksheet index.
        header_row: Zero-based header row index.
        output_path: Destination; defaults to overwriting *path*.
        rewrite_unchanged: Persist even when no header text changed.
        atomic: Stage the write in a temporary file.
        normalizer: Rewrites the header row in place; defaults to
            :func:`normalize_header`.

    Returns:
        RenameResult, or None when the sheet has no usable header row (nothing is written).

    Raises:
        WorkbookOpenError: When the source cannot be loaded.
        WorkbookWriteError: When the destination cannot be written.
    """

    source = Path(path)
    destination = Path(output_path) if output_path is not None else source
    workbook = open_workbook(source)
    try:
        row = get_row(get_sheet(workbook, sheet_index), header_row)
        if row is None or not row.has_data:
            logger.warning(
                "Excel file must have a header row",
                extra={"path": str(source), "sheet_index": sheet_index, "row": header_row},
            )
            return None

        before = row.texts()
        normalizer(row, replacements)
        after = row.texts()

        if after == before and not rewrite_unchanged:
            logger.info("Header unchanged, skipping rewrite", extra={"path": str(source)})
            return RenameResult(headers=after, path=source, written=False, original_headers=before)

        write_workbook(destination, workbook, fmt=detect_format(destination), atomic=atomic)
        logger.info(
            "Header rewritten",
            extra={"path": str(destination), "before": before, "after": after},
        )
        return RenameResult(headers=after, path=destination, written=True, original_headers=before)
    finally:
        workbook.close()


class ExcelFileReader(Generic[T]):
    """Read a worksheet into *record_type* instances after renaming its headers.

    Example:
        >>> reader = ExcelFileReader(
        ...     Employee,
        ...     sheet_index=0,
        ...     header_row=0,
        ...     replacements={"User name in Dept": "UserName"},
        ... )
        >>> employees = reader.fetch("staff.xlsx")
    """

    def __init__(
        self,
        record_type: Type[T],
        *,
        sheet_index: int,
        header_row: int,
        path: Optional[PathLike] = None,
        replacements: Optional[Mapping[str, str]] = None,
        rewrite_unchanged: bool = True,
        require_header: bool = False,
        output_path: Optional[PathLike] = None,
        atomic: bool = False,
    ) -> None:
        if sheet_index < 0 or header_row < 0:
            raise ValueError("sheet_index and header_row must be zero or positive")
        self.record_type = record_type
        self.sheet_index = sheet_index
        self.header_row = header_row
        self.path = Path(path) if path is not None else None
        self.replacements = dict(replacements) if replacements is not None else None
        self.rewrite_unchanged = rewrite_unchanged
        self.require_header = require_header
        self.output_path = Path(output_path) if output_path is not None else None
        self.atomic = atomic

    @classmethod
    def from_config(
        cls,
        record_type: Type[T],
        config_path: Union[str, Path],
        *,
        path: Optional[PathLike] = None,
    ) -> "ExcelFileReader[T]":
        """Build a reader from a YAML configuration file."""

        config = load_reader_config(config_path)
        return cls(
            record_type,
            sheet_index=config["sheet_index"],
            header_row=config["header_row"],
            path=path,
            replacements=config.get("replacements"),
            rewrite_unchanged=config.get("rewrite_unchanged", True),
            require_header=config.get("require_header", False),
            output_path=config.get("output_path"),
        )

    def normalize(
        self, row: HeaderRow, replacements: Optional[Mapping[str, str]]
    ) -> Optional[HeaderRow]:
        """Rewrite the header cells of *row*; override to customise renaming."""

        return normalize_header(row, replacements)

    def fetch(
        self,
        path: Optional[PathLike] = None,
        replacements: Optional[Mapping[str, str]] = None,
    ) -> List[T]:
        """Return the records of the worksheet, renaming headers first.

        Args:
            path: Workbook to read; defaults to the path given at construction.
            replacements: One-shot replacement map overriding the configured one.

        Returns:
            Mapped records; an empty list when the sheet has no usable header row
            and ``require_header`` is False.

        Raises:
            ValueError: When no path was given here or at construction.
            HeaderMissingError: When the header row is missing and required.
            WorkbookOpenError, WorkbookWriteError, MappingError: From the pipeline steps.
        """

        source = Path(path) if path is not None else self.path
        if source is None:
            logger.error("The path to the excel file must be set")
            raise ValueError("The path to the excel file must be set")

        active = self.replacements if replacements is None else replacements
        result = rename_headers(
            source,
            active,
            sheet_index=self.sheet_index,
            header_row=self.header_row,
            output_path=self.output_path,
            rewrite_unchanged=self.rewrite_unchanged,
            atomic=self.atomic,
            normalizer=self.normalize,
        )
        if result is None:
            if self.require_header:
                raise HeaderMissingError(
                    f"No header row at index {self.header_row} in sheet {self.sheet_index} of {source}"
                )
            return []

        try:
            records = list(
                mapper.fetch(
                    result.path,
                    self.record_type,
                    sheet_index=self.sheet_index,
                    header_row=self.header_row,
                )
            )
        except MappingError as exc:
            logger.error(
                "Failed to map worksheet rows",
                extra={"path": str(result.path), "error": str(exc)},
            )
            raise

        logger.info(
            "Records fetched",
            extra={"path": str(result.path), "records": len(records)},
        )
        return records
