"""Typed row mapping between worksheets and dataclass records."""

# Module responsibilities:
# - Bind dataclass fields to worksheet columns by declared index, header name or field name.
# - Lazily convert worksheet rows into typed records and write records back as a worksheet.
# - Offer a pandas view of fetched records for downstream analysis.

from __future__ import annotations

import dataclasses
import types
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from pathlib import Path
from typing import (
    Any,
    Dict,
    Iterable,
    Iterator,
    List,
    Optional,
    Sequence,
    Tuple,
    Type,
    TypeVar,
    Union,
    get_args,
    get_origin,
    get_type_hints,
)

import pandas as pd
from openpyxl.worksheet.worksheet import Worksheet

from .errors import ExcelMapError, HeaderMissingError, MappingError
from .headers import HeaderRow, get_row, get_sheet
from .schema import column_spec
from .utils.log import get_logger
from .workbook_io import LoadedWorkbook, PathLike, new_workbook, open_workbook, write_workbook

logger = get_logger("mapper")

T = TypeVar("T")

_TRUE_STRINGS = {"true", "yes", "y", "1"}
_FALSE_STRINGS = {"false", "no", "n", "0"}


@dataclass(frozen=True)
class ColumnBinding:
    """Resolved position of a record field in a worksheet."""

    field_name: str
    header: str
    index: int
    annotation: Any
    has_default: bool


def _require_dataclass(record_type: type) -> None:
    if not (isinstance(record_type, type) and dataclasses.is_dataclass(record_type)):
        raise MappingError(f"Record type must be a dataclass, got {record_type!r}")


def _has_default(field: dataclasses.Field) -> bool:
    return (
        field.default is not dataclasses.MISSING
        or field.default_factory is not dataclasses.MISSING
    )


def bind_columns(record_type: Type[T], header: Sequence[Optional[str]]) -> List[ColumnBinding]:
    """Resolve the column index of every mapped field of *record_type*.

    Args:
        record_type: Dataclass describing one row.
        header: Header texts in column order; None for empty header cells.

    Returns:
        One binding per mapped field. Fields whose header is absent but which
        declare a default are left unbound.

    Raises:
        MappingError: When a required column is missing or an index is out of range.
    """

    _require_dataclass(record_type)
    hints = get_type_hints(record_type)
    positions: Dict[str, int] = {}
    for idx, text in enumerate(header):
        if text is not None and text.strip():
            positions.setdefault(text.strip(), idx)

    bindings: List[ColumnBinding] = []
    missing: List[str] = []
    for field in dataclasses.fields(record_type):
        spec = column_spec(field)
        if not field.init or spec.ignore:
            continue
        if spec.index is not None:
            if spec.index >= len(header):
                raise MappingError(
                    f"Column index {spec.index} for field '{field.name}' is outside the "
                    f"sheet ({len(header)} columns)"
                )
            label = header[spec.index] or spec.name or field.name
            idx = spec.index
        else:
            label = spec.name or field.name
            idx = positions.get(label)
            if idx is None:
                if not _has_default(field):
                    missing.append(label)
                continue
        bindings.append(
            ColumnBinding(
                field_name=field.name,
                header=label,
                index=idx,
                annotation=hints.get(field.name, Any),
                has_default=_has_default(field),
            )
        )

    if missing:
        raise MappingError(
            f"Header missing required columns for {record_type.__name__}: "
            f"{', '.join(sorted(missing))}"
        )
    return bindings


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float, Decimal)):
        return bool(value)
    text = str(value).strip().lower()
    if text in _TRUE_STRINGS:
        return True
    if text in _FALSE_STRINGS:
        return False
    raise ValueError(f"not a boolean: {value!r}")


def _to_int(value: Any) -> int:
    if isinstance(value, bool):
        return int(value)
    number = Decimal(str(value).strip())
    if number != number.to_integral_value():
        raise ValueError(f"not an integer: {value!r}")
    return int(number)


def _to_str(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def _to_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, datetime.min.time())
    return datetime.fromisoformat(str(value).strip())


def _to_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.fromisoformat(str(value).strip()).date()


def coerce_value(value: Any, annotation: Any) -> Any:
    """Convert a raw cell value to *annotation*; unknown annotations pass through."""

    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        if value is None:
            return None
        options = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(options) == 1:
            return coerce_value(value, options[0])
        return value

    if value is None or annotation is Any or not isinstance(annotation, type):
        return value
    if annotation is bool:
        return _to_bool(value)
    if annotation is int:
        return _to_int(value)
    if annotation is float:
        return float(value)
    if annotation is str:
        return _to_str(value)
    if annotation is Decimal:
        return Decimal(str(value).strip())
    if annotation is datetime:
        return _to_datetime(value)
    if annotation is date:
        return _to_date(value)
    if issubclass(annotation, Enum):
        return annotation(value)
    if isinstance(value, annotation):
        return value
    return annotation(value)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _build_record(
    record_type: Type[T],
    bindings: Sequence[ColumnBinding],
    values: Tuple[Any, ...],
    excel_row: int,
    sheet_title: str,
) -> T:
    kwargs: Dict[str, Any] = {}
    for binding in bindings:
        raw = values[binding.index] if binding.index < len(values) else None
        if _is_blank(raw):
            if binding.has_default:
                continue
            kwargs[binding.field_name] = None
            continue
        try:
            kwargs[binding.field_name] = coerce_value(raw, binding.annotation)
        except (ValueError, TypeError, InvalidOperation) as exc:
            raise MappingError(
                f"Cannot convert {raw!r} in sheet '{sheet_title}' row {excel_row}, "
                f"column '{binding.header}' to {binding.annotation}"
            ) from exc
    return record_type(**kwargs)


def _data_rows(sheet: Worksheet, header_row: int) -> Iterator[Tuple[int, Tuple[Any, ...]]]:
    first = header_row + 2
    for offset, values in enumerate(sheet.iter_rows(min_row=first, values_only=True)):
        if all(_is_blank(value) for value in values):
            continue
        yield first + offset, values


def _locate_header(
    path: PathLike, sheet_index: int, header_row: int
) -> Tuple[LoadedWorkbook, Worksheet, HeaderRow]:
    # Formula cells map to their cached results, never to the formula text.
    workbook = open_workbook(path, data_only=True)
    try:
        sheet = get_sheet(workbook, sheet_index)
        if sheet is None:
            raise MappingError(f"Sheet index {sheet_index} not found in {path}")
        header = get_row(sheet, header_row)
        if header is None or not header.has_data:
            raise HeaderMissingError(
                f"No header row at index {header_row} in sheet '{sheet.title}' of {path}"
            )
    except ExcelMapError:
        workbook.close()
        raise
    return workbook, sheet, header


def _iter_records(
    record_type: Type[T],
    workbook: LoadedWorkbook,
    sheet: Worksheet,
    header_row: int,
    bindings: Sequence[ColumnBinding],
) -> Iterator[T]:
    count = 0
    try:
        for excel_row, values in _data_rows(sheet, header_row):
            yield _build_record(record_type, bindings, values, excel_row, sheet.title)
            count += 1
    finally:
        workbook.close()
    logger.info(
        "Records mapped",
        extra={"record_type": record_type.__name__, "sheet": sheet.title, "records": count},
    )


def fetch(
    path: PathLike,
    record_type: Type[T],
    *,
    sheet_index: int = 0,
    header_row: int = 0,
) -> Iterator[T]:
    """Map the rows below the header of a worksheet into *record_type* instances.

    The workbook is loaded and the header bound eagerly; records are produced
    lazily and the workbook is closed once the iterator is exhausted or
    closed. Call again to restart.

    Raises:
        WorkbookOpenError: When the workbook cannot be loaded.
        HeaderMissingError: When the header row is absent or empty.
        MappingError: When columns cannot be bound or a value cannot be converted.
    """

    _require_dataclass(record_type)
    workbook, sheet, header = _locate_header(path, sheet_index, header_row)
    try:
        bindings = bind_columns(record_type, header.texts())
    except MappingError:
        workbook.close()
        raise
    logger.info(
        "Columns bound",
        extra={
            "record_type": record_type.__name__,
            "columns": {b.field_name: b.header for b in bindings},
        },
    )
    return _iter_records(record_type, workbook, sheet, header_row, bindings)


def fetch_rows(
    path: PathLike, *, sheet_index: int = 0, header_row: int = 0
) -> Iterator[Dict[str, Any]]:
    """Yield every data row as a dict keyed by header text."""

    workbook, sheet, header = _locate_header(path, sheet_index, header_row)
    try:
        columns = [
            (idx, text.strip()) for idx, text in enumerate(header.texts()) if text and text.strip()
        ]
        for _, values in _data_rows(sheet, header_row):
            yield {
                label: values[idx] if idx < len(values) else None for idx, label in columns
            }
    finally:
        workbook.close()


def _write_layout(record_type: type) -> List[Tuple[int, str, str]]:
    fields = [
        f for f in dataclasses.fields(record_type) if not column_spec(f).ignore
    ]
    taken = {column_spec(f).index for f in fields if column_spec(f).index is not None}
    layout: List[Tuple[int, str, str]] = []
    next_free = 0
    for field in fields:
        spec = column_spec(field)
        if spec.index is not None:
            idx = spec.index
        else:
            while next_free in taken:
                next_free += 1
            idx = next_free
            taken.add(idx)
        layout.append((idx, spec.name or field.name, field.name))
    return sorted(layout)


def _cell_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    return value


def save(
    path: PathLike,
    records: Iterable[T],
    record_type: Type[T],
    *,
    sheet_name: str = "Sheet1",
    atomic: bool = False,
) -> Path:
    """Write *records* as a single worksheet with a header row of column names.

    The output format follows the suffix of *path*.

    Returns:
        Destination path.
    """

    _require_dataclass(record_type)
    workbook = new_workbook(path)
    sheet = workbook.book.active
    sheet.title = sheet_name

    layout = _write_layout(record_type)
    for idx, header, _ in layout:
        sheet.cell(row=1, column=idx + 1, value=header)

    count = 0
    for row_idx, record in enumerate(records, start=2):
        if not isinstance(record, record_type):
            raise MappingError(
                f"Expected {record_type.__name__} record, got {type(record).__name__}"
            )
        for idx, _, field_name in layout:
            value = getattr(record, field_name)
            if value is not None:
                sheet.cell(row=row_idx, column=idx + 1, value=_cell_value(value))
        count += 1

    logger.info(
        "Saving records",
        extra={"record_type": record_type.__name__, "records": count, "path": str(path)},
    )
    return write_workbook(path, workbook, atomic=atomic)


def records_to_frame(records: Iterable[Any], record_type: Optional[type] = None) -> pd.DataFrame:
    """Build a DataFrame with one row per record and one column per field."""

    rows = [dataclasses.asdict(record) for record in records]
    if rows:
        return pd.DataFrame(rows)
    if record_type is not None:
        _require_dataclass(record_type)
        return pd.DataFrame(columns=[f.name for f in dataclasses.fields(record_type)])
    return pd.DataFrame()
