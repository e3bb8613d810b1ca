"""Shared schemas for record declarations and reader configuration."""

# Module responsibilities:
# - Provide the column() helper used to bind dataclass fields to worksheet columns.
# - Define the typed configuration container loaded from YAML.

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, Callable, Dict, NotRequired, Optional, TypedDict

COLUMN_METADATA_KEY = "excelmap.column"


@dataclass(frozen=True)
class ColumnSpec:
    """Column binding declared on a record field."""

    name: Optional[str] = None
    index: Optional[int] = None
    ignore: bool = False


def column(
    name: Optional[str] = None,
    *,
    index: Optional[int] = None,
    ignore: bool = False,
    default: Any = dataclasses.MISSING,
    default_factory: Callable[[], Any] | Any = dataclasses.MISSING,
) -> Any:
    """Declare how a dataclass field maps to a worksheet column.

    Args:
        name: Header text of the column; defaults to the field name.
        index: Zero-based column index; takes precedence over ``name``.
        ignore: Skip the field when reading and writing.
        default: Value used when the cell is empty or the column is absent.
        default_factory: Factory alternative to ``default``.

    Example:
        >>> @dataclass
        ... class Employee:
        ...     user_name: str = column("UserName")
        ...     department: str = column(index=1)
    """

    if index is not None and index < 0:
        raise ValueError("column index must be zero or positive")
    if ignore and default is dataclasses.MISSING and default_factory is dataclasses.MISSING:
        raise ValueError("ignored columns need a default or default_factory")
    metadata = {COLUMN_METADATA_KEY: ColumnSpec(name=name, index=index, ignore=ignore)}
    return dataclasses.field(default=default, default_factory=default_factory, metadata=metadata)


def column_spec(field: dataclasses.Field) -> ColumnSpec:
    return field.metadata.get(COLUMN_METADATA_KEY) or ColumnSpec()


class ReaderConfig(TypedDict):
    """Schema for header rename YAML payloads."""

    sheet_index: int
    header_row: int
    replacements: NotRequired[Dict[str, str]]
    rewrite_unchanged: NotRequired[bool]
    require_header: NotRequired[bool]
    output_path: NotRequired[str]
