"""Typer based command line entry points for excelmap."""

from __future__ import annotations

import json
import logging
import tempfile
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pandas as pd
import typer

from .config import load_reader_config
from .errors import ExcelMapError
from .headers import get_row, get_sheet
from .mapper import fetch_rows
from .reader import rename_headers
from .utils.log import get_logger, set_level
from .workbook_io import open_workbook

OUTPUT_FORMATS = {"json", "csv"}

app = typer.Typer(help="Rename worksheet headers and map rows from Excel files.")


def _validate_format(value: str) -> str:
    value = value.lower()
    if value not in OUTPUT_FORMATS:
        raise typer.BadParameter("format must be one of json, csv")
    return value


def _parse_replace(values: List[str]) -> Dict[str, str]:
    replacements: Dict[str, str] = {}
    for item in values:
        old, sep, new = item.partition("=")
        if not sep or not old:
            raise typer.BadParameter(f"Replacement must look like OLD=NEW: {item}")
        replacements[old] = new
    return replacements


def _resolve_options(
    config: Optional[Path],
    replace: List[str],
    sheet: int,
    header_row: int,
) -> Tuple[int, int, Optional[Dict[str, str]]]:
    replacements: Optional[Dict[str, str]] = None
    if config is not None:
        settings = load_reader_config(config)
        sheet = settings["sheet_index"]
        header_row = settings["header_row"]
        replacements = dict(settings.get("replacements", {}))
    if replace:
        replacements = {**(replacements or {}), **_parse_replace(replace)}
    return sheet, header_row, replacements


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        "WARNING",
        "--log-level",
        help="Set logging level (e.g. DEBUG/INFO/WARNING).",
    ),
) -> None:
    """Configure logging before executing commands."""

    level_value = getattr(logging, log_level.upper(), None)
    if not isinstance(level_value, int):
        raise typer.BadParameter(f"Unknown log level: {log_level}")
    set_level(level_value)
    get_logger("cli").debug("Log level set", extra={"level": log_level.upper()})


@app.command("headers")
def cli_headers(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, resolve_path=True, help="Workbook path"),
    sheet: int = typer.Option(0, "--sheet", min=0, help="Zero-based sheet index"),
    header_row: int = typer.Option(0, "--header-row", min=0, help="Zero-based header row index"),
) -> None:
    """Print the header texts of a worksheet, one per line."""

    try:
        workbook = open_workbook(path)
    except ExcelMapError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc

    try:
        row = get_row(get_sheet(workbook, sheet), header_row)
        texts = row.texts() if row is not None and row.has_data else None
    finally:
        workbook.close()
    if texts is None:
        typer.secho(f"No header row at index {header_row} in sheet {sheet}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    for text in texts:
        typer.echo(text or "")


@app.command("rename")
def cli_rename(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, resolve_path=True, help="Workbook path"),
    config: Optional[Path] = typer.Option(
        None, "--config", exists=True, dir_okay=False, help="Reader configuration YAML"
    ),
    replace: List[str] = typer.Option(
        [], "--replace", "-r", help="Replacement as OLD=NEW (repeat for multiple)"
    ),
    out: Optional[Path] = typer.Option(None, "--out", "-o", help="Write to this file instead of PATH"),
    sheet: int = typer.Option(0, "--sheet", min=0, help="Zero-based sheet index"),
    header_row: int = typer.Option(0, "--header-row", min=0, help="Zero-based header row index"),
    atomic: bool = typer.Option(False, "--atomic", help="Stage the write in a temporary file"),
) -> None:
    """Rename header cells by substring replacement and save the workbook."""

    try:
        sheet, header_row, replacements = _resolve_options(config, replace, sheet, header_row)
        result = rename_headers(
            path,
            replacements,
            sheet_index=sheet,
            header_row=header_row,
            output_path=out,
            atomic=atomic,
        )
    except ExcelMapError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc

    if result is None:
        typer.secho(f"No header row at index {header_row} in sheet {sheet}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    for text in result.headers:
        typer.echo(text or "")


@app.command("dump")
def cli_dump(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, resolve_path=True, help="Workbook path"),
    config: Optional[Path] = typer.Option(
        None, "--config", exists=True, dir_okay=False, help="Reader configuration YAML"
    ),
    replace: List[str] = typer.Option(
        [], "--replace", "-r", help="Replacement as OLD=NEW (repeat for multiple)"
    ),
    out: Optional[Path] = typer.Option(
        None, "--out", "-o", help="Keep the renamed workbook here; PATH is never modified"
    ),
    sheet: int = typer.Option(0, "--sheet", min=0, help="Zero-based sheet index"),
    header_row: int = typer.Option(0, "--header-row", min=0, help="Zero-based header row index"),
    output_format: str = typer.Option(
        "json", "--format", help="Output format (json/csv)", callback=_validate_format
    ),
) -> None:
    """Print worksheet rows keyed by header, renaming headers first when asked.

    Renamed headers go to ``--out`` or to a scratch copy; PATH stays untouched.
    """

    try:
        sheet, header_row, replacements = _resolve_options(config, replace, sheet, header_row)
        with tempfile.TemporaryDirectory(prefix="excelmap-") as scratch:
            source = path
            if replacements:
                target = out if out is not None else Path(scratch) / path.name
                if target.resolve() == path:
                    raise typer.BadParameter("--out must differ from PATH", param_hint="--out")
                result = rename_headers(
                    path,
                    replacements,
                    sheet_index=sheet,
                    header_row=header_row,
                    output_path=target,
                )
                if result is not None:
                    source = result.path
            frame = pd.DataFrame(list(fetch_rows(source, sheet_index=sheet, header_row=header_row)))
    except ExcelMapError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc

    if output_format == "csv":
        typer.echo(frame.to_csv(index=False), nl=False)
        return
    payload = json.loads(frame.to_json(orient="records", date_format="iso", force_ascii=False))
    typer.echo(json.dumps(payload, ensure_ascii=False, indent=2))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
