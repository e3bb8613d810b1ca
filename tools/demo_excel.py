"""CLI demo for renaming headers and mapping rows into records."""

# Module responsibilities:
# - Provide a CLI that generates a sample workbook with unfriendly headers when absent.
# - Rename the headers through ExcelFileReader and print the mapped records.

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Optional

from openpyxl import Workbook

from excelmap import ExcelFileReader, ExcelMapError, column, records_to_frame
from excelmap.utils.log import get_logger

logger = get_logger("tools.demo_excel")

DEMO_REPLACEMENTS = {
    "User name in Dept": "UserName",
    "Department Name": "Department",
    "Monthly Salary (USD)": "Salary",
}


@dataclass
class StaffRecord:
    user_name: str = column("UserName")
    department: str = column("Department")
    salary: Optional[Decimal] = column("Salary", default=None)
    joined: Optional[datetime] = column("Joined", default=None)


def _generate_source_example(path: Path) -> None:
    wb = Workbook()
    ws = wb.active
    ws.title = "Staff"
    ws.append(["User name in Dept", "Department Name", "Monthly Salary (USD)", "Joined"])
    ws.append(["alice", "Finance", 5200.5, datetime(2021, 3, 1)])
    ws.append(["bob", "Sales", 4100, datetime(2022, 9, 15)])
    ws.append(["carol", "Legal", 6300, None])
    path.parent.mkdir(parents=True, exist_ok=True)
    wb.save(path)
    logger.info("Generated example source workbook", extra={"path": str(path)})


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Excel header rename + record mapping demo")
    parser.add_argument("--source", type=Path, default=Path("examples/staff.xlsx"))
    parser.add_argument("--out", type=Path, default=None, help="Write renamed workbook here")
    parser.add_argument("--sheet", type=int, default=0)
    parser.add_argument("--header-row", type=int, default=0)
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv if argv is not None else sys.argv[1:])

    try:
        if not args.source.exists():
            _generate_source_example(args.source)
        reader = ExcelFileReader(
            StaffRecord,
            sheet_index=args.sheet,
            header_row=args.header_row,
            replacements=DEMO_REPLACEMENTS,
            output_path=args.out,
        )
        records = reader.fetch(args.source)
        print(f"Records mapped: {len(records)}")
        if records:
            print(records_to_frame(records, StaffRecord).to_string(index=False))
        return 0
    except ExcelMapError as exc:
        logger.error("Excel demo failed", extra={"error": str(exc)})
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
