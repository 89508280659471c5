"""Reads an exported F5 SNMP trap log spreadsheet into TrapEvents."""

import ipaddress
import re
import zipfile
from collections.abc import Iterator
from datetime import datetime
from pathlib import Path

import structlog
from openpyxl import load_workbook
from openpyxl.utils import get_column_letter
from openpyxl.utils.exceptions import InvalidFileException
from pydantic import ValidationError

from outage_calc.config import settings
from outage_calc.core.exceptions import InputFormatError, TrapParseError
from outage_calc.schemas.events import TrapEvent, TrapLogRow

logger = structlog.get_logger()

# Trap Time, IP Address, Host Name, Community String, Trap Type, Trap Details, Member
EXPECTED_COLUMN_TYPES = (datetime, str, str, str, str, str, str)
ROW_FIELDS = (
    "trap_time",
    "ip_address",
    "host_name",
    "community_string",
    "trap_type",
    "trap_details",
    "member",
)


def _trim(values: tuple) -> list:
    cells = list(values)
    while cells and cells[-1] is None:
        cells.pop()
    return cells


def _check_row(cells: list, row_number: int) -> None:
    if len(cells) != len(EXPECTED_COLUMN_TYPES):
        raise InputFormatError(
            f"Expected {len(EXPECTED_COLUMN_TYPES)} columns, but found {len(cells)} on row {row_number}",
            details={"row": row_number},
        )
    for column, (value, expected) in enumerate(zip(cells, EXPECTED_COLUMN_TYPES)):
        if not isinstance(value, expected):
            letter = get_column_letter(column + 1)
            raise InputFormatError(
                f"Expected {expected.__name__} value in column {letter}, "
                f"but found {type(value).__name__} on row {row_number}",
                details={"row": row_number, "column": letter},
            )


def _row_error(error: ValidationError, row_number: int, cells: list) -> InputFormatError:
    """Name the spreadsheet column behind the first field TrapLogRow rejected."""
    first = error.errors()[0]
    field = first["loc"][0] if first["loc"] else None
    if field not in ROW_FIELDS:
        return InputFormatError(
            f"Invalid trap log row {row_number}: {first['msg']}",
            details={"row": row_number},
        )
    index = ROW_FIELDS.index(field)
    letter = get_column_letter(index + 1)
    if field == "ip_address":
        message = f"Could not parse '{cells[index]}' as an IP address on row {row_number}"
    else:
        message = f"Invalid {field} '{cells[index]}' in column {letter} on row {row_number}: {first['msg']}"
    return InputFormatError(message, details={"row": row_number, "column": letter, "field": field})


def read_log_rows(
    path: str | Path,
    sheet_index: int | None = None,
    header_rows: int | None = None,
) -> Iterator[TrapLogRow]:
    """Yield the data rows of the trap log workbook at ``path``.

    ``sheet_index`` is 1-based. Header rows and fully empty rows are skipped.
    """
    sheet_index = sheet_index if sheet_index is not None else settings.outage_sheet_index
    header_rows = header_rows if header_rows is not None else settings.outage_header_rows

    try:
        workbook = load_workbook(str(path), read_only=True, data_only=True)
    except FileNotFoundError:
        raise InputFormatError(f"Trap log not found: {path}", details={"path": str(path)}) from None
    except (InvalidFileException, zipfile.BadZipFile, KeyError) as e:
        raise InputFormatError(
            f"Could not open '{path}' as a workbook: {e}", details={"path": str(path)}
        ) from e

    try:
        if not 1 <= sheet_index <= len(workbook.worksheets):
            raise InputFormatError(
                f"Workbook has no sheet {sheet_index} ({len(workbook.worksheets)} available)",
                details={"path": str(path), "sheet": sheet_index},
            )
        sheet = workbook.worksheets[sheet_index - 1]

        count = 0
        for row_number, values in enumerate(
            sheet.iter_rows(min_row=header_rows + 1, values_only=True), start=header_rows + 1
        ):
            cells = _trim(values)
            if not cells:
                continue
            _check_row(cells, row_number)
            trap_time, ip_text, host_name, community, trap_type, details, member = cells
            try:
                row = TrapLogRow(
                    row_number=row_number,
                    trap_time=trap_time,
                    ip_address=ip_text.strip(),
                    host_name=host_name,
                    community_string=community,
                    trap_type=trap_type,
                    trap_details=details,
                    member=member,
                )
            except ValidationError as e:
                raise _row_error(e, row_number, cells) from None
            count += 1
            yield row
        logger.info("trap_rows_read", path=str(path), sheet=sheet_index, rows=count)
    finally:
        workbook.close()


def to_trap_event(
    row: TrapLogRow,
    member_pattern: str | None = None,
    duration_pattern: str | None = None,
) -> TrapEvent:
    """Turn a trap log row into an up/down event for the pool member it names."""
    if "ServiceDown" in row.trap_type:
        is_up = False
    elif "ServiceUp" in row.trap_type:
        is_up = True
    else:
        raise TrapParseError(
            f"Could not determine if '{row.trap_type}' means the service is up or down",
            details={"row": row.row_number, "trap_type": row.trap_type},
        )

    member = re.search(member_pattern or settings.outage_member_pattern, row.trap_details, re.IGNORECASE)
    if member is None:
        raise TrapParseError(
            f"No pool member found in trap details on row {row.row_number}",
            details={"row": row.row_number, "trap_details": row.trap_details},
        )
    try:
        host = str(ipaddress.ip_address(member.group("ip")))
    except ValueError:
        raise TrapParseError(
            f"Could not parse '{member.group('ip')}' as an IP address on row {row.row_number}",
            details={"row": row.row_number, "trap_details": row.trap_details},
        ) from None

    duration = re.search(duration_pattern or settings.outage_duration_pattern, row.trap_details, re.IGNORECASE)

    return TrapEvent(
        host=host,
        is_up=is_up,
        timestamp=row.trap_time,
        duration_hint=duration.group("duration") if duration else None,
        row_number=row.row_number,
    )


def read_trap_events(
    path: str | Path,
    sheet_index: int | None = None,
    member_pattern: str | None = None,
    duration_pattern: str | None = None,
) -> list[TrapEvent]:
    """Read every row of the trap log and convert it to a TrapEvent."""
    return [
        to_trap_event(row, member_pattern=member_pattern, duration_pattern=duration_pattern)
        for row in read_log_rows(path, sheet_index=sheet_index)
    ]
