"""Report rendering: CSV for files and pipes, rich tables for the terminal."""

import csv
from collections.abc import Iterable
from datetime import datetime
from typing import TextIO

from rich.table import Table

from outage_calc.config import settings
from outage_calc.schemas.events import BEGINNING_OF_TIME, END_OF_TIME, OutageReport, OutageWindow

CSV_HEADER = ("Start", "End", "Duration")


def format_timestamp(value: datetime, fmt: str | None = None, open_marker: str | None = None) -> str:
    """Render a timestamp, or the open-bound marker for the sentinels."""
    if value in (BEGINNING_OF_TIME, END_OF_TIME):
        return open_marker if open_marker is not None else settings.outage_open_bound_marker
    return value.strftime(fmt or settings.outage_timestamp_format)


def _window_fields(window: OutageWindow, fmt: str | None, open_marker: str | None) -> tuple[str, str, str]:
    marker = open_marker if open_marker is not None else settings.outage_open_bound_marker
    duration = window.duration
    return (
        format_timestamp(window.start, fmt, marker),
        format_timestamp(window.end, fmt, marker),
        str(duration) if duration is not None else marker,
    )


def write_csv(
    windows: Iterable[OutageWindow],
    stream: TextIO,
    fmt: str | None = None,
    open_marker: str | None = None,
) -> int:
    """Write outage windows as quoted CSV. Returns the number of windows written."""
    writer = csv.writer(stream, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    count = 0
    for window in windows:
        writer.writerow(_window_fields(window, fmt, open_marker))
        count += 1
    return count


def render_table(report: OutageReport, fmt: str | None = None, open_marker: str | None = None) -> Table:
    """Outage windows as a rich Table, with a caption summarizing the hosts."""
    table = Table(title="Outage Windows")
    table.add_column("Start", style="cyan")
    table.add_column("End", style="cyan")
    table.add_column("Duration", style="bold red")

    for window in report.windows:
        table.add_row(*_window_fields(window, fmt, open_marker))

    caption = f"{len(report.hosts)} hosts, {len(report.windows)} outage windows"
    if report.always_up_hosts:
        caption += f", always up: {', '.join(report.always_up_hosts)}"
    if not report.complete:
        caption += f", INCOMPLETE ({len(report.failures)} hosts failed)"
    table.caption = caption
    return table
