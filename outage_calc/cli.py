import sys
from pathlib import Path
from typing import NoReturn

import typer
from rich.console import Console
from rich.markup import escape

from outage_calc.config import settings
from outage_calc.core.exceptions import OutageError
from outage_calc.core.logs import configure_logging

console = Console()
err_console = Console(stderr=True)
cli_app = typer.Typer(name="outage-calc", help="Find windows where every load balancer pool member was down")


def _fail(error: OutageError) -> NoReturn:
    err_console.print(f"[bold red]Error ({error.code}):[/bold red] {escape(error.message)}")
    raise typer.Exit(code=1)


def _announce_always_up(host: str) -> None:
    err_console.print(f"[yellow]Host {escape(host)} had 100% uptime![/yellow]")


@cli_app.command("report")
def report(
    path: Path = typer.Argument(..., help="Exported trap log workbook (.xlsx)"),
    sheet: int = typer.Option(None, "--sheet", help="1-based worksheet to read"),
    output: Path = typer.Option(None, "--output", "-o", help="Write the CSV report to this file"),
    table: bool = typer.Option(False, "--table", help="Print a table instead of CSV"),
    expected_hosts: list[str] = typer.Option(
        None, "--expected-host", help="Host that must be part of every outage (repeatable)"
    ),
    skip_failed_hosts: bool = typer.Option(
        False, "--skip-failed-hosts", help="Leave out hosts with bad data instead of aborting"
    ),
    log_level: str = typer.Option(None, "--log-level", help="debug, info, warning or error"),
):
    """Compute outage windows from a trap log."""
    from outage_calc.services.pipeline import compute_outages
    from outage_calc.services.report import render_table, write_csv
    from outage_calc.services.trap_reader import read_trap_events

    configure_logging(log_level or settings.outage_log_level)

    try:
        events = read_trap_events(path, sheet_index=sheet)
        result = compute_outages(
            events,
            expected_hosts=expected_hosts,
            skip_failed_hosts=skip_failed_hosts,
            on_always_up=_announce_always_up,
        )
    except OutageError as e:
        _fail(e)

    for host in result.unmonitored_hosts:
        err_console.print(f"[yellow]Host {escape(host)} has no events; counted as never down.[/yellow]")
    for failure in result.failures:
        err_console.print(f"[red]Skipped host {escape(failure.host)}:[/red] {escape(failure.message)}")
    if not result.complete:
        err_console.print(f"[bold yellow]Report is incomplete: {len(result.failures)} hosts were skipped.[/bold yellow]")

    if table:
        console.print(render_table(result))
    elif output is not None:
        with open(output, "w", newline="", encoding="utf-8") as f:
            written = write_csv(result.windows, f)
        err_console.print(f"[green]Wrote {written} outage windows to {escape(str(output))}[/green]")
    else:
        write_csv(result.windows, sys.stdout)


@cli_app.command("parse-duration")
def parse_duration_command(
    text: str = typer.Argument(help="Duration text, e.g. 2hrs:15mins"),
):
    """Parse a trap duration string and print its length."""
    from outage_calc.services.duration import parse_duration

    try:
        delta = parse_duration(text)
    except OutageError as e:
        _fail(e)

    console.print(f"{delta} ({int(delta.total_seconds())} seconds)")


def main():
    cli_app()


if __name__ == "__main__":
    main()
