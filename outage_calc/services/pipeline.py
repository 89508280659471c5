"""Outage pipeline: events → per-host timelines → downtime intervals → outage windows."""

from collections.abc import Callable, Iterable

import structlog

from outage_calc.core.exceptions import DataQualityError
from outage_calc.schemas.events import (
    DowntimeInterval,
    HostFailure,
    HostSummary,
    OutageReport,
    TrapEvent,
)
from outage_calc.services.downtime import build_downtime_intervals
from outage_calc.services.imputer import impute_missing_events
from outage_calc.services.intersector import find_outage_windows

logger = structlog.get_logger()


def group_by_host(events: Iterable[TrapEvent]) -> dict[str, list[TrapEvent]]:
    """Group events by host, hosts in order of first appearance."""
    grouped: dict[str, list[TrapEvent]] = {}
    for event in events:
        grouped.setdefault(event.host, []).append(event)
    return grouped


def _host_downtime(host_events: list[TrapEvent]) -> tuple[list[DowntimeInterval], int]:
    timeline = list(impute_missing_events(host_events))
    imputed = sum(1 for e in timeline if e.imputed)
    return list(build_downtime_intervals(timeline)), imputed


def compute_outages(
    events: Iterable[TrapEvent],
    expected_hosts: Iterable[str] | None = None,
    skip_failed_hosts: bool = False,
    on_always_up: Callable[[str], None] | None = None,
) -> OutageReport:
    """Compute the windows during which every monitored host was down.

    Args:
        events: Observed trap events for any number of hosts, in any order.
        expected_hosts: Hosts that must take part even if they have no events.
            Such hosts count as never down and are listed as unmonitored.
        skip_failed_hosts: Leave hosts with data-quality errors out of the
            intersection and list them in ``failures`` instead of aborting.
            Contract violations always propagate.
        on_always_up: Called with each host that was never observed down.
    """
    grouped = group_by_host(events)
    unmonitored = []
    for host in expected_hosts or ():
        if host not in grouped:
            grouped[host] = []
            unmonitored.append(host)
            logger.warning("host_without_events", host=host)

    summaries: list[HostSummary] = []
    failures: list[HostFailure] = []
    downtime_per_host: dict[str, list[DowntimeInterval]] = {}

    for host, host_events in grouped.items():
        try:
            intervals, imputed = _host_downtime(host_events)
        except DataQualityError as e:
            logger.error("host_processing_failed", host=host, code=e.code, error=e.message)
            if not skip_failed_hosts:
                raise
            failures.append(HostFailure(host=host, code=e.code, message=e.message))
            continue

        downtime_per_host[host] = intervals
        summaries.append(
            HostSummary(
                host=host,
                events=len(host_events),
                imputed=imputed,
                downtime_intervals=len(intervals),
            )
        )

    always_up: list[str] = []

    def _always_up(host: str) -> None:
        always_up.append(host)
        if on_always_up is not None:
            on_always_up(host)

    windows = list(find_outage_windows(downtime_per_host, on_always_up=_always_up))

    logger.info(
        "outage_computed",
        hosts=len(grouped),
        windows=len(windows),
        failed_hosts=len(failures),
    )
    return OutageReport(
        windows=windows,
        hosts=summaries,
        always_up_hosts=always_up,
        unmonitored_hosts=unmonitored,
        failures=failures,
    )
