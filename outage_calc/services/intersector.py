"""K-way sweep over per-host downtime intervals to find simultaneous outages."""

from collections.abc import Callable, Iterable, Iterator, Mapping

import structlog

from outage_calc.schemas.events import DowntimeInterval, OutageWindow

logger = structlog.get_logger()


def find_outage_windows(
    downtime_per_host: Mapping[str, Iterable[DowntimeInterval]],
    on_always_up: Callable[[str], None] | None = None,
) -> Iterator[OutageWindow]:
    """Yield the maximal windows during which every host was down.

    Each host's intervals must be ordered and non-overlapping. Hosts with no
    downtime at all are passed to ``on_always_up``; a single such host means
    there can be no simultaneous outage. When several cursors share the
    earliest end, the host listed first in ``downtime_per_host`` advances.
    """
    hosts = list(downtime_per_host)
    cursors: list[Iterator[DowntimeInterval]] = []
    current: list[DowntimeInterval] = []
    always_up = []

    for host in hosts:
        cursor = iter(downtime_per_host[host])
        first = next(cursor, None)
        if first is None:
            always_up.append(host)
            continue
        cursors.append(cursor)
        current.append(first)

    for host in always_up:
        logger.info("host_always_up", host=host)
        if on_always_up is not None:
            on_always_up(host)
    if always_up or not current:
        return

    while True:
        earliest = 0
        for i in range(1, len(current)):
            if current[i].end < current[earliest].end:
                earliest = i
        earliest_end = current[earliest].end

        if all(interval.start < earliest_end for interval in current):
            yield OutageWindow(
                start=max(interval.start for interval in current),
                end=earliest_end,
            )

        # Once any host's downtime runs out it stays up for the rest of the log.
        following = next(cursors[earliest], None)
        if following is None:
            return
        current[earliest] = following
