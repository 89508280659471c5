"""Per-host downtime intervals from an alternating up/down event sequence."""

from collections.abc import Iterable, Iterator

from outage_calc.core.exceptions import NonAlternatingEventsError
from outage_calc.schemas.events import BEGINNING_OF_TIME, END_OF_TIME, DowntimeInterval, TrapEvent


def build_downtime_intervals(events: Iterable[TrapEvent]) -> Iterator[DowntimeInterval]:
    """Yield the [start, end) ranges during which the host was down.

    ``events`` must already alternate and be time ordered (see
    ``impute_missing_events``). A host whose first event is "up" was down
    since before observation began; one whose last event is "down" never
    recovered within the log. A "down" at the same instant as the preceding
    "up" continues the earlier interval, and zero-length downtime is dropped,
    so consecutive intervals always have real uptime between them.
    """
    iterator = iter(events)
    first = next(iterator, None)
    if first is None:
        return

    host = first.host
    is_up = first.is_up
    down_since = first.timestamp
    # Closed interval held back until we know the next "down" does not continue it.
    pending: DowntimeInterval | None = None
    if is_up:
        pending = DowntimeInterval(host=host, start=BEGINNING_OF_TIME, end=first.timestamp)

    for event in iterator:
        if event.is_up == is_up:
            raise NonAlternatingEventsError(
                f"Got two {event.state} events in a row for host {host} at {event.timestamp}",
                details={
                    "host": host,
                    "timestamp": event.timestamp.isoformat(),
                    "state": event.state,
                },
            )
        if event.is_up:
            if down_since != event.timestamp:
                pending = DowntimeInterval(host=host, start=down_since, end=event.timestamp)
        elif pending is not None and pending.end == event.timestamp:
            down_since = pending.start
            pending = None
        else:
            if pending is not None:
                yield pending
                pending = None
            down_since = event.timestamp
        is_up = event.is_up

    if pending is not None:
        yield pending
    if not is_up:
        yield DowntimeInterval(host=host, start=down_since, end=END_OF_TIME)
