"""Event imputer: rebuilds a strictly alternating up/down timeline for one host."""

from collections.abc import Iterable, Iterator

import structlog

from outage_calc.core.exceptions import MalformedDurationError, MissingImputationBasisError
from outage_calc.schemas.events import TrapEvent
from outage_calc.services.duration import parse_duration

logger = structlog.get_logger()


def _event_context(event: TrapEvent) -> dict:
    return {
        "host": event.host,
        "timestamp": event.timestamp.isoformat(),
        "row": event.row_number,
    }


def _impute_before(event: TrapEvent) -> TrapEvent:
    """Build the opposite-state event the monitor must have missed before ``event``."""
    hint = (event.duration_hint or "").strip()
    if not hint:
        raise MissingImputationBasisError(
            f"Host {event.host} reported '{event.state}' twice in a row at {event.timestamp} "
            "and the second event has no duration to impute from",
            details=_event_context(event),
        )

    try:
        when = event.timestamp - parse_duration(hint)
    except MalformedDurationError as e:
        raise MalformedDurationError(
            f"Cannot impute event for host {event.host} at {event.timestamp}: {e.message}",
            details={**e.details, **_event_context(event)},
        ) from e
    except OverflowError:
        raise MalformedDurationError(
            f"Duration '{hint}' reaches before the earliest representable time",
            details={"text": hint, **_event_context(event)},
        ) from None

    return TrapEvent(host=event.host, is_up=not event.is_up, timestamp=when, imputed=True)


def impute_missing_events(events: Iterable[TrapEvent]) -> Iterator[TrapEvent]:
    """Yield ``events`` in time order with missed transitions filled in.

    Equal timestamps keep their input order (stable sort). Whenever two
    consecutive events report the same state, an event of the opposite state
    is inserted at ``timestamp - duration_hint`` of the second one.
    """
    ordered = sorted(events, key=lambda e: e.timestamp)
    if not ordered:
        return

    previous = ordered[0]
    yield previous

    for current in ordered[1:]:
        if current.is_up == previous.is_up:
            imputed = _impute_before(current)
            if imputed.timestamp < previous.timestamp:
                raise MissingImputationBasisError(
                    f"Duration '{current.duration_hint}' on host {current.host} at {current.timestamp} "
                    f"reaches back past the previous event at {previous.timestamp}",
                    details={**_event_context(current), "previous": previous.timestamp.isoformat()},
                )
            logger.info(
                "event_imputed",
                host=imputed.host,
                state=imputed.state,
                timestamp=imputed.timestamp.isoformat(),
            )
            yield imputed
        yield current
        previous = current
