"""Parser for the compact duration text F5 puts in trap details, e.g. "2hrs:15mins:3secs"."""

import re
from datetime import timedelta

from outage_calc.core.exceptions import MalformedDurationError

# Longest suffix first so "hrs" is never read as "hr" plus a stray "s".
_UNITS = (
    ("hrs", "hours"),
    ("hr", "hours"),
    ("mins", "minutes"),
    ("min", "minutes"),
    ("secs", "seconds"),
    ("sec", "seconds"),
)

_DIGITS = re.compile(r"[0-9]+")


def _parse_segment(segment: str, text: str) -> timedelta:
    lowered = segment.strip().lower()
    for suffix, unit in _UNITS:
        if lowered.endswith(suffix):
            number = lowered[: -len(suffix)]
            if not _DIGITS.fullmatch(number):
                raise MalformedDurationError(
                    f"Invalid number '{number}' in duration segment '{segment}'",
                    details={"text": text, "segment": segment},
                )
            try:
                return timedelta(**{unit: int(number)})
            except (OverflowError, ValueError):
                # ValueError: digit strings beyond the interpreter's int conversion limit
                raise MalformedDurationError(
                    f"Duration segment '{segment}' is out of range",
                    details={"text": text, "segment": segment},
                ) from None

    raise MalformedDurationError(
        f"Unknown time segment '{segment}'",
        details={"text": text, "segment": segment},
    )


def parse_duration(text: str) -> timedelta:
    """Sum every colon-separated segment of ``text`` into one timedelta.

    Units may repeat and are summed. Any bad segment rejects the whole string.
    """
    total = timedelta()
    for segment in text.split(":"):
        part = _parse_segment(segment, text)
        try:
            total += part
        except OverflowError:
            raise MalformedDurationError(
                f"Duration '{text}' is out of range",
                details={"text": text, "segment": segment},
            ) from None
    return total
