"""Resolve a --since argument into the lower bound of the query window.

Accepted forms:
- a duration counted back from the reference instant ("5s", "2m", "1h30m");
- a calendar timestamp ("2024-01-02", "2024-01-02T15:04",
  "2024-01-02T15:04:05.123Z", "2024-01-02T15:04:05+02:00"), read in the
  reference's zone when it carries no zone of its own;
- a raw Unix timestamp ("1704207845" or "1704207845.5").

Anything that resolves to exactly the epoch means "no lower bound", and so
does a zero-length duration such as "0" or "0s".
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Optional, Tuple

from logtail.core.errors import ParseError

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_NANOS_PER_SECOND = 1_000_000_000

_DURATION_UNITS = {
    "ns": 1,
    "us": 1_000,
    "µs": 1_000,
    "μs": 1_000,
    "ms": 1_000_000,
    "s": _NANOS_PER_SECOND,
    "m": 60 * _NANOS_PER_SECOND,
    "h": 3600 * _NANOS_PER_SECOND,
}

# Longer units first so "ms" is not read as "m" followed by garbage.
_DURATION_PART = re.compile(r"(\d+\.?\d*|\.\d+)(ns|us|µs|μs|ms|s|m|h)")

_TIMESTAMP = re.compile(
    r"^(?P<year>\d{4})-(?P<month>\d{2})-(?P<day>\d{2})"
    r"(?:T(?P<hour>\d{2})"
    r"(?::(?P<minute>\d{2})"
    r"(?::(?P<second>\d{2})(?:\.(?P<fraction>\d{1,9}))?)?)?)?"
    r"(?P<zone>[zZ]|[+-]\d{2}:\d{2})?$"
)

_UNIX_TIMESTAMP = re.compile(r"^(?P<seconds>\d+)(?:\.(?P<fraction>\d+))?$")


def parse_duration(value: str) -> Optional[int]:
    """Return the duration in nanoseconds, or None if value is not a duration."""

    text = value.strip()
    sign = 1
    if text[:1] in ("+", "-"):
        if text[0] == "-":
            sign = -1
        text = text[1:]
    if text == "0":
        return 0
    if not text:
        return None

    total = Decimal(0)
    pos = 0
    while pos < len(text):
        match = _DURATION_PART.match(text, pos)
        if not match:
            return None
        number, unit = match.groups()
        total += Decimal(number) * _DURATION_UNITS[unit]
        pos = match.end()
    return sign * int(total)


def _fraction_to_nanos(fraction: Optional[str]) -> int:
    if not fraction:
        return 0
    return int(fraction[:9].ljust(9, "0"))


def _to_epoch_nanos(moment: datetime) -> int:
    delta = moment - EPOCH
    seconds = delta.days * 86400 + delta.seconds
    return seconds * _NANOS_PER_SECOND + delta.microseconds * 1000


def _zone_of(reference: datetime) -> timezone:
    aware = reference if reference.tzinfo else reference.astimezone()
    offset = aware.utcoffset() or timedelta(0)
    return timezone(offset)


def _parse_zone(zone: Optional[str], reference: datetime) -> timezone:
    if not zone:
        return _zone_of(reference)
    if zone in ("z", "Z"):
        return timezone.utc
    sign = -1 if zone[0] == "-" else 1
    hours, minutes = int(zone[1:3]), int(zone[4:6])
    return timezone(sign * timedelta(hours=hours, minutes=minutes))


def to_timestamp(since: str, reference: datetime) -> Tuple[int, int]:
    """Convert since into a (seconds, nanoseconds) pair relative to reference.

    Raises ValueError when since is not a duration or a timestamp.
    """

    value = since.strip()
    if not value:
        raise ValueError("empty value")

    duration = parse_duration(value)
    if duration is not None:
        if duration == 0:
            return 0, 0
        # Durations resolve to whole seconds.
        start = _to_epoch_nanos(reference if reference.tzinfo else reference.astimezone()) - duration
        return start // _NANOS_PER_SECOND, 0

    match = _TIMESTAMP.match(value)
    if match:
        parts = match.groupdict()
        moment = datetime(
            int(parts["year"]),
            int(parts["month"]),
            int(parts["day"]),
            int(parts["hour"] or 0),
            int(parts["minute"] or 0),
            int(parts["second"] or 0),
            tzinfo=_parse_zone(parts["zone"], reference),
        )
        seconds = _to_epoch_nanos(moment) // _NANOS_PER_SECOND
        return seconds, _fraction_to_nanos(parts["fraction"])

    # A dash that did not parse was meant as a calendar timestamp.
    if "-" in value:
        raise ValueError(f"malformed timestamp {value!r}")

    match = _UNIX_TIMESTAMP.match(value)
    if match:
        return int(match.group("seconds")), _fraction_to_nanos(match.group("fraction"))

    raise ValueError(f"failed to parse value as time or duration: {value!r}")


def parse_since(since: str, reference: datetime) -> Optional[datetime]:
    """Return the lower bound for the query window, or None for "no bound"."""

    try:
        seconds, nanos = to_timestamp(since, reference)
        if seconds == 0 and nanos == 0:
            return None
        return EPOCH + timedelta(seconds=seconds, microseconds=nanos // 1000)
    except (ValueError, OverflowError) as exc:
        raise ParseError(since, str(exc)) from exc
