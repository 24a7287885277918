"""Console output adapter.

Timestamps use the RFC 5424 form with millisecond precision
(https://tools.ietf.org/html/rfc5424#section-6.2.3), which is RFC 3339 with
exactly three fractional digits.
"""

from __future__ import annotations

import sys
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Optional, TextIO

from rich.console import Console

from logtail.core.models import LogEntry

COLUMN_WIDTH = 30


def format_timestamp(moment: datetime) -> str:
    """Format as YYYY-MM-DDTHH:MM:SS.sssZ, or with a +HH:MM offset."""

    offset = moment.utcoffset() or timedelta(0)
    text = moment.strftime("%Y-%m-%dT%H:%M:%S") + f".{moment.microsecond // 1000:03d}"
    if offset == timedelta(0):
        return text + "Z"
    sign = "-" if offset < timedelta(0) else "+"
    minutes = abs(int(offset.total_seconds())) // 60
    return f"{text}{sign}{minutes // 60:02d}:{minutes % 60:02d}"


def entry_time(entry: LogEntry, tz: Optional[tzinfo] = None) -> datetime:
    """Convert the entry's millisecond timestamp to an aware datetime."""

    moment = datetime(1970, 1, 1, tzinfo=timezone.utc) + timedelta(milliseconds=entry.timestamp)
    return moment.astimezone(tz)


def format_entry(entry: LogEntry, tz: Optional[tzinfo] = None) -> str:
    """Render one output line: fixed-width timestamp, [fixed-width id], message."""

    timestamp = format_timestamp(entry_time(entry, tz))
    width = COLUMN_WIDTH
    return f"{timestamp:>{width}.{width}}[{entry.id:>{width}.{width}}] {entry.message}"


def format_start_banner(start_time: Optional[datetime], tz: Optional[tzinfo] = None) -> str:
    if start_time is None:
        return "Collecting all available logs."
    return f"Collecting logs since {format_timestamp(start_time.astimezone(tz))}."


class ConsoleSink:
    """EntrySink that prints one formatted line per entry."""

    def __init__(self, stream: Optional[TextIO] = None, tz: Optional[tzinfo] = None) -> None:
        self._stream = stream or sys.stdout
        self._tz = tz

    def write(self, entry: LogEntry) -> None:
        self._stream.write(format_entry(entry, self._tz) + "\n")
        self._stream.flush()

    def announce(self, start_time: Optional[datetime]) -> None:
        """Print the header line in bright magenta before the first entry."""

        console = Console(file=self._stream, highlight=False)
        console.print(format_start_banner(start_time, self._tz), style="bright_magenta", markup=False)
        console.print()
