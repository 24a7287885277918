"""JSON-lines log source adapter.

Each line of the file is one entry: {"id": ..., "timestamp": ..., "message": ...}
with the timestamp in milliseconds since the epoch. The whole file is re-read
on every poll; the tail loop takes care of dropping what it already printed.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Union

from logtail.core.models import LogEntry, LogQuery
from logtail.core.resource_filter import matches_resource

LOGGER = logging.getLogger(__name__)


def to_millis(moment: Optional[datetime]) -> Optional[int]:
    if moment is None:
        return None
    return int(moment.timestamp() * 1000)


def parse_line(line: Union[str, bytes]) -> Optional[LogEntry]:
    """Parse one JSON line into a LogEntry, or None if it is malformed."""

    try:
        if isinstance(line, bytes):
            line = line.decode("utf-8")
        data = json.loads(line)
        return LogEntry(
            id=str(data["id"]),
            timestamp=int(data["timestamp"]),
            message=str(data["message"]),
        )
    except (UnicodeDecodeError, ValueError, KeyError, TypeError):
        return None


class JsonLinesLogSource:
    """LogSource backed by a JSON-lines file."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    def get_logs(self, query: LogQuery) -> List[LogEntry]:
        start_ms = to_millis(query.start_time)
        entries: List[LogEntry] = []
        # Missing files raise; the tail loop reports them as a failed poll.
        # Lines are decoded one at a time so a bad byte only loses its own line.
        with self._path.open("rb") as handle:
            for lineno, line in enumerate(handle, start=1):
                if not line.strip():
                    continue
                entry = parse_line(line)
                if entry is None:
                    LOGGER.warning("Skipping malformed line %s in %s", lineno, self._path)
                    continue
                if start_ms is not None and entry.timestamp < start_ms:
                    continue
                if not matches_resource(entry.id, query.resource_filter):
                    continue
                entries.append(entry)
        return entries
