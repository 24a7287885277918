"""Deduplication state for one tail session (core domain)."""

from __future__ import annotations

from typing import Iterable, Optional, Set

from logtail.core.models import LogEntry


class SeenSet:
    """Entries already emitted during a session.

    With retention_ms unset the set only grows. With a retention window,
    evict() drops entries older than the newest timestamp minus the window,
    but only once the source has stopped returning them. An entry the source
    brings back after it was evicted is shown again.
    """

    def __init__(self, retention_ms: Optional[int] = None) -> None:
        if retention_ms is not None and retention_ms < 0:
            raise ValueError("retention_ms must be non-negative")
        self._retention_ms = retention_ms
        self._entries: Set[LogEntry] = set()
        self._newest: Optional[int] = None

    def __contains__(self, entry: object) -> bool:
        return entry in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def add_if_new(self, entry: LogEntry) -> bool:
        """Record entry and return True if it was not seen before."""

        if entry in self._entries:
            return False
        self._entries.add(entry)
        if self._newest is None or entry.timestamp > self._newest:
            self._newest = entry.timestamp
        return True

    def evict(self, still_returned: Iterable[LogEntry] = ()) -> int:
        """Drop stale entries absent from the latest poll; return how many.

        The query window never moves, so anything in still_returned will be
        returned again on the next poll and has to stay.
        """

        if self._retention_ms is None or self._newest is None:
            return 0
        horizon = self._newest - self._retention_ms
        keep = set(still_returned)
        stale = {
            entry for entry in self._entries if entry.timestamp < horizon and entry not in keep
        }
        self._entries -= stale
        return len(stale)
