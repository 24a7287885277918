"""Core tail loop.

This module is storage-agnostic. It only relies on ports for the log source,
the output sink and cancellation, so it can be driven by the CLI or by tests
with fakes.

Each iteration:
1) Query the source with the fixed window (never advanced)
2) Emit every entry not seen earlier in this session, in received order
3) Stop after one poll unless following
4) Wait for the poll interval, stopping early when cancelled
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from logtail.core.errors import QueryError
from logtail.core.models import LogEntry, LogQuery
from logtail.core.ports import CancellationSignal, EntrySink, LogSource
from logtail.core.seen import SeenSet

LOGGER = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 1.0


@dataclass
class TailStats:
    """Counters for one tail session."""

    polls: int = 0
    emitted: int = 0
    skipped: int = 0
    evicted: int = 0


class LogTailer:
    """Polls a log source and writes each distinct entry to the sink once."""

    def __init__(
        self,
        source: LogSource,
        sink: EntrySink,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        retention_ms: Optional[int] = None,
    ) -> None:
        self._source = source
        self._sink = sink
        self._poll_interval = poll_interval
        self._retention_ms = retention_ms

    def run(
        self,
        start_time: Optional[datetime],
        resource_filter: Optional[str],
        follow: bool,
        cancel: CancellationSignal,
    ) -> TailStats:
        """Run one tail session and return its counters.

        Raises QueryError if any poll fails; entries from the failed poll are
        not emitted.
        """

        query = LogQuery(start_time=start_time, resource_filter=resource_filter or None)
        # Tracking only the latest timestamp is not enough: entries that were
        # not yet available on an earlier poll must still be shown, even if
        # they sort before entries already printed.
        seen = SeenSet(self._retention_ms)
        stats = TailStats()

        while not cancel.is_set():
            try:
                entries = list(self._source.get_logs(query))
            except Exception as exc:
                raise QueryError(exc) from exc
            stats.polls += 1

            fresh = 0
            for entry in entries:
                if not seen.add_if_new(entry):
                    stats.skipped += 1
                    continue
                self._emit(entry)
                fresh += 1
            stats.emitted += fresh

            LOGGER.debug("Poll %s returned %s entries (%s new)", stats.polls, len(entries), fresh)

            if not follow:
                break

            stats.evicted += seen.evict(entries)
            if cancel.wait(self._poll_interval):
                LOGGER.info("Tail cancelled after %s polls", stats.polls)
                break

        return stats

    def _emit(self, entry: LogEntry) -> None:
        # Sink failures belong to the sink; they never end the session.
        try:
            self._sink.write(entry)
        except Exception:
            LOGGER.exception("Sink failed to write entry from %s", entry.id)
