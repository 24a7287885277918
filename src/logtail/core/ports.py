"""Ports (interfaces) used by the tail loop.

Ports define the minimal contracts for log sources and output sinks so that
the core can be reused with different backends.
"""

from __future__ import annotations

from typing import Protocol, Sequence

from logtail.core.models import LogEntry, LogQuery


class LogSource(Protocol):
    """Returns the entries matching a query window, in any order."""

    def get_logs(self, query: LogQuery) -> Sequence[LogEntry]:
        ...


class EntrySink(Protocol):
    """Receives each newly observed entry exactly once."""

    def write(self, entry: LogEntry) -> None:
        ...


class CancellationSignal(Protocol):
    """Stop request for follow mode. threading.Event satisfies it."""

    def is_set(self) -> bool:
        ...

    def wait(self, timeout: float) -> bool:
        ...
