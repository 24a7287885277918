"""SQLite log source adapter.

Implements the core LogSource port on top of a single `logs` table.
"""

from __future__ import annotations

import sqlite3
from typing import List

from logtail.adapters.jsonl_source import to_millis
from logtail.core.models import LogEntry, LogQuery
from logtail.core.resource_filter import matches_resource


class SQLiteLogSource:
    """Thin SQLite wrapper that satisfies the LogSource contract."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        """Create the logs table if it does not exist.

        Fields:
        - id: resource identifier (name, type::name or full URN)
        - timestamp: milliseconds since the epoch
        - message: log text
        """

        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS logs (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    id TEXT NOT NULL,
                    timestamp INTEGER NOT NULL,
                    message TEXT NOT NULL
                )
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS logs_timestamp ON logs (timestamp)")

    def append(self, entry: LogEntry) -> None:
        """Insert one entry."""

        with self._connect() as conn:
            conn.execute(
                "INSERT INTO logs (id, timestamp, message) VALUES (?, ?, ?)",
                (entry.id, entry.timestamp, entry.message),
            )

    def get_logs(self, query: LogQuery) -> List[LogEntry]:
        """Return entries at or after the start time, oldest first."""

        start_ms = to_millis(query.start_time)
        with self._connect() as conn:
            if start_ms is None:
                rows = conn.execute(
                    "SELECT id, timestamp, message FROM logs ORDER BY timestamp, seq"
                ).fetchall()
            else:
                rows = conn.execute(
                    "SELECT id, timestamp, message FROM logs WHERE timestamp >= ? ORDER BY timestamp, seq",
                    (start_ms,),
                ).fetchall()
        # Filter in Python so "type::name" suffixes match the same way as
        # in the other sources.
        return [
            LogEntry(id=row["id"], timestamp=int(row["timestamp"]), message=row["message"])
            for row in rows
            if matches_resource(row["id"], query.resource_filter)
        ]
