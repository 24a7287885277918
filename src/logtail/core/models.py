"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any storage-specific types.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class LogEntry:
    """One log line as returned by a log source.

    Equality covers all three fields, so the entry itself is the dedup key.
    """

    id: str
    timestamp: int
    message: str


@dataclass(frozen=True)
class LogQuery:
    """Query window passed unchanged to every poll of a session."""

    start_time: Optional[datetime]
    resource_filter: Optional[str]
