"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class TailConfig:
    """Tail loop settings."""

    since: str
    poll_interval: float
    retention_ms: Optional[int]
    timezone: str


@dataclass(frozen=True)
class StackConfig:
    """Where a stack's logs are read from."""

    name: str
    source_type: str
    path: str
