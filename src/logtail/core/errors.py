"""Error types raised by logtail."""

from __future__ import annotations


class LogTailError(Exception):
    """Base exception for all logtail failures."""


class ParseError(LogTailError):
    """The --since value is neither a duration nor a timestamp."""

    def __init__(self, since: str, reason: str) -> None:
        super().__init__(f"invalid value {since!r}: {reason}")
        self.since = since


class QueryError(LogTailError):
    """A poll against the log source failed."""

    def __init__(self, cause: BaseException) -> None:
        super().__init__(f"failed to get logs: {cause}")
        self.cause = cause


class ConfigError(LogTailError):
    """Configuration is missing or inconsistent."""
