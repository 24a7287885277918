from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

import pytest

from logtail.core.errors import QueryError
from logtail.core.models import LogEntry, LogQuery
from logtail.core.tail import LogTailer


class ScriptedSource:
    """Returns one scripted batch per poll, repeating the last batch."""

    def __init__(self, batches: list[list[LogEntry]]) -> None:
        self._batches = batches
        self.queries: list[LogQuery] = []

    def get_logs(self, query: LogQuery) -> list[LogEntry]:
        self.queries.append(query)
        index = min(len(self.queries), len(self._batches)) - 1
        batch = self._batches[index]
        if isinstance(batch, Exception):
            raise batch
        return list(batch)


class ListSink:
    def __init__(self) -> None:
        self.entries: list[LogEntry] = []

    def write(self, entry: LogEntry) -> None:
        self.entries.append(entry)


class FailingSink(ListSink):
    def write(self, entry: LogEntry) -> None:
        if entry.message == "boom":
            raise RuntimeError("sink broke")
        super().write(entry)


class FakeCancel:
    """Cancellation signal that trips after a fixed number of waits."""

    def __init__(self, cancel_after_waits: Optional[int] = None, already_set: bool = False) -> None:
        self._cancel_after = cancel_after_waits
        self._set = already_set
        self.waits: list[float] = []

    def is_set(self) -> bool:
        return self._set

    def wait(self, timeout: float) -> bool:
        self.waits.append(timeout)
        if self._cancel_after is not None and len(self.waits) >= self._cancel_after:
            self._set = True
        return self._set


def _entry(entry_id: str, timestamp: int, message: str) -> LogEntry:
    return LogEntry(id=entry_id, timestamp=timestamp, message=message)


def test_follow_mode_emits_each_entry_once() -> None:
    m1 = _entry("a", 100, "m1")
    m2 = _entry("a", 200, "m2")
    source = ScriptedSource([[m1], [m1, m2]])
    sink = ListSink()
    cancel = FakeCancel(cancel_after_waits=2)

    stats = LogTailer(source, sink).run(None, None, follow=True, cancel=cancel)

    assert [entry.message for entry in sink.entries] == ["m1", "m2"]
    assert stats.polls == 2
    assert stats.emitted == 2
    assert stats.skipped == 1
    assert cancel.waits == [1.0, 1.0]


def test_late_arrival_is_still_emitted() -> None:
    newer = _entry("a", 500, "newer")
    older = _entry("b", 100, "older but late")
    source = ScriptedSource([[newer], [older, newer]])
    sink = ListSink()

    LogTailer(source, sink).run(None, None, follow=True, cancel=FakeCancel(cancel_after_waits=2))

    assert sink.entries == [newer, older]


def test_emission_keeps_source_order_within_a_poll() -> None:
    batch = [_entry("a", 300, "third"), _entry("a", 100, "first"), _entry("b", 200, "second")]
    sink = ListSink()

    LogTailer(ScriptedSource([batch]), sink).run(None, None, follow=False, cancel=FakeCancel())

    assert sink.entries == batch


def test_duplicates_within_one_poll_are_suppressed() -> None:
    entry = _entry("a", 100, "same")
    sink = ListSink()

    LogTailer(ScriptedSource([[entry, entry]]), sink).run(None, None, follow=False, cancel=FakeCancel())

    assert sink.entries == [entry]


def test_entries_differing_in_one_field_are_distinct() -> None:
    batch = [_entry("a", 100, "m"), _entry("b", 100, "m"), _entry("a", 101, "m"), _entry("a", 100, "n")]
    sink = ListSink()

    LogTailer(ScriptedSource([batch]), sink).run(None, None, follow=False, cancel=FakeCancel())

    assert len(sink.entries) == 4


def test_one_shot_polls_exactly_once() -> None:
    source = ScriptedSource([[_entry("a", 1, "x")], [_entry("a", 2, "y")]])
    sink = ListSink()
    cancel = FakeCancel()

    stats = LogTailer(source, sink).run(None, None, follow=False, cancel=cancel)

    assert len(source.queries) == 1
    assert stats.polls == 1
    assert cancel.waits == []
    assert [entry.message for entry in sink.entries] == ["x"]


def test_one_shot_with_no_entries_returns() -> None:
    source = ScriptedSource([[]])
    sink = ListSink()

    stats = LogTailer(source, sink).run(None, None, follow=False, cancel=FakeCancel())

    assert stats.polls == 1
    assert sink.entries == []


def test_already_cancelled_does_not_poll() -> None:
    source = ScriptedSource([[_entry("a", 1, "x")]])
    sink = ListSink()

    stats = LogTailer(source, sink).run(None, None, follow=True, cancel=FakeCancel(already_set=True))

    assert source.queries == []
    assert sink.entries == []
    assert stats.polls == 0


def test_cancel_during_sleep_stops_further_polls() -> None:
    source = ScriptedSource([[_entry("a", 1, "x")]])
    cancel = FakeCancel(cancel_after_waits=1)

    LogTailer(source, ListSink(), poll_interval=0.25).run(None, None, follow=True, cancel=cancel)

    assert len(source.queries) == 1
    assert cancel.waits == [0.25]


def test_query_window_is_fixed_across_polls() -> None:
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    source = ScriptedSource([[_entry("a", 1, "x")], [_entry("a", 5000, "y")]])

    LogTailer(source, ListSink()).run(start, "web", follow=True, cancel=FakeCancel(cancel_after_waits=3))

    assert len(source.queries) == 3
    assert all(query == LogQuery(start_time=start, resource_filter="web") for query in source.queries)


def test_empty_resource_filter_means_no_filter() -> None:
    source = ScriptedSource([[]])

    LogTailer(source, ListSink()).run(None, "", follow=False, cancel=FakeCancel())

    assert source.queries[0].resource_filter is None


def test_query_failure_raises_query_error() -> None:
    cause = OSError("source unavailable")
    source = ScriptedSource([[_entry("a", 1, "x")], cause])
    sink = ListSink()

    with pytest.raises(QueryError) as excinfo:
        LogTailer(source, sink).run(None, None, follow=True, cancel=FakeCancel())

    assert excinfo.value.__cause__ is cause
    assert [entry.message for entry in sink.entries] == ["x"]
    assert len(source.queries) == 2


def test_sink_failure_does_not_stop_the_loop() -> None:
    sink = FailingSink()
    batch = [_entry("a", 1, "boom"), _entry("a", 2, "ok")]

    stats = LogTailer(ScriptedSource([batch]), sink).run(None, None, follow=False, cancel=FakeCancel())

    assert [entry.message for entry in sink.entries] == ["ok"]
    assert stats.emitted == 2


def test_each_run_starts_with_a_fresh_seen_set() -> None:
    entry = _entry("a", 1, "x")
    sink = ListSink()
    tailer = LogTailer(ScriptedSource([[entry]]), sink)

    tailer.run(None, None, follow=False, cancel=FakeCancel())
    tailer.run(None, None, follow=False, cancel=FakeCancel())

    assert sink.entries == [entry, entry]


def test_retention_window_never_repeats_entries_the_source_still_returns() -> None:
    old = _entry("a", 1_000, "old")
    new = _entry("a", 10_000, "new")
    source = ScriptedSource([[old, new]])
    sink = ListSink()

    stats = LogTailer(source, sink, retention_ms=5_000).run(
        None, None, follow=True, cancel=FakeCancel(cancel_after_waits=5)
    )

    assert stats.polls == 5
    assert [entry.message for entry in sink.entries] == ["old", "new"]
    assert stats.evicted == 0


def test_retention_window_evicts_entries_the_source_dropped() -> None:
    old = _entry("a", 1_000, "old")
    new = _entry("a", 10_000, "new")
    source = ScriptedSource([[old, new], [new]])
    sink = ListSink()

    stats = LogTailer(source, sink, retention_ms=5_000).run(
        None, None, follow=True, cancel=FakeCancel(cancel_after_waits=3)
    )

    assert [entry.message for entry in sink.entries] == ["old", "new"]
    assert stats.evicted == 1
