from __future__ import annotations

import gc
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from line_scan.adapters.line_source import FileLineSource, InMemoryLineSource
from line_scan.domain.errors import ReadFailure, ResourceUnavailable
from line_scan.domain.messages import MatchedLine, RawLine, ScanState
from line_scan.domain.predicates import contains
from line_scan.observability.logging import LogMessage
from line_scan.usecases.scan import grep, scan

FRUIT = ["apple", "banana", "cherry"]


@dataclass
class _FailingHandle:
    # Yields `good` lines, then fails the way a broken disk would.
    lines: list[str]
    fail_after: int
    closes: int = 0

    def __iter__(self) -> Iterator[RawLine]:
        for idx, text in enumerate(self.lines[: self.fail_after], start=1):
            yield RawLine(idx, text)
        raise ReadFailure("disk went away", resource="flaky", line_no=self.fail_after + 1)

    def close(self) -> None:
        self.closes += 1


@dataclass
class _FailingSource:
    lines: list[str]
    fail_after: int
    handles: list[_FailingHandle] = field(default_factory=list)

    def open(self) -> _FailingHandle:
        handle = _FailingHandle(self.lines, self.fail_after)
        self.handles.append(handle)
        return handle

    def describe(self) -> str:
        return "flaky"


@dataclass
class _UnavailableSource:
    def open(self) -> _FailingHandle:
        raise ResourceUnavailable("no such resource", resource="gone")

    def describe(self) -> str:
        return "gone"


class _ListLogSink:
    def __init__(self) -> None:
        self.messages: list[LogMessage] = []

    def emit(self, message: LogMessage) -> None:
        self.messages.append(message)

    def close(self) -> None:
        return None


def test_scan_yields_matching_lines_in_order() -> None:
    source = InMemoryLineSource(FRUIT)
    assert [m.text for m in scan(source, contains("an"))] == ["banana"]
    assert source.closes == 1


def test_scan_preserves_order_and_line_numbers() -> None:
    source = InMemoryLineSource(["a1", "b", "a2", "c", "a3"])
    result = list(scan(source, contains("a")))
    assert result == [MatchedLine(1, "a1"), MatchedLine(3, "a2"), MatchedLine(5, "a3")]


def test_scan_output_is_subsequence_for_any_predicate() -> None:
    lines = [f"line {n}" for n in range(50)]
    predicates = [lambda s: True, lambda s: False, lambda s: s.endswith("7"), lambda s: len(s) > 6]
    for predicate in predicates:
        expected = [line for line in lines if predicate(line)]
        assert [m.text for m in scan(InMemoryLineSource(lines), predicate)] == expected


def test_scan_empty_resource_yields_nothing() -> None:
    source = InMemoryLineSource([])
    matches = scan(source, contains("x"))
    assert list(matches) == []
    assert matches.state is ScanState.CLOSED_OK
    assert source.closes == 1


def test_scan_is_lazy() -> None:
    # Nothing is read until the consumer pulls.
    source = InMemoryLineSource(FRUIT)
    matches = scan(source, contains("an"))
    assert matches.state is ScanState.OPEN
    assert source.reads == 0
    next(matches)
    assert source.reads == 2
    assert matches.state is ScanState.READING
    matches.close()


def test_early_stop_releases_resource_without_reading_rest() -> None:
    source = InMemoryLineSource(["banana", "mango", "orange", "ananas"])
    with scan(source, contains("an")) as matches:
        first = next(matches)
    assert first.text == "banana"
    assert source.reads == 1
    assert source.closes == 1
    assert matches.state is ScanState.CLOSED_OK


def test_break_out_of_for_loop_then_close_releases_once() -> None:
    source = InMemoryLineSource(FRUIT * 3)
    with scan(source, contains("an")) as matches:
        for _ in matches:
            break
        matches.close()
    assert source.closes == 1


def test_abandoned_scan_is_released_on_collection() -> None:
    source = InMemoryLineSource(FRUIT)
    matches = scan(source, contains("an"))
    next(matches)
    del matches
    gc.collect()
    assert source.closes == 1


def test_unstarted_scan_close_releases_resource() -> None:
    source = InMemoryLineSource(FRUIT)
    scan(source, contains("an")).close()
    assert source.reads == 0
    assert source.closes == 1


def test_pull_after_close_stops() -> None:
    source = InMemoryLineSource(FRUIT)
    matches = scan(source, contains("an"))
    matches.close()
    with pytest.raises(StopIteration):
        next(matches)
    assert source.reads == 0


def test_unavailable_resource_fails_before_any_read(tmp_path: Path) -> None:
    with pytest.raises(ResourceUnavailable):
        scan(_UnavailableSource(), contains("x"))
    with pytest.raises(ResourceUnavailable):
        scan(tmp_path / "missing.txt", contains("x"))
    with pytest.raises(ResourceUnavailable):
        scan(str(tmp_path / "missing.txt"), contains("x"))


def test_read_failure_after_n_lines_yields_prior_matches_then_fails() -> None:
    source = _FailingSource(["banana", "apple", "mango", "cherry"], fail_after=3)
    matches = scan(source, contains("an"))
    produced = [next(matches), next(matches)]
    assert [m.text for m in produced] == ["banana", "mango"]
    with pytest.raises(ReadFailure) as excinfo:
        next(matches)
    assert excinfo.value.line_no == 4
    assert matches.state is ScanState.CLOSED_ERROR
    assert matches.stats.lines_read == 3
    matches.close()
    assert source.handles[0].closes == 1


def test_predicate_error_propagates_and_releases() -> None:
    source = InMemoryLineSource(FRUIT)

    def explode(line: str) -> bool:
        if line == "banana":
            raise KeyError(line)
        return False

    matches = scan(source, explode)
    with pytest.raises(KeyError):
        list(matches)
    assert source.closes == 1
    assert matches.state is ScanState.CLOSED_ERROR


def test_scan_reads_real_file(tmp_path: Path) -> None:
    path = tmp_path / "fruit.txt"
    path.write_text("apple\nbanana\ncherry\n", encoding="utf-8")
    assert grep(path, contains("an")) == [MatchedLine(2, "banana")]


def test_file_decode_failure_surfaces_as_read_failure(tmp_path: Path) -> None:
    path = tmp_path / "bad.txt"
    path.write_bytes(b"banana\n\xff\n")
    matches = scan(path, contains("an"))
    assert next(matches).text == "banana"
    with pytest.raises(ReadFailure):
        next(matches)
    assert matches.state is ScanState.CLOSED_ERROR


def test_grep_collects_and_closes() -> None:
    source = InMemoryLineSource(FRUIT)
    assert grep(source, contains("e")) == [MatchedLine(1, "apple"), MatchedLine(3, "cherry")]
    assert source.closes == 1


def test_stats_track_progress() -> None:
    matches = scan(InMemoryLineSource(FRUIT), contains("an"))
    list(matches)
    stats = matches.stats
    assert (stats.lines_read, stats.lines_matched, stats.state) == (3, 1, ScanState.CLOSED_OK)


def test_scan_logs_lifecycle_when_sink_given() -> None:
    sink = _ListLogSink()
    list(scan(InMemoryLineSource(FRUIT, name="fruit"), contains("an"), log_sink=sink))
    assert [m.message for m in sink.messages] == ["scan.opened", "scan.closed"]
    closed = sink.messages[-1]
    assert closed.fields["resource"] == "fruit"
    assert closed.fields["lines_matched"] == 1
    assert closed.fields["state"] == "CLOSED_OK"


def test_scan_logs_failure() -> None:
    sink = _ListLogSink()
    matches = scan(_FailingSource(["x"], fail_after=1), contains("x"), log_sink=sink)
    with pytest.raises(ReadFailure):
        list(matches)
    assert [m.message for m in sink.messages] == ["scan.opened", "scan.failed", "scan.closed"]
    assert sink.messages[1].level == "error"


@dataclass
class _BrokenDiskHandle:
    # Yields its lines, then the underlying device errors out.
    lines: list[str]
    error: Exception
    closes: int = 0

    def __iter__(self) -> Iterator[RawLine]:
        for idx, text in enumerate(self.lines, start=1):
            yield RawLine(idx, text)
        raise self.error

    def close(self) -> None:
        self.closes += 1


@dataclass
class _BrokenDiskSource:
    handle: _BrokenDiskHandle

    def open(self) -> _BrokenDiskHandle:
        return self.handle

    def describe(self) -> str:
        return "broken-disk"


@pytest.mark.parametrize("error", [OSError(5, "Input/output error"), RuntimeError("stream reset")])
def test_unexpected_handle_error_becomes_read_failure_and_releases(error: Exception) -> None:
    handle = _BrokenDiskHandle(["banana", "apple"], error)
    matches = scan(_BrokenDiskSource(handle), contains("an"))
    assert next(matches).text == "banana"
    with pytest.raises(ReadFailure) as excinfo:
        next(matches)
    assert excinfo.value.__cause__ is error
    assert excinfo.value.line_no == 3
    assert excinfo.value.resource == "broken-disk"
    assert handle.closes == 1
    assert matches.state is ScanState.CLOSED_ERROR
    # The failed scan stays failed; later pulls neither reopen nor relabel it.
    with pytest.raises(StopIteration):
        next(matches)
    assert matches.state is ScanState.CLOSED_ERROR
    assert handle.closes == 1


def test_real_file_is_closed_after_read_failure(tmp_path: Path) -> None:
    path = tmp_path / "bad.txt"
    path.write_bytes(b"banana\n\xff\n")
    opened: list[object] = []

    class _TrackingSource(FileLineSource):
        def open(self):  # type: ignore[override]
            handle = super().open()
            opened.append(handle)
            return handle

    matches = scan(_TrackingSource(path), contains("an"))
    next(matches)
    with pytest.raises(ReadFailure):
        next(matches)
    assert opened[0].stream.closed


def test_unknown_encoding_is_rejected_before_opening(tmp_path: Path) -> None:
    path = tmp_path / "fruit.txt"
    path.write_text("banana\n", encoding="utf-8")
    with pytest.raises(ValueError):
        scan(path, contains("an"), encoding="bogus")
