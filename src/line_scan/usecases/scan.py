from __future__ import annotations

from collections.abc import Iterator
from os import PathLike
from types import TracebackType

from line_scan.adapters.line_source import FileLineSource
from line_scan.domain.errors import ReadFailure, ScanError
from line_scan.domain.messages import MatchedLine, RawLine, ScanState, ScanStats
from line_scan.domain.predicates import Predicate
from line_scan.observability.logging import LogMessage, LogSink
from line_scan.ports.line_source import LineHandle, LineSource

Resource = LineSource | str | PathLike[str]


class LineScan:
    """Lazy, single-pass iterator of the lines of an opened resource that satisfy a predicate.

    The scan owns the handle it was given. The handle is closed exactly once:
    on exhaustion, on ``close()``/context exit, when an abandoned scan is
    garbage collected, or when reading or the predicate raises.
    """

    def __init__(
        self,
        handle: LineHandle,
        predicate: Predicate,
        *,
        resource: str,
        log_sink: LogSink | None = None,
    ) -> None:
        self._handle: LineHandle | None = handle
        self._lines: Iterator[RawLine] | None = None
        self._predicate = predicate
        self._resource = resource
        self._log_sink = log_sink
        self._state = ScanState.OPEN
        self._lines_read = 0
        self._lines_matched = 0

    @property
    def resource(self) -> str:
        return self._resource

    @property
    def state(self) -> ScanState:
        return self._state

    @property
    def stats(self) -> ScanStats:
        return ScanStats(
            lines_read=self._lines_read,
            lines_matched=self._lines_matched,
            state=self._state,
        )

    def __iter__(self) -> LineScan:
        return self

    def __next__(self) -> MatchedLine:
        if self._handle is None:
            raise StopIteration
        if self._lines is None:
            self._state = ScanState.READING
            self._lines = iter(self._handle)
        while True:
            try:
                raw = next(self._lines)
            except StopIteration:
                self._release(ScanState.CLOSED_OK)
                raise
            except ScanError as exc:
                self._release(ScanState.CLOSED_ERROR, error=exc)
                raise
            except Exception as exc:
                # Any other failure from the handle is a read failure on the next line.
                failure = ReadFailure(
                    f"Read error in {self._resource} at line {self._lines_read + 1}: {exc}",
                    resource=self._resource,
                    line_no=self._lines_read + 1,
                )
                self._release(ScanState.CLOSED_ERROR, error=failure)
                raise failure from exc
            self._lines_read += 1
            try:
                matched = self._predicate(raw.text)
            except Exception as exc:
                # Predicate errors propagate unchanged once the handle is released.
                self._release(ScanState.CLOSED_ERROR, error=exc)
                raise
            if matched:
                self._lines_matched += 1
                return MatchedLine(line_no=raw.line_no, text=raw.text)

    def close(self) -> None:
        # Consumer-driven stop counts as a successful close.
        self._release(ScanState.CLOSED_OK)

    def __enter__(self) -> LineScan:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def __del__(self) -> None:
        # Abandoned scans still release their handle.
        if getattr(self, "_handle", None) is not None:
            self.close()

    def _release(self, state: ScanState, *, error: BaseException | None = None) -> None:
        handle = self._handle
        if handle is None:
            return
        # Drop references first so a failing close() cannot be retried.
        self._handle = None
        self._lines = None
        self._state = state
        try:
            handle.close()
        finally:
            if error is not None:
                self._log(
                    "error",
                    "scan.failed",
                    error=type(error).__name__,
                    detail=str(error),
                )
            self._log(
                "debug",
                "scan.closed",
                lines_read=self._lines_read,
                lines_matched=self._lines_matched,
                state=state.value,
            )

    def _log(self, level: str, message: str, **fields: object) -> None:
        if self._log_sink is None:
            return
        self._log_sink.emit(
            LogMessage(level=level, message=message, fields={"resource": self._resource, **fields})
        )


def scan(
    resource: Resource,
    predicate: Predicate,
    *,
    encoding: str = "utf-8",
    decode_errors: str = "strict",
    log_sink: LogSink | None = None,
) -> LineScan:
    """Open ``resource`` and return a lazy scan of the lines satisfying ``predicate``.

    ``resource`` is a path or any ``LineSource``. The resource is opened
    before this function returns, so ``ResourceUnavailable`` is raised here
    and no line is read. Read errors surface as ``ReadFailure`` from the
    pull that hit them.
    """
    source = _resolve(resource, encoding=encoding, decode_errors=decode_errors)
    handle = source.open()
    result = LineScan(handle, predicate, resource=source.describe(), log_sink=log_sink)
    result._log("debug", "scan.opened")
    return result


def grep(
    resource: Resource,
    predicate: Predicate,
    *,
    encoding: str = "utf-8",
    decode_errors: str = "strict",
    log_sink: LogSink | None = None,
) -> list[MatchedLine]:
    """Run a scan to completion and collect its matches."""
    with scan(
        resource,
        predicate,
        encoding=encoding,
        decode_errors=decode_errors,
        log_sink=log_sink,
    ) as matches:
        return list(matches)


def _resolve(resource: Resource, *, encoding: str, decode_errors: str) -> LineSource:
    if isinstance(resource, (str, PathLike)):
        return FileLineSource.from_path(resource, encoding=encoding, decode_errors=decode_errors)
    return resource
