from __future__ import annotations

import codecs
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from os import PathLike
from pathlib import Path
from typing import BinaryIO

from line_scan.domain.errors import ReadFailure, ResourceUnavailable
from line_scan.domain.messages import RawLine
from line_scan.ports.line_source import LineHandle, LineSource

_DECODE_ERRORS = {"strict", "replace"}


@dataclass
class FileLineHandle(LineHandle):
    # Opened file: reads in binary mode one line per pull and decodes at the boundary.
    resource: str
    stream: BinaryIO
    encoding: str = "utf-8"
    decode_errors: str = "strict"
    _started: bool = field(default=False, init=False, repr=False)

    def __iter__(self) -> Iterator[RawLine]:
        # Single pass: a second iteration would silently resume mid-file.
        if self._started:
            raise RuntimeError(f"{self.resource} is a single-pass handle")
        self._started = True
        return self._lines()

    def _lines(self) -> Iterator[RawLine]:
        line_no = 0
        while True:
            try:
                chunk = self.stream.readline()
            except OSError as exc:
                raise ReadFailure(
                    f"Read error in {self.resource} at line {line_no + 1}: {exc}",
                    resource=self.resource,
                    line_no=line_no + 1,
                ) from exc
            if not chunk:
                return
            line_no += 1
            try:
                text = _strip_newline(chunk).decode(self.encoding, errors=self.decode_errors)
            except UnicodeDecodeError as exc:
                raise ReadFailure(
                    f"Cannot decode line {line_no} of {self.resource} as {self.encoding}",
                    resource=self.resource,
                    line_no=line_no,
                ) from exc
            yield RawLine(line_no=line_no, text=text)

    def close(self) -> None:
        # Close is idempotent to simplify scanner shutdown paths.
        if not self.stream.closed:
            self.stream.close()


@dataclass(frozen=True, slots=True)
class FileLineSource(LineSource):
    # File-based LineSource adapter; nothing touches the filesystem until open().
    path: Path
    encoding: str = "utf-8"
    decode_errors: str = "strict"

    def __post_init__(self) -> None:
        if self.decode_errors not in _DECODE_ERRORS:
            raise ValueError("decode_errors must be one of: strict, replace")
        try:
            codecs.lookup(self.encoding)
        except LookupError as exc:
            raise ValueError(f"Unknown encoding: {self.encoding!r}") from exc

    @classmethod
    def from_path(cls, path: str | PathLike[str], **kwargs: str) -> FileLineSource:
        return cls(path=Path(path), **kwargs)

    def describe(self) -> str:
        return str(self.path)

    def open(self) -> FileLineHandle:
        try:
            stream = self.path.open("rb")
        except OSError as exc:
            raise ResourceUnavailable(
                f"Cannot open {self.path}: {exc.strerror or exc}",
                resource=str(self.path),
            ) from exc
        return FileLineHandle(
            resource=str(self.path),
            stream=stream,
            encoding=self.encoding,
            decode_errors=self.decode_errors,
        )


@dataclass
class InMemoryLineHandle(LineHandle):
    source: InMemoryLineSource
    closed: bool = False

    def __iter__(self) -> Iterator[RawLine]:
        for idx, text in enumerate(self.source.lines, start=1):
            if self.closed:
                return
            self.source.reads += 1
            yield RawLine(line_no=idx, text=text)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.source.closes += 1


@dataclass
class InMemoryLineSource(LineSource):
    # In-memory source for tests and interactive use; counts opens, reads and closes.
    lines: Sequence[str]
    name: str = "<memory>"
    opens: int = 0
    reads: int = 0
    closes: int = 0

    def describe(self) -> str:
        return self.name

    def open(self) -> InMemoryLineHandle:
        self.opens += 1
        return InMemoryLineHandle(source=self)


def _strip_newline(chunk: bytes) -> bytes:
    if chunk.endswith(b"\n"):
        chunk = chunk[:-1]
        if chunk.endswith(b"\r"):
            chunk = chunk[:-1]
    return chunk
