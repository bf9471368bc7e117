from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import TextIO

from line_scan.ports.output_sink import OutputSink


@dataclass
class FileOutputSink(OutputSink):
    """Writes matches to a file.

    With ``atomic_replace`` matches go to ``<path>.tmp`` and only a successful
    ``close()`` moves them over ``path``; ``discard()`` deletes the temp file
    and leaves any previous result at ``path`` untouched. Without it, lines
    land in ``path`` as they are written, the way grep redirected to a file
    behaves.
    """

    path: Path
    encoding: str = "utf-8"
    atomic_replace: bool = False
    _handle: TextIO | None = field(default=None, init=False, repr=False)
    _temp_path: Path | None = field(default=None, init=False, repr=False)

    def write_line(self, line: str) -> None:
        # No file is created until the first match arrives.
        if self._handle is None:
            self._open()
        assert self._handle is not None
        self._handle.write(line + "\n")

    def close(self) -> None:
        if self._handle is None:
            return
        self._release_handle()
        if self._temp_path is not None:
            self._temp_path.replace(self.path)
            self._temp_path = None

    def discard(self) -> None:
        if self._handle is None:
            return
        self._release_handle()
        if self._temp_path is not None:
            self._temp_path.unlink(missing_ok=True)
            self._temp_path = None

    def _release_handle(self) -> None:
        handle, self._handle = self._handle, None
        assert handle is not None
        handle.close()

    def _open(self) -> None:
        target = self.path
        if self.atomic_replace:
            target = self._temp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        self._handle = target.open("w", encoding=self.encoding)


@dataclass
class StdoutOutputSink(OutputSink):
    # Writes to a borrowed text stream; the stream is flushed, never closed.
    stream: TextIO | None = None

    def write_line(self, line: str) -> None:
        self._target().write(line + "\n")

    def close(self) -> None:
        self._target().flush()

    def discard(self) -> None:
        # Lines already on the terminal cannot be taken back.
        self._target().flush()

    def _target(self) -> TextIO:
        # Resolve sys.stdout late so test capture replacements are honoured.
        return self.stream if self.stream is not None else sys.stdout
