from __future__ import annotations

from typing import Protocol, runtime_checkable


# Destination for matched lines. close() commits what was written; discard() abandons it.
@runtime_checkable
class OutputSink(Protocol):
    def write_line(self, line: str) -> None:
        """Append one matched line; the sink adds the newline."""
        raise NotImplementedError("OutputSink is a port; use a concrete adapter.")

    def close(self) -> None:
        """Commit the lines written so far after a successful scan."""
        raise NotImplementedError("OutputSink is a port; use a concrete adapter.")

    def discard(self) -> None:
        """Release the sink after a failed scan without committing pending output."""
        raise NotImplementedError("OutputSink is a port; use a concrete adapter.")
