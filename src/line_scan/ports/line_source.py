from __future__ import annotations

from collections.abc import Iterator
from typing import Protocol, runtime_checkable

from line_scan.domain.messages import RawLine


# LineHandle is an opened resource: a single-pass stream of RawLine plus release.
@runtime_checkable
class LineHandle(Protocol):
    def __iter__(self) -> Iterator[RawLine]:
        """Yield RawLine records in physical order; raise ReadFailure on read errors."""
        # Port contract has no implementation; calling it directly is a wiring error.
        raise NotImplementedError("LineHandle is a port; use a concrete adapter.")

    def close(self) -> None:
        """Release the underlying resource."""
        raise NotImplementedError("LineHandle is a port; use a concrete adapter.")


# LineSource resolves a resource identifier into an opened LineHandle.
@runtime_checkable
class LineSource(Protocol):
    def open(self) -> LineHandle:
        """Acquire the resource; raise ResourceUnavailable if that is impossible."""
        raise NotImplementedError("LineSource is a port; use a concrete adapter.")

    def describe(self) -> str:
        """Human-readable resource identifier used in errors and logs."""
        raise NotImplementedError("LineSource is a port; use a concrete adapter.")
