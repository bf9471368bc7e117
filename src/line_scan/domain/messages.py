from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ScanState(str, Enum):
    # Lifecycle of a single scan: open -> reading -> closed (ok | error).
    OPEN = "OPEN"
    READING = "READING"
    CLOSED_OK = "CLOSED_OK"
    CLOSED_ERROR = "CLOSED_ERROR"

    @property
    def closed(self) -> bool:
        return self in (ScanState.CLOSED_OK, ScanState.CLOSED_ERROR)


@dataclass(frozen=True, slots=True)
class RawLine:
    # RawLine preserves input order via line_no (1-based, newline stripped).
    line_no: int
    text: str


@dataclass(frozen=True, slots=True)
class MatchedLine:
    # MatchedLine is a verbatim RawLine.text for which the predicate held.
    line_no: int
    text: str


@dataclass(frozen=True, slots=True)
class ScanStats:
    # Read-only snapshot of scan progress.
    lines_read: int
    lines_matched: int
    state: ScanState
