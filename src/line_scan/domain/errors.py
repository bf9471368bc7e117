from __future__ import annotations


class ScanError(Exception):
    """Base class for failures surfaced by a line scan."""

    def __init__(self, message: str, *, resource: str) -> None:
        super().__init__(message)
        self.resource = resource


class ResourceUnavailable(ScanError):
    """The resource could not be opened; no line has been read."""


class ReadFailure(ScanError):
    """Reading failed after the resource was opened successfully."""

    def __init__(self, message: str, *, resource: str, line_no: int) -> None:
        super().__init__(message, resource=resource)
        # line_no is the 1-based number of the line that could not be read.
        self.line_no = line_no
