from line_scan.domain.errors import ReadFailure, ResourceUnavailable, ScanError
from line_scan.domain.messages import MatchedLine, RawLine, ScanState, ScanStats
from line_scan.domain.predicates import Predicate, build_predicate, contains, matches
from line_scan.usecases.scan import LineScan, grep, scan

__all__ = [
    "LineScan",
    "MatchedLine",
    "Predicate",
    "RawLine",
    "ReadFailure",
    "ResourceUnavailable",
    "ScanError",
    "ScanState",
    "ScanStats",
    "build_predicate",
    "contains",
    "grep",
    "matches",
    "scan",
]
