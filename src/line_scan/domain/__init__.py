from .errors import ReadFailure, ResourceUnavailable, ScanError
from .messages import MatchedLine, RawLine, ScanState, ScanStats
from .predicates import Predicate

# Domain exports are intentionally small.
__all__ = [
    "MatchedLine",
    "Predicate",
    "RawLine",
    "ReadFailure",
    "ResourceUnavailable",
    "ScanError",
    "ScanState",
    "ScanStats",
]
