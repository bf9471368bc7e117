from __future__ import annotations

import re
from collections.abc import Callable
from typing import Literal

# A predicate is a pure test over one line of text.
Predicate = Callable[[str], bool]

MatchMode = Literal["contains", "regex", "exact"]


def contains(needle: str, *, ignore_case: bool = False) -> Predicate:
    if ignore_case:
        folded = needle.casefold()
        return lambda line: folded in line.casefold()
    return lambda line: needle in line


def matches(pattern: str, *, ignore_case: bool = False) -> Predicate:
    # Compile once; bad patterns fail at build time, not mid-scan.
    try:
        compiled = re.compile(pattern, re.IGNORECASE if ignore_case else 0)
    except re.error as exc:
        raise ValueError(f"Invalid regular expression {pattern!r}: {exc}") from exc
    return lambda line: compiled.search(line) is not None


def equals(value: str, *, ignore_case: bool = False) -> Predicate:
    if ignore_case:
        folded = value.casefold()
        return lambda line: line.casefold() == folded
    return lambda line: line == value


def negate(predicate: Predicate) -> Predicate:
    return lambda line: not predicate(line)


def all_of(*predicates: Predicate) -> Predicate:
    # Empty conjunction matches every line.
    return lambda line: all(p(line) for p in predicates)


def any_of(*predicates: Predicate) -> Predicate:
    # Empty disjunction matches nothing.
    return lambda line: any(p(line) for p in predicates)


def build_predicate(
    pattern: str,
    *,
    mode: MatchMode = "contains",
    ignore_case: bool = False,
    invert: bool = False,
) -> Predicate:
    """Build the grep-style predicate used by the CLI and config-driven scans."""
    if mode == "contains":
        predicate = contains(pattern, ignore_case=ignore_case)
    elif mode == "regex":
        predicate = matches(pattern, ignore_case=ignore_case)
    elif mode == "exact":
        predicate = equals(pattern, ignore_case=ignore_case)
    else:
        raise ValueError(f"Unknown match mode: {mode!r}")
    return negate(predicate) if invert else predicate
