"""Violation aggregator: merge, dedupe, sort, filter, and compute exit status."""

from __future__ import annotations

from typing import TYPE_CHECKING

from convlint.rules.catalog import SEVERITY_ERROR, SEVERITY_WARNING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from convlint.rules.engine import Violation

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

SEVERITY_FILTERS: tuple[str, ...] = ("error", "warning", "all")
FAIL_ON_LEVELS: tuple[str, ...] = ("error", "warning", "none")

EXIT_OK = 0
EXIT_VIOLATIONS = 1
EXIT_FATAL = 2

_SEVERITY_RANK = {SEVERITY_WARNING: 1, SEVERITY_ERROR: 2}


def sort_key(violation: Violation) -> tuple[str, int, str, int, str]:
    return (violation.file, violation.line, violation.rule, violation.column, violation.message)


def aggregate(per_file: Iterable[Iterable[Violation]]) -> list[Violation]:
    """Merge per-file sequences into one sorted, de-duplicated list.

    Exact ``(rule, file, line, column)`` repeats are collapsed to their
    first occurrence in sort order.
    """
    merged = sorted((v for batch in per_file for v in batch), key=sort_key)
    seen: set[tuple[str, str, int, int]] = set()
    result: list[Violation] = []
    for violation in merged:
        key = (violation.rule, violation.file, violation.line, violation.column)
        if key in seen:
            continue
        seen.add(key)
        result.append(violation)
    return result


def filter_by_severity(violations: Iterable[Violation], level: str) -> list[Violation]:
    """Keep entries at *level*: ``error`` (errors only), ``warning`` (warnings only) or ``all``."""
    if level == "all":
        return list(violations)
    if level not in _SEVERITY_RANK:
        msg = f"Invalid severity filter '{level}', must be one of {list(SEVERITY_FILTERS)}"
        raise ValueError(msg)
    return [v for v in violations if v.severity == level]


def exit_status(violations: Iterable[Violation], fail_on: str = "error") -> int:
    """Return 1 if any entry is at or above the *fail_on* threshold, else 0."""
    if fail_on == "none":
        return EXIT_OK
    threshold = _SEVERITY_RANK.get(fail_on)
    if threshold is None:
        msg = f"Invalid fail-on level '{fail_on}', must be one of {list(FAIL_ON_LEVELS)}"
        raise ValueError(msg)
    if any(_SEVERITY_RANK.get(v.severity, 0) >= threshold for v in violations):
        return EXIT_VIOLATIONS
    return EXIT_OK
