"""Rule engine: evaluate catalog rules against one file's IR."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from convlint.rules.catalog import SEVERITY_ERROR, SEVERITY_WARNING

if TYPE_CHECKING:
    from convlint.rules.catalog import Catalog, Rule
    from convlint.syntax.nodes import FileIR, ParseError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

KIND_VIOLATION = "violation"
KIND_IO_ERROR = "io-error"
KIND_PARSE_ERROR = "parse-error"
KIND_RULE_ERROR = "rule-evaluation-error"

DIAGNOSTIC_KINDS: frozenset[str] = frozenset({KIND_IO_ERROR, KIND_PARSE_ERROR, KIND_RULE_ERROR})

# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Violation:
    """A single reported entry: a rule violation or a diagnostic."""

    rule: str  # rule id, or "io-error" / "parse-error" for file-level diagnostics
    file: str
    line: int
    column: int
    severity: str  # "error" | "warning"
    message: str
    kind: str = KIND_VIOLATION

    @property
    def is_diagnostic(self) -> bool:
        return self.kind in DIAGNOSTIC_KINDS


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------


def evaluate_rule(rule: Rule, ir: FileIR) -> list[Violation]:
    """Evaluate one rule, converting any failure into a single diagnostic.

    Findings are materialised before anything is returned, so a predicate
    that fails halfway contributes the diagnostic only.
    """
    try:
        return [
            Violation(
                rule=rule.id,
                file=ir.path,
                line=finding.location.line,
                column=finding.location.column,
                severity=rule.severity,
                message=rule.render(finding, ir),
            )
            for finding in rule.findings(ir)
        ]
    except Exception as exc:
        logger.warning("Rule %s failed on %s: %s", rule.id, ir.path, exc, exc_info=True)
        return [
            Violation(
                rule=rule.id,
                file=ir.path,
                line=1,
                column=1,
                severity=SEVERITY_WARNING,
                message=f"Rule '{rule.id}' could not be evaluated: {type(exc).__name__}: {exc}",
                kind=KIND_RULE_ERROR,
            )
        ]


def evaluate_file(ir: FileIR, catalog: Catalog) -> list[Violation]:
    """Evaluate every rule targeting the file's role.

    Emits one violation per offending node.  Rules are independent, so the
    result does not depend on catalog order beyond the order of the list.
    """
    violations: list[Violation] = []
    for rule in catalog.rules_for(ir.role):
        violations.extend(evaluate_rule(rule, ir))
    return violations


def parse_error_violation(error: ParseError) -> Violation:
    """Report a file that could not be normalized."""
    return Violation(
        rule=KIND_PARSE_ERROR,
        file=error.path,
        line=error.location.line,
        column=error.location.column,
        severity=SEVERITY_ERROR,
        message=error.message,
        kind=KIND_PARSE_ERROR,
    )


def io_error_violation(path: str, exc: Exception) -> Violation:
    """Report a file that could not be read; the file is skipped."""
    reason = exc.strerror if isinstance(exc, OSError) and exc.strerror else str(exc)
    return Violation(
        rule=KIND_IO_ERROR,
        file=path,
        line=1,
        column=1,
        severity=SEVERITY_WARNING,
        message=f"Cannot read file: {reason}",
        kind=KIND_IO_ERROR,
    )
