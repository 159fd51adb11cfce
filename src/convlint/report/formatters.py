"""Reporters: pure renderers of a violation sequence."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from convlint.rules.catalog import SEVERITY_ERROR, SEVERITY_WARNING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from convlint.rules.engine import Violation


def _plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


def format_text(violations: Sequence[Violation]) -> str:
    """Format violations as human-readable text grouped by file.

    Example output::

        src/components/Foo.tsx
          3:1  error    Component 'Foo' body is too compact  [component-min-body]
          7:5  warning  Use double quotes for 'plain'  [double-quotes]

        ✗ 2 problems (1 error, 1 warning)

    Without violations the output is a single ``✓ No violations found`` line.
    """
    if not violations:
        return "✓ No violations found"

    lines: list[str] = []
    current_file: str | None = None
    for v in violations:
        if v.file != current_file:
            if current_file is not None:
                lines.append("")
            lines.append(v.file)
            current_file = v.file
        lines.append(f"  {v.line}:{v.column}  {v.severity:<7}  {v.message}  [{v.rule}]")

    errors = sum(1 for v in violations if v.severity == SEVERITY_ERROR)
    warnings = sum(1 for v in violations if v.severity == SEVERITY_WARNING)
    lines.append("")
    lines.append(
        f"✗ {_plural(len(violations), 'problem')} "
        f"({_plural(errors, 'error')}, {_plural(warnings, 'warning')})"
    )
    return "\n".join(lines)


def violation_to_dict(v: Violation) -> dict[str, object]:
    """Serialise one entry with a stable key order."""
    return {
        "rule": v.rule,
        "file": v.file,
        "line": v.line,
        "column": v.column,
        "severity": v.severity,
        "message": v.message,
        "kind": v.kind,
    }


def format_json(violations: Sequence[Violation]) -> str:
    """Format violations as a JSON array of objects."""
    return json.dumps([violation_to_dict(v) for v in violations], indent=2)


def format_porcelain(violations: Sequence[Violation]) -> str:
    """Format violations as one machine-readable line each.

    Format: ``file:line:column:severity:rule:kind:message``.
    Returns empty string when there are no violations.
    """
    return "\n".join(
        f"{v.file}:{v.line}:{v.column}:{v.severity}:{v.rule}:{v.kind}:{v.message}"
        for v in violations
    )


FORMATTERS = {
    "text": format_text,
    "json": format_json,
    "porcelain": format_porcelain,
}
