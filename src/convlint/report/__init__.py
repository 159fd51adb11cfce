"""Report domain: aggregation, exit status, and output formats."""

from convlint.report.aggregator import (
    EXIT_FATAL,
    EXIT_OK,
    EXIT_VIOLATIONS,
    FAIL_ON_LEVELS,
    SEVERITY_FILTERS,
    aggregate,
    exit_status,
    filter_by_severity,
)
from convlint.report.formatters import (
    FORMATTERS,
    format_json,
    format_porcelain,
    format_text,
    violation_to_dict,
)

__all__ = [
    "EXIT_FATAL",
    "EXIT_OK",
    "EXIT_VIOLATIONS",
    "FAIL_ON_LEVELS",
    "FORMATTERS",
    "SEVERITY_FILTERS",
    "aggregate",
    "exit_status",
    "filter_by_severity",
    "format_json",
    "format_porcelain",
    "format_text",
    "violation_to_dict",
]
