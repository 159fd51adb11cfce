"""Rules domain: predicate kinds, YAML rule catalog, rule engine."""

from convlint.rules.catalog import (
    SEVERITY_ERROR,
    SEVERITY_WARNING,
    VALID_SEVERITIES,
    Catalog,
    Rule,
    load_catalog,
    load_default_catalog,
    parse_catalog,
)
from convlint.rules.engine import (
    KIND_IO_ERROR,
    KIND_PARSE_ERROR,
    KIND_RULE_ERROR,
    KIND_VIOLATION,
    Violation,
    evaluate_file,
    evaluate_rule,
    io_error_violation,
    parse_error_violation,
)
from convlint.rules.predicates import PREDICATES, Finding, predicate

__all__ = [
    "KIND_IO_ERROR",
    "KIND_PARSE_ERROR",
    "KIND_RULE_ERROR",
    "KIND_VIOLATION",
    "PREDICATES",
    "SEVERITY_ERROR",
    "SEVERITY_WARNING",
    "VALID_SEVERITIES",
    "Catalog",
    "Finding",
    "Rule",
    "Violation",
    "evaluate_file",
    "evaluate_rule",
    "io_error_violation",
    "load_catalog",
    "load_default_catalog",
    "parse_catalog",
    "parse_error_violation",
    "predicate",
]
