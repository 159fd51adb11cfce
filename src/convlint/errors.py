"""Fatal error taxonomy.

Recoverable problems (unreadable files, parse failures, misbehaving rules)
never raise out of the pipeline; they are reported as diagnostic entries.
Only the exceptions below abort a run.
"""

from __future__ import annotations


class LintError(Exception):
    """Base class for errors that abort a lint run (exit code 2)."""


class SourceRootError(LintError):
    """Raised when the project root is missing or unreadable."""


class CatalogError(LintError):
    """Raised when the rule catalog is malformed."""


class ConfigError(LintError):
    """Raised when ``.convlint.yml`` contains invalid settings."""


class LintCancelled(LintError):
    """Raised when a run is cancelled before all files were analysed."""
