"""Source loading: file discovery, ignore patterns, role inference."""

from convlint.sources.loader import (
    DEFAULT_EXTENSIONS,
    DEFAULT_IGNORE,
    IgnoreSpec,
    SourceFile,
    check_root,
    discover_sources,
    read_gitignore,
    read_source,
)
from convlint.sources.roles import (
    ROLE_COMPONENT,
    ROLE_CONTEXT,
    ROLE_FORM,
    ROLE_HOOK,
    ROLE_OTHER,
    ROLE_PAGE,
    ROLE_REDUCER,
    ROLE_SUB_COMPONENT,
    ROLE_UTIL,
    VALID_ROLES,
    infer_role,
)

__all__ = [
    "DEFAULT_EXTENSIONS",
    "DEFAULT_IGNORE",
    "ROLE_COMPONENT",
    "ROLE_CONTEXT",
    "ROLE_FORM",
    "ROLE_HOOK",
    "ROLE_OTHER",
    "ROLE_PAGE",
    "ROLE_REDUCER",
    "ROLE_SUB_COMPONENT",
    "ROLE_UTIL",
    "VALID_ROLES",
    "IgnoreSpec",
    "SourceFile",
    "check_root",
    "discover_sources",
    "infer_role",
    "read_gitignore",
    "read_source",
]
