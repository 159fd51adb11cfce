"""File roles: infer a source file's purpose from its path."""

from __future__ import annotations

import re
from pathlib import PurePosixPath

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

ROLE_COMPONENT = "component"
ROLE_SUB_COMPONENT = "sub_component"
ROLE_HOOK = "hook"
ROLE_UTIL = "util"
ROLE_FORM = "form"
ROLE_CONTEXT = "context"
ROLE_REDUCER = "reducer"
ROLE_PAGE = "page"
ROLE_OTHER = "other"

VALID_ROLES: frozenset[str] = frozenset(
    {
        ROLE_COMPONENT,
        ROLE_SUB_COMPONENT,
        ROLE_HOOK,
        ROLE_UTIL,
        ROLE_FORM,
        ROLE_CONTEXT,
        ROLE_REDUCER,
        ROLE_PAGE,
        ROLE_OTHER,
    }
)

_JSX_EXTENSIONS: frozenset[str] = frozenset({".tsx", ".jsx"})

_HOOK_STEM_RE = re.compile(r"^use[A-Z0-9]")

_HOOK_DIRS = frozenset({"hooks"})
_CONTEXT_DIRS = frozenset({"context", "contexts"})
_PAGE_DIRS = frozenset({"pages"})
_FORM_DIRS = frozenset({"forms"})
_UTIL_DIRS = frozenset({"utils", "util", "helpers", "lib"})


def _strip_suffixes(name: str) -> str:
    """Return the file name without any extension (``Foo.test.tsx`` -> ``Foo``)."""
    return name.split(".", 1)[0]


def infer_role(path: str) -> str:
    """Return the role of a file from its relative POSIX *path*.

    The first matching pattern wins, so ``hooks/useFormState.ts`` is a hook
    file rather than a form file.  Component files are later refined to
    sub-components by the normalizer, which can see the file's exports.
    """
    pure = PurePosixPath(path)
    stem = _strip_suffixes(pure.name)
    lower_stem = stem.lower()
    dirs = {part.lower() for part in pure.parts[:-1]}

    if _HOOK_STEM_RE.match(stem) or dirs & _HOOK_DIRS:
        return ROLE_HOOK
    if "reducer" in lower_stem:
        return ROLE_REDUCER
    if stem.endswith(("Context", "Provider")) or dirs & _CONTEXT_DIRS:
        return ROLE_CONTEXT
    if stem.endswith("Page") or dirs & _PAGE_DIRS:
        return ROLE_PAGE
    if stem.endswith("Form") or dirs & _FORM_DIRS:
        return ROLE_FORM
    if dirs & _UTIL_DIRS:
        return ROLE_UTIL
    if pure.suffix in _JSX_EXTENSIONS:
        return ROLE_COMPONENT
    if stem[:1].islower():
        return ROLE_UTIL
    return ROLE_OTHER
