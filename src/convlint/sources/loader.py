"""Source loader: discover, filter and read project source files."""

from __future__ import annotations

import fnmatch
import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING

from convlint.errors import SourceRootError
from convlint.sources.roles import infer_role

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DEFAULT_EXTENSIONS: frozenset[str] = frozenset({".ts", ".tsx", ".js", ".jsx"})

# Build outputs, dependency directories and generated declaration files.
DEFAULT_IGNORE: tuple[str, ...] = (
    "node_modules/",
    "dist/",
    "build/",
    "out/",
    "coverage/",
    ".next/",
    ".git/",
    ".turbo/",
    "*.d.ts",
)

DEFAULT_READ_BACKOFF_S = 0.05


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SourceFile:
    """A loaded source file."""

    path: str  # POSIX path relative to the project root
    text: str
    role: str


@dataclass(frozen=True)
class IgnoreSpec:
    """Compiled ignore patterns with ``.gitignore``-like semantics."""

    dir_patterns: tuple[str, ...] = ()
    path_patterns: tuple[str, ...] = ()
    name_patterns: tuple[str, ...] = ()

    @classmethod
    def from_patterns(cls, patterns: Iterable[str]) -> IgnoreSpec:
        """Split raw patterns into directory, path and name patterns.

        ``name/`` matches a directory at any depth, a pattern containing
        ``/`` is matched against the whole relative path, and anything else
        is matched against the basename and every parent directory name.
        """
        dir_patterns: list[str] = []
        path_patterns: list[str] = []
        name_patterns: list[str] = []
        for raw in patterns:
            pattern = raw.strip()
            if not pattern:
                continue
            if pattern.endswith("/"):
                pattern = pattern.rstrip("/").lstrip("/")
                if "/" in pattern:
                    path_patterns.append(pattern)
                else:
                    dir_patterns.append(pattern)
            elif "/" in pattern:
                path_patterns.append(pattern.lstrip("/"))
            else:
                name_patterns.append(pattern)
        return cls(
            dir_patterns=tuple(dir_patterns),
            path_patterns=tuple(path_patterns),
            name_patterns=tuple(name_patterns),
        )

    def ignores_dir(self, rel_dir: str) -> bool:
        """Return True if the directory at *rel_dir* should be pruned."""
        name = PurePosixPath(rel_dir).name
        if any(fnmatch.fnmatchcase(name, p) for p in (*self.dir_patterns, *self.name_patterns)):
            return True
        return any(fnmatch.fnmatchcase(rel_dir, p) for p in self.path_patterns)

    def ignores_file(self, rel_path: str) -> bool:
        """Return True if the file at *rel_path* should be skipped."""
        pure = PurePosixPath(rel_path)
        if any(fnmatch.fnmatchcase(pure.name, p) for p in self.name_patterns):
            return True
        if any(fnmatch.fnmatchcase(rel_path, p) for p in self.path_patterns):
            return True
        # Parent directories are normally pruned during the walk; this keeps
        # the check correct when called on arbitrary paths.
        parents = pure.parts[:-1]
        return any(self.ignores_dir("/".join(parents[: idx + 1])) for idx in range(len(parents)))


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


def check_root(root: Path) -> None:
    """Raise :class:`SourceRootError` unless *root* is a readable directory."""
    if not root.is_dir():
        msg = f"Project root '{root}' is not a directory"
        raise SourceRootError(msg)
    try:
        with os.scandir(root) as entries:
            next(entries, None)
    except OSError as exc:
        msg = f"Project root '{root}' is unreadable: {exc}"
        raise SourceRootError(msg) from exc


def read_gitignore(root: Path) -> list[str]:
    """Return the usable patterns from ``<root>/.gitignore`` (empty if absent).

    Comments and blank lines are dropped.  Negated patterns (``!keep.ts``)
    are not supported and are skipped.
    """
    gitignore = root / ".gitignore"
    if not gitignore.is_file():
        return []
    try:
        content = gitignore.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        logger.warning("Cannot read %s, ignoring it", gitignore)
        return []

    patterns: list[str] = []
    for line in content.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        if stripped.startswith("!"):
            logger.debug("Skipping negated .gitignore pattern %s", stripped)
            continue
        patterns.append(stripped)
    return patterns


def discover_sources(
    root: Path,
    *,
    ignore: Iterable[str] = DEFAULT_IGNORE,
    extensions: Iterable[str] = DEFAULT_EXTENSIONS,
) -> list[str]:
    """Walk *root* and return relative POSIX paths of source files.

    Ignored directories are pruned instead of being walked.  The result is
    sorted lexicographically so that output is reproducible.

    Raises
    ------
    SourceRootError
        When *root* is not a readable directory.
    """
    check_root(root)
    spec = IgnoreSpec.from_patterns(ignore)
    wanted = frozenset(extensions)
    found: list[str] = []

    def _on_error(exc: OSError) -> None:
        logger.warning("Cannot list directory %s: %s", exc.filename, exc)

    for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error):
        rel_dir = Path(dirpath).relative_to(root).as_posix()
        prefix = "" if rel_dir == "." else f"{rel_dir}/"

        kept: list[str] = []
        for dirname in dirnames:
            if spec.ignores_dir(f"{prefix}{dirname}"):
                logger.debug("Pruning ignored directory %s%s", prefix, dirname)
                continue
            kept.append(dirname)
        dirnames[:] = sorted(kept)

        for filename in filenames:
            rel_path = f"{prefix}{filename}"
            if PurePosixPath(filename).suffix not in wanted:
                continue
            if spec.ignores_file(rel_path):
                continue
            found.append(rel_path)

    return sorted(found)


# ---------------------------------------------------------------------------
# Reading
# ---------------------------------------------------------------------------


def _read_bytes(path: Path) -> bytes:
    return path.read_bytes()


def read_source(
    root: Path,
    rel_path: str,
    *,
    retries: int = 1,
    backoff_s: float = DEFAULT_READ_BACKOFF_S,
) -> SourceFile:
    """Read one file and return it as a :class:`SourceFile`.

    A failed read is retried *retries* times, sleeping *backoff_s* (doubled
    on each attempt) in between.  The last ``OSError`` is re-raised; a file
    that is not valid UTF-8 raises ``UnicodeDecodeError`` without retry.
    """
    path = root / rel_path
    attempt = 0
    delay = backoff_s
    while True:
        try:
            data = _read_bytes(path)
            break
        except OSError as exc:
            if attempt >= retries:
                raise
            attempt += 1
            logger.debug("Read of %s failed (%s), retrying in %.2fs", rel_path, exc, delay)
            time.sleep(delay)
            delay *= 2

    text = data.decode("utf-8")
    return SourceFile(path=rel_path, text=text, role=infer_role(rel_path))
