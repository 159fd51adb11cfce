"""Linter orchestrator: discover files, analyse them concurrently, aggregate results."""

from __future__ import annotations

import logging
import os
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from convlint.config import LintConfig, load_config
from convlint.errors import LintCancelled
from convlint.report.aggregator import aggregate
from convlint.rules.catalog import load_catalog, load_default_catalog
from convlint.rules.engine import (
    KIND_PARSE_ERROR,
    Violation,
    evaluate_file,
    io_error_violation,
    parse_error_violation,
)
from convlint.sources.loader import check_root, discover_sources, read_gitignore, read_source
from convlint.syntax.nodes import Location, ParseError
from convlint.syntax.normalizer import normalize

if TYPE_CHECKING:
    import threading
    from collections.abc import Sequence
    from pathlib import Path

    from convlint.rules.catalog import Catalog

logger = logging.getLogger(__name__)

# How often the coordinator wakes up to check for cancellation.
_POLL_INTERVAL_S = 0.1

# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass
class FileResult:
    """Outcome of analysing one file."""

    path: str
    violations: list[Violation] = field(default_factory=list)
    role: str | None = None  # None when the file could not be read or parsed


@dataclass
class LintResult:
    """Result of a lint run."""

    violations: list[Violation] = field(default_factory=list)
    files: list[FileResult] = field(default_factory=list)
    rules_loaded: int = 0
    elapsed_ms: float = 0.0

    @property
    def files_scanned(self) -> int:
        return len(self.files)


# ---------------------------------------------------------------------------
# Per-file pipeline
# ---------------------------------------------------------------------------


def analyse_file(project_root: Path, rel_path: str, catalog: Catalog) -> FileResult:
    """Read, normalize and evaluate one file.

    Never raises for file-level problems: unreadable files and parse
    failures come back as a single diagnostic entry.
    """
    try:
        source = read_source(project_root, rel_path)
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Skipping unreadable file %s: %s", rel_path, exc)
        return FileResult(path=rel_path, violations=[io_error_violation(rel_path, exc)])

    try:
        ir = normalize(source)
    except Exception as exc:
        logger.warning("Normalizer failed on %s: %s", rel_path, exc, exc_info=True)
        ir = ParseError(
            path=rel_path,
            location=Location(line=1, column=1, end_line=1),
            message=f"Cannot normalize file: {type(exc).__name__}: {exc}",
        )

    if isinstance(ir, ParseError):
        logger.debug("Parse error in %s at line %d", rel_path, ir.location.line)
        return FileResult(path=rel_path, violations=[parse_error_violation(ir)])

    return FileResult(path=rel_path, violations=evaluate_file(ir, catalog), role=ir.role)


def resolve_concurrency(concurrency: int | None) -> int:
    """Return the worker count: *concurrency*, or one per available core."""
    if concurrency is None:
        return os.cpu_count() or 1
    if concurrency < 1:
        msg = f"concurrency must be at least 1, got {concurrency}"
        raise ValueError(msg)
    return concurrency


def _cancelled(cancel_event: threading.Event | None) -> bool:
    return cancel_event is not None and cancel_event.is_set()


def _run_sequential(
    project_root: Path,
    paths: Sequence[str],
    catalog: Catalog,
    cancel_event: threading.Event | None,
) -> list[FileResult]:
    results: list[FileResult] = []
    try:
        for rel_path in paths:
            if _cancelled(cancel_event):
                raise LintCancelled("Lint run cancelled")
            results.append(analyse_file(project_root, rel_path, catalog))
    except KeyboardInterrupt as exc:
        raise LintCancelled("Lint run interrupted") from exc
    return results


def _run_concurrent(
    project_root: Path,
    paths: Sequence[str],
    catalog: Catalog,
    workers: int,
    cancel_event: threading.Event | None,
) -> list[FileResult]:
    """Run the per-file pipeline on a thread pool with a bounded in-flight window.

    Reads of upcoming files overlap with analysis of files already read.
    Only completed results are collected; on cancellation pending work is
    dropped and nothing is returned.
    """
    results: list[FileResult] = []
    window = workers * 2
    queue = iter(paths)
    in_flight: set[Future[FileResult]] = set()
    exhausted = False
    cancelled = False

    executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="convlint")
    try:
        while True:
            if _cancelled(cancel_event):
                cancelled = True
                raise LintCancelled("Lint run cancelled")

            while not exhausted and len(in_flight) < window:
                rel_path = next(queue, None)
                if rel_path is None:
                    exhausted = True
                    break
                in_flight.add(executor.submit(analyse_file, project_root, rel_path, catalog))

            if not in_flight:
                break

            done, in_flight = wait(
                in_flight, timeout=_POLL_INTERVAL_S, return_when=FIRST_COMPLETED
            )
            results.extend(future.result() for future in done)
    except KeyboardInterrupt as exc:
        cancelled = True
        raise LintCancelled("Lint run interrupted") from exc
    finally:
        executor.shutdown(wait=not cancelled, cancel_futures=True)

    return results


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def lint(
    project_root: Path,
    *,
    config: LintConfig | None = None,
    catalog: Catalog | None = None,
    cancel_event: threading.Event | None = None,
) -> LintResult:
    """Run the lint process: load the catalog, analyse every file, aggregate.

    Parameters
    ----------
    project_root:
        Root of the project to check.
    config:
        Effective settings.  When *None*, ``.convlint.yml`` is read from
        *project_root*.
    catalog:
        Pre-loaded rule catalog.  When *None*, ``config.catalog`` or the
        packaged default catalog is loaded.
    cancel_event:
        Setting this event aborts the run with :class:`LintCancelled`.

    Returns
    -------
    LintResult
        Aggregated violations (sorted, de-duplicated) plus per-file results.

    Raises
    ------
    SourceRootError
        When the project root is unreadable.
    CatalogError
        When the catalog is malformed; raised before any file is analysed.
    ConfigError
        When ``.convlint.yml`` is invalid.
    LintCancelled
        When the run is cancelled or interrupted.
    """
    start = time.monotonic()

    check_root(project_root)
    if config is None:
        config = load_config(project_root)

    if catalog is None:
        catalog = load_catalog(config.catalog) if config.catalog else load_default_catalog()
    logger.info("Loaded %d rules", len(catalog))

    ignore = list(config.ignore)
    if config.use_gitignore:
        ignore.extend(read_gitignore(project_root))
    paths = discover_sources(project_root, ignore=ignore, extensions=config.extensions)
    workers = resolve_concurrency(config.concurrency)
    logger.info("Analysing %d files with %d worker(s)", len(paths), workers)

    if workers == 1 or len(paths) <= 1:
        file_results = _run_sequential(project_root, paths, catalog, cancel_event)
    else:
        file_results = _run_concurrent(project_root, paths, catalog, workers, cancel_event)

    file_results.sort(key=lambda r: r.path)
    parse_failures = sum(
        1 for r in file_results for v in r.violations if v.kind == KIND_PARSE_ERROR
    )
    if parse_failures:
        logger.info("%d file(s) could not be parsed", parse_failures)

    return LintResult(
        violations=aggregate(r.violations for r in file_results),
        files=file_results,
        rules_loaded=len(catalog),
        elapsed_ms=(time.monotonic() - start) * 1000,
    )
