"""convlint CLI entry point."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from convlint import __version__
from convlint.report.aggregator import EXIT_FATAL, FAIL_ON_LEVELS, SEVERITY_FILTERS


@click.group()
@click.version_option(version=__version__, prog_name="convlint")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Minimal output (errors only).")
@click.pass_context
def main(ctx: click.Context, *, verbose: bool, quiet: bool) -> None:
    """convlint - Convention conformance checks for TypeScript/React codebases."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet

    level = logging.DEBUG if verbose else logging.ERROR if quiet else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


@main.command()
@click.argument(
    "root",
    type=click.Path(file_okay=False, path_type=Path),
    default=".",
)
@click.option(
    "--severity",
    type=click.Choice(SEVERITY_FILTERS),
    default=None,
    help="Only show entries of this severity (default: all).",
)
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["text", "json", "porcelain"]),
    default="text",
    show_default=True,
    help="Output format.",
)
@click.option(
    "--fail-on",
    type=click.Choice(FAIL_ON_LEVELS),
    default=None,
    help="Lowest severity that makes the exit code 1 (default: error).",
)
@click.option(
    "--concurrency",
    type=click.IntRange(min=1),
    default=None,
    help="Worker threads (default: one per CPU core).",
)
@click.option(
    "--catalog",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Rule catalog YAML (default: from .convlint.yml or the built-in catalog).",
)
@click.option(
    "--ignore",
    "ignore",
    multiple=True,
    help="Extra ignore pattern (repeatable).",
)
@click.option(
    "--no-gitignore",
    is_flag=True,
    default=False,
    help="Do not read ignore patterns from the root .gitignore.",
)
def check(
    root: Path,
    *,
    severity: str | None,
    fmt: str,
    fail_on: str | None,
    concurrency: int | None,
    catalog: Path | None,
    ignore: tuple[str, ...],
    no_gitignore: bool,
) -> None:
    """Check ROOT against the convention catalog.

    Exit codes: 0 = nothing at or above the --fail-on level,
    1 = violations at or above it, 2 = fatal error (unreadable root,
    invalid catalog or configuration, cancelled run).
    """
    from convlint.config import load_config
    from convlint.errors import LintError
    from convlint.linter import lint as run_lint
    from convlint.report.aggregator import exit_status, filter_by_severity
    from convlint.report.formatters import FORMATTERS
    from convlint.sources.loader import check_root

    try:
        check_root(root)
        config = load_config(root)
        config = config.with_overrides(
            severity=severity,
            fail_on=fail_on,
            concurrency=concurrency,
            catalog=catalog,
            use_gitignore=False if no_gitignore else None,
            ignore=(*config.ignore, *ignore) if ignore else None,
        )
        result = run_lint(root, config=config)
    except LintError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(EXIT_FATAL)

    shown = filter_by_severity(result.violations, config.severity)
    output = FORMATTERS[fmt](shown)
    if output:
        click.echo(output)

    sys.exit(exit_status(result.violations, config.fail_on))


@main.command()
@click.option(
    "--catalog",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Rule catalog YAML (default: the built-in catalog).",
)
@click.option(
    "--role",
    default=None,
    help="Only list rules that apply to this file role.",
)
def rules(*, catalog: Path | None, role: str | None) -> None:
    """List the rules of the convention catalog."""
    from rich.console import Console
    from rich.table import Table

    from convlint.errors import LintError
    from convlint.rules.catalog import load_catalog, load_default_catalog
    from convlint.sources.roles import VALID_ROLES

    if role is not None and role not in VALID_ROLES:
        click.echo(f"Error: unknown role '{role}', must be one of {sorted(VALID_ROLES)}", err=True)
        sys.exit(EXIT_FATAL)

    try:
        loaded = load_catalog(catalog) if catalog else load_default_catalog()
    except LintError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(EXIT_FATAL)

    selected = loaded.rules_for(role) if role else loaded.rules

    table = Table(title=f"Convention catalog v{loaded.version}")
    table.add_column("Rule", style="cyan", no_wrap=True)
    table.add_column("Severity")
    table.add_column("Check")
    table.add_column("Roles")
    table.add_column("Description")
    for rule in selected:
        severity_style = "red" if rule.severity == "error" else "yellow"
        roles_text = "all" if rule.roles == VALID_ROLES else ", ".join(sorted(rule.roles))
        table.add_row(
            rule.id,
            f"[{severity_style}]{rule.severity}[/{severity_style}]",
            rule.kind,
            roles_text,
            rule.description,
        )

    console = Console()
    console.print(table)
    console.print(f"{len(selected)} rules")
