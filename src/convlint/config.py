"""Project configuration: read ``.convlint.yml`` from the project root."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import yaml

from convlint.errors import ConfigError
from convlint.report.aggregator import FAIL_ON_LEVELS, SEVERITY_FILTERS
from convlint.sources.loader import DEFAULT_EXTENSIONS, DEFAULT_IGNORE

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".convlint.yml"

_KNOWN_KEYS = frozenset(
    {"ignore", "use_gitignore", "extensions", "catalog", "concurrency", "fail_on", "severity"}
)


@dataclass(frozen=True)
class LintConfig:
    """Effective settings for one run."""

    ignore: tuple[str, ...] = DEFAULT_IGNORE
    use_gitignore: bool = True
    extensions: tuple[str, ...] = tuple(sorted(DEFAULT_EXTENSIONS))
    catalog: Path | None = None
    concurrency: int | None = None  # None means one worker per CPU
    fail_on: str = "error"
    severity: str = "all"

    def with_overrides(self, **overrides: object) -> LintConfig:
        """Return a copy with every non-``None`` override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return dataclasses.replace(self, **changes)


def _str_list(data: dict[str, object], key: str) -> tuple[str, ...] | None:
    raw = data.get(key)
    if raw is None:
        return None
    if not isinstance(raw, list) or not all(isinstance(item, str) for item in raw):
        msg = f"{CONFIG_FILENAME}: '{key}' must be a list of strings"
        raise ConfigError(msg)
    return tuple(raw)


def _choice(data: dict[str, object], key: str, choices: tuple[str, ...]) -> str | None:
    raw = data.get(key)
    if raw is None:
        return None
    if raw not in choices:
        msg = f"{CONFIG_FILENAME}: '{key}' must be one of {list(choices)}, got {raw!r}"
        raise ConfigError(msg)
    return str(raw)


def load_config(project_root: Path) -> LintConfig:
    """Load ``<project_root>/.convlint.yml``; defaults when the file is absent.

    ``ignore`` patterns extend the built-in ignore list rather than replace
    it.  ``catalog`` is resolved relative to the project root.

    Raises
    ------
    ConfigError
        When the file is unreadable or holds invalid values.
    """
    config_path = project_root / CONFIG_FILENAME
    if not config_path.is_file():
        return LintConfig()

    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    except (OSError, UnicodeDecodeError) as exc:
        msg = f"Cannot read {config_path}: {exc}"
        raise ConfigError(msg) from exc
    except yaml.YAMLError as exc:
        msg = f"{CONFIG_FILENAME} is not valid YAML: {exc}"
        raise ConfigError(msg) from exc

    if not isinstance(data, dict):
        msg = f"{CONFIG_FILENAME} must be a YAML mapping"
        raise ConfigError(msg)

    for key in sorted(set(data) - _KNOWN_KEYS):
        logger.warning("Unknown key '%s' in %s", key, CONFIG_FILENAME)

    config = LintConfig()
    extra_ignore = _str_list(data, "ignore")
    if extra_ignore:
        config = dataclasses.replace(config, ignore=(*config.ignore, *extra_ignore))

    extensions = _str_list(data, "extensions")
    if extensions is not None:
        config = dataclasses.replace(config, extensions=extensions)

    use_gitignore = data.get("use_gitignore")
    if use_gitignore is not None:
        if not isinstance(use_gitignore, bool):
            msg = f"{CONFIG_FILENAME}: 'use_gitignore' must be true or false"
            raise ConfigError(msg)
        config = dataclasses.replace(config, use_gitignore=use_gitignore)

    catalog = data.get("catalog")
    if catalog is not None:
        if not isinstance(catalog, str) or not catalog.strip():
            msg = f"{CONFIG_FILENAME}: 'catalog' must be a path"
            raise ConfigError(msg)
        config = dataclasses.replace(config, catalog=project_root / catalog)

    concurrency = data.get("concurrency")
    if concurrency is not None:
        if isinstance(concurrency, bool) or not isinstance(concurrency, int) or concurrency < 1:
            msg = f"{CONFIG_FILENAME}: 'concurrency' must be a positive integer"
            raise ConfigError(msg)
        config = dataclasses.replace(config, concurrency=concurrency)

    return config.with_overrides(
        fail_on=_choice(data, "fail_on", FAIL_ON_LEVELS),
        severity=_choice(data, "severity", SEVERITY_FILTERS),
    )
