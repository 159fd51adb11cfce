"""Tests for convlint.config: reading .convlint.yml."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import pytest

from convlint.config import LintConfig, load_config
from convlint.errors import ConfigError
from convlint.sources.loader import DEFAULT_IGNORE

if TYPE_CHECKING:
    from pathlib import Path


def _write(root: Path, content: str) -> None:
    (root / ".convlint.yml").write_text(content)


class TestLoadConfig:
    def test_absent_file_gives_defaults(self, tmp_path: Path) -> None:
        assert load_config(tmp_path) == LintConfig()

    def test_empty_file_gives_defaults(self, tmp_path: Path) -> None:
        _write(tmp_path, "")
        assert load_config(tmp_path) == LintConfig()

    def test_values(self, tmp_path: Path) -> None:
        _write(
            tmp_path,
            "ignore: [generated/, '*.stories.tsx']\n"
            "use_gitignore: false\n"
            "extensions: [.ts, .tsx]\n"
            "catalog: conventions/rules.yml\n"
            "concurrency: 3\n"
            "fail_on: warning\n"
            "severity: error\n",
        )
        config = load_config(tmp_path)
        assert config.ignore == (*DEFAULT_IGNORE, "generated/", "*.stories.tsx")
        assert config.use_gitignore is False
        assert config.extensions == (".ts", ".tsx")
        assert config.catalog == tmp_path / "conventions" / "rules.yml"
        assert config.concurrency == 3
        assert config.fail_on == "warning"
        assert config.severity == "error"

    def test_unknown_key_warns(self, tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
        _write(tmp_path, "colour: always\n")
        with caplog.at_level(logging.WARNING, logger="convlint.config"):
            assert load_config(tmp_path) == LintConfig()
        assert "Unknown key 'colour'" in caplog.text

    @pytest.mark.parametrize(
        ("content", "match"),
        [
            ("- a\n- b\n", "must be a YAML mapping"),
            ("ignore: node_modules\n", "'ignore' must be a list of strings"),
            ("use_gitignore: maybe\n", "'use_gitignore' must be true or false"),
            ("concurrency: 0\n", "'concurrency' must be a positive integer"),
            ("concurrency: true\n", "'concurrency' must be a positive integer"),
            ("fail_on: always\n", "'fail_on' must be one of"),
            ("severity: info\n", "'severity' must be one of"),
            ("catalog: ''\n", "'catalog' must be a path"),
            ("ignore: [\n", "not valid YAML"),
        ],
    )
    def test_invalid(self, tmp_path: Path, content: str, match: str) -> None:
        _write(tmp_path, content)
        with pytest.raises(ConfigError, match=match):
            load_config(tmp_path)


class TestWithOverrides:
    def test_none_values_ignored(self) -> None:
        config = LintConfig(fail_on="warning")
        assert config.with_overrides(fail_on=None, concurrency=2) == LintConfig(
            fail_on="warning", concurrency=2
        )
