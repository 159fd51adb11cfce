"""Shared test fixtures for convlint."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from convlint.rules.catalog import load_default_catalog
from convlint.sources.loader import SourceFile
from convlint.sources.roles import infer_role
from convlint.syntax.nodes import FileIR
from convlint.syntax.normalizer import normalize

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from convlint.rules.catalog import Catalog


@pytest.fixture(scope="session")
def default_catalog() -> Catalog:
    """The catalog shipped with the package."""
    return load_default_catalog()


@pytest.fixture()
def make_project(tmp_path: Path) -> Callable[[dict[str, str]], Path]:
    """Return a factory that writes ``{relative path: content}`` under a project root."""

    def _make(files: dict[str, str]) -> Path:
        root = tmp_path / "proj"
        root.mkdir(exist_ok=True)
        for rel_path, content in files.items():
            path = root / rel_path
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return root

    return _make


@pytest.fixture()
def make_ir() -> Callable[[str, str], FileIR]:
    """Return a factory that normalizes source text as if read from *path*."""

    def _make(path: str, text: str) -> FileIR:
        result = normalize(SourceFile(path=path, text=text, role=infer_role(path)))
        assert isinstance(result, FileIR), result
        return result

    return _make
