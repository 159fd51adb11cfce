"""Tests for convlint.sources.loader: discovery, ignore patterns, reading."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from convlint.errors import SourceRootError
from convlint.sources import loader
from convlint.sources.loader import (
    DEFAULT_IGNORE,
    IgnoreSpec,
    check_root,
    discover_sources,
    read_gitignore,
    read_source,
)

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path


# ---------------------------------------------------------------------------
# IgnoreSpec
# ---------------------------------------------------------------------------


class TestIgnoreSpec:
    def test_directory_pattern_matches_any_depth(self) -> None:
        spec = IgnoreSpec.from_patterns(["node_modules/"])
        assert spec.ignores_dir("node_modules")
        assert spec.ignores_dir("packages/web/node_modules")
        assert not spec.ignores_dir("src")

    def test_name_pattern_matches_basename(self) -> None:
        spec = IgnoreSpec.from_patterns(["*.d.ts"])
        assert spec.ignores_file("src/types/global.d.ts")
        assert not spec.ignores_file("src/types/global.ts")

    def test_path_pattern_is_anchored(self) -> None:
        spec = IgnoreSpec.from_patterns(["/src/generated/*"])
        assert spec.ignores_file("src/generated/api.ts")
        assert not spec.ignores_file("lib/src/generated/api.ts")

    def test_file_under_ignored_parent(self) -> None:
        spec = IgnoreSpec.from_patterns(["dist/"])
        assert spec.ignores_file("dist/index.js")
        assert spec.ignores_file("packages/ui/dist/index.js")

    def test_blank_patterns_skipped(self) -> None:
        spec = IgnoreSpec.from_patterns(["", "   "])
        assert spec == IgnoreSpec()


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


class TestDiscoverSources:
    def test_sorted_and_filtered(self, make_project: Callable[[dict[str, str]], Path]) -> None:
        root = make_project(
            {
                "src/b.ts": "",
                "src/a/Z.tsx": "",
                "src/a/b.jsx": "",
                "README.md": "",
                "src/styles.css": "",
                "index.js": "",
            }
        )
        assert discover_sources(root) == ["index.js", "src/a/Z.tsx", "src/a/b.jsx", "src/b.ts"]

    def test_default_ignore(self, make_project: Callable[[dict[str, str]], Path]) -> None:
        root = make_project(
            {
                "node_modules/react/index.js": "",
                "dist/bundle.js": "",
                "src/env.d.ts": "",
                "src/App.tsx": "",
            }
        )
        assert discover_sources(root, ignore=DEFAULT_IGNORE) == ["src/App.tsx"]

    def test_custom_extensions(self, make_project: Callable[[dict[str, str]], Path]) -> None:
        root = make_project({"a.ts": "", "b.tsx": ""})
        assert discover_sources(root, extensions=[".tsx"]) == ["b.tsx"]

    def test_missing_root(self, tmp_path: Path) -> None:
        with pytest.raises(SourceRootError, match="not a directory"):
            discover_sources(tmp_path / "missing")

    def test_check_root_on_file(self, tmp_path: Path) -> None:
        target = tmp_path / "file.ts"
        target.write_text("")
        with pytest.raises(SourceRootError):
            check_root(target)


class TestReadGitignore:
    def test_absent(self, tmp_path: Path) -> None:
        assert read_gitignore(tmp_path) == []

    def test_comments_and_negations_dropped(self, tmp_path: Path) -> None:
        (tmp_path / ".gitignore").write_text("# build\ngenerated/\n\n!keep.ts\n*.gen.ts\n")
        assert read_gitignore(tmp_path) == ["generated/", "*.gen.ts"]

    def test_patterns_apply_to_discovery(
        self, make_project: Callable[[dict[str, str]], Path]
    ) -> None:
        root = make_project(
            {".gitignore": "generated/\n", "generated/api.ts": "", "src/api.ts": ""}
        )
        ignore = [*DEFAULT_IGNORE, *read_gitignore(root)]
        assert discover_sources(root, ignore=ignore) == ["src/api.ts"]


# ---------------------------------------------------------------------------
# Reading
# ---------------------------------------------------------------------------


class TestReadSource:
    def test_reads_text_and_role(self, make_project: Callable[[dict[str, str]], Path]) -> None:
        root = make_project({"src/hooks/useUser.ts": "export const x = 1;\n"})
        source = read_source(root, "src/hooks/useUser.ts")
        assert source.path == "src/hooks/useUser.ts"
        assert source.text == "export const x = 1;\n"
        assert source.role == "hook"

    def test_retries_once_then_succeeds(
        self,
        make_project: Callable[[dict[str, str]], Path],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        root = make_project({"a.ts": "const a = 1;\n"})
        calls: list[Path] = []
        real_read = loader._read_bytes

        def flaky(path: Path) -> bytes:
            calls.append(path)
            if len(calls) == 1:
                raise OSError(5, "Input/output error")
            return real_read(path)

        monkeypatch.setattr(loader, "_read_bytes", flaky)
        source = read_source(root, "a.ts", backoff_s=0)
        assert source.text == "const a = 1;\n"
        assert len(calls) == 2

    def test_gives_up_after_retry(
        self,
        make_project: Callable[[dict[str, str]], Path],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        root = make_project({"a.ts": ""})
        calls: list[Path] = []

        def denied(path: Path) -> bytes:
            calls.append(path)
            raise PermissionError(13, "Permission denied")

        monkeypatch.setattr(loader, "_read_bytes", denied)
        with pytest.raises(PermissionError):
            read_source(root, "a.ts", backoff_s=0)
        assert len(calls) == 2

    def test_invalid_utf8_not_retried(self, tmp_path: Path) -> None:
        (tmp_path / "bad.ts").write_bytes(b"const a = \"\xff\";\n")
        with pytest.raises(UnicodeDecodeError):
            read_source(tmp_path, "bad.ts")
