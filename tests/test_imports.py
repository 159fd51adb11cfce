"""Tests for convlint.syntax.imports: group classification and ordering."""

from __future__ import annotations

import itertools

import pytest

from convlint.syntax.imports import ImportGroup, classify_import, out_of_order
from convlint.syntax.nodes import ImportDecl, Location

GROUPS = (
    ImportGroup(name="framework", patterns=("react", "react-dom")),
    ImportGroup(name="query", patterns=("@tanstack/react-query",)),
    ImportGroup(name="external", fallback=True),
    ImportGroup(name="internal", patterns=("./*", "../*", "@/*")),
    ImportGroup(name="type", type_only=True),
)


def _decl(source: str, *, type_only: bool = False) -> ImportDecl:
    return ImportDecl(
        location=Location(line=1, column=1, end_line=1),
        source=source,
        is_type_only=type_only,
        names=(),
    )


class TestClassifyImport:
    @pytest.mark.parametrize(
        ("source", "expected"),
        [
            ("react", 0),
            ("@tanstack/react-query", 1),
            ("lodash", 2),
            ("./Button", 3),
            ("@/utils/format", 3),
        ],
    )
    def test_groups(self, source: str, expected: int) -> None:
        assert classify_import(_decl(source), GROUPS) == expected

    def test_type_only_goes_to_type_group(self) -> None:
        assert classify_import(_decl("react", type_only=True), GROUPS) == 4

    def test_type_only_without_type_group(self) -> None:
        groups = GROUPS[:-1]
        assert classify_import(_decl("react", type_only=True), groups) == 0

    def test_unclaimed_without_fallback(self) -> None:
        groups = (ImportGroup(name="framework", patterns=("react",)),)
        assert classify_import(_decl("lodash"), groups) is None


class TestOutOfOrder:
    def test_sorted_sequence(self) -> None:
        assert out_of_order([0, 0, 1, 3, 3, 4]) == []

    def test_empty(self) -> None:
        assert out_of_order([]) == []

    def test_single_misplaced(self) -> None:
        # internal (3) placed before query (1)
        assert out_of_order([0, 3, 1, 2]) == [1]

    def test_each_misplaced_flagged(self) -> None:
        assert out_of_order([4, 4, 0, 1]) == [0, 1]

    def test_empty_groups_skipped(self) -> None:
        """Missing groups leave gaps in the ranks and break nothing."""
        assert out_of_order([0, 3, 4]) == []

    def test_same_group_swap_is_invariant(self) -> None:
        """Exchanging two imports of the same group never changes the flagged set."""
        ranks = [0, 2, 3, 1, 2, 0, 4]
        baseline = out_of_order(ranks)
        for i, j in itertools.combinations(range(len(ranks)), 2):
            if ranks[i] != ranks[j]:
                continue
            swapped = list(ranks)
            swapped[i], swapped[j] = swapped[j], swapped[i]
            assert out_of_order(swapped) == baseline

    def test_moving_one_import_across_groups(self) -> None:
        """Moving one import out of a correctly ordered block flags exactly one import."""
        ordered = [0, 0, 1, 2, 2, 3, 4]
        for src in range(len(ordered)):
            for dst in range(len(ordered)):
                moved = list(ordered)
                rank = moved.pop(src)
                moved.insert(dst, rank)
                if moved == sorted(moved):
                    continue
                assert len(out_of_order(moved)) == 1, moved
