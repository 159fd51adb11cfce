"""Import grouping: classify import sources into the documented precedence groups."""

from __future__ import annotations

import bisect
import fnmatch
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from convlint.syntax.nodes import ImportDecl


@dataclass(frozen=True)
class ImportGroup:
    """One import group.  Groups are ranked by their position in a list."""

    name: str
    patterns: tuple[str, ...] = ()  # fnmatch patterns against the import source
    type_only: bool = False  # collects ``import type`` statements
    fallback: bool = False  # catches sources no other group matched


def classify_import(decl: ImportDecl, groups: Sequence[ImportGroup]) -> int | None:
    """Return the rank of the group *decl* belongs to, or ``None``.

    Type-only imports go to the ``type_only`` group regardless of their
    source.  Otherwise the first group with a matching pattern wins, then the
    fallback group.  ``None`` means no group claims the import; such imports
    take no part in ordering.
    """
    if decl.is_type_only:
        for rank, group in enumerate(groups):
            if group.type_only:
                return rank

    for rank, group in enumerate(groups):
        if group.type_only:
            continue
        if any(fnmatch.fnmatchcase(decl.source, pattern) for pattern in group.patterns):
            return rank

    for rank, group in enumerate(groups):
        if group.fallback:
            return rank
    return None


def out_of_order(ranks: Sequence[int]) -> list[int]:
    """Return the indices of *ranks* that break non-decreasing group order.

    The flagged set is the complement of a longest non-decreasing
    subsequence, so moving a single import to the wrong group flags exactly
    that import, and swapping two imports of the same group never changes
    the flagged indices.
    """
    if not ranks:
        return []

    tail_values: list[int] = []
    tail_indices: list[int] = []
    predecessor: list[int | None] = [None] * len(ranks)

    for index, rank in enumerate(ranks):
        pos = bisect.bisect_right(tail_values, rank)
        predecessor[index] = tail_indices[pos - 1] if pos > 0 else None
        if pos == len(tail_values):
            tail_values.append(rank)
            tail_indices.append(index)
        else:
            tail_values[pos] = rank
            tail_indices[pos] = index

    kept: set[int] = set()
    cursor: int | None = tail_indices[-1]
    while cursor is not None:
        kept.add(cursor)
        cursor = predecessor[cursor]

    return [index for index in range(len(ranks)) if index not in kept]
