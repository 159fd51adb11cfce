"""Predicate kinds: the checks a catalog rule can select with ``check.kind``.

Each kind is a pure function ``(FileIR, params) -> Iterable[Finding]``
registered in :data:`PREDICATES` together with the parameters it accepts and
the template fields its findings provide.  Catalog entries combine a kind
with parameters, target roles and a message; adding a convention is a
catalog edit, not an engine change.
"""

from __future__ import annotations

import fnmatch
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from convlint.syntax.imports import ImportGroup, classify_import, out_of_order
from convlint.syntax.nodes import (
    EXPR_IDENTIFIER,
    ContextDecl,
    EarlyReturn,
    FunctionDecl,
    HookCall,
    ImportDecl,
    JSXElement,
    Location,
    ReducerCase,
    StringConcat,
    StringLiteral,
    TypeDecl,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator, Mapping

    from convlint.syntax.nodes import FileIR

_REQUIRED = object()

PASCAL_CASE = r"^[A-Z][A-Za-z0-9]*$"
SCREAMING_SNAKE_CASE = r"^[A-Z][A-Z0-9]*(?:_[A-Z0-9]+)*$"


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Finding:
    """One offending node: where it is and the values for the message template."""

    location: Location
    fields: Mapping[str, object] = field(default_factory=dict)


@dataclass(frozen=True)
class Param:
    """Accepted parameter: expected YAML type and default."""

    kind: type
    default: object = _REQUIRED
    choices: tuple[str, ...] | None = None

    @property
    def required(self) -> bool:
        return self.default is _REQUIRED


@dataclass(frozen=True)
class PredicateKind:
    """A registered check implementation."""

    name: str
    func: Callable[[FileIR, Mapping[str, Any]], Iterable[Finding]]
    params: Mapping[str, Param]
    fields: frozenset[str]
    prepare: Callable[[dict[str, Any]], dict[str, Any]] | None = None


PREDICATES: dict[str, PredicateKind] = {}


def predicate(
    name: str,
    *,
    params: Mapping[str, Param] | None = None,
    fields: Iterable[str] = (),
    prepare: Callable[[dict[str, Any]], dict[str, Any]] | None = None,
) -> Callable[
    [Callable[[FileIR, Mapping[str, Any]], Iterable[Finding]]],
    Callable[[FileIR, Mapping[str, Any]], Iterable[Finding]],
]:
    """Register a predicate kind under *name*."""

    def decorator(
        func: Callable[[FileIR, Mapping[str, Any]], Iterable[Finding]],
    ) -> Callable[[FileIR, Mapping[str, Any]], Iterable[Finding]]:
        PREDICATES[name] = PredicateKind(
            name=name,
            func=func,
            params=dict(params or {}),
            fields=frozenset(fields),
            prepare=prepare,
        )
        return func

    return decorator


# ---------------------------------------------------------------------------
# Parameter preparation
# ---------------------------------------------------------------------------


def _compile(params: dict[str, Any], *keys: str) -> dict[str, Any]:
    for key in keys:
        value = params.get(key)
        if value is None:
            continue
        try:
            params[key] = re.compile(value)
        except re.error as exc:
            msg = f"'{key}' is not a valid regular expression: {exc}"
            raise ValueError(msg) from exc
    return params


def _prepare_import_groups(params: dict[str, Any]) -> dict[str, Any]:
    groups: list[ImportGroup] = []
    seen: set[str] = set()
    for idx, raw in enumerate(params["groups"]):
        if not isinstance(raw, dict):
            msg = f"import group at index {idx} must be a mapping"
            raise ValueError(msg)
        name = raw.get("name")
        if not isinstance(name, str) or not name.strip():
            msg = f"import group at index {idx} missing required 'name' field"
            raise ValueError(msg)
        if name in seen:
            msg = f"duplicate import group '{name}'"
            raise ValueError(msg)
        seen.add(name)
        patterns = raw.get("patterns", [])
        if not isinstance(patterns, list):
            msg = f"import group '{name}': 'patterns' must be a list"
            raise ValueError(msg)
        groups.append(
            ImportGroup(
                name=name,
                patterns=tuple(str(p) for p in patterns),
                type_only=bool(raw.get("type_only", False)),
                fallback=bool(raw.get("fallback", False)),
            )
        )
    if sum(1 for g in groups if g.fallback) > 1:
        msg = "at most one import group may set 'fallback'"
        raise ValueError(msg)
    params["groups"] = tuple(groups)
    return params


# ---------------------------------------------------------------------------
# Naming
# ---------------------------------------------------------------------------

_NAMED_NODES: dict[str, type] = {
    "function": FunctionDecl,
    "context": ContextDecl,
    "type": TypeDecl,
}


@predicate(
    "name_pattern",
    params={
        "node": Param(str, choices=tuple(_NAMED_NODES)),
        "pattern": Param(str),
        "exported_only": Param(bool, False),
    },
    fields=("name", "node", "pattern"),
    prepare=lambda p: _compile(p, "pattern"),
)
def check_name_pattern(ir: FileIR, params: Mapping[str, Any]) -> Iterator[Finding]:
    """Declared names of one node kind must match a regular expression."""
    pattern: re.Pattern[str] = params["pattern"]
    for node in ir.of_type(_NAMED_NODES[params["node"]]):
        if params["exported_only"] and not getattr(node, "is_exported", True):
            continue
        if getattr(node, "is_anonymous", False):
            continue
        if not pattern.search(node.name):
            yield Finding(
                node.location,
                {"name": node.name, "node": params["node"], "pattern": pattern.pattern},
            )


@predicate(
    "file_name",
    params={"pattern": Param(str), "exempt": Param(list, ["index"])},
    fields=("name", "pattern"),
    prepare=lambda p: _compile(p, "pattern"),
)
def check_file_name(ir: FileIR, params: Mapping[str, Any]) -> Iterator[Finding]:
    """The file name (without extensions) must match a regular expression."""
    stem = ir.path.rsplit("/", 1)[-1].split(".", 1)[0]
    if stem in params["exempt"]:
        return
    pattern: re.Pattern[str] = params["pattern"]
    if not pattern.search(stem):
        yield Finding(
            Location(line=1, column=1, end_line=1),
            {"name": stem, "pattern": pattern.pattern},
        )


@predicate(
    "action_type_case",
    params={"pattern": Param(str, SCREAMING_SNAKE_CASE), "include_unions": Param(bool, True)},
    fields=("action_type", "pattern"),
    prepare=lambda p: _compile(p, "pattern"),
)
def check_action_type_case(ir: FileIR, params: Mapping[str, Any]) -> Iterator[Finding]:
    """Action ``type`` literals must be SCREAMING_SNAKE_CASE.

    A misnamed action is reported once: at its reducer case when the file
    handles it, otherwise at its declaration in a discriminated union.
    """
    pattern: re.Pattern[str] = params["pattern"]
    cases: list[ReducerCase] = ir.of_type(ReducerCase)
    handled = {case.action_type for case in cases}
    for case in cases:
        if not pattern.search(case.action_type):
            yield Finding(
                case.location, {"action_type": case.action_type, "pattern": pattern.pattern}
            )
    if not params["include_unions"]:
        return
    for decl in ir.of_type(TypeDecl):
        for literal, location in decl.action_types:
            if literal not in handled and not pattern.search(literal):
                yield Finding(location, {"action_type": literal, "pattern": pattern.pattern})


# ---------------------------------------------------------------------------
# Imports
# ---------------------------------------------------------------------------


@predicate(
    "import_order",
    params={"groups": Param(list)},
    fields=("group", "position", "other_group"),
    prepare=_prepare_import_groups,
)
def check_import_order(ir: FileIR, params: Mapping[str, Any]) -> Iterator[Finding]:
    """Imports must follow the documented group precedence.

    Only the imports outside a longest correctly ordered subsequence are
    reported, one finding each.  Groups with no imports are simply absent
    from the sequence.
    """
    groups: tuple[ImportGroup, ...] = params["groups"]
    ranked: list[tuple[ImportDecl, int]] = []
    for decl in ir.of_type(ImportDecl):
        rank = classify_import(decl, groups)
        if rank is not None:
            ranked.append((decl, rank))

    ranks = [rank for _, rank in ranked]
    flagged = set(out_of_order(ranks))
    for index in sorted(flagged):
        decl, rank = ranked[index]
        position, other = _misplacement(ranks, flagged, index)
        yield Finding(
            decl.location,
            {"group": groups[rank].name, "position": position, "other_group": groups[other].name},
        )


def _misplacement(ranks: list[int], flagged: set[int], index: int) -> tuple[str, int]:
    """Describe where the import at *index* belongs relative to a kept neighbour."""
    rank = ranks[index]
    for prev in range(index - 1, -1, -1):
        if prev not in flagged and ranks[prev] > rank:
            return "before", ranks[prev]
    for nxt in range(index + 1, len(ranks)):
        if nxt not in flagged and ranks[nxt] < rank:
            return "after", ranks[nxt]
    return "before", rank


@predicate(
    "forbid_import",
    params={"patterns": Param(list)},
    fields=("source", "pattern"),
)
def check_forbid_import(ir: FileIR, params: Mapping[str, Any]) -> Iterator[Finding]:
    """Import sources matching any glob pattern are forbidden."""
    for decl in ir.of_type(ImportDecl):
        for pattern in params["patterns"]:
            if fnmatch.fnmatchcase(decl.source, pattern):
                yield Finding(decl.location, {"source": decl.source, "pattern": pattern})
                break


# ---------------------------------------------------------------------------
# Component shape and hooks
# ---------------------------------------------------------------------------


@predicate("hook_position", fields=("name", "function", "position"))
def check_hook_position(ir: FileIR, params: Mapping[str, Any]) -> Iterator[Finding]:
    """Hooks must be called before any other statement of the function body."""
    for call in ir.of_type(HookCall):
        if call.preceded_by_non_hook:
            yield Finding(
                call.location,
                {"name": call.name, "function": call.function, "position": call.position_index},
            )


@predicate(
    "early_return",
    params={"expected": Param(list, ["null"]), "function_pattern": Param(str, PASCAL_CASE)},
    fields=("function", "expression", "expected"),
    prepare=lambda p: _compile(p, "function_pattern"),
)
def check_early_return(ir: FileIR, params: Mapping[str, Any]) -> Iterator[Finding]:
    """Early returns in matching functions must return one of the expected kinds."""
    function_pattern: re.Pattern[str] = params["function_pattern"]
    expected = params["expected"]
    defaults = {fn.name for fn in ir.of_type(FunctionDecl) if fn.is_default_export}
    for ret in ir.of_type(EarlyReturn):
        if ret.function not in defaults and not function_pattern.search(ret.function):
            continue
        if ret.expression_kind not in expected:
            yield Finding(
                ret.location,
                {
                    "function": ret.function,
                    "expression": ret.expression or "nothing",
                    "expected": " or ".join(expected),
                },
            )


def _selected_functions(ir: FileIR, params: Mapping[str, Any]) -> Iterator[FunctionDecl]:
    """Functions matching ``name_pattern``, plus the default export whatever its name."""
    name_pattern: re.Pattern[str] = params["name_pattern"]
    for fn in ir.of_type(FunctionDecl):
        if params["exported_only"] and not fn.is_exported:
            continue
        if fn.is_default_export or name_pattern.search(fn.name):
            yield fn


@predicate(
    "function_body",
    params={
        "min_lines": Param(int, 4),
        "require_blank_line": Param(bool, True),
        "name_pattern": Param(str, PASCAL_CASE),
        "exported_only": Param(bool, True),
    },
    fields=("name", "lines", "min_lines", "problems"),
    prepare=lambda p: _compile(p, "name_pattern"),
)
def check_function_body(ir: FileIR, params: Mapping[str, Any]) -> Iterator[Finding]:
    """Component bodies must span at least ``min_lines`` (inclusive) and open with a blank line.

    At most one finding per function, located at its opening line.
    """
    min_lines: int = params["min_lines"]
    for fn in _selected_functions(ir, params):
        problems: list[str] = []
        if fn.body_line_count < min_lines:
            problems.append(f"body spans {fn.body_line_count} lines, minimum is {min_lines}")
        if params["require_blank_line"] and not fn.blank_line_after_brace:
            problems.append("no blank line after the opening brace")
        if problems:
            yield Finding(
                fn.location,
                {
                    "name": fn.name,
                    "lines": fn.body_line_count,
                    "min_lines": min_lines,
                    "problems": "; ".join(problems),
                },
            )


@predicate(
    "function_form",
    params={
        "form": Param(str, choices=("arrow", "declaration")),
        "name_pattern": Param(str, PASCAL_CASE),
        "exported_only": Param(bool, True),
        "include_default_export": Param(bool, False),
    },
    fields=("name", "form"),
    prepare=lambda p: _compile(p, "name_pattern"),
)
def check_function_form(ir: FileIR, params: Mapping[str, Any]) -> Iterator[Finding]:
    """Matching functions must be written as arrow functions or as declarations."""
    want_arrow = params["form"] == "arrow"
    for fn in _selected_functions(ir, params):
        if fn.is_default_export and not params["include_default_export"]:
            continue
        if fn.is_arrow != want_arrow:
            yield Finding(fn.location, {"name": fn.name, "form": params["form"]})


# ---------------------------------------------------------------------------
# JSX
# ---------------------------------------------------------------------------


@predicate(
    "class_order",
    params={
        "attributes": Param(list, ["className", "class"]),
        "responsive_prefixes": Param(list, ["sm", "md", "lg", "xl", "2xl"]),
    },
    fields=("tag", "attribute", "token"),
)
def check_class_order(ir: FileIR, params: Mapping[str, Any]) -> Iterator[Finding]:
    """Responsive class tokens come after base tokens, in breakpoint order.

    One finding per offending attribute, located at the attribute and naming
    the first misplaced token.
    """
    breakpoints = {prefix: rank for rank, prefix in enumerate(params["responsive_prefixes"])}
    for element in ir.of_type(JSXElement):
        for attr in element.attributes:
            if attr.name not in params["attributes"] or not attr.value:
                continue
            token = _first_misplaced_token(attr.value.split(), breakpoints)
            if token is not None:
                yield Finding(
                    attr.location,
                    {"tag": element.tag_name or "<>", "attribute": attr.name, "token": token},
                )


def _first_misplaced_token(tokens: list[str], breakpoints: Mapping[str, int]) -> str | None:
    highest = -1
    for token in tokens:
        if ":" not in token:
            if highest >= 0:
                return token
            continue
        rank = breakpoints.get(token.split(":", 1)[0])
        if rank is None:
            # State variants (hover:, focus:) are not ordered.
            continue
        if rank < highest:
            return token
        highest = rank
    return None


# ---------------------------------------------------------------------------
# Reducers
# ---------------------------------------------------------------------------


@predicate(
    "reset_returns_initial",
    params={
        "action_types": Param(list, ["RESET_CTX"]),
        "initial_pattern": Param(str, r"(?i)initial"),
    },
    fields=("action_type", "returned"),
    prepare=lambda p: _compile(p, "initial_pattern"),
)
def check_reset_returns_initial(ir: FileIR, params: Mapping[str, Any]) -> Iterator[Finding]:
    """A reset case must return the published initial state itself, not a copy."""
    initial_pattern: re.Pattern[str] = params["initial_pattern"]
    for case in ir.of_type(ReducerCase):
        if case.action_type not in params["action_types"]:
            continue
        if (
            case.returned_kind == EXPR_IDENTIFIER
            and case.returned_name is not None
            and initial_pattern.search(case.returned_name)
        ):
            continue
        yield Finding(
            case.location,
            {
                "action_type": case.action_type,
                "returned": case.returned_name or case.returned_kind,
            },
        )


# ---------------------------------------------------------------------------
# Strings
# ---------------------------------------------------------------------------


@predicate("template_literal", params={"min_operands": Param(int, 2)}, fields=("operands",))
def check_template_literal(ir: FileIR, params: Mapping[str, Any]) -> Iterator[Finding]:
    """String building with ``+`` should use a template literal instead."""
    for concat in ir.of_type(StringConcat):
        if concat.operand_count >= params["min_operands"]:
            yield Finding(concat.location, {"operands": concat.operand_count})


_QUOTES = {"double": '"', "single": "'"}


@predicate(
    "quote_style",
    params={"quote": Param(str, "double", choices=tuple(_QUOTES))},
    fields=("value", "expected"),
)
def check_quote_style(ir: FileIR, params: Mapping[str, Any]) -> Iterator[Finding]:
    """String literals use the preferred quote unless the value contains it."""
    wanted = _QUOTES[params["quote"]]
    for literal in ir.of_type(StringLiteral):
        if literal.quote != wanted and wanted not in literal.value:
            yield Finding(literal.location, {"value": literal.value, "expected": params["quote"]})
