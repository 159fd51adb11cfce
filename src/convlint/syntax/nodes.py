"""Intermediate representation: syntax-independent facts about one source file."""

from __future__ import annotations

from dataclasses import dataclass

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

TYPE_KIND_INTERFACE = "interface"
TYPE_KIND_UNION = "union"
TYPE_KIND_ALIAS = "alias"

# Coarse kinds for returned / early-returned expressions.
EXPR_NULL = "null"
EXPR_IDENTIFIER = "identifier"
EXPR_OBJECT = "object"
EXPR_JSX = "jsx"
EXPR_CALL = "call"
EXPR_NONE = "none"  # bare ``return;``
EXPR_OTHER = "other"


@dataclass(frozen=True)
class Location:
    """1-based source position of a node."""

    line: int
    column: int
    end_line: int


# ---------------------------------------------------------------------------
# IR nodes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ImportDecl:
    """``import ... from "source"``."""

    location: Location
    source: str
    is_type_only: bool
    names: tuple[str, ...]


@dataclass(frozen=True)
class FunctionDecl:
    """A top-level function declaration or arrow function bound to a const."""

    location: Location  # opening line of the declaration
    name: str
    is_default_export: bool
    is_exported: bool
    is_arrow: bool
    body_line_count: int  # statement block lines, braces included (0 for expression bodies)
    blank_line_after_brace: bool
    is_anonymous: bool = False  # ``export default () => ...``; named "default"


@dataclass(frozen=True)
class HookCall:
    """A statement-level ``useXxx(...)`` call in a top-level function body."""

    location: Location
    name: str
    function: str  # owning function name
    position_index: int  # statement index within the body
    preceded_by_non_hook: bool


@dataclass(frozen=True)
class EarlyReturn:
    """``if (...) return <expr>`` at the top level of a function body."""

    location: Location
    function: str
    expression_kind: str
    expression: str


@dataclass(frozen=True)
class JSXAttribute:
    """A JSX attribute; *value* is the static string value when there is one."""

    location: Location
    name: str
    value: str | None


@dataclass(frozen=True)
class JSXElement:
    """A JSX element or fragment (``tag_name`` is empty for fragments)."""

    location: Location
    tag_name: str
    attributes: tuple[JSXAttribute, ...]
    children: int  # number of element children


@dataclass(frozen=True)
class ReducerCase:
    """A ``case "X":`` clause of a ``switch (action.type)``."""

    location: Location
    action_type: str
    returned_kind: str
    returned_name: str | None


@dataclass(frozen=True)
class ContextDecl:
    """``const FooContext = createContext(...)``."""

    location: Location
    name: str


@dataclass(frozen=True)
class TypeDecl:
    """An interface or type alias; unions record their ``type`` discriminants."""

    location: Location
    name: str
    kind: str  # "interface" | "union" | "alias"
    action_types: tuple[tuple[str, Location], ...] = ()  # (literal, location) pairs


@dataclass(frozen=True)
class StringConcat:
    """An outermost ``+`` expression with at least one string literal operand."""

    location: Location
    operand_count: int


@dataclass(frozen=True)
class StringLiteral:
    """A quoted string literal (template literals excluded)."""

    location: Location
    value: str
    quote: str  # '"' or "'"


IRNode = (
    ImportDecl
    | FunctionDecl
    | HookCall
    | EarlyReturn
    | JSXElement
    | ReducerCase
    | ContextDecl
    | TypeDecl
    | StringConcat
    | StringLiteral
)


@dataclass(frozen=True)
class FileIR:
    """The normalized form of one source file."""

    path: str
    role: str
    nodes: tuple[IRNode, ...]
    line_count: int

    def of_type(self, node_type: type) -> list:
        """Return the nodes of *node_type* in source order."""
        return [node for node in self.nodes if isinstance(node, node_type)]


@dataclass(frozen=True)
class ParseError:
    """A file that could not be normalized."""

    path: str
    location: Location
    message: str
