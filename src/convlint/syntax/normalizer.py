"""AST normalizer: parse a source file with tree-sitter and extract its IR."""

from __future__ import annotations

import dataclasses
import re
from pathlib import PurePosixPath
from typing import TYPE_CHECKING

from convlint.sources.roles import ROLE_COMPONENT, ROLE_SUB_COMPONENT
from convlint.syntax.languages import get_lang_config, new_parser
from convlint.syntax.nodes import (
    EXPR_CALL,
    EXPR_IDENTIFIER,
    EXPR_JSX,
    EXPR_NONE,
    EXPR_NULL,
    EXPR_OBJECT,
    EXPR_OTHER,
    TYPE_KIND_ALIAS,
    TYPE_KIND_INTERFACE,
    TYPE_KIND_UNION,
    ContextDecl,
    EarlyReturn,
    FileIR,
    FunctionDecl,
    HookCall,
    ImportDecl,
    IRNode,
    JSXAttribute,
    JSXElement,
    Location,
    ParseError,
    ReducerCase,
    StringConcat,
    StringLiteral,
    TypeDecl,
)

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from tree_sitter import Node as TSNode

    from convlint.sources.loader import SourceFile

_HOOK_NAME_RE = re.compile(r"^use[A-Z0-9]")
_PASCAL_RE = re.compile(r"^[A-Z][A-Za-z0-9]*$")
_TEMPLATE_SUBST_RE = re.compile(r"\$\{[^}]*\}")

_FUNCTION_VALUE_TYPES = frozenset({"arrow_function", "function_expression", "function"})
_DECLARATION_TYPES = frozenset({"lexical_declaration", "variable_declaration"})
_JSX_TYPES = frozenset({"jsx_element", "jsx_self_closing_element", "jsx_fragment"})


# ---------------------------------------------------------------------------
# Small tree helpers
# ---------------------------------------------------------------------------


def _text(node: TSNode | None) -> str:
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf-8")


def _location(node: TSNode, line_count: int, rows: Sequence[bytes] = ()) -> Location:
    # tree-sitter rows are 0-based; keep end_line inside the file's bounds.
    row, column = node.start_point.row, node.start_point.column
    line = min(row + 1, line_count)
    end_line = min(max(node.end_point.row + 1, line), line_count)
    if row < len(rows):
        # tree-sitter columns count UTF-8 bytes, report characters.
        column = len(rows[row][:column].decode("utf-8", "ignore"))
    return Location(line=line, column=column + 1, end_line=end_line)


def _strip_quotes(text: str) -> str:
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "\"'`":
        return text[1:-1]
    return text


def _unwrap_parens(node: TSNode | None) -> TSNode | None:
    while node is not None and node.type == "parenthesized_expression" and node.named_children:
        node = node.named_children[0]
    return node


def _walk(root: TSNode) -> Iterator[TSNode]:
    """Yield every node of the tree in source (pre-)order."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def _first_error(root: TSNode) -> TSNode:
    for node in _walk(root):
        if node.type == "ERROR" or node.is_missing:
            return node
    return root


def _expression_kind(node: TSNode | None) -> str:
    node = _unwrap_parens(node)
    if node is None:
        return EXPR_NONE
    if node.type == "null":
        return EXPR_NULL
    if node.type == "identifier":
        return EXPR_IDENTIFIER
    if node.type == "object":
        return EXPR_OBJECT
    if node.type in _JSX_TYPES:
        return EXPR_JSX
    if node.type == "call_expression":
        return EXPR_CALL
    return EXPR_OTHER


def _callee_name(call: TSNode) -> str:
    """Return the called name: ``foo`` for ``foo()``, ``bar`` for ``x.bar()``."""
    callee = call.child_by_field_name("function")
    if callee is None:
        return ""
    if callee.type == "member_expression":
        return _text(callee.child_by_field_name("property"))
    return _text(callee)


def _is_hook_call(node: TSNode | None) -> bool:
    if node is None:
        return False
    if node.type == "await_expression" and node.named_children:
        node = node.named_children[0]
    return node.type == "call_expression" and bool(_HOOK_NAME_RE.match(_callee_name(node)))


def _statement_hook_calls(stmt: TSNode) -> list[TSNode]:
    """Return the hook call nodes a body-level statement consists of."""
    if stmt.type == "expression_statement" and stmt.named_children:
        expr = stmt.named_children[0]
        return [expr] if _is_hook_call(expr) else []
    if stmt.type in _DECLARATION_TYPES:
        calls: list[TSNode] = []
        for declarator in stmt.named_children:
            if declarator.type != "variable_declarator":
                continue
            value = declarator.child_by_field_name("value")
            if _is_hook_call(value):
                calls.append(value)
        return calls
    return []


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------


class _IRBuilder:
    """Collects IR nodes for one file."""

    def __init__(self, source: SourceFile, data: bytes, line_count: int) -> None:
        self.source = source
        self.lines = source.text.split("\n")
        self.rows = data.split(b"\n")
        self.line_count = line_count
        self.nodes: list[IRNode] = []
        self.functions: list[FunctionDecl] = []
        self._default_names: set[str] = set()
        self._exported_names: set[str] = set()

    def loc(self, node: TSNode) -> Location:
        return _location(node, self.line_count, self.rows)

    # -- top level -----------------------------------------------------------

    def visit_program(self, root: TSNode) -> None:
        for child in root.named_children:
            self._visit_top_level(child, statement=child)
        self._walk_expressions(root)
        self._apply_export_clauses()
        self.nodes.extend(self.functions)

    def _visit_top_level(
        self,
        node: TSNode,
        *,
        statement: TSNode,
        exported: bool = False,
        default: bool = False,
    ) -> None:
        kind = node.type
        if kind == "import_statement":
            self._add_import(node)
        elif kind == "export_statement":
            self._visit_export(node)
        elif kind == "function_declaration":
            name = _text(node.child_by_field_name("name"))
            self._add_function(name, node, statement, exported=exported, default=default)
        elif kind in _DECLARATION_TYPES:
            self._visit_declaration(node, statement, exported=exported)
        elif kind == "interface_declaration":
            self._add_type(node, statement)
        elif kind == "type_alias_declaration":
            self._add_type(node, statement)

    def _visit_export(self, node: TSNode) -> None:
        is_default = any(child.type == "default" for child in node.children)
        declaration = node.child_by_field_name("declaration")
        if declaration is not None:
            self._visit_top_level(
                declaration, statement=node, exported=True, default=is_default
            )
            return

        value = _unwrap_parens(node.child_by_field_name("value"))
        if value is not None:
            if value.type == "identifier":
                self._default_names.add(_text(value))
            elif value.type in _FUNCTION_VALUE_TYPES:
                name = _text(value.child_by_field_name("name"))
                self._add_function(name, value, node, exported=True, default=True)
            return

        for child in node.named_children:
            if child.type != "export_clause":
                continue
            for spec in child.named_children:
                if spec.type != "export_specifier":
                    continue
                local = _text(spec.child_by_field_name("name"))
                alias = _text(spec.child_by_field_name("alias"))
                if alias == "default":
                    self._default_names.add(local)
                else:
                    self._exported_names.add(local)

    def _visit_declaration(self, node: TSNode, statement: TSNode, *, exported: bool) -> None:
        for declarator in node.named_children:
            if declarator.type != "variable_declarator":
                continue
            name = _text(declarator.child_by_field_name("name"))
            value = _unwrap_parens(declarator.child_by_field_name("value"))
            if value is None:
                continue
            if value.type in _FUNCTION_VALUE_TYPES:
                self._add_function(name, value, statement, exported=exported, default=False)
            elif value.type == "call_expression" and _callee_name(value) == "createContext":
                self.nodes.append(ContextDecl(location=self.loc(statement), name=name))

    def _apply_export_clauses(self) -> None:
        """Fold ``export default Foo`` / ``export { Foo }`` into the declarations."""
        if not self._default_names and not self._exported_names:
            return
        updated: list[FunctionDecl] = []
        for fn in self.functions:
            if fn.name in self._default_names:
                fn = dataclasses.replace(fn, is_default_export=True, is_exported=True)
            elif fn.name in self._exported_names:
                fn = dataclasses.replace(fn, is_exported=True)
            updated.append(fn)
        self.functions = updated

    # -- imports ---------------------------------------------------------------

    def _add_import(self, node: TSNode) -> None:
        source_node = node.child_by_field_name("source")
        if source_node is None:
            source_node = next((c for c in node.children if c.type == "string"), None)
        if source_node is None:
            return
        is_type_only = any(child.type == "type" for child in node.children)
        names: list[str] = []
        for clause in node.named_children:
            if clause.type != "import_clause":
                continue
            for item in _walk(clause):
                if item.type == "identifier" and item.parent is not None:
                    parent_type = item.parent.type
                    if parent_type == "import_specifier":
                        # ``{ a as b }``: the local binding is the last identifier.
                        if item == item.parent.named_children[-1]:
                            names.append(_text(item))
                    else:
                        names.append(_text(item))
        self.nodes.append(
            ImportDecl(
                location=self.loc(node),
                source=_strip_quotes(_text(source_node)),
                is_type_only=is_type_only,
                names=tuple(names),
            )
        )

    # -- functions -------------------------------------------------------------

    def _add_function(
        self,
        name: str,
        fn_node: TSNode,
        statement: TSNode,
        *,
        exported: bool,
        default: bool,
    ) -> None:
        anonymous = not name
        if anonymous:
            name = "default"
        body = fn_node.child_by_field_name("body")
        body_line_count = 0
        blank_after_brace = False
        if body is not None and body.type == "statement_block":
            body_line_count = body.end_point.row - body.start_point.row + 1
            next_row = body.start_point.row + 1
            blank_after_brace = (
                next_row < body.end_point.row
                and next_row < len(self.lines)
                and not self.lines[next_row].strip()
            )
            self._visit_body(name, body)

        self.functions.append(
            FunctionDecl(
                location=self.loc(statement),
                name=name,
                is_default_export=default,
                is_exported=exported or default,
                is_arrow=fn_node.type == "arrow_function",
                body_line_count=body_line_count,
                blank_line_after_brace=blank_after_brace,
                is_anonymous=anonymous,
            )
        )

    def _visit_body(self, function: str, body: TSNode) -> None:
        statements = [child for child in body.named_children if child.type != "comment"]
        seen_non_hook = False
        for index, stmt in enumerate(statements):
            calls = _statement_hook_calls(stmt)
            for call in calls:
                if call.type == "await_expression":
                    call = call.named_children[0]
                self.nodes.append(
                    HookCall(
                        location=self.loc(call),
                        name=_callee_name(call),
                        function=function,
                        position_index=index,
                        preceded_by_non_hook=seen_non_hook,
                    )
                )
            if stmt.type == "if_statement":
                self._add_early_returns(function, stmt)
            if not calls:
                seen_non_hook = True

    def _add_early_returns(self, function: str, if_stmt: TSNode) -> None:
        consequence = if_stmt.child_by_field_name("consequence")
        if consequence is None:
            return
        candidates = (
            consequence.named_children if consequence.type == "statement_block" else [consequence]
        )
        for stmt in candidates:
            if stmt.type != "return_statement":
                continue
            expr = stmt.named_children[0] if stmt.named_children else None
            self.nodes.append(
                EarlyReturn(
                    location=self.loc(stmt),
                    function=function,
                    expression_kind=_expression_kind(expr),
                    expression=_text(expr),
                )
            )

    # -- types -----------------------------------------------------------------

    def _add_type(self, node: TSNode, statement: TSNode) -> None:
        name = _text(node.child_by_field_name("name"))
        if node.type == "interface_declaration":
            self.nodes.append(
                TypeDecl(location=self.loc(statement), name=name, kind=TYPE_KIND_INTERFACE)
            )
            return

        value = node.child_by_field_name("value")
        if value is None or value.type != "union_type":
            self.nodes.append(
                TypeDecl(location=self.loc(statement), name=name, kind=TYPE_KIND_ALIAS)
            )
            return

        action_types: list[tuple[str, Location]] = []
        for item in _walk(value):
            if item.type != "property_signature":
                continue
            if _text(item.child_by_field_name("name")) != "type":
                continue
            for literal in _walk(item):
                if literal.type == "string":
                    action_types.append((_strip_quotes(_text(literal)), self.loc(item)))
                    break
        self.nodes.append(
            TypeDecl(
                location=self.loc(statement),
                name=name,
                kind=TYPE_KIND_UNION,
                action_types=tuple(action_types),
            )
        )

    # -- whole-tree facts ------------------------------------------------------

    def _walk_expressions(self, root: TSNode) -> None:
        for node in _walk(root):
            kind = node.type
            if kind == "jsx_element":
                opening = node.child_by_field_name("open_tag") or next(
                    (c for c in node.named_children if c.type == "jsx_opening_element"), None
                )
                self._add_jsx(node, opening)
            elif kind == "jsx_self_closing_element":
                self._add_jsx(node, node)
            elif kind == "switch_statement":
                self._add_reducer_cases(node)
            elif kind == "binary_expression":
                self._add_concat(node)
            elif kind == "string":
                self._add_string(node)

    def _add_jsx(self, element: TSNode, opening: TSNode | None) -> None:
        if opening is None:
            return
        tag_name = _text(opening.child_by_field_name("name"))
        attributes: list[JSXAttribute] = []
        for attr in opening.named_children:
            if attr.type != "jsx_attribute" or not attr.named_children:
                continue
            attr_name = _text(attr.named_children[0])
            value_node = attr.named_children[1] if len(attr.named_children) > 1 else None
            attributes.append(
                JSXAttribute(
                    location=self.loc(attr),
                    name=attr_name,
                    value=self._static_value(value_node),
                )
            )
        children = sum(1 for c in element.named_children if c.type in _JSX_TYPES)
        self.nodes.append(
            JSXElement(
                location=self.loc(element),
                tag_name=tag_name,
                attributes=tuple(attributes),
                children=children,
            )
        )

    @staticmethod
    def _static_value(node: TSNode | None) -> str | None:
        if node is None:
            return None
        if node.type == "jsx_expression" and node.named_children:
            node = node.named_children[0]
        if node.type == "string":
            return _strip_quotes(_text(node))
        if node.type == "template_string":
            return _TEMPLATE_SUBST_RE.sub(" ", _strip_quotes(_text(node)))
        return None

    def _add_reducer_cases(self, switch: TSNode) -> None:
        discriminant = _unwrap_parens(switch.child_by_field_name("value"))
        if discriminant is None or discriminant.type != "member_expression":
            return
        if _text(discriminant.child_by_field_name("property")) != "type":
            return
        body = switch.child_by_field_name("body")
        if body is None:
            return
        for case in body.named_children:
            if case.type != "switch_case":
                continue
            value = case.child_by_field_name("value")
            if value is None:
                continue
            if value.type == "member_expression":
                action_type = _text(value.child_by_field_name("property"))
            else:
                action_type = _strip_quotes(_text(value))

            returned = self._case_return(case, value)
            returned_expr = (
                returned.named_children[0] if returned and returned.named_children else None
            )
            returned_kind = _expression_kind(returned_expr) if returned is not None else EXPR_NONE
            unwrapped = _unwrap_parens(returned_expr)
            returned_name = (
                _text(unwrapped)
                if unwrapped is not None and unwrapped.type == "identifier"
                else None
            )
            self.nodes.append(
                ReducerCase(
                    location=self.loc(case),
                    action_type=action_type,
                    returned_kind=returned_kind,
                    returned_name=returned_name,
                )
            )

    @staticmethod
    def _case_return(case: TSNode, value: TSNode) -> TSNode | None:
        for stmt in case.named_children:
            if stmt == value:
                continue
            if stmt.type == "return_statement":
                return stmt
            if stmt.type == "statement_block":
                for inner in stmt.named_children:
                    if inner.type == "return_statement":
                        return inner
        return None

    def _add_concat(self, node: TSNode) -> None:
        if _text(node.child_by_field_name("operator")) != "+":
            return
        parent = node.parent
        while parent is not None and parent.type == "parenthesized_expression":
            parent = parent.parent
        if (
            parent is not None
            and parent.type == "binary_expression"
            and _text(parent.child_by_field_name("operator")) == "+"
        ):
            return

        operands: list[TSNode] = []
        stack = [node]
        while stack:
            current = _unwrap_parens(stack.pop())
            if current is None:
                continue
            if (
                current.type == "binary_expression"
                and _text(current.child_by_field_name("operator")) == "+"
            ):
                stack.append(current.child_by_field_name("right"))
                stack.append(current.child_by_field_name("left"))
            else:
                operands.append(current)
        if any(op.type == "string" for op in operands):
            self.nodes.append(StringConcat(location=self.loc(node), operand_count=len(operands)))

    def _add_string(self, node: TSNode) -> None:
        raw = _text(node)
        if not raw or raw[0] not in "\"'":
            return
        self.nodes.append(
            StringLiteral(location=self.loc(node), value=_strip_quotes(raw), quote=raw[0])
        )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def refine_role(role: str, functions: list[FunctionDecl]) -> str:
    """Tell component entries (default export) apart from sub-component files."""
    if role != ROLE_COMPONENT:
        return role
    if any(fn.is_default_export for fn in functions):
        return ROLE_COMPONENT
    if any(fn.is_exported and fn.is_arrow and _PASCAL_RE.match(fn.name) for fn in functions):
        return ROLE_SUB_COMPONENT
    return ROLE_COMPONENT


def normalize(source: SourceFile) -> FileIR | ParseError:
    """Parse *source* and return its IR, or a :class:`ParseError`.

    A file with any syntax error yields a ParseError located at the first
    error node and no IR at all.
    """
    line_count = max(len(source.text.splitlines()), 1)
    suffix = PurePosixPath(source.path).suffix
    config = get_lang_config(suffix)
    if config is None:
        return ParseError(
            path=source.path,
            location=Location(line=1, column=1, end_line=1),
            message=f"Unsupported file extension '{suffix}'",
        )

    data = source.text.encode("utf-8")
    tree = new_parser(config).parse(data)
    root = tree.root_node
    if root.has_error:
        bad = _first_error(root)
        what = f"missing '{bad.type}'" if bad.is_missing else "unexpected syntax"
        return ParseError(
            path=source.path,
            location=_location(bad, line_count, data.split(b"\n")),
            message=f"Syntax error: {what}",
        )

    builder = _IRBuilder(source, data, line_count)
    builder.visit_program(root)
    nodes = sorted(builder.nodes, key=lambda n: (n.location.line, n.location.column))
    return FileIR(
        path=source.path,
        role=refine_role(source.role, builder.functions),
        nodes=tuple(nodes),
        line_count=line_count,
    )
