"""Syntax domain: tree-sitter grammars, IR node types, normalizer, import groups."""

from convlint.syntax.imports import ImportGroup, classify_import, out_of_order
from convlint.syntax.languages import LangConfig, get_lang_config
from convlint.syntax.nodes import (
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
from convlint.syntax.normalizer import normalize, refine_role

__all__ = [
    "ContextDecl",
    "EarlyReturn",
    "FileIR",
    "FunctionDecl",
    "HookCall",
    "IRNode",
    "ImportDecl",
    "ImportGroup",
    "JSXAttribute",
    "JSXElement",
    "LangConfig",
    "Location",
    "ParseError",
    "ReducerCase",
    "StringConcat",
    "StringLiteral",
    "TypeDecl",
    "classify_import",
    "get_lang_config",
    "normalize",
    "out_of_order",
    "refine_role",
]
