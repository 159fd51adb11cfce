"""Tree-sitter grammar selection for TypeScript/JavaScript sources."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from tree_sitter import Language, Parser

if TYPE_CHECKING:
    from collections.abc import Callable


@dataclass(frozen=True)
class LangConfig:
    """Tree-sitter configuration for one grammar."""

    language: Language


def _load_typescript() -> LangConfig:
    import tree_sitter_typescript as tstypescript

    return LangConfig(language=Language(tstypescript.language_typescript()))


def _load_tsx() -> LangConfig:
    import tree_sitter_typescript as tstypescript

    return LangConfig(language=Language(tstypescript.language_tsx()))


# Extension -> loader function mapping.  Plain ``.js`` files commonly contain
# JSX in React projects, so they use the TSX grammar too.
_EXTENSION_LOADERS: dict[str, Callable[[], LangConfig]] = {
    ".ts": _load_typescript,
    ".tsx": _load_tsx,
    ".js": _load_tsx,
    ".jsx": _load_tsx,
}

# Languages are immutable and shareable across threads; parsers are not.
_LANG_CACHE: dict[str, LangConfig | None] = {}


def get_lang_config(extension: str) -> LangConfig | None:
    """Get language config for a file extension, or ``None`` if unsupported."""
    if extension in _LANG_CACHE:
        return _LANG_CACHE[extension]

    loader = _EXTENSION_LOADERS.get(extension)
    config = loader() if loader is not None else None
    _LANG_CACHE[extension] = config
    return config


def new_parser(config: LangConfig) -> Parser:
    """Return a fresh parser; parsers must not be shared between threads."""
    return Parser(config.language)
