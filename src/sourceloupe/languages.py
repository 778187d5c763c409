"""Grammar registry: lazily loaded tree-sitter languages keyed by file extension."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from tree_sitter import Language, Parser

if TYPE_CHECKING:
    from collections.abc import Callable

    from tree_sitter import Tree


@dataclass(frozen=True)
class LangConfig:
    """A tree-sitter grammar and the name queries are cached under."""

    name: str
    language: Language


# ---- Language loaders (lazy, handle ImportError) ----


def _load_python() -> LangConfig:
    import tree_sitter_python as tspython

    return LangConfig(name="python", language=Language(tspython.language()))


def _load_typescript() -> LangConfig:
    import tree_sitter_typescript as tstypescript

    return LangConfig(
        name="typescript", language=Language(tstypescript.language_typescript())
    )


def _load_tsx() -> LangConfig:
    import tree_sitter_typescript as tstypescript

    return LangConfig(name="tsx", language=Language(tstypescript.language_tsx()))


def _load_go() -> LangConfig:
    import tree_sitter_go as tsgo

    return LangConfig(name="go", language=Language(tsgo.language()))


def _load_rust() -> LangConfig:
    import tree_sitter_rust as tsrust

    return LangConfig(name="rust", language=Language(tsrust.language()))


# Extension -> loader function mapping.
_EXTENSION_LOADERS: dict[str, Callable[[], LangConfig]] = {
    ".py": _load_python,
    ".ts": _load_typescript,
    ".tsx": _load_tsx,
    ".js": _load_typescript,
    ".jsx": _load_tsx,
    ".go": _load_go,
    ".rs": _load_rust,
}

# Cache for loaded languages (None means "tried and failed / unsupported").
_LANG_CACHE: dict[str, LangConfig | None] = {}


def get_lang_config(extension: str) -> LangConfig | None:
    """Get language config for a file extension, or ``None`` if unsupported/unavailable."""
    if extension in _LANG_CACHE:
        return _LANG_CACHE[extension]

    loader = _EXTENSION_LOADERS.get(extension)
    if loader is None:
        _LANG_CACHE[extension] = None
        return None

    try:
        config = loader()
    except ImportError:
        _LANG_CACHE[extension] = None
        return None

    _LANG_CACHE[extension] = config
    return config


def supported_extensions() -> frozenset[str]:
    """Return the set of file extensions with available grammars."""
    return frozenset(ext for ext in _EXTENSION_LOADERS if get_lang_config(ext) is not None)


def clear_cache() -> None:
    """Clear the language config cache (useful for testing)."""
    _LANG_CACHE.clear()


def parse_source(source: str | bytes, lang: LangConfig) -> Tree:
    """Parse *source* with the grammar in *lang*."""
    content = source.encode("utf-8") if isinstance(source, str) else source
    parser = Parser(lang.language)
    return parser.parse(content)
