"""Compiled query boundary: captures, matches, pattern selection, tree-sitter adapter."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol

from tree_sitter import Query, QueryCursor, QueryError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from tree_sitter import Language
    from tree_sitter import Node as TSNode

DEFAULT_CAPTURE_NAME = "target"

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class QueryCompileError(ValueError):
    """Raised when a query string cannot be compiled for a language."""


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Capture:
    """A named binding of a query pattern to a matched node."""

    name: str
    node: Any


@dataclass(frozen=True)
class Match:
    """One instantiation of one pattern, with its own captures."""

    pattern_index: int
    captures: tuple[Capture, ...]


@dataclass(frozen=True)
class AllPatterns:
    """Select captures from every pattern of a query, ignoring match boundaries."""

    def __repr__(self) -> str:
        return "ALL_PATTERNS"


@dataclass(frozen=True)
class PatternIndex:
    """Select captures only from matches of the pattern at ``index``."""

    index: int


ALL_PATTERNS = AllPatterns()

PatternSelector = AllPatterns | PatternIndex


def as_pattern_selector(value: PatternSelector | int | None) -> PatternSelector:
    """Normalize a pattern argument into a :data:`PatternSelector`.

    ``None`` and ``-1`` both mean "all patterns".  Any other integer is taken
    as a literal pattern index, so a negative index other than ``-1`` simply
    selects nothing.
    """
    if value is None:
        return ALL_PATTERNS
    if isinstance(value, (AllPatterns, PatternIndex)):
        return value
    if value == -1:
        return ALL_PATTERNS
    return PatternIndex(int(value))


class CompiledQuery(Protocol):
    """Anything that can execute a structural query against a root node."""

    def matches(self, root: Any) -> Sequence[Match]: ...

    def captures(self, root: Any) -> Sequence[Capture]: ...


# ---------------------------------------------------------------------------
# tree-sitter adapter
# ---------------------------------------------------------------------------


def _start_byte(capture: Capture) -> int:
    return int(capture.node.start_byte)


def _flatten(grouped: dict[str, list[TSNode]]) -> tuple[Capture, ...]:
    """Flatten py-tree-sitter's ``{name: [nodes]}`` form into position order.

    The sort is stable, so captures starting at the same byte keep the order
    the engine reported them in.
    """
    flat = [Capture(name, node) for name, nodes in grouped.items() for node in nodes]
    flat.sort(key=_start_byte)
    return tuple(flat)


class TreeSitterQuery:
    """:class:`CompiledQuery` backed by a py-tree-sitter ``Query``.

    ``captures()`` is ordered by node start, so an enclosing node comes before
    the nodes nested inside it.  ``matches()`` keeps the engine order, which
    reports a match once it completes: for nested matches of one pattern the
    inner match comes first.  Resolving all patterns and resolving pattern 0
    of a single-pattern query therefore return the same nodes, but in a
    different order when the captured nodes nest.
    """

    def __init__(self, language: Language, source: str) -> None:
        self.source = source
        try:
            self._query = Query(language, source)
        except QueryError as exc:
            msg = f"Invalid query {source!r}: {exc}"
            raise QueryCompileError(msg) from exc

    @property
    def pattern_count(self) -> int:
        return int(self._query.pattern_count)

    @property
    def capture_names(self) -> list[str]:
        return [self._query.capture_name(i) for i in range(self._query.capture_count)]

    def matches(self, root: TSNode) -> list[Match]:
        cursor = QueryCursor(self._query)
        return [
            Match(pattern_index=pattern_index, captures=_flatten(grouped))
            for pattern_index, grouped in cursor.matches(root)
        ]

    def captures(self, root: TSNode) -> list[Capture]:
        cursor = QueryCursor(self._query)
        return list(_flatten(cursor.captures(root)))

