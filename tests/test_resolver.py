"""Tests for sourceloupe.engine.resolver — capture/match selection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import pytest

from sourceloupe.engine.counting import count_by_grammar_type
from sourceloupe.engine.query import ALL_PATTERNS, Capture, Match, PatternIndex
from sourceloupe.engine.resolver import resolve_query, select_captures, select_matches
from sourceloupe.engine.runner import compile_query

if TYPE_CHECKING:
    from collections.abc import Callable

    from tree_sitter import Node

    from sourceloupe.languages import LangConfig


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


@dataclass(eq=False)
class FakeNode:
    type: str
    label: str


class FakeQuery:
    """Compiled query stand-in returning canned matches.

    The flat capture set is the concatenation of every match's captures.
    """

    def __init__(self, matches: list[Match]) -> None:
        self._matches = matches
        self.calls: list[str] = []

    def matches(self, root: object) -> list[Match]:
        self.calls.append("matches")
        return list(self._matches)

    def captures(self, root: object) -> list[Capture]:
        self.calls.append("captures")
        return [c for m in self._matches for c in m.captures]


def _match(pattern_index: int, *captures: tuple[str, FakeNode]) -> Match:
    return Match(pattern_index, tuple(Capture(name, node) for name, node in captures))


X = FakeNode("identifier", "x")
Y = FakeNode("identifier", "y")
Z = FakeNode("identifier", "z")
CALL = FakeNode("call", "f()")
ARG = FakeNode("argument_list", "()")


@pytest.fixture()
def multi_pattern_query() -> FakeQuery:
    """Pattern 0 binds identifiers, pattern 1 binds calls, interleaved in engine order."""
    return FakeQuery(
        [
            _match(0, ("target", X)),
            _match(1, ("target", CALL), ("args", ARG)),
            _match(0, ("target", Y)),
            _match(0, ("target", Z), ("other", CALL)),
        ]
    )


# --- select_captures / select_matches ---


class TestSelectCaptures:
    def test_filters_by_name_in_order(self) -> None:
        captures = [Capture("target", X), Capture("other", Y), Capture("target", Z)]
        assert select_captures(captures, "target") == [X, Z]

    def test_default_name_is_target(self) -> None:
        assert select_captures([Capture("target", X), Capture("t", Y)]) == [X]

    def test_duplicate_names_within_match_kept(self) -> None:
        captures = [Capture("target", X), Capture("target", Y)]
        assert select_captures(captures) == [X, Y]

    def test_empty(self) -> None:
        assert select_captures([], "target") == []


class TestSelectMatches:
    def test_only_requested_pattern(self, multi_pattern_query: FakeQuery) -> None:
        matches = multi_pattern_query.matches(None)
        assert select_matches(matches, "target", PatternIndex(0)) == [X, Y, Z]
        assert select_matches(matches, "target", PatternIndex(1)) == [CALL]

    def test_unknown_pattern_index(self, multi_pattern_query: FakeQuery) -> None:
        matches = multi_pattern_query.matches(None)
        assert select_matches(matches, "target", PatternIndex(7)) == []


# --- resolve_query ---


class TestResolveQuery:
    def test_all_patterns_uses_flat_captures(self, multi_pattern_query: FakeQuery) -> None:
        nodes = resolve_query(multi_pattern_query, None, "target", ALL_PATTERNS)
        assert nodes == [X, CALL, Y, Z]

    def test_defaults(self, multi_pattern_query: FakeQuery) -> None:
        assert resolve_query(multi_pattern_query, None) == [X, CALL, Y, Z]

    def test_minus_one_is_all_patterns(self, multi_pattern_query: FakeQuery) -> None:
        assert resolve_query(multi_pattern_query, None, None, -1) == [X, CALL, Y, Z]

    def test_pattern_index_restricts(self, multi_pattern_query: FakeQuery) -> None:
        assert resolve_query(multi_pattern_query, None, "target", 0) == [X, Y, Z]
        assert resolve_query(multi_pattern_query, None, "target", PatternIndex(1)) == [CALL]

    def test_other_capture_name_in_pattern(self, multi_pattern_query: FakeQuery) -> None:
        assert resolve_query(multi_pattern_query, None, "args", 1) == [ARG]
        assert resolve_query(multi_pattern_query, None, "args", 0) == []

    @pytest.mark.parametrize("pattern", [None, -1, 0, 1, 5, -3])
    def test_absent_capture_name_is_empty(
        self, multi_pattern_query: FakeQuery, pattern: int | None
    ) -> None:
        assert resolve_query(multi_pattern_query, None, "missing", pattern) == []

    def test_executes_query_once_each_way(self, multi_pattern_query: FakeQuery) -> None:
        resolve_query(multi_pattern_query, None)
        assert sorted(multi_pattern_query.calls) == ["captures", "matches"]

    def test_single_pattern_paths_agree(self) -> None:
        query = FakeQuery([_match(0, ("target", X)), _match(0, ("target", Y))])
        assert resolve_query(query, None, None, -1) == resolve_query(query, None, "target", 0)

    def test_returns_new_list(self) -> None:
        query = FakeQuery([])
        first = resolve_query(query, None)
        first.append(X)
        assert resolve_query(query, None) == []


# --- Against real tree-sitter output ---


class TestResolveTreeSitter:
    def test_identifiers_end_to_end(
        self, python_lang: LangConfig, parse_python: Callable[[str], Node]
    ) -> None:
        root = parse_python("x = 1\ny = 2\nz = 3\n")
        query = compile_query(python_lang, "(identifier) @target")

        nodes = resolve_query(query, root, "target", -1)
        assert [n.text.decode() for n in nodes] == ["x", "y", "z"]

        grouping = count_by_grammar_type(nodes)
        assert list(grouping) == ["identifier"]
        assert [n.text.decode() for n in grouping["identifier"]] == ["x", "y", "z"]

    def test_single_pattern_paths_agree(
        self, python_lang: LangConfig, parse_python: Callable[[str], Node]
    ) -> None:
        root = parse_python("def f(a, b):\n    return a + b\n")
        query = compile_query(python_lang, "(identifier) @target")
        all_nodes = resolve_query(query, root, None, -1)
        indexed = resolve_query(query, root, "target", 0)
        assert [n.start_byte for n in all_nodes] == [n.start_byte for n in indexed]
        assert len(all_nodes) == 5

    def test_multi_pattern_selection(
        self, python_lang: LangConfig, parse_python: Callable[[str], Node]
    ) -> None:
        root = parse_python("a = 1\nb = 'two'\nc = 3\n")
        query = compile_query(python_lang, "(integer) @target\n(string) @target")
        assert [n.text.decode() for n in resolve_query(query, root, "target", 0)] == ["1", "3"]
        assert [n.type for n in resolve_query(query, root, "target", 1)] == ["string"]
        assert [n.type for n in resolve_query(query, root)] == ["integer", "string", "integer"]

    def test_nested_captures_order_differs_between_paths(
        self, python_lang: LangConfig, parse_python: Callable[[str], Node]
    ) -> None:
        """Captures list the enclosing node first; matches complete inner-first."""
        root = parse_python("x = a + b + c\n")
        query = compile_query(python_lang, "(binary_operator right: (_)) @target")

        all_patterns = [n.text.decode() for n in resolve_query(query, root, None, -1)]
        pattern_zero = [n.text.decode() for n in resolve_query(query, root, "target", 0)]

        assert all_patterns == ["a + b + c", "a + b"]
        assert pattern_zero == ["a + b", "a + b + c"]
        assert sorted(all_patterns) == sorted(pattern_zero)

    def test_misnamed_capture_is_silent(
        self, python_lang: LangConfig, parse_python: Callable[[str], Node]
    ) -> None:
        root = parse_python("x = 1\n")
        query = compile_query(python_lang, "(identifier) @name")
        assert resolve_query(query, root) == []
        assert len(resolve_query(query, root, "name")) == 1
