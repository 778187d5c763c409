"""Count aggregator: group nodes by grammar type for measurement rules."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping


def count_by_grammar_type(nodes: Iterable[Any]) -> dict[str, list[Any]]:
    """Group *nodes* by their grammar type (``node.type``).

    Keys appear in order of first occurrence and every node is kept, in input
    order, so callers can use ``len()`` for counts or drill into the nodes for
    spans and descendants.
    """
    grouping: dict[str, list[Any]] = {}
    for node in nodes:
        grouping.setdefault(node.type, []).append(node)
    return grouping


def summarize_counts(grouping: Mapping[str, list[Any]]) -> dict[str, int]:
    """Reduce a grammar-type grouping to ``{grammar_type: count}``, same key order."""
    return {grammar_type: len(nodes) for grammar_type, nodes in grouping.items()}
