"""Capture/match resolver: turn query output into the nodes a rule asked for."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from sourceloupe.engine.query import (
    DEFAULT_CAPTURE_NAME,
    AllPatterns,
    as_pattern_selector,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sourceloupe.engine.query import (
        Capture,
        CompiledQuery,
        Match,
        PatternIndex,
        PatternSelector,
    )

logger = logging.getLogger(__name__)


def select_captures(
    captures: Iterable[Capture], capture_name: str = DEFAULT_CAPTURE_NAME
) -> list[Any]:
    """Return the nodes of every capture named *capture_name*, in the given order."""
    return [capture.node for capture in captures if capture.name == capture_name]


def select_matches(
    matches: Iterable[Match], capture_name: str, pattern: PatternIndex
) -> list[Any]:
    """Return nodes captured as *capture_name* by matches of one pattern.

    Matches are visited in the given order; within a match the capture order
    is kept.  Matches of other patterns contribute nothing.
    """
    nodes: list[Any] = []
    for match in matches:
        if match.pattern_index != pattern.index:
            continue
        nodes.extend(select_captures(match.captures, capture_name))
    return nodes


def resolve_query(
    query: CompiledQuery,
    root: Any,
    capture_name: str | None = None,
    pattern: PatternSelector | int | None = None,
) -> list[Any]:
    """Run *query* against *root* and return the nodes of interest.

    Parameters
    ----------
    query:
        A compiled query exposing ``matches(root)`` and ``captures(root)``.
    root:
        Node the query is executed against.
    capture_name:
        Capture to collect.  Defaults to ``"target"``.  A name the query never
        binds silently resolves to an empty list.
    pattern:
        ``ALL_PATTERNS`` (also ``None`` or ``-1``) collects from the flat
        capture set; a :class:`PatternIndex` (or a non-negative int) restricts
        the result to matches of that pattern.

    Returns
    -------
    list
        Matching nodes in engine order.  Empty when nothing matched.
    """
    name = capture_name if capture_name is not None else DEFAULT_CAPTURE_NAME
    selector = as_pattern_selector(pattern)

    matches = query.matches(root)
    captures = query.captures(root)

    if isinstance(selector, AllPatterns):
        nodes = select_captures(captures, name)
    else:
        nodes = select_matches(matches, name, selector)

    if not nodes and captures:
        logger.debug(
            "Query produced %d captures but none named '%s' for %r",
            len(captures),
            name,
            selector,
        )
    return nodes
