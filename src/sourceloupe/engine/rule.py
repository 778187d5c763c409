"""Rule contract: metadata, configuration store, and overridable lifecycle hooks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar

from sourceloupe.engine.counting import count_by_grammar_type
from sourceloupe.engine.resolver import resolve_query
from sourceloupe.engine.result import ResultType, ScanResult

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from sourceloupe.engine.query import CompiledQuery, PatternSelector

SCAN_MODE = "scan"
MEASURE_MODE = "measure"

# ---------------------------------------------------------------------------
# Metadata
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RuleMetadata:
    """Declarative description of a rule.

    ``message`` is the "what" and "why" shown for a finding, ``suggestion`` the
    "how" (fix it, record it as debt, or justify an exception).  ``query`` is a
    tree-sitter query locating candidate nodes; ``regex`` is an optional
    pattern a host applies to the text of those nodes.  ``context`` is
    ``"scan"``, ``"measure"``, or both comma-separated in any order.
    """

    name: str = ""
    category: str = ""
    message: str = ""
    query: str = ""
    regex: str = ""
    suggestion: str = ""
    priority: int = 0
    context: str = SCAN_MODE

    @property
    def modes(self) -> frozenset[str]:
        return frozenset(
            token.strip().lower() for token in self.context.split(",") if token.strip()
        )

    @property
    def is_scan(self) -> bool:
        return SCAN_MODE in self.modes

    @property
    def is_measure(self) -> bool:
        return MEASURE_MODE in self.modes

    @property
    def result_type(self) -> ResultType:
        return ResultType.from_priority(self.priority)


# ---------------------------------------------------------------------------
# Base rule
# ---------------------------------------------------------------------------


class ScanRule:
    """Base class for every rule, whether it reports violations or measures nodes.

    Subclasses override only the hooks they need; every hook has a harmless
    default.  A host drives one query execution against one file in this
    order:

    1. :meth:`pre_filter` narrows or replaces the root node.
    2. :meth:`validate_root` runs whole-subtree checks on the filtered root.
    3. :meth:`validate_query` resolves the nodes of interest, which are handed
       to :meth:`validate_nodes` / :meth:`validate_node` (scan) or
       :meth:`measure_nodes` (measure).

    Hooks must not keep per-invocation state on the instance: the same rule
    is reused across files and the order of calls across files is not fixed.

    Metadata is either passed to the constructor or declared once on the
    subclass::

        class NoTodo(ScanRule):
            metadata = RuleMetadata(name="NoTodo", query="(comment) @target", regex="TODO")
    """

    metadata: ClassVar[RuleMetadata] = RuleMetadata()

    def __init__(self, metadata: RuleMetadata | None = None) -> None:
        if metadata is not None:
            # Instance attribute shadows the class-level declaration.
            self.metadata = metadata  # type: ignore[misc]
        self._configuration: dict[str, str] = {}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"

    # --- metadata accessors ---

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def category(self) -> str:
        return self.metadata.category

    @property
    def message(self) -> str:
        return self.metadata.message

    @property
    def query(self) -> str:
        return self.metadata.query

    @property
    def regex(self) -> str:
        return self.metadata.regex

    @property
    def suggestion(self) -> str:
        return self.metadata.suggestion

    @property
    def priority(self) -> int:
        return self.metadata.priority

    @property
    def context(self) -> str:
        return self.metadata.context

    # --- configuration store ---

    def set_configuration(self, config: Mapping[str, str]) -> None:
        """Replace the whole configuration with a copy of *config*."""
        self._configuration = {str(key): str(value) for key, value in config.items()}

    def get_configuration(self) -> dict[str, str]:
        return dict(self._configuration)

    def get_configuration_value(self, key_name: str) -> str:
        """Return the configured value for *key_name*, or ``""`` when unset."""
        return self._configuration.get(key_name, "")

    def set_configuration_value(self, key_name: str, value: str) -> None:
        self._configuration[key_name] = str(value)

    # --- lifecycle hooks ---

    def pre_filter(self, root: Any) -> Any:
        """Narrow or substitute the root node before any validation."""
        return root

    def validate_root(self, root: Any) -> Any:
        """Check the (pre-filtered) root as a whole before per-node validation."""
        return root

    def validate_nodes(self, nodes: Sequence[Any]) -> list[ScanResult]:
        """Inspect all resolved nodes together; may report several results."""
        return []

    def validate_node(self, node: Any) -> list[ScanResult]:
        """Inspect a single node.  More than one result per node is allowed."""
        return []

    def validate_query(
        self,
        query: CompiledQuery,
        root: Any,
        target_capture_name: str | None = None,
        target_pattern: PatternSelector | int | None = None,
    ) -> list[Any]:
        """Resolve the nodes captured by *query* under *root*.

        Consider ``(class_declaration name: (identifier) @classname) @target``:
        ``@target`` is the whole declaration and ``@classname`` just its
        identifier.  By default the ``target`` capture is collected across all
        patterns; pass *target_pattern* to keep only one alternative of a
        multi-pattern query.
        """
        return resolve_query(query, root, target_capture_name, target_pattern)

    def measure_nodes(self, nodes: Sequence[Any]) -> dict[str, list[Any]]:
        """Group nodes for metrics.  Measurement rules usually return
        ``self.perform_count(nodes)``."""
        return {}

    # --- helpers for subclasses ---

    def perform_count(self, nodes: Sequence[Any]) -> dict[str, list[Any]]:
        return count_by_grammar_type(nodes)

    def result(
        self,
        node: Any,
        *,
        message: str | None = None,
        suggestion: str | None = None,
    ) -> ScanResult:
        """Build a :class:`ScanResult` for *node* from this rule's metadata."""
        return ScanResult(
            rule_name=self.name,
            message=self.message if message is None else message,
            node=node,
            priority=self.priority,
            category=self.category,
            suggestion=self.suggestion if suggestion is None else suggestion,
        )
