"""Reference host: drive rules through their lifecycle against one parsed file."""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

from sourceloupe.engine.query import TreeSitterQuery
from sourceloupe.engine.result import ResultType
from sourceloupe.languages import get_lang_config, parse_source

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sourceloupe.engine.result import ScanResult
    from sourceloupe.engine.rule import ScanRule
    from sourceloupe.languages import LangConfig

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class UnsupportedLanguageError(Exception):
    """Raised when no grammar is available for a source file extension."""


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RuleFault:
    """An exception raised while evaluating one rule against one file."""

    rule_name: str
    file_path: str
    error: Exception

    @property
    def message(self) -> str:
        return f"{type(self.error).__name__}: {self.error}"


@dataclass
class RuleOutcome:
    """Everything one rule produced for one file."""

    rule_name: str
    nodes: list[Any] = field(default_factory=list)
    results: list[ScanResult] = field(default_factory=list)
    measurements: dict[str, list[Any]] | None = None


@dataclass(frozen=True)
class RuleMeasurement:
    """Grammar-type grouping one measure rule produced for one file."""

    rule_name: str
    grouping: dict[str, list[Any]]


@dataclass
class ScanReport:
    """Result of evaluating a rule set against one file."""

    file_path: str = ""
    results: list[ScanResult] = field(default_factory=list)
    measurements: list[RuleMeasurement] = field(default_factory=list)
    faults: list[RuleFault] = field(default_factory=list)
    rules_evaluated: int = 0
    elapsed_ms: float = 0.0

    @property
    def has_errors(self) -> bool:
        return any(r.result_type is ResultType.ERROR for r in self.results)

    def measurements_for(self, rule_name: str) -> list[dict[str, list[Any]]]:
        """Return the groupings of every measure rule named *rule_name*, in run order."""
        return [m.grouping for m in self.measurements if m.rule_name == rule_name]


# ---------------------------------------------------------------------------
# Query cache
# ---------------------------------------------------------------------------

# Host-side convenience keyed by (language name, query text).  Compiled
# queries are read-only once built; a lost race only compiles twice.
_QUERY_CACHE: dict[tuple[str, str], TreeSitterQuery] = {}


def compile_query(lang: LangConfig, source: str) -> TreeSitterQuery:
    """Compile *source* for *lang*, reusing a previously compiled query when possible.

    Raises :class:`~sourceloupe.engine.query.QueryCompileError` when the query
    is not valid for the grammar.
    """
    key = (lang.name, source)
    cached = _QUERY_CACHE.get(key)
    if cached is not None:
        return cached
    query = TreeSitterQuery(lang.language, source)
    _QUERY_CACHE[key] = query
    return query


def clear_query_cache() -> None:
    """Clear the compiled query cache (useful for testing)."""
    _QUERY_CACHE.clear()


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------


def _text_of(node: Any) -> str:
    text = node.text
    return text.decode("utf-8") if text else ""


def run_rule(rule: ScanRule, root: Any, lang: LangConfig, *, file_path: str = "") -> RuleOutcome:
    """Evaluate a single rule against the root node of one parsed file.

    Exceptions raised by the rule's hooks, its query or its regex propagate;
    :func:`run_rules` is where they are contained.
    """
    outcome = RuleOutcome(rule_name=rule.name)

    filtered = rule.pre_filter(root)
    validated = rule.validate_root(filtered)

    if rule.query:
        query = compile_query(lang, rule.query)
        nodes = rule.validate_query(query, validated)
    else:
        nodes = [validated]

    if rule.regex:
        pattern = re.compile(rule.regex)
        nodes = [node for node in nodes if pattern.search(_text_of(node))]
    outcome.nodes = nodes

    modes = rule.metadata.modes
    scan = rule.metadata.is_scan or not modes
    if scan:
        results = list(rule.validate_nodes(nodes))
        for node in nodes:
            results.extend(rule.validate_node(node))
        if file_path:
            results = [_with_file_path(r, file_path) for r in results]
        outcome.results = results

    if rule.metadata.is_measure:
        outcome.measurements = rule.measure_nodes(nodes)

    return outcome


def _with_file_path(result: ScanResult, file_path: str) -> ScanResult:
    if result.file_path:
        return result
    return replace(result, file_path=file_path)


def run_rules(
    rules: Iterable[ScanRule], root: Any, lang: LangConfig, *, file_path: str = ""
) -> ScanReport:
    """Evaluate every rule against one file, isolating rule failures.

    A rule that raises is recorded as a :class:`RuleFault` and logged; the
    remaining rules are still evaluated.
    """
    start = time.monotonic()
    report = ScanReport(file_path=file_path)

    for rule in rules:
        report.rules_evaluated += 1
        try:
            outcome = run_rule(rule, root, lang, file_path=file_path)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Rule '%s' failed on %s: %s", rule.name, file_path or "<source>", exc)
            report.faults.append(RuleFault(rule_name=rule.name, file_path=file_path, error=exc))
            continue

        report.results.extend(outcome.results)
        if outcome.measurements is not None:
            report.measurements.append(
                RuleMeasurement(rule_name=rule.name, grouping=outcome.measurements)
            )

    report.elapsed_ms = (time.monotonic() - start) * 1000
    logger.debug(
        "Evaluated %d rules on %s in %.1fms (%d results, %d faults)",
        report.rules_evaluated,
        file_path or "<source>",
        report.elapsed_ms,
        len(report.results),
        len(report.faults),
    )
    return report


def scan_source(
    rules: Iterable[ScanRule],
    source: str | bytes,
    extension: str,
    *,
    file_path: str = "",
) -> ScanReport:
    """Parse *source* using the grammar registered for *extension* and run *rules*.

    Raises
    ------
    UnsupportedLanguageError
        When no grammar package is installed for *extension*.
    """
    lang = get_lang_config(extension)
    if lang is None:
        msg = f"No tree-sitter grammar available for '{extension}'"
        raise UnsupportedLanguageError(msg)

    tree = parse_source(source, lang)
    return run_rules(rules, tree.root_node, lang, file_path=file_path)
