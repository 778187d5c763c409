"""Rule engine: query resolution, rule lifecycle, counting, and a reference host."""

from sourceloupe.engine.counting import count_by_grammar_type, summarize_counts
from sourceloupe.engine.query import (
    ALL_PATTERNS,
    DEFAULT_CAPTURE_NAME,
    AllPatterns,
    Capture,
    CompiledQuery,
    Match,
    PatternIndex,
    PatternSelector,
    QueryCompileError,
    TreeSitterQuery,
    as_pattern_selector,
)
from sourceloupe.engine.resolver import resolve_query, select_captures, select_matches
from sourceloupe.engine.result import ResultType, ScanResult
from sourceloupe.engine.rule import MEASURE_MODE, SCAN_MODE, RuleMetadata, ScanRule
from sourceloupe.engine.runner import (
    RuleFault,
    RuleMeasurement,
    RuleOutcome,
    ScanReport,
    UnsupportedLanguageError,
    clear_query_cache,
    compile_query,
    run_rule,
    run_rules,
    scan_source,
)

__all__ = [
    "ALL_PATTERNS",
    "DEFAULT_CAPTURE_NAME",
    "MEASURE_MODE",
    "SCAN_MODE",
    "AllPatterns",
    "Capture",
    "CompiledQuery",
    "Match",
    "PatternIndex",
    "PatternSelector",
    "QueryCompileError",
    "ResultType",
    "RuleFault",
    "RuleMeasurement",
    "RuleMetadata",
    "RuleOutcome",
    "ScanReport",
    "ScanResult",
    "ScanRule",
    "TreeSitterQuery",
    "UnsupportedLanguageError",
    "as_pattern_selector",
    "clear_query_cache",
    "compile_query",
    "count_by_grammar_type",
    "resolve_query",
    "run_rule",
    "run_rules",
    "scan_source",
    "select_captures",
    "select_matches",
    "summarize_counts",
]
