"""Scan results and severities produced by rule hooks."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any


class ResultType(enum.IntEnum):
    """Named severities for rule priorities.

    Priorities above ``ERROR`` are meaningful to whoever curates a rule set
    but are treated exactly like ``ERROR`` here.
    """

    INFORMATION = 0
    WARNING = 1
    ERROR = 2

    @classmethod
    def from_priority(cls, priority: int) -> ResultType:
        if priority >= cls.ERROR:
            return cls.ERROR
        if priority <= cls.INFORMATION:
            return cls.INFORMATION
        return cls(priority)


@dataclass(frozen=True)
class ScanResult:
    """A single finding reported by a rule against a node."""

    rule_name: str
    message: str
    node: Any
    priority: int = 0
    category: str = ""
    suggestion: str = ""
    file_path: str = ""

    @property
    def result_type(self) -> ResultType:
        return ResultType.from_priority(self.priority)

    @property
    def line(self) -> int:
        # tree-sitter uses 0-based rows; we want 1-based lines.
        return int(self.node.start_point.row) + 1

    @property
    def column(self) -> int:
        return int(self.node.start_point.column) + 1

    @property
    def source_text(self) -> str:
        text = self.node.text
        return text.decode("utf-8") if text else ""
