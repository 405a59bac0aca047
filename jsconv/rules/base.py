"""Base rule protocol and finding model."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from jsconv.config import RuleConfig, Severity
from jsconv.source import SourceFile


@dataclass(frozen=True, slots=True)
class Finding:
    """A single convention violation emitted by a rule."""

    rule_id: str
    severity: Severity
    line: int
    column: int
    message: str

    def sort_key(self) -> tuple[int, int, str]:
        return (self.line, self.column, self.rule_id)

    def to_dict(self) -> dict[str, object]:
        return {
            "rule_id": self.rule_id,
            "severity": self.severity,
            "line": self.line,
            "column": self.column,
            "message": self.message,
        }


class Rule(Protocol):
    """Protocol for independent, side-effect free convention checks."""

    rule_id: str
    severity: Severity

    def evaluate(self, source: SourceFile, config: RuleConfig) -> list[Finding]:
        """Evaluate one source file and return findings."""
