"""Strict equality rule."""

from __future__ import annotations

from jsconv.config import RuleConfig
from jsconv.rules.base import Finding
from jsconv.source import SourceFile
from jsconv.tokenizer import TokenKind

REPLACEMENTS = {"==": "===", "!=": "!=="}


class StrictEqualityRule:
    """Flags loose equality operators."""

    rule_id = "strict-equality"
    severity = "error"

    def evaluate(self, source: SourceFile, config: RuleConfig) -> list[Finding]:
        return [
            Finding(
                rule_id=self.rule_id,
                severity=config.severity(self.rule_id),
                line=token.line,
                column=token.column,
                message=f"Use '{REPLACEMENTS[token.text]}' instead of '{token.text}'.",
            )
            for token in source.tokens
            if token.kind is TokenKind.OPERATOR and token.text in REPLACEMENTS
        ]
