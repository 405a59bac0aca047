"""Banned constructs: dynamic evaluation and the with statement."""

from __future__ import annotations

from jsconv.config import RuleConfig
from jsconv.rules.base import Finding
from jsconv.source import SourceFile
from jsconv.structure import Structure
from jsconv.tokenizer import TokenKind


class NoEvalRule:
    """Flags eval-like calls and timers given code strings."""

    rule_id = "no-eval"
    severity = "error"

    def evaluate(self, source: SourceFile, config: RuleConfig) -> list[Finding]:
        findings: list[Finding] = []
        structure = source.structure
        tokens = structure.tokens
        banned = set(config.banned_calls)
        timers = set(config.string_timers)

        for index, token in enumerate(tokens[:-1]):
            if token.kind is not TokenKind.IDENTIFIER:
                continue
            following = tokens[index + 1]
            if following.kind is not TokenKind.PUNCTUATION or following.text != "(":
                continue
            previous = tokens[index - 1] if index > 0 else None
            if previous is not None and previous.text == "function":
                continue
            if _is_method_definition(structure, index + 1):
                continue

            if token.text in banned:
                findings.append(
                    Finding(
                        rule_id=self.rule_id,
                        severity=config.severity(self.rule_id),
                        line=token.line,
                        column=token.column,
                        message=f"'{token.text}' evaluates code dynamically; avoid it.",
                    )
                )
            elif token.text in timers and index + 2 < len(tokens):
                argument = tokens[index + 2]
                if argument.kind is TokenKind.STRING and argument.text[:1] in {"'", '"', "`"}:
                    findings.append(
                        Finding(
                            rule_id=self.rule_id,
                            severity=config.severity(self.rule_id),
                            line=argument.line,
                            column=argument.column,
                            message=(
                                f"'{token.text}' called with a string; pass a function instead."
                            ),
                        )
                    )
        return findings


class NoWithRule:
    """Flags the with statement."""

    rule_id = "no-with"
    severity = "error"

    def evaluate(self, source: SourceFile, config: RuleConfig) -> list[Finding]:
        return [
            Finding(
                rule_id=self.rule_id,
                severity=config.severity(self.rule_id),
                line=token.line,
                column=token.column,
                message="Avoid the 'with' statement.",
            )
            for token in source.structure.tokens
            if token.kind is TokenKind.KEYWORD and token.text == "with"
        ]


def _is_method_definition(structure: Structure, open_index: int) -> bool:
    """`name(...) {` declares a method in a class body or object literal."""
    close = structure.pairs.get(open_index)
    if close is None or close + 1 >= len(structure.tokens):
        return False
    following = structure.tokens[close + 1]
    return following.kind is TokenKind.PUNCTUATION and following.text == "{"
