"""Whitespace rules around keywords, commas and operators.

These rules look at the raw token sequence, whitespace tokens included.
"""

from __future__ import annotations

from jsconv.config import RuleConfig
from jsconv.rules.base import Finding
from jsconv.source import SourceFile
from jsconv.structure import ASSIGNMENT_OPERATORS
from jsconv.tokenizer import Token, TokenKind

SPACED_KEYWORDS = frozenset({"if", "for", "while", "switch", "catch", "with"})
SPACED_OPERATORS = ASSIGNMENT_OPERATORS | {
    "==",
    "===",
    "!=",
    "!==",
    "<",
    "<=",
    ">",
    ">=",
    "&&",
    "||",
    "??",
    "=>",
}


class KeywordSpacingRule:
    """One space between a statement keyword or anonymous function and its '('."""

    rule_id = "keyword-spacing"
    severity = "warning"

    def evaluate(self, source: SourceFile, config: RuleConfig) -> list[Finding]:
        findings: list[Finding] = []
        tokens = source.tokens
        for index, token in enumerate(tokens):
            if token.kind is not TokenKind.KEYWORD:
                continue
            if token.text in SPACED_KEYWORDS or token.text == "function":
                gap, after = _gap_after(tokens, index)
                if after is not None and _is_punct(after, "("):
                    if gap != " ":
                        findings.append(
                            self._finding(
                                config,
                                token,
                                f"Expected one space between '{token.text}' and '('.",
                            )
                        )
                    continue
            if token.text == "function":
                name_index = _next_significant(tokens, index)
                if name_index is None or tokens[name_index].kind is not TokenKind.IDENTIFIER:
                    continue
                gap, after = _gap_after(tokens, name_index)
                if gap and after is not None and _is_punct(after, "("):
                    name = tokens[name_index]
                    findings.append(
                        self._finding(
                            config,
                            name,
                            f"Unexpected space between function name '{name.text}' and '('.",
                        )
                    )
        return findings

    def _finding(self, config: RuleConfig, token: Token, message: str) -> Finding:
        return Finding(
            rule_id=self.rule_id,
            severity=config.severity(self.rule_id),
            line=token.line,
            column=token.column,
            message=message,
        )


class CommaSpacingRule:
    """No space before a comma; a space or line break after it."""

    rule_id = "comma-spacing"
    severity = "warning"

    def evaluate(self, source: SourceFile, config: RuleConfig) -> list[Finding]:
        findings: list[Finding] = []
        tokens = source.tokens
        for index, token in enumerate(tokens):
            if not _is_punct(token, ","):
                continue
            if index > 1:
                before = tokens[index - 1]
                if (
                    before.kind is TokenKind.WHITESPACE
                    and not before.is_newline
                    and not tokens[index - 2].is_newline
                ):
                    findings.append(
                        Finding(
                            rule_id=self.rule_id,
                            severity=config.severity(self.rule_id),
                            line=before.line,
                            column=before.column,
                            message="Unexpected whitespace before ','.",
                        )
                    )
            if index + 1 >= len(tokens):
                continue
            after = tokens[index + 1]
            if after.kind is TokenKind.WHITESPACE:
                continue
            if after.kind is TokenKind.PUNCTUATION and after.text in {",", "]", ")", "}"}:
                continue
            findings.append(
                Finding(
                    rule_id=self.rule_id,
                    severity=config.severity(self.rule_id),
                    line=token.line,
                    column=token.column,
                    message="Expected a space after ','.",
                )
            )
        return findings


class OperatorSpacingRule:
    """Assignment, comparison, logical and arrow operators are surrounded by spaces."""

    rule_id = "operator-spacing"
    severity = "warning"

    def evaluate(self, source: SourceFile, config: RuleConfig) -> list[Finding]:
        findings: list[Finding] = []
        tokens = source.tokens
        for index, token in enumerate(tokens):
            if token.kind is not TokenKind.OPERATOR or token.text not in SPACED_OPERATORS:
                continue
            spaced_before = index > 0 and tokens[index - 1].kind is TokenKind.WHITESPACE
            spaced_after = (
                index + 1 < len(tokens) and tokens[index + 1].kind is TokenKind.WHITESPACE
            )
            if spaced_before and spaced_after:
                continue
            findings.append(
                Finding(
                    rule_id=self.rule_id,
                    severity=config.severity(self.rule_id),
                    line=token.line,
                    column=token.column,
                    message=f"Operator '{token.text}' should be surrounded by spaces.",
                )
            )
        return findings


def _gap_after(tokens: tuple[Token, ...], index: int) -> tuple[str, Token | None]:
    """Whitespace text after ``tokens[index]`` and the next non-whitespace token."""
    gap: list[str] = []
    position = index + 1
    while position < len(tokens) and tokens[position].kind is TokenKind.WHITESPACE:
        gap.append(tokens[position].text)
        position += 1
    after = tokens[position] if position < len(tokens) else None
    return ("".join(gap), after)


def _next_significant(tokens: tuple[Token, ...], index: int) -> int | None:
    position = index + 1
    while position < len(tokens):
        if not tokens[position].is_trivia:
            return position
        position += 1
    return None


def _is_punct(token: Token, text: str) -> bool:
    return token.kind is TokenKind.PUNCTUATION and token.text == text
