"""Brace placement rules."""

from __future__ import annotations

from jsconv.config import RuleConfig
from jsconv.rules.base import Finding
from jsconv.source import SourceFile
from jsconv.tokenizer import Token, TokenKind

_BLOCK_AFTER_KEYWORDS = frozenset({"else", "try", "finally", "do"})
_BODY_KEYWORDS = frozenset({"if", "for", "while"})


class BraceStyleRule:
    """Requires the opening brace of a compound statement on its header line."""

    rule_id = "brace-style"
    severity = "warning"

    def evaluate(self, source: SourceFile, config: RuleConfig) -> list[Finding]:
        findings: list[Finding] = []
        tokens = source.structure.tokens
        for index, token in enumerate(tokens):
            if index == 0 or not _is_punct(token, "{"):
                continue
            previous = tokens[index - 1]
            if not _opens_compound(previous):
                continue
            if token.line != previous.end_line:
                findings.append(
                    Finding(
                        rule_id=self.rule_id,
                        severity=config.severity(self.rule_id),
                        line=token.line,
                        column=token.column,
                        message=(
                            "Opening brace should be on the same line as "
                            f"'{previous.text}'."
                        ),
                    )
                )
        return findings


class CurlyBracesRule:
    """Requires braces around the bodies of if, else, for, while and do."""

    rule_id = "curly-braces"
    severity = "error"

    def evaluate(self, source: SourceFile, config: RuleConfig) -> list[Finding]:
        findings: list[Finding] = []
        structure = source.structure
        tokens = structure.tokens
        # Last tokens of `do` statements whose body has no braces.
        do_tails = {
            (statement.last.line, statement.last.column)
            for statement in structure.statements
            if statement.first.text == "do" and statement.terminated
        }

        for index, token in enumerate(tokens):
            if token.kind is not TokenKind.KEYWORD:
                continue
            body_index: int | None = None
            if token.text in _BODY_KEYWORDS:
                if token.text == "while" and _closes_do_loop(source, index, do_tails):
                    continue
                header = index + 1
                if header < len(tokens) and tokens[header].text == "await":
                    header += 1
                if header >= len(tokens) or not _is_punct(tokens[header], "("):
                    continue
                close = structure.pairs.get(header)
                if close is None:
                    continue
                body_index = close + 1
            elif token.text == "else":
                body_index = index + 1
                if body_index < len(tokens) and tokens[body_index].text == "if":
                    continue
            elif token.text == "do":
                body_index = index + 1
            else:
                continue

            if body_index >= len(tokens):
                continue
            body = tokens[body_index]
            if _is_punct(body, "{"):
                continue
            findings.append(
                Finding(
                    rule_id=self.rule_id,
                    severity=config.severity(self.rule_id),
                    line=body.line,
                    column=body.column,
                    message=f"The body of '{token.text}' should be wrapped in braces.",
                )
            )
        return findings


def _opens_compound(previous: Token) -> bool:
    if _is_punct(previous, ")"):
        return True
    if previous.kind is TokenKind.KEYWORD:
        return previous.text in _BLOCK_AFTER_KEYWORDS
    return previous.kind is TokenKind.OPERATOR and previous.text == "=>"


def _closes_do_loop(source: SourceFile, index: int, do_tails: set[tuple[int, int]]) -> bool:
    structure = source.structure
    if index == 0:
        return False
    previous = structure.tokens[index - 1]
    if _is_punct(previous, ";"):
        return (previous.line, previous.column) in do_tails
    if not _is_punct(previous, "}"):
        return False
    opener = structure.pairs.get(index - 1)
    if opener is None or opener == 0:
        return False
    before = structure.tokens[opener - 1]
    return before.kind is TokenKind.KEYWORD and before.text == "do"


def _is_punct(token: Token, text: str) -> bool:
    return token.kind is TokenKind.PUNCTUATION and token.text == text
