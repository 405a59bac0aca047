"""Statement-level rules built on the reconstructed statement boundaries."""

from __future__ import annotations

from jsconv.config import RuleConfig
from jsconv.rules.base import Finding
from jsconv.source import SourceFile
from jsconv.structure import DECLARATION_KEYWORDS, Statement
from jsconv.tokenizer import TokenKind

_DEFINITION_KEYWORDS = frozenset({"function", "class", "async", "export"})


class VarFirstRule:
    """Variable declarations must precede other statements in a function."""

    rule_id = "var-first"
    severity = "warning"

    def evaluate(self, source: SourceFile, config: RuleConfig) -> list[Finding]:
        findings: list[Finding] = []
        started: set[int] = set()

        for statement in source.structure.statements:
            scope_id = statement.scope_id
            first = statement.first
            if _is_declaration(statement):
                if scope_id in started:
                    findings.append(
                        Finding(
                            rule_id=self.rule_id,
                            severity=config.severity(self.rule_id),
                            line=first.line,
                            column=first.column,
                            message=(
                                f"'{first.text}' declaration should come before other "
                                "statements in its function."
                            ),
                        )
                    )
                continue
            if scope_id not in started and _is_directive(statement):
                continue
            if _is_definition(statement):
                continue
            started.add(scope_id)
        return findings


class SemicolonRequiredRule:
    """Every simple statement ends with a semicolon."""

    rule_id = "semicolon-required"
    severity = "error"

    def evaluate(self, source: SourceFile, config: RuleConfig) -> list[Finding]:
        findings: list[Finding] = []
        for statement in source.structure.statements:
            if statement.opens_block or statement.terminated:
                continue
            last = statement.last
            # `case x:` and `default:` labels closing a switch body.
            if last.kind is TokenKind.OPERATOR and last.text == ":":
                continue
            findings.append(
                Finding(
                    rule_id=self.rule_id,
                    severity=config.severity(self.rule_id),
                    line=last.end_line,
                    column=last.end_column,
                    message="Missing semicolon at end of statement.",
                )
            )
        return findings


class OneStatementPerLineRule:
    """At most one statement per line."""

    rule_id = "one-statement-per-line"
    severity = "warning"

    def evaluate(self, source: SourceFile, config: RuleConfig) -> list[Finding]:
        findings: list[Finding] = []
        last_end: dict[tuple[int, int], int] = {}

        for statement in source.structure.statements:
            key = (statement.scope_id, statement.depth)
            if last_end.get(key) == statement.line:
                findings.append(
                    Finding(
                        rule_id=self.rule_id,
                        severity=config.severity(self.rule_id),
                        line=statement.line,
                        column=statement.first.column,
                        message="Put each statement on its own line.",
                    )
                )
            if not statement.opens_block:
                last_end[key] = statement.end_line
        return findings


def _is_declaration(statement: Statement) -> bool:
    first = statement.first
    return first.kind is TokenKind.KEYWORD and first.text in DECLARATION_KEYWORDS


def _is_definition(statement: Statement) -> bool:
    """Function, class and method headers do not end the declaration section."""
    if not statement.opens_block:
        return False
    first = statement.first
    if first.kind is TokenKind.KEYWORD:
        return first.text in _DEFINITION_KEYWORDS
    return first.kind is not TokenKind.PUNCTUATION or first.text != "{"


def _is_directive(statement: Statement) -> bool:
    tokens = statement.tokens
    if tokens[0].kind is not TokenKind.STRING or tokens[0].text[:1] not in {"'", '"'}:
        return False
    return len(tokens) == 1 or (len(tokens) == 2 and statement.terminated)
