"""Identifier casing rule."""

from __future__ import annotations

import re

from jsconv.config import RuleConfig
from jsconv.rules.base import Finding
from jsconv.source import SourceFile
from jsconv.structure import Declaration, iter_declarations
from jsconv.tokenizer import Token, TokenKind

LOWER_CAMEL_RE = re.compile(r"^[a-z][a-zA-Z0-9]*$")
UPPER_CAMEL_RE = re.compile(r"^[A-Z][a-zA-Z0-9]*$")
CONSTANT_RE = re.compile(r"^[A-Z][A-Z0-9_]*$")

_KIND_LABELS = {
    "var": "Variable",
    "let": "Variable",
    "const": "Constant",
    "function": "Function",
    "param": "Parameter",
    "catch": "Parameter",
    "class": "Class",
}


class NamingCaseRule:
    """Names are lowerCamelCase; constructors and classes start uppercase."""

    rule_id = "naming-case"
    severity = "warning"

    def evaluate(self, source: SourceFile, config: RuleConfig) -> list[Finding]:
        findings: list[Finding] = []
        for declaration in iter_declarations(source.structure):
            message = _declaration_problem(declaration)
            if message is not None:
                findings.append(self._finding(config, declaration.name, message))

        tokens = source.structure.tokens
        for index, token in enumerate(tokens):
            if token.kind is not TokenKind.KEYWORD or token.text != "new":
                continue
            target = _constructor_target(tokens, index)
            if target is not None and not target.text[:1].isupper():
                findings.append(
                    self._finding(
                        config,
                        target,
                        f"Constructor '{target.text}' should start with an uppercase letter.",
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


def _declaration_problem(declaration: Declaration) -> str | None:
    name = declaration.name.text
    label = _KIND_LABELS[declaration.kind]
    if declaration.kind == "class":
        if UPPER_CAMEL_RE.match(name):
            return None
        return f"{label} name '{name}' should be UpperCamelCase."
    if LOWER_CAMEL_RE.match(name):
        return None
    if declaration.kind == "function" and UPPER_CAMEL_RE.match(name):
        return None
    if declaration.kind in {"var", "let", "const"} and CONSTANT_RE.match(name):
        return None
    return f"{label} name '{name}' should be lowerCamelCase."


def _constructor_target(tokens: tuple[Token, ...], index: int) -> Token | None:
    position = index + 1
    if position >= len(tokens) or tokens[position].kind is not TokenKind.IDENTIFIER:
        return None
    while (
        position + 2 < len(tokens)
        and tokens[position + 1].text == "."
        and tokens[position + 2].kind is TokenKind.IDENTIFIER
    ):
        position += 2
    return tokens[position]
