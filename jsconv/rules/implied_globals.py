"""Assignments to undeclared names."""

from __future__ import annotations

from dataclasses import dataclass, field

from jsconv.config import RuleConfig
from jsconv.rules.base import Finding
from jsconv.source import SourceFile
from jsconv.structure import ASSIGNMENT_OPERATORS, Declaration, Structure, iter_declarations
from jsconv.tokenizer import TokenKind


@dataclass(slots=True)
class _ScopeTable:
    scope_id: int
    names: set[str] = field(default_factory=set)


class ImpliedGlobalsRule:
    """Flags assignments to names not declared in a reachable scope.

    The symbol table is a stack with one entry per function scope, pushed at
    the opening brace of the function body and popped at its closing brace.
    Names become visible at their declaration site, so a variable must be
    declared before it is assigned.
    """

    rule_id = "implied-globals"
    severity = "error"

    def evaluate(self, source: SourceFile, config: RuleConfig) -> list[Finding]:
        structure = source.structure
        tokens = structure.tokens
        declarations = list(iter_declarations(structure))
        declared_at: dict[int, list[Declaration]] = {}
        parameters: dict[int, set[str]] = {}
        body_scope_ids = set(structure.body_scopes.values())
        for declaration in declarations:
            if (
                declaration.kind == "param"
                and declaration.visible_until is None
                and declaration.scope_id in body_scope_ids
            ):
                parameters.setdefault(declaration.scope_id, set()).add(declaration.name.text)
                continue
            declared_at.setdefault(declaration.index, []).append(declaration)
        declaration_indices = {declaration.index for declaration in declarations}
        class_bodies = _class_body_openers(structure)
        closes = {
            scope.close_index: scope.scope_id
            for scope in structure.scopes
            if scope.close_index is not None
        }

        findings: list[Finding] = []
        stack = [_ScopeTable(scope_id=0, names=set(config.globals))]
        braces: list[int] = []
        # Parameters of arrows with an expression body: (name, last visible index).
        arrow_params: list[tuple[str, int]] = []
        for index, token in enumerate(tokens):
            if token.kind is TokenKind.PUNCTUATION and token.text == "{":
                braces.append(index)
                scope_id = structure.body_scopes.get(index)
                if scope_id is not None:
                    stack.append(
                        _ScopeTable(scope_id=scope_id, names=set(parameters.get(scope_id, ())))
                    )
                continue
            if token.kind is TokenKind.PUNCTUATION and token.text == "}":
                if braces:
                    braces.pop()
                if closes.get(index) == stack[-1].scope_id and len(stack) > 1:
                    stack.pop()
                continue

            for declaration in declared_at.get(index, ()):
                if declaration.visible_until is not None:
                    arrow_params.append((declaration.name.text, declaration.visible_until))
                    continue
                _table_for(stack, declaration.scope_id).names.add(declaration.name.text)

            if token.kind is not TokenKind.IDENTIFIER or index in declaration_indices:
                continue
            if braces and braces[-1] in class_bodies:
                continue
            if not _is_assignment_target(structure, index):
                continue
            if any(token.text in table.names for table in stack):
                continue
            if any(name == token.text and index <= end for name, end in arrow_params):
                continue
            findings.append(
                Finding(
                    rule_id=self.rule_id,
                    severity=config.severity(self.rule_id),
                    line=token.line,
                    column=token.column,
                    message=(
                        f"Assignment to undeclared variable '{token.text}' "
                        "creates an implied global."
                    ),
                )
            )
        return findings


def _is_assignment_target(structure: Structure, index: int) -> bool:
    following = structure.following(index)
    if following is None or following.kind is not TokenKind.OPERATOR:
        return False
    if following.text not in ASSIGNMENT_OPERATORS:
        return False
    previous = structure.previous(index)
    return previous is None or previous.text not in {".", "?."}


def _table_for(stack: list[_ScopeTable], scope_id: int) -> _ScopeTable:
    for table in reversed(stack):
        if table.scope_id == scope_id:
            return table
    return stack[-1]


def _class_body_openers(structure: Structure) -> set[int]:
    """Indices of the braces that open class bodies."""
    tokens = structure.tokens
    openers: set[int] = set()
    for index, token in enumerate(tokens):
        if token.kind is not TokenKind.KEYWORD or token.text != "class":
            continue
        position = index + 1
        while position < len(tokens):
            candidate = tokens[position]
            if candidate.kind is TokenKind.PUNCTUATION and candidate.text == "(":
                position = structure.pairs.get(position, position) + 1
                continue
            if candidate.kind is TokenKind.PUNCTUATION and candidate.text == "{":
                openers.add(position)
                break
            if candidate.kind is TokenKind.PUNCTUATION:
                break
            position += 1
    return openers
