"""Tokenized source file shared read-only by all rules."""

from __future__ import annotations

import re
from dataclasses import dataclass

from jsconv.structure import Structure, build_structure
from jsconv.tokenizer import Token, tokenize

_LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")


@dataclass(frozen=True, slots=True)
class SourceFile:
    """One source text with its tokens, physical lines and statement structure."""

    path: str
    text: str
    tokens: tuple[Token, ...]
    lines: tuple[str, ...]
    structure: Structure

    @classmethod
    def from_text(cls, text: str, path: str = "<text>") -> SourceFile:
        """Tokenize and structure ``text``; raises LexError on bad input."""
        tokens = tuple(tokenize(text))
        return cls(
            path=path,
            text=text,
            tokens=tokens,
            lines=tuple(_LINE_BREAK_RE.split(text)),
            structure=build_structure(tokens),
        )

    def line_starts_inside_token(self) -> set[int]:
        """Lines whose first character belongs to a token begun on an earlier line."""
        covered: set[int] = set()
        for token in self.tokens:
            if token.is_newline:
                continue
            end_line = token.end_line
            if end_line > token.line:
                covered.update(range(token.line + 1, end_line + 1))
        return covered
