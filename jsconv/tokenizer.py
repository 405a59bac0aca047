"""JavaScript tokenizer.

Converts raw source text into a stream of located tokens. Every character of
the input belongs to exactly one token (whitespace and comments included), so
joining the token texts reproduces the source.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum


class TokenKind(Enum):
    """Lexical token classes."""

    KEYWORD = "keyword"
    IDENTIFIER = "identifier"
    OPERATOR = "operator"
    PUNCTUATION = "punctuation"
    STRING = "string"  # quoted strings, template literals, regular expressions
    NUMBER = "number"
    COMMENT = "comment"
    WHITESPACE = "whitespace"  # runs of blanks, or a single line break


KEYWORDS = frozenset(
    {
        "async",
        "await",
        "break",
        "case",
        "catch",
        "class",
        "const",
        "continue",
        "debugger",
        "default",
        "delete",
        "do",
        "else",
        "export",
        "extends",
        "false",
        "finally",
        "for",
        "function",
        "if",
        "import",
        "in",
        "instanceof",
        "let",
        "new",
        "null",
        "return",
        "super",
        "switch",
        "this",
        "throw",
        "true",
        "try",
        "typeof",
        "var",
        "void",
        "while",
        "with",
        "yield",
    }
)

# Longest first: matching walks this tuple in order.
OPERATORS = (
    ">>>=",
    "===",
    "!==",
    "**=",
    "<<=",
    ">>=",
    ">>>",
    "...",
    "&&=",
    "||=",
    "??=",
    "==",
    "!=",
    "<=",
    ">=",
    "&&",
    "||",
    "??",
    "?.",
    "=>",
    "++",
    "--",
    "+=",
    "-=",
    "*=",
    "/=",
    "%=",
    "&=",
    "|=",
    "^=",
    "**",
    "<<",
    ">>",
    "=",
    "<",
    ">",
    "+",
    "-",
    "*",
    "/",
    "%",
    "&",
    "|",
    "^",
    "!",
    "~",
    "?",
    ":",
    ".",
)

PUNCTUATION = frozenset("{}()[];,")

# After these keywords a `/` starts a regular expression, not a division.
_REGEX_AFTER_KEYWORDS = frozenset(
    {
        "return",
        "typeof",
        "instanceof",
        "in",
        "of",
        "new",
        "delete",
        "void",
        "throw",
        "case",
        "do",
        "else",
        "yield",
        "await",
    }
)

# A `)` closing one of these headers is followed by a statement.
_HEADER_KEYWORDS = frozenset({"if", "while", "for", "with"})

_LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")
_BLANKS_RE = re.compile(r"[^\S\r\n]+")
_NUMBER_RE = re.compile(
    r"0[xX][0-9a-fA-F_]+n?"
    r"|0[bB][01_]+n?"
    r"|0[oO][0-7_]+n?"
    r"|(?:\d[\d_]*(?:\.[\d_]*)?|\.\d[\d_]*)(?:[eE][+-]?\d[\d_]*)?n?"
)
_REGEX_FLAGS_RE = re.compile(r"[A-Za-z]*")


@dataclass(frozen=True, slots=True)
class Token:
    """A classified, located fragment of source text."""

    kind: TokenKind
    text: str
    line: int
    column: int

    @property
    def is_trivia(self) -> bool:
        return self.kind in (TokenKind.WHITESPACE, TokenKind.COMMENT)

    @property
    def is_newline(self) -> bool:
        return self.kind is TokenKind.WHITESPACE and _LINE_BREAK_RE.fullmatch(self.text) is not None

    @property
    def end_line(self) -> int:
        """Line of the last character of the token."""
        breaks = _LINE_BREAK_RE.findall(self.text)
        if self.is_newline:
            return self.line
        return self.line + len(breaks)

    @property
    def end_column(self) -> int:
        """Column just past the last character of the token."""
        if self.is_newline:
            return self.column + len(self.text)
        last_break = None
        for last_break in _LINE_BREAK_RE.finditer(self.text):
            pass
        if last_break is None:
            return self.column + len(self.text)
        return len(self.text) - last_break.end() + 1

    def __repr__(self) -> str:
        return f"Token({self.kind.value}, {self.text!r}, L{self.line}:{self.column})"


class LexError(ValueError):
    """Unterminated string, template, regular expression or block comment."""

    def __init__(self, message: str, line: int, column: int) -> None:
        self.message = message
        self.line = line
        self.column = column
        super().__init__(f"{message} at line {line}, column {column}")


class Tokenizer:
    """Single-pass tokenizer over one source text.

    Usage:
        tokens = list(Tokenizer(source).tokens())
    """

    def __init__(self, source: str) -> None:
        self.source = source
        self.pos = 0
        self.line = 1
        self.column = 1
        self._last_significant: Token | None = None
        # One entry per open `(`: whether it opened an if/while/for/with header.
        self._parens: list[bool] = []
        self._closed_header = False

    def tokens(self) -> Iterator[Token]:
        source = self.source
        length = len(source)
        while self.pos < length:
            ch = source[self.pos]
            if ch in "\r\n":
                text = "\r\n" if source.startswith("\r\n", self.pos) else ch
                yield self._emit(TokenKind.WHITESPACE, text)
                continue
            if ch.isspace():
                match = _BLANKS_RE.match(source, self.pos)
                yield self._emit(TokenKind.WHITESPACE, match.group() if match else ch)
                continue
            if source.startswith("//", self.pos):
                yield self._emit(TokenKind.COMMENT, self._scan_line_comment())
                continue
            if source.startswith("/*", self.pos):
                yield self._emit(TokenKind.COMMENT, self._scan_block_comment())
                continue
            if ch in "'\"":
                yield self._emit(TokenKind.STRING, self._scan_string(self.pos))
                continue
            if ch == "`":
                end = self._scan_template(self.pos)
                yield self._emit(TokenKind.STRING, source[self.pos : end])
                continue
            if ch == "/" and self._regex_allowed():
                yield self._emit(TokenKind.STRING, self._scan_regex())
                continue
            if _is_digit(ch) or (ch == "." and _is_digit(self._peek(1))):
                match = _NUMBER_RE.match(source, self.pos)
                text = match.group() if match else ch
                yield self._emit(TokenKind.NUMBER, text)
                continue
            if _is_ident_start(ch):
                end = self.pos + 1
                while end < length and _is_ident_part(source[end]):
                    end += 1
                word = source[self.pos : end]
                kind = TokenKind.IDENTIFIER
                if word in KEYWORDS and not self._after_member_access():
                    kind = TokenKind.KEYWORD
                yield self._emit(kind, word)
                continue
            if ch in PUNCTUATION:
                yield self._emit(TokenKind.PUNCTUATION, ch)
                continue
            operator = self._match_operator()
            if operator is not None:
                yield self._emit(TokenKind.OPERATOR, operator)
                continue
            # Stray characters (`#`, `@`, `\`) are kept as punctuation.
            yield self._emit(TokenKind.PUNCTUATION, ch)

    def _emit(self, kind: TokenKind, text: str) -> Token:
        token = Token(kind=kind, text=text, line=self.line, column=self.column)
        self.pos += len(text)
        breaks = list(_LINE_BREAK_RE.finditer(text))
        if breaks:
            self.line += len(breaks)
            self.column = len(text) - breaks[-1].end() + 1
        else:
            self.column += len(text)
        if not token.is_trivia:
            self._track_parens(token)
            self._last_significant = token
        return token

    def _track_parens(self, token: Token) -> None:
        if token.kind is not TokenKind.PUNCTUATION:
            return
        if token.text == "(":
            previous = self._last_significant
            self._parens.append(
                previous is not None
                and previous.kind is TokenKind.KEYWORD
                and previous.text in _HEADER_KEYWORDS
            )
        elif token.text == ")":
            self._closed_header = self._parens.pop() if self._parens else False

    def _after_member_access(self) -> bool:
        previous = self._last_significant
        if previous is None or previous.kind is not TokenKind.OPERATOR:
            return False
        return previous.text in {".", "?."}

    def _peek(self, offset: int) -> str:
        index = self.pos + offset
        if index >= len(self.source):
            return ""
        return self.source[index]

    def _position_of(self, index: int) -> tuple[int, int]:
        """Line and column of an offset at or after the current position."""
        chunk = self.source[self.pos : index]
        breaks = list(_LINE_BREAK_RE.finditer(chunk))
        if not breaks:
            return (self.line, self.column + len(chunk))
        return (self.line + len(breaks), len(chunk) - breaks[-1].end() + 1)

    def _match_operator(self) -> str | None:
        for operator in OPERATORS:
            if self.source.startswith(operator, self.pos):
                return operator
        return None

    def _regex_allowed(self) -> bool:
        previous = self._last_significant
        if previous is None:
            return True
        if previous.kind is TokenKind.OPERATOR:
            return previous.text not in {"++", "--"}
        if previous.kind is TokenKind.PUNCTUATION:
            if previous.text == ")":
                return self._closed_header
            return previous.text not in {"]", "}"}
        if previous.kind is TokenKind.KEYWORD:
            return previous.text in _REGEX_AFTER_KEYWORDS
        return False

    def _scan_line_comment(self) -> str:
        match = _LINE_BREAK_RE.search(self.source, self.pos)
        end = match.start() if match else len(self.source)
        return self.source[self.pos : end]

    def _scan_block_comment(self) -> str:
        end = self.source.find("*/", self.pos + 2)
        if end < 0:
            raise LexError("unterminated block comment", self.line, self.column)
        return self.source[self.pos : end + 2]

    def _scan_string(self, start: int) -> str:
        source = self.source
        quote = source[start]
        index = start + 1
        while index < len(source):
            ch = source[index]
            if ch == "\\":
                index += 3 if source.startswith("\r\n", index + 1) else 2
                continue
            if ch == quote:
                return source[start : index + 1]
            if ch in "\r\n":
                break
            index += 1
        line, column = self._position_of(start)
        raise LexError("unterminated string literal", line, column)

    def _scan_template(self, start: int) -> int:
        """Return the offset just past the template literal starting at ``start``."""
        source = self.source
        index = start + 1
        while index < len(source):
            ch = source[index]
            if ch == "\\":
                index += 2
                continue
            if ch == "`":
                return index + 1
            if source.startswith("${", index):
                index = self._scan_template_expression(index + 2)
                continue
            index += 1
        line, column = self._position_of(start)
        raise LexError("unterminated template literal", line, column)

    def _scan_template_expression(self, index: int) -> int:
        source = self.source
        depth = 1
        while index < len(source):
            ch = source[index]
            if ch in "'\"":
                index += len(self._scan_string(index))
                continue
            if ch == "`":
                index = self._scan_template(index)
                continue
            if ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return index + 1
            index += 1
        return index

    def _scan_regex(self) -> str:
        source = self.source
        index = self.pos + 1
        in_class = False
        while index < len(source):
            ch = source[index]
            if ch in "\r\n":
                break
            if ch == "\\":
                index += 2
                continue
            if ch == "[":
                in_class = True
            elif ch == "]":
                in_class = False
            elif ch == "/" and not in_class:
                flags = _REGEX_FLAGS_RE.match(source, index + 1)
                end = flags.end() if flags else index + 1
                return source[self.pos : end]
            index += 1
        raise LexError("unterminated regular expression", self.line, self.column)


class TokenStream:
    """Restartable token sequence: every iteration tokenizes from the start."""

    def __init__(self, source: str) -> None:
        self.source = source

    def __iter__(self) -> Iterator[Token]:
        return tokenize(self.source)


def tokenize(source: str) -> Iterator[Token]:
    """Lazily tokenize ``source``; raises LexError while iterating."""
    return Tokenizer(source).tokens()


def significant(tokens: Iterator[Token] | tuple[Token, ...] | list[Token]) -> list[Token]:
    """Drop whitespace and comment tokens."""
    return [token for token in tokens if not token.is_trivia]


def _is_ident_start(ch: str) -> bool:
    return ch.isalpha() or ch in "_$"


def _is_ident_part(ch: str) -> bool:
    return ch.isalnum() or ch in "_$"


def _is_digit(ch: str) -> bool:
    return "0" <= ch <= "9" and len(ch) == 1
