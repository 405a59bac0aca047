"""Statement boundaries, function scopes and declarations.

This is a lightweight reconstruction over significant tokens, not a parse
tree: statements are cut at semicolons, compound-statement braces and line
breaks where automatic semicolon insertion would apply.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field, replace
from typing import Literal

from jsconv.tokenizer import Token, TokenKind, significant

CONTROL_KEYWORDS = frozenset({"if", "for", "while", "switch", "catch", "with"})
BLOCK_KEYWORDS = frozenset({"else", "try", "finally", "do"})
DECLARATION_KEYWORDS = frozenset({"var", "let", "const"})
ASSIGNMENT_OPERATORS = frozenset(
    {
        "=",
        "+=",
        "-=",
        "*=",
        "/=",
        "%=",
        "**=",
        "<<=",
        ">>=",
        ">>>=",
        "&=",
        "|=",
        "^=",
        "&&=",
        "||=",
        "??=",
    }
)

_RESTRICTED_KEYWORDS = frozenset({"return", "break", "continue"})
_VALUE_KEYWORDS = frozenset({"this", "true", "false", "null", "super"})
_CONTINUATION_KEYWORDS = frozenset({"in", "instanceof"})
_PREFIX_OPERATORS = frozenset({"++", "--", "!", "~"})

DeclarationKind = Literal["var", "let", "const", "function", "param", "catch", "class"]


@dataclass(frozen=True, slots=True)
class Statement:
    """Tokens of one statement; ``start`` indexes the significant tokens."""

    tokens: tuple[Token, ...]
    start: int
    scope_id: int
    depth: int
    opens_block: bool

    @property
    def first(self) -> Token:
        return self.tokens[0]

    @property
    def last(self) -> Token:
        return self.tokens[-1]

    @property
    def line(self) -> int:
        return self.tokens[0].line

    @property
    def end_line(self) -> int:
        return self.tokens[-1].end_line

    @property
    def terminated(self) -> bool:
        last = self.tokens[-1]
        return last.kind is TokenKind.PUNCTUATION and last.text == ";"


@dataclass(frozen=True, slots=True)
class Scope:
    """A function scope; scope 0 is the whole program."""

    scope_id: int
    parent_id: int | None
    open_index: int | None
    close_index: int | None


@dataclass(frozen=True, slots=True)
class Declaration:
    """A name bound by a declaration, parameter list or function header."""

    name: Token
    kind: DeclarationKind
    scope_id: int
    index: int
    # Last token index where the name is bound; None for the rest of its scope.
    visible_until: int | None = None


@dataclass(frozen=True, slots=True)
class Structure:
    """Statement and scope view of one token sequence."""

    tokens: tuple[Token, ...]
    pairs: dict[int, int]
    statements: tuple[Statement, ...]
    scopes: tuple[Scope, ...]
    scope_of: tuple[int, ...]
    body_scopes: dict[int, int]

    def previous(self, index: int) -> Token | None:
        return self.tokens[index - 1] if index > 0 else None

    def following(self, index: int) -> Token | None:
        return self.tokens[index + 1] if index + 1 < len(self.tokens) else None


@dataclass(slots=True)
class _Frame:
    kind: Literal["program", "block", "class", "function", "object"]
    scope_id: int
    pending: list[int]
    header: bool
    depth: int = 0
    parens: int = 0


@dataclass(slots=True)
class _ScopeDraft:
    scope_id: int
    parent_id: int | None
    open_index: int | None
    close_index: int | None = None


@dataclass(slots=True)
class _Builder:
    tokens: tuple[Token, ...]
    pairs: dict[int, int]
    frames: list[_Frame] = field(default_factory=list)
    statements: list[Statement] = field(default_factory=list)
    scopes: list[_ScopeDraft] = field(default_factory=list)
    scope_of: list[int] = field(default_factory=list)
    body_scopes: dict[int, int] = field(default_factory=dict)

    def run(self) -> Structure:
        self.scopes.append(_ScopeDraft(scope_id=0, parent_id=None, open_index=None))
        self.frames.append(_Frame(kind="program", scope_id=0, pending=[], header=True))

        for index, token in enumerate(self.tokens):
            frame = self.frames[-1]
            self.scope_of.append(frame.scope_id)
            if index > 0 and self._breaks_statement(frame, index):
                self._emit(frame)
            self._feed(frame, index, token)

        for frame in reversed(self.frames):
            if frame.kind != "object":
                self._emit(frame)

        ordered = sorted(self.statements, key=lambda item: item.start)
        return Structure(
            tokens=self.tokens,
            pairs=self.pairs,
            statements=tuple(ordered),
            scopes=tuple(
                Scope(
                    scope_id=draft.scope_id,
                    parent_id=draft.parent_id,
                    open_index=draft.open_index,
                    close_index=draft.close_index,
                )
                for draft in self.scopes
            ),
            scope_of=tuple(self.scope_of),
            body_scopes=dict(self.body_scopes),
        )

    def _feed(self, frame: _Frame, index: int, token: Token) -> None:
        text = token.text
        if token.kind is not TokenKind.PUNCTUATION or text not in "()[]{};":
            frame.pending.append(index)
            return

        if text in "([":
            frame.parens += 1
            frame.pending.append(index)
        elif text in ")]":
            frame.parens = max(0, frame.parens - 1)
            frame.pending.append(index)
        elif text == ";":
            frame.pending.append(index)
            if frame.parens == 0 and frame.kind != "object":
                self._emit(frame)
        elif text == "{":
            self._open_brace(frame, index)
        else:
            self._close_brace(index)

    def _open_brace(self, frame: _Frame, index: int) -> None:
        kind, header = self._classify_brace(frame, index)
        frame.pending.append(index)
        if header:
            self._emit(frame, opens_block=True)

        if kind == "object":
            self.frames.append(
                _Frame(
                    kind="object",
                    scope_id=frame.scope_id,
                    pending=frame.pending,
                    header=False,
                    depth=len(self.frames),
                )
            )
            return

        scope_id = frame.scope_id
        if kind == "function":
            scope_id = len(self.scopes)
            self.scopes.append(
                _ScopeDraft(scope_id=scope_id, parent_id=frame.scope_id, open_index=index)
            )
            self.body_scopes[index] = scope_id
        self.frames.append(
            _Frame(kind=kind, scope_id=scope_id, pending=[], header=header, depth=len(self.frames))
        )

    def _close_brace(self, index: int) -> None:
        if len(self.frames) == 1:
            self.frames[0].pending.append(index)
            return
        closing = self.frames.pop()
        if closing.kind != "object":
            self._emit(closing)
        if closing.kind == "function":
            self.scopes[closing.scope_id].close_index = index
        if not closing.header:
            self.frames[-1].pending.append(index)

    def _classify_brace(
        self, frame: _Frame, index: int
    ) -> tuple[Literal["block", "class", "function", "object"], bool]:
        statement_level = frame.kind != "object" and frame.parens == 0
        if index == 0:
            return ("block", True)
        previous = self.tokens[index - 1]

        if _is_punct(previous, ")"):
            opener = self.pairs.get(index - 1)
            before = self.tokens[opener - 1] if opener is not None and opener > 0 else None
            if before is not None and before.kind is TokenKind.KEYWORD:
                if before.text in CONTROL_KEYWORDS:
                    return ("block", True)
            if frame.kind == "class" and frame.parens == 0:
                return ("function", True)
            return ("function", statement_level and self._starts_function_declaration(frame))
        if previous.kind is TokenKind.OPERATOR and previous.text == "=>":
            return ("function", False)
        if previous.kind is TokenKind.KEYWORD and previous.text in BLOCK_KEYWORDS:
            return ("block", True)
        if statement_level and self._is_class_header(frame, previous):
            return ("class", self._starts_class_declaration(frame))
        if statement_level and self._ends_label(frame, previous):
            return ("block", True)
        if statement_level and previous.kind is TokenKind.PUNCTUATION and previous.text in ";{}":
            return ("block", True)
        return ("object", False)

    def _ends_label(self, frame: _Frame, previous: Token) -> bool:
        """`case x: {`, `default: {` and `name: {` open a block."""
        if previous.kind is not TokenKind.OPERATOR or previous.text != ":" or not frame.pending:
            return False
        head = self.tokens[frame.pending[0]]
        if head.kind is TokenKind.KEYWORD and head.text in {"case", "default"}:
            return not any(self.tokens[item].text == "?" for item in frame.pending)
        return len(frame.pending) == 2 and head.kind is TokenKind.IDENTIFIER

    def _starts_function_declaration(self, frame: _Frame) -> bool:
        if not frame.pending:
            return False
        head = [self.tokens[item].text for item in frame.pending[:4]]
        if "function" not in head:
            return False
        return head[0] in {"function", "async", "export"}

    def _is_class_header(self, frame: _Frame, previous: Token) -> bool:
        if previous.kind is TokenKind.KEYWORD and previous.text == "class":
            return True
        if previous.kind is not TokenKind.IDENTIFIER:
            return False
        return any(self.tokens[item].text == "class" for item in frame.pending)

    def _starts_class_declaration(self, frame: _Frame) -> bool:
        head = [self.tokens[item].text for item in frame.pending[:3]]
        return bool(head) and head[0] in {"class", "export"}

    def _breaks_statement(self, frame: _Frame, index: int) -> bool:
        if frame.kind == "object" or frame.parens or not frame.pending:
            return False
        previous = self.tokens[index - 1]
        token = self.tokens[index]
        if token.line <= previous.end_line:
            return False
        if previous.kind is TokenKind.KEYWORD and previous.text in _RESTRICTED_KEYWORDS:
            return True
        if not can_end_expression(previous) or not can_start_statement(token):
            return False
        if _is_punct(previous, ")"):
            opener = self.pairs.get(index - 1)
            before = self.tokens[opener - 1] if opener is not None and opener > 0 else None
            if before is not None and before.kind is TokenKind.KEYWORD:
                return before.text not in CONTROL_KEYWORDS
        return True

    def _emit(self, frame: _Frame, *, opens_block: bool = False) -> None:
        if not frame.pending:
            return
        self.statements.append(
            Statement(
                tokens=tuple(self.tokens[item] for item in frame.pending),
                start=frame.pending[0],
                scope_id=frame.scope_id,
                depth=frame.depth,
                opens_block=opens_block,
            )
        )
        frame.pending.clear()


def build_structure(tokens: Iterable[Token]) -> Structure:
    """Reconstruct statements and scopes from a token sequence."""
    sig = tuple(significant(tokens))
    return _Builder(tokens=sig, pairs=pair_brackets(sig)).run()


def pair_brackets(tokens: tuple[Token, ...] | list[Token]) -> dict[int, int]:
    """Map each matched bracket index to its partner; unmatched ones are ignored."""
    closers = {")": "(", "]": "[", "}": "{"}
    pairs: dict[int, int] = {}
    stack: list[int] = []
    for index, token in enumerate(tokens):
        if token.kind is not TokenKind.PUNCTUATION:
            continue
        if token.text in "([{":
            stack.append(index)
        elif token.text in closers:
            expected = closers[token.text]
            while stack and tokens[stack[-1]].text != expected:
                stack.pop()
            if stack:
                opener = stack.pop()
                pairs[opener] = index
                pairs[index] = opener
    return pairs


def can_end_expression(token: Token) -> bool:
    if token.kind in (TokenKind.IDENTIFIER, TokenKind.NUMBER, TokenKind.STRING):
        return True
    if token.kind is TokenKind.KEYWORD:
        return token.text in _VALUE_KEYWORDS
    if token.kind is TokenKind.PUNCTUATION:
        return token.text in ")]}"
    return token.text in {"++", "--"}


def can_start_statement(token: Token) -> bool:
    if token.kind in (TokenKind.IDENTIFIER, TokenKind.NUMBER, TokenKind.STRING):
        return True
    if token.kind is TokenKind.KEYWORD:
        return token.text not in _CONTINUATION_KEYWORDS
    if token.kind is TokenKind.OPERATOR:
        return token.text in _PREFIX_OPERATORS
    return False


def arrow_body_end(structure: Structure, arrow_index: int) -> int:
    """Index of the last token of the expression body after an ``=>``."""
    tokens = structure.tokens
    end = arrow_index
    index = arrow_index + 1
    while index < len(tokens):
        token = tokens[index]
        if token.kind is TokenKind.PUNCTUATION and token.text in ")]};,":
            break
        if end > arrow_index:
            previous = tokens[end]
            if (
                token.line > previous.end_line
                and can_end_expression(previous)
                and can_start_statement(token)
            ):
                break
        end = index
        if token.kind is TokenKind.PUNCTUATION and token.text in "([{":
            end = structure.pairs.get(index, index)
        index = end + 1
    return end


def iter_declarations(structure: Structure) -> Iterator[Declaration]:
    """Yield declared names in token order of their binding site."""
    found: list[Declaration] = []
    tokens = structure.tokens
    for index, token in enumerate(tokens):
        if token.kind is TokenKind.KEYWORD:
            if token.text in DECLARATION_KEYWORDS:
                found.extend(_declared_names(structure, index))
            elif token.text == "function":
                name_index = index + 1
                if name_index < len(tokens) and tokens[name_index].text == "*":
                    name_index += 1
                if name_index < len(tokens) and tokens[name_index].kind is TokenKind.IDENTIFIER:
                    found.append(
                        Declaration(
                            name=tokens[name_index],
                            kind="function",
                            scope_id=structure.scope_of[index],
                            index=name_index,
                        )
                    )
            elif token.text == "catch":
                following = structure.following(index)
                if following is not None and _is_punct(following, "("):
                    close = structure.pairs.get(index + 1)
                    if close is not None:
                        scope_id = structure.scope_of[index]
                        found.extend(_parameters(structure, index + 1, close, scope_id, "catch"))
            elif token.text == "class":
                following = structure.following(index)
                if following is not None and following.kind is TokenKind.IDENTIFIER:
                    found.append(
                        Declaration(
                            name=following,
                            kind="class",
                            scope_id=structure.scope_of[index],
                            index=index + 1,
                        )
                    )
        elif token.kind is TokenKind.OPERATOR and token.text == "=>":
            previous = structure.previous(index)
            params: list[Declaration] = []
            scope_id = structure.body_scopes.get(index + 1, structure.scope_of[index])
            if previous is not None and previous.kind is TokenKind.IDENTIFIER:
                params.append(
                    Declaration(name=previous, kind="param", scope_id=scope_id, index=index - 1)
                )
            elif previous is not None and _is_punct(previous, ")"):
                opener = structure.pairs.get(index - 1)
                if opener is not None:
                    params.extend(_parameters(structure, opener, index - 1, scope_id, "param"))
            if index + 1 not in structure.body_scopes:
                end = arrow_body_end(structure, index)
                params = [replace(item, visible_until=end) for item in params]
            found.extend(params)

    # Parameter lists of function declarations, expressions and methods.
    for brace_index, scope_id in structure.body_scopes.items():
        previous = structure.previous(brace_index)
        if previous is None or not _is_punct(previous, ")"):
            continue
        opener = structure.pairs.get(brace_index - 1)
        if opener is None:
            continue
        found.extend(_parameters(structure, opener, brace_index - 1, scope_id, "param"))

    found.sort(key=lambda item: item.index)
    return iter(found)


def _declared_names(structure: Structure, keyword_index: int) -> Iterator[Declaration]:
    tokens = structure.tokens
    kind: DeclarationKind = tokens[keyword_index].text  # type: ignore[assignment]
    scope_id = structure.scope_of[keyword_index]
    depth = 0
    expect_name = True
    index = keyword_index + 1
    while index < len(tokens):
        token = tokens[index]
        if token.kind is TokenKind.PUNCTUATION and token.text in "([{":
            if depth == 0 and expect_name and token.text in "[{":
                close = structure.pairs.get(index, index)
                yield from _pattern_names(structure, index, close, scope_id, kind)
                index = close + 1
                expect_name = False
                continue
            depth += 1
        elif token.kind is TokenKind.PUNCTUATION and token.text in ")]}":
            if depth == 0:
                return
            depth -= 1
        elif depth == 0:
            if _is_punct(token, ";"):
                return
            if _is_punct(token, ","):
                expect_name = True
                index += 1
                continue
            if expect_name:
                if token.kind is not TokenKind.IDENTIFIER:
                    return
                yield Declaration(name=token, kind=kind, scope_id=scope_id, index=index)
                expect_name = False
            elif token.text in {"in", "of"}:
                return
            else:
                previous = tokens[index - 1]
                if (
                    token.line > previous.end_line
                    and can_end_expression(previous)
                    and can_start_statement(token)
                ):
                    return
        index += 1


def _pattern_names(
    structure: Structure, start: int, end: int, scope_id: int, kind: DeclarationKind
) -> Iterator[Declaration]:
    tokens = structure.tokens
    for index in range(start + 1, end):
        token = tokens[index]
        if token.kind is not TokenKind.IDENTIFIER:
            continue
        following = structure.following(index)
        if following is not None and following.kind is TokenKind.OPERATOR and following.text == ":":
            continue
        yield Declaration(name=token, kind=kind, scope_id=scope_id, index=index)


def _parameters(
    structure: Structure, start: int, end: int, scope_id: int, kind: DeclarationKind
) -> Iterator[Declaration]:
    tokens = structure.tokens
    depth = 0
    for index in range(start + 1, end):
        token = tokens[index]
        if token.kind is TokenKind.PUNCTUATION and token.text in "([{":
            if depth == 0 and token.text in "[{":
                close = structure.pairs.get(index, index)
                yield from _pattern_names(structure, index, close, scope_id, kind)
            depth += 1
            continue
        if token.kind is TokenKind.PUNCTUATION and token.text in ")]}":
            depth -= 1
            continue
        if depth != 0 or token.kind is not TokenKind.IDENTIFIER:
            continue
        previous = tokens[index - 1]
        if index - 1 == start or _is_punct(previous, ",") or previous.text == "...":
            yield Declaration(name=token, kind=kind, scope_id=scope_id, index=index)


def _is_punct(token: Token, text: str) -> bool:
    return token.kind is TokenKind.PUNCTUATION and token.text == text
