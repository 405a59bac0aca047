"""Tokenizer tests: classification, locations, literals and lexing failures."""

from __future__ import annotations

import pytest

from jsconv.tokenizer import LexError, Token, TokenKind, TokenStream, significant, tokenize

SAMPLE = """\
/* Utilities. */
var counter = 0;

function next(step) {
    // advance
    counter += step || 1;
    return `value: ${counter}`;
}
"""


def test_token_texts_reproduce_source() -> None:
    tokens = list(tokenize(SAMPLE))
    assert "".join(token.text for token in tokens) == SAMPLE


def test_tokenizing_twice_is_identical() -> None:
    assert list(tokenize(SAMPLE)) == list(tokenize(SAMPLE))


def test_token_stream_restarts_on_each_iteration() -> None:
    stream = TokenStream(SAMPLE)
    first = list(stream)
    second = list(stream)
    assert first == second
    assert first[0].kind is TokenKind.COMMENT


def test_tokenize_is_lazy_and_raises_while_iterating() -> None:
    stream = tokenize("'abc")
    with pytest.raises(LexError):
        next(stream)


def test_keywords_and_identifiers() -> None:
    tokens = significant(tokenize("var of = this;"))
    assert [(token.kind, token.text) for token in tokens] == [
        (TokenKind.KEYWORD, "var"),
        (TokenKind.IDENTIFIER, "of"),
        (TokenKind.OPERATOR, "="),
        (TokenKind.KEYWORD, "this"),
        (TokenKind.PUNCTUATION, ";"),
    ]


def test_keyword_after_member_access_is_a_property_name() -> None:
    tokens = significant(tokenize("p.catch(onFail); q?.default; catch"))
    kinds = {(token.text, token.kind) for token in tokens if token.text in {"catch", "default"}}
    assert kinds == {
        ("catch", TokenKind.IDENTIFIER),
        ("default", TokenKind.IDENTIFIER),
        ("catch", TokenKind.KEYWORD),
    }


def test_lines_and_columns_are_one_based() -> None:
    tokens = significant(tokenize("var a = 1;\nvar b;"))
    b_token = next(token for token in tokens if token.text == "b")
    assert (b_token.line, b_token.column) == (2, 5)
    assert (tokens[0].line, tokens[0].column) == (1, 1)


def test_crlf_is_one_newline_token() -> None:
    tokens = list(tokenize("a\r\nb"))
    assert [token.text for token in tokens] == ["a", "\r\n", "b"]
    assert tokens[1].kind is TokenKind.WHITESPACE
    assert tokens[1].is_newline
    assert (tokens[2].line, tokens[2].column) == (2, 1)


@pytest.mark.parametrize(
    ("source", "expected"),
    [
        ("a >>>= b", [">>>="]),
        ("a >>= b >> c > d", [">>=", ">>", ">"]),
        ("x === y !== z == w", ["===", "!==", "=="]),
        ("a?.b ?? c", ["?.", "??"]),
        ("f(...args)", ["..."]),
        ("n ??= m", ["??="]),
        ("(x) => x + 1", ["=>", "+"]),
    ],
)
def test_operators_match_longest_first(source: str, expected: list[str]) -> None:
    operators = [token.text for token in tokenize(source) if token.kind is TokenKind.OPERATOR]
    assert operators == expected


def test_line_comment_stops_before_line_break() -> None:
    tokens = list(tokenize("x; // note\ny;"))
    comment = next(token for token in tokens if token.kind is TokenKind.COMMENT)
    assert comment.text == "// note"
    assert tokens[tokens.index(comment) + 1].is_newline


def test_block_comment_is_a_single_multiline_token() -> None:
    tokens = list(tokenize("/* a\n b */x"))
    assert tokens[0].kind is TokenKind.COMMENT
    assert tokens[0].text == "/* a\n b */"
    assert tokens[0].end_line == 2
    assert (tokens[1].line, tokens[1].column) == (2, 6)


def test_strings_keep_escaped_quotes() -> None:
    tokens = significant(tokenize("s = 'it\\'s' + \"a\\\"b\";"))
    strings = [token.text for token in tokens if token.kind is TokenKind.STRING]
    assert strings == ["'it\\'s'", '"a\\"b"']


def test_division_after_expression() -> None:
    tokens = significant(tokenize("a = b / c / (d) / 2;"))
    divisions = [token for token in tokens if token.text == "/"]
    assert len(divisions) == 3
    assert all(token.kind is TokenKind.OPERATOR for token in divisions)


def test_division_after_call_inside_control_header() -> None:
    tokens = significant(tokenize("if (f(a) / 2) x = (b) / 2;"))
    divisions = [token for token in tokens if token.text == "/"]
    assert len(divisions) == 2
    assert all(token.kind is TokenKind.OPERATOR for token in divisions)


@pytest.mark.parametrize(
    ("source", "literal"),
    [
        ("x = /ab+c/gi.test(s);", "/ab+c/gi"),
        ("return /[/]x/;", "/[/]x/"),
        ("f(/a\\/b/);", "/a\\/b/"),
        ("if (s) /a{/.test(s);", "/a{/"),
        ("while (next(it)) /x/g.exec(s);", "/x/g"),
    ],
)
def test_regex_literal_where_expression_cannot_end(source: str, literal: str) -> None:
    strings = [token.text for token in tokenize(source) if token.kind is TokenKind.STRING]
    assert strings == [literal]


def test_template_literal_spans_lines_and_nests() -> None:
    source = "t = `a ${b + `c ${d}`}\ne`;"
    tokens = significant(tokenize(source))
    template = tokens[2]
    assert template.kind is TokenKind.STRING
    assert template.text == "`a ${b + `c ${d}`}\ne`"
    assert template.end_line == 2
    assert tokens[3].text == ";"


def test_numbers() -> None:
    tokens = significant(tokenize("0x1F + 1.5e3 - .5 + 10n"))
    numbers = [token.text for token in tokens if token.kind is TokenKind.NUMBER]
    assert numbers == ["0x1F", "1.5e3", ".5", "10n"]


def test_stray_characters_become_punctuation() -> None:
    tokens = significant(tokenize("@dec #x"))
    assert tokens[0] == Token(kind=TokenKind.PUNCTUATION, text="@", line=1, column=1)
    assert tokens[2].kind is TokenKind.PUNCTUATION
    assert tokens[2].text == "#"


@pytest.mark.parametrize(
    ("source", "message", "line", "column"),
    [
        ("var s = 'abc\n", "unterminated string literal", 1, 9),
        ("var t;\nt = `abc", "unterminated template literal", 2, 5),
        ("x;\n  /* never closed", "unterminated block comment", 2, 3),
        ("x = /abc", "unterminated regular expression", 1, 5),
    ],
)
def test_unterminated_literals_raise_lex_error(
    source: str, message: str, line: int, column: int
) -> None:
    with pytest.raises(LexError) as excinfo:
        list(tokenize(source))
    assert excinfo.value.message == message
    assert (excinfo.value.line, excinfo.value.column) == (line, column)


def test_end_column_of_multiline_token() -> None:
    token = next(iter(tokenize("/* ab\ncd */")))
    assert token.end_line == 2
    assert token.end_column == 6
