from __future__ import annotations

from dataclasses import dataclass
from textwrap import dedent
from typing import List, Optional, Tuple

import pytest

from compare_test.lexer import Lexer
from compare_test.token_types import TT
from tests.support.harness import lex, token_types


@dataclass(frozen=True)
class Case:
    """Unified lexer case payload."""

    name: str
    source: str
    expected: Optional[Tuple[Tuple[TT, str], ...]] = None
    expected_types: Optional[Tuple[TT, ...]] = None


PUNCTUATION_CASES: List[Case] = [
    Case("dollar", "$", expected_types=(TT.DOLLAR,)),
    Case("lpar", "(", expected_types=(TT.LPAR,)),
    Case("rpar", ")", expected_types=(TT.RPAR,)),
    Case("at", "@", expected_types=(TT.AT,)),
    Case("assign", "=", expected_types=(TT.ASSIGN,)),
    Case("lbrace", "{", expected_types=(TT.LBRACE,)),
    Case("rbrace", "}", expected_types=(TT.RBRACE,)),
    Case("semi", ";", expected_types=(TT.SEMI,)),
    Case("pipe", "|", expected_types=(TT.PIPE,)),
    Case("gt", ">", expected_types=(TT.GT,)),
    Case("lt", "<", expected_types=(TT.LT,)),
    Case("comma", ",", expected_types=(TT.COMMA,)),
    Case("provide", "|>", expected_types=(TT.PROVIDE,)),
    Case("pipe-then-pipe", "||", expected_types=(TT.PIPE, TT.PIPE)),
    Case("gt-then-pipe", ">|", expected_types=(TT.GT, TT.PIPE)),
]

WORD_CASES: List[Case] = [
    Case("ident-single", "x", expected=((TT.IDENT, "x"),)),
    Case("ident-snake", "foo_bar", expected=((TT.IDENT, "foo_bar"),)),
    Case("ident-dash", "builtin-cat", expected=((TT.IDENT, "builtin-cat"),)),
    Case("ident-digits", "x86_64", expected=((TT.IDENT, "x86_64"),)),
    Case("ident-leading-underscore", "_tmp", expected=((TT.IDENT, "_tmp"),)),
    Case("keyword-template", "template", expected=((TT.TEMPLATE, "template"),)),
    Case("keyword-prefix", "templates", expected=((TT.IDENT, "templates"),)),
    Case("keyword-dash-suffix", "template-x", expected=((TT.IDENT, "template-x"),)),
    Case(
        "digit-does-not-start-ident",
        "1abc",
        expected=((TT.UNKNOWN, "1"), (TT.IDENT, "abc")),
    ),
    Case(
        "dash-does-not-start-ident",
        "-O2",
        expected=((TT.UNKNOWN, "-"), (TT.IDENT, "O2")),
    ),
    Case(
        "dotted-file-name",
        "foo.txt",
        expected=((TT.IDENT, "foo"), (TT.UNKNOWN, "."), (TT.IDENT, "txt")),
    ),
]

TRIVIA_CASES: List[Case] = [
    Case("whitespace-run", " \t\n  ", expected=((TT.WHITESPACE, " \t\n  "),)),
    Case(
        "comment-stops-before-newline",
        "// hi\nx",
        expected=((TT.COMMENT, "// hi"), (TT.WHITESPACE, "\n"), (TT.IDENT, "x")),
    ),
    Case("comment-at-eof", "//", expected=((TT.COMMENT, "//"),)),
    Case(
        "single-slash-is-unknown",
        "a/b",
        expected=((TT.IDENT, "a"), (TT.UNKNOWN, "/"), (TT.IDENT, "b")),
    ),
    Case(
        "comment-swallows-punctuation",
        "// a; b { }",
        expected=((TT.COMMENT, "// a; b { }"),),
    ),
]


def _run_case(case: Case) -> None:
    tokens = lex(case.source)
    assert tokens[-1].type == TT.EOF
    body = tokens[:-1]

    if case.expected is not None:
        actual = tuple((tok.type, tok.contents) for tok in body)
        assert actual == case.expected

    if case.expected_types is not None:
        assert tuple(tok.type for tok in body) == case.expected_types


@pytest.mark.parametrize("case", PUNCTUATION_CASES, ids=lambda c: c.name)
def test_lexer_punctuation(case: Case) -> None:
    _run_case(case)


@pytest.mark.parametrize("case", WORD_CASES, ids=lambda c: c.name)
def test_lexer_words(case: Case) -> None:
    _run_case(case)


@pytest.mark.parametrize("case", TRIVIA_CASES, ids=lambda c: c.name)
def test_lexer_trivia(case: Case) -> None:
    _run_case(case)


LOSSLESS_SOURCES = [
    pytest.param("", id="empty"),
    pytest.param("x = @(builtin-cat foo.txt);", id="assignment"),
    pytest.param(
        dedent(
            """\
            // build everything
            init { cc = gcc; }
            build {
                $cc -O2 $(src) -o out.bin |> cat | sort > sorted.txt;
            }
            run { result = @(./out.bin, -1); }
            tests { template check<a, "b c">; sub/child.test; }
            """
        ),
        id="document",
    ),
    pytest.param("été ☃ #!%^&*\r\n\t", id="unicode-and-junk"),
]


@pytest.mark.parametrize("source", LOSSLESS_SOURCES)
def test_tokens_reconstruct_source(source: str) -> None:
    tokens = lex(source)
    assert "".join(tok.contents for tok in tokens) == source


@pytest.mark.parametrize("source", LOSSLESS_SOURCES)
def test_token_offsets_are_contiguous(source: str) -> None:
    offset = 0
    for tok in lex(source):
        assert tok.offset == offset
        offset += len(tok.contents)
    assert offset == len(source)


def test_eof_is_idempotent() -> None:
    lexer = Lexer("x")
    assert lexer.read_token().type == TT.IDENT

    for _ in range(3):
        tok = lexer.read_token()
        assert tok.type == TT.EOF
        assert tok.contents == ""
        assert tok.offset == 1


def test_read_token_advances_by_token_length() -> None:
    lexer = Lexer("ab  |>c")
    assert lexer.read_token().contents == "ab"
    assert lexer.pos == 2
    assert lexer.read_token().type == TT.WHITESPACE
    assert lexer.pos == 4
    assert lexer.read_token().type == TT.PROVIDE
    assert lexer.pos == 6


def test_token_location_reports_line_and_column() -> None:
    tokens = [tok for tok in lex("a\n  bc") if tok.type == TT.IDENT]
    loc = tokens[1].location
    assert loc is not None
    assert (loc.line, loc.column, loc.length) == (2, 3, 2)
    assert str(loc) == "<source>:2:3"


def test_trivia_flags() -> None:
    types = token_types("x // c\n;")
    assert types == [TT.IDENT, TT.WHITESPACE, TT.COMMENT, TT.WHITESPACE, TT.SEMI, TT.EOF]
    tokens = lex("x // c\n;")
    assert [tok.is_trivia for tok in tokens] == [False, True, True, True, False, False]
    assert [tok.terminates_structure for tok in tokens] == [False, False, False, False, True, True]
