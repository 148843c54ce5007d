"""
Token Types for compare-test documents

Shared between lexer, token buffer and parser to avoid circular dependencies.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import FrozenSet, List, Optional


class TT(Enum):
    """Token Types - mirrors grammar terminals"""

    # Special
    EOF = auto()
    UNKNOWN = auto()

    # Trivia
    COMMENT = auto()
    WHITESPACE = auto()

    IDENT = auto()

    # Punctuation
    DOLLAR = auto()  # $
    LPAR = auto()  # (
    RPAR = auto()  # )
    AT = auto()  # @
    ASSIGN = auto()  # =
    LBRACE = auto()  # {
    RBRACE = auto()  # }
    SEMI = auto()  # ;
    PIPE = auto()  # |
    GT = auto()  # >
    LT = auto()  # <
    PROVIDE = auto()  # |>
    COMMA = auto()  # ,

    # Keywords
    TEMPLATE = auto()


# Human-readable names used in "expected ..." diagnostics.
TOKEN_DISPLAY_NAMES = {
    TT.EOF: "end of file",
    TT.UNKNOWN: "unknown character",
    TT.COMMENT: "comment",
    TT.WHITESPACE: "whitespace",
    TT.IDENT: "identifier",
    TT.DOLLAR: "'$'",
    TT.LPAR: "'('",
    TT.RPAR: "')'",
    TT.AT: "'@'",
    TT.ASSIGN: "'='",
    TT.LBRACE: "'{'",
    TT.RBRACE: "'}'",
    TT.SEMI: "';'",
    TT.PIPE: "'|'",
    TT.GT: "'>'",
    TT.LT: "'<'",
    TT.PROVIDE: "'|>'",
    TT.COMMA: "','",
    TT.TEMPLATE: "'template'",
}

TRIVIA: FrozenSet[TT] = frozenset({TT.COMMENT, TT.WHITESPACE})

STRUCTURE_TERMINATORS: FrozenSet[TT] = frozenset({
    TT.RBRACE,
    TT.RPAR,
    TT.SEMI,
    TT.EOF,
    TT.PIPE,
    TT.PROVIDE,
    TT.GT,
    TT.COMMA,
})


@dataclass(frozen=True)
class SourceDocument:
    """A named chunk of source text (usually a test file)."""

    identifier: str
    text: str
    _line_starts: List[int] = field(default_factory=list, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        starts = [0]
        for i, ch in enumerate(self.text):
            if ch == '\n':
                starts.append(i + 1)
        self._line_starts.extend(starts)

    def line_and_column(self, offset: int) -> tuple[int, int]:
        """1-based line and column of a character offset."""
        lo, hi = 0, len(self._line_starts) - 1
        while lo < hi:
            mid = (lo + hi + 1) // 2
            if self._line_starts[mid] <= offset:
                lo = mid
            else:
                hi = mid - 1
        return lo + 1, offset - self._line_starts[lo] + 1

    def line_text(self, line: int) -> str:
        if line < 1 or line > len(self._line_starts):
            return ""
        start = self._line_starts[line - 1]
        end = self.text.find('\n', start)
        if end < 0:
            end = len(self.text)
        return self.text[start:end].rstrip('\r')


@dataclass(frozen=True)
class SourceLocation:
    document: SourceDocument
    offset: int
    length: int

    @property
    def line(self) -> int:
        return self.document.line_and_column(self.offset)[0]

    @property
    def column(self) -> int:
        return self.document.line_and_column(self.offset)[1]

    def __str__(self) -> str:
        line, column = self.document.line_and_column(self.offset)
        return f"{self.document.identifier}:{line}:{column}"


@dataclass(frozen=True)
class Tok:
    """Token with position info"""

    contents: str
    type: TT
    document: Optional[SourceDocument] = field(default=None, repr=False, compare=False)
    offset: int = 0

    @property
    def location(self) -> Optional[SourceLocation]:
        if self.document is None:
            return None
        return SourceLocation(self.document, self.offset, len(self.contents))

    @property
    def is_trivia(self) -> bool:
        return self.type in TRIVIA

    @property
    def terminates_structure(self) -> bool:
        return self.type in STRUCTURE_TERMINATORS

    def __repr__(self) -> str:
        return f"Tok({self.type.name}, {self.contents!r}, @{self.offset})"
