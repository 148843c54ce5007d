"""Lookahead cache over the lexer."""

from __future__ import annotations

from collections import deque
from typing import Deque

from .diagnostics import Diagnostic, DiagnosticSink
from .lexer import Lexer
from .token_types import TOKEN_DISPLAY_NAMES, TT, Tok


class TokenBuffer:
    """
    Pull-based token cache with unbounded lookahead.

    Raw operations see every token. The nontrivial variants skip comments and
    whitespace, but the skipped tokens stay in the cache so a raw read after a
    nontrivial peek still observes them.
    """

    def __init__(self, lexer: Lexer):
        self.lexer = lexer
        self.cache: Deque[Tok] = deque()
        # Number of tokens handed out by read_token so far
        self.position = 0

    # ========================================================================
    # Raw stream
    # ========================================================================

    def peek_token(self, n: int = 0) -> Tok:
        """Look at the n-th upcoming token without consuming anything"""
        while len(self.cache) <= n:
            self.cache.append(self.lexer.read_token())
        return self.cache[n]

    def read_token(self) -> Tok:
        tok = self.cache.popleft() if self.cache else self.lexer.read_token()
        self.position += 1
        return tok

    # ========================================================================
    # Nontrivial stream
    # ========================================================================

    def peek_nontrivial_token(self, n: int = 0) -> Tok:
        """Look at the n-th upcoming token that is not a comment or whitespace"""
        index = 0
        remaining = n
        while True:
            tok = self.peek_token(index)
            if not tok.is_trivia:
                if remaining == 0 or tok.type == TT.EOF:
                    return tok
                remaining -= 1
            index += 1

    def read_nontrivial_token(self) -> Tok:
        self.skip_trivia()
        return self.read_token()

    def skip_trivia(self) -> None:
        while self.peek_token().is_trivia:
            self.read_token()

    # ========================================================================
    # Expectations
    # ========================================================================

    def expect_token(self, token_type: TT, log: DiagnosticSink) -> Tok:
        """
        Consume the next raw token if it has the given type.

        Otherwise report the mismatch and return a zero-length token of the
        requested type positioned at the offending token. Nothing is consumed
        in that case.
        """
        tok = self.peek_token()
        if tok.type == token_type:
            return self.read_token()
        return self._unexpected(tok, token_type, log)

    def expect_nontrivial_token(self, token_type: TT, log: DiagnosticSink) -> Tok:
        tok = self.peek_nontrivial_token()
        if tok.type == token_type:
            return self.read_nontrivial_token()
        return self._unexpected(tok, token_type, log)

    @staticmethod
    def _unexpected(tok: Tok, expected: TT, log: DiagnosticSink) -> Tok:
        log.log(Diagnostic.error(
            "unexpected token",
            f"expected {TOKEN_DISPLAY_NAMES[expected]}, got '{tok.contents}'"
            if tok.type != TT.EOF
            else f"expected {TOKEN_DISPLAY_NAMES[expected]}, got end of file",
            tok.location,
        ))
        return Tok("", expected, tok.document, tok.offset)
