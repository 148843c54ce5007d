"""
Lexer for compare-test documents

Converts document text into a flat token stream.

Features:
- Pull-based: one token per read_token() call
- Lossless: concatenating every token's contents rebuilds the document
- No lexical errors: unrecognised characters become UNKNOWN tokens
"""

from __future__ import annotations

from typing import List, Union

from .token_types import TT, SourceDocument, Tok

# ============================================================================
# Lexer Implementation
# ============================================================================

class Lexer:
    """
    compare-test lexer.

    Recognition order, first match wins:
    1. two-character operators
    2. single-character punctuation
    3. '//' line comments
    4. identifiers (and the keywords they may spell)
    5. whitespace runs
    6. a single unknown character
    """

    KEYWORDS = {
        'template': TT.TEMPLATE,
    }

    # Longest matches first to handle prefixes correctly
    OPERATORS = [
        # Two-character operators
        ('|>', TT.PROVIDE),

        # Single-character operators
        ('$', TT.DOLLAR),
        ('(', TT.LPAR),
        (')', TT.RPAR),
        ('@', TT.AT),
        ('=', TT.ASSIGN),
        ('{', TT.LBRACE),
        ('}', TT.RBRACE),
        (';', TT.SEMI),
        ('|', TT.PIPE),
        ('>', TT.GT),
        ('<', TT.LT),
        (',', TT.COMMA),
    ]

    def __init__(self, source: Union[str, SourceDocument]):
        if isinstance(source, str):
            source = SourceDocument("<source>", source)
        self.document = source
        self.source = source.text
        self.pos = 0

    # ========================================================================
    # Main Tokenization
    # ========================================================================

    def read_token(self) -> Tok:
        """Consume and return the token that starts at the current offset"""
        if self.pos >= len(self.source):
            return self.emit(TT.EOF, self.pos)

        start = self.pos

        for op_str, op_type in self.OPERATORS:
            if self.source.startswith(op_str, self.pos):
                self.pos += len(op_str)
                return self.emit(op_type, start)

        if self.source.startswith('//', self.pos):
            self.skip_comment()
            return self.emit(TT.COMMENT, start)

        if self.is_ident_head(self.peek()):
            return self.scan_identifier()

        if self.peek().isspace():
            while self.pos < len(self.source) and self.peek().isspace():
                self.pos += 1
            return self.emit(TT.WHITESPACE, start)

        self.pos += 1
        return self.emit(TT.UNKNOWN, start)

    def tokenize(self) -> List[Tok]:
        """Tokenize entire source, return token list ending in EOF"""
        tokens = []
        while True:
            tok = self.read_token()
            tokens.append(tok)
            if tok.type == TT.EOF:
                return tokens

    # ========================================================================
    # Token Scanners
    # ========================================================================

    def scan_identifier(self) -> Tok:
        """Scan identifier or keyword"""
        start = self.pos
        self.pos += 1

        while self.pos < len(self.source) and self.is_ident_tail(self.peek()):
            self.pos += 1

        value = self.source[start:self.pos]
        return self.emit(self.KEYWORDS.get(value, TT.IDENT), start)

    def skip_comment(self) -> None:
        """Skip comment until end of line, leaving the newline in place"""
        while self.pos < len(self.source) and self.peek() not in ('\n', '\r'):
            self.pos += 1

    # ========================================================================
    # Utilities
    # ========================================================================

    @staticmethod
    def is_ident_head(ch: str) -> bool:
        return ch.isalpha() or ch == '_'

    @classmethod
    def is_ident_tail(cls, ch: str) -> bool:
        return cls.is_ident_head(ch) or ch.isdigit() or ch == '-'

    def peek(self, offset: int = 0) -> str:
        """Look ahead at character"""
        idx = self.pos + offset
        if idx < len(self.source):
            return self.source[idx]
        return '\0'

    def emit(self, token_type: TT, start: int) -> Tok:
        return Tok(self.source[start:self.pos], token_type, self.document, start)


def tokenize(source: Union[str, SourceDocument]) -> List[Tok]:
    """Convenience function to tokenize source"""
    return Lexer(source).tokenize()
