"""
Recursive Descent Parser for compare-test documents

Grammar (informal):

    section      := IDENT '{' section_body '}'
    section_body := ( section | statement )*
    statement    := IDENT '=' expression ';'
                  | ';'
                  | 'template' IDENT '<' expression (',' expression)* '>' ( ';' | '{' section_body '}' )
                  | command ';'
    command      := expression [ '|>' expression ] ( '|' expression )* [ '>' expression ]
    expression   := primitive*
    primitive    := '$' [ '(' ] IDENT [ ')' ]
                  | '@' '(' command [ ',' expression ] ')'
                  | any other token (literal text)

Expressions stop at structure-terminating tokens: } ) ; | |> > , and EOF.

The parser never raises on bad input. Mismatches are logged through the
token buffer, which hands back a synthetic token so parsing can carry on
and report every problem in the file.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Union

from .diagnostics import Diagnostic, DiagnosticSink
from .lexer import Lexer
from .nodes import (
    AssignmentStatement,
    Command,
    CommandExpression,
    CommandStatement,
    ConcatExpression,
    EmptyExpression,
    EmptyStatement,
    ExitCodeCheckExpression,
    Expression,
    InvokeProgram,
    InvokeWithInput,
    LiteralExpression,
    PipeToFile,
    PipeToProgram,
    Section,
    Statement,
    TemplateDefinition,
    TemplateInstantiation,
    VariableExpression,
)
from .token_buffer import TokenBuffer
from .token_types import TT, SourceDocument, Tok

logger = logging.getLogger(__name__)

# ============================================================================
# Parser
# ============================================================================

class Parser:
    """
    Recursive descent parser.

    Lookahead is one nontrivial token beyond the current one. Two tokens are
    needed to tell `IDENT =` (assignment) and `IDENT {` (subsection) apart from
    a command whose program name happens to be an identifier.
    """

    def __init__(self, tokens: TokenBuffer, log: DiagnosticSink):
        self.tokens = tokens
        self.log = log

    # ========================================================================
    # Sections
    # ========================================================================

    def parse_document(self) -> Section:
        """Parse a whole document into an unnamed root section"""
        start = self.tokens.peek_token()
        name = Tok("", TT.IDENT, start.document, start.offset)
        section = self.parse_section_body(name)

        while self.tokens.peek_nontrivial_token().type != TT.EOF:
            # A stray closing brace ends the body early; report it and go on.
            self.skip_unexpected()
            rest = self.parse_section_body(name)
            subsections = dict(section.subsections)
            for child in rest.subsections.values():
                self.add_subsection(subsections, child)
            section = Section(name, section.statements + rest.statements, subsections)

        return section

    def parse_section(self) -> Section:
        name = self.tokens.expect_nontrivial_token(TT.IDENT, self.log)
        self.tokens.expect_nontrivial_token(TT.LBRACE, self.log)
        section = self.parse_section_body(name)
        self.tokens.expect_nontrivial_token(TT.RBRACE, self.log)
        return section

    def parse_section_body(self, name: Tok) -> Section:
        statements: List[Statement] = []
        subsections: Dict[str, Section] = {}

        while not self.at_body_end():
            self.tokens.skip_trivia()
            start = self.tokens.position

            if self.at_subsection():
                self.add_subsection(subsections, self.parse_section())
            else:
                stmt = self.parse_statement()
                if self.tokens.position == start:
                    # Nothing could be parsed here: drop the offending token.
                    self.skip_unexpected()
                elif not isinstance(stmt, EmptyStatement):
                    statements.append(stmt)

        return Section(name, tuple(statements), subsections)

    def add_subsection(self, subsections: Dict[str, Section], child: Section) -> None:
        key = child.name.contents
        if key in subsections:
            self.log.log(Diagnostic.error(
                "duplicate section",
                f"section '{key}' is defined more than once in this scope",
                child.name.location,
            ))
        subsections[key] = child

    def at_body_end(self) -> bool:
        return self.tokens.peek_nontrivial_token().type in (TT.RBRACE, TT.EOF)

    def at_subsection(self) -> bool:
        return (
            self.tokens.peek_nontrivial_token(0).type == TT.IDENT
            and self.tokens.peek_nontrivial_token(1).type == TT.LBRACE
        )

    def skip_unexpected(self) -> None:
        tok = self.tokens.read_nontrivial_token()
        self.log.log(Diagnostic.error(
            "unexpected token",
            f"'{tok.contents}' cannot start a statement",
            tok.location,
        ))

    # ========================================================================
    # Statements
    # ========================================================================

    def parse_statement(self) -> Statement:
        head = self.tokens.peek_nontrivial_token(0)

        if head.type == TT.SEMI:
            self.tokens.read_nontrivial_token()
            return EmptyStatement()

        if head.type == TT.IDENT and self.tokens.peek_nontrivial_token(1).type == TT.ASSIGN:
            return self.parse_assignment()

        if head.type == TT.TEMPLATE:
            return self.parse_template_statement()

        self.tokens.skip_trivia()
        start = self.tokens.position
        command = self.parse_command()
        if self.tokens.position == start:
            # The caller reports the token nothing could be parsed from.
            return EmptyStatement()
        self.tokens.expect_nontrivial_token(TT.SEMI, self.log)
        return CommandStatement(command)

    def parse_assignment(self) -> Statement:
        name = self.tokens.read_nontrivial_token()
        self.tokens.read_nontrivial_token()  # =
        value = self.parse_expression()
        self.tokens.expect_nontrivial_token(TT.SEMI, self.log)
        return AssignmentStatement(name, value)

    def parse_template_statement(self) -> Statement:
        self.tokens.read_nontrivial_token()  # template
        name = self.tokens.expect_nontrivial_token(TT.IDENT, self.log)
        self.tokens.expect_nontrivial_token(TT.LT, self.log)

        args = [self.parse_expression()]
        while self.tokens.peek_nontrivial_token().type == TT.COMMA:
            self.tokens.read_nontrivial_token()
            args.append(self.parse_expression())

        self.tokens.expect_nontrivial_token(TT.GT, self.log)

        if self.tokens.peek_nontrivial_token().type == TT.LBRACE:
            self.tokens.read_nontrivial_token()
            body = self.parse_section_body(name)
            self.tokens.expect_nontrivial_token(TT.RBRACE, self.log)
            return TemplateDefinition(name, tuple(args), body)

        self.tokens.expect_nontrivial_token(TT.SEMI, self.log)
        return TemplateInstantiation(name, tuple(args))

    # ========================================================================
    # Commands
    # ========================================================================

    def parse_command(self) -> Command:
        first = self.parse_expression()

        command: Command
        if self.tokens.peek_nontrivial_token().type == TT.PROVIDE:
            self.tokens.read_nontrivial_token()
            command = InvokeWithInput(first, self.parse_expression())
        else:
            command = InvokeProgram(first)

        while self.tokens.peek_nontrivial_token().type == TT.PIPE:
            self.tokens.read_nontrivial_token()
            command = PipeToProgram(command, self.parse_expression())

        if self.tokens.peek_nontrivial_token().type == TT.GT:
            self.tokens.read_nontrivial_token()
            command = PipeToFile(command, self.parse_expression())

        return command

    # ========================================================================
    # Expressions
    # ========================================================================

    def parse_expression(self) -> Expression:
        parts: List[Expression] = []

        while not self.tokens.peek_token().terminates_structure:
            part = self.parse_primitive()
            if part is not None:
                parts.append(part)

        if not parts:
            return EmptyExpression()
        if len(parts) == 1:
            return parts[0]
        return ConcatExpression(tuple(parts))

    def parse_primitive(self) -> Union[Expression, None]:
        tok = self.tokens.peek_token()

        if tok.type == TT.COMMENT:
            self.tokens.read_token()
            return None

        if tok.type == TT.DOLLAR:
            return self.parse_variable()

        if tok.type == TT.AT:
            return self.parse_command_expression()

        return LiteralExpression(self.tokens.read_token())

    def parse_variable(self) -> Expression:
        self.tokens.read_token()  # $

        if self.tokens.peek_token().type == TT.LPAR:
            self.tokens.read_token()
            name = self.tokens.expect_nontrivial_token(TT.IDENT, self.log)
            self.tokens.expect_nontrivial_token(TT.RPAR, self.log)
            return VariableExpression(name, parenthesized=True)

        name = self.tokens.expect_token(TT.IDENT, self.log)
        return VariableExpression(name)

    def parse_command_expression(self) -> Expression:
        at = self.tokens.read_token()
        self.tokens.expect_token(TT.LPAR, self.log)
        self.tokens.skip_trivia()
        command = self.parse_command()

        if self.tokens.peek_nontrivial_token().type == TT.COMMA:
            self.tokens.read_nontrivial_token()
            expected = self.parse_expression()
            self.tokens.expect_nontrivial_token(TT.RPAR, self.log)
            return ExitCodeCheckExpression(at, command, expected)

        self.tokens.expect_nontrivial_token(TT.RPAR, self.log)
        return CommandExpression(at, command)


# ============================================================================
# Entry points
# ============================================================================

def parse_source(source: Union[str, SourceDocument], log: DiagnosticSink) -> Section:
    """Parse document text into its root section"""
    parser = Parser(TokenBuffer(Lexer(source)), log)
    return parser.parse_document()


def parse_file(path: Union[str, Path], log: DiagnosticSink) -> Section:
    """
    Read and parse a test file.

    Raises OSError when the file cannot be read; syntax problems are logged.
    """
    path = Path(path)
    text = path.read_text(encoding="utf-8", errors="replace")
    logger.debug("parsing %s", path)
    return parse_source(SourceDocument(str(path), text), log)
