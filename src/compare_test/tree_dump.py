"""Lark Tree views of parsed sections, used for --dump-ast output."""

from __future__ import annotations

from typing import Union

from lark import Token, Tree

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
    SequenceStatement,
    Statement,
    TemplateDefinition,
    TemplateInstantiation,
    VariableExpression,
)

Node = Union[Tree, Token]


def _token(type_: str, tok) -> Token:
    return Token(type_, tok.contents, start_pos=tok.offset)


def expression_tree(expr: Expression) -> Node:
    if isinstance(expr, LiteralExpression):
        return _token(expr.token.type.name, expr.token)
    if isinstance(expr, VariableExpression):
        return Tree('variable', [_token('IDENT', expr.name)])
    if isinstance(expr, ConcatExpression):
        return Tree('concat', [expression_tree(part) for part in expr.parts])
    if isinstance(expr, CommandExpression):
        return Tree('command_expr', [command_tree(expr.command)])
    if isinstance(expr, ExitCodeCheckExpression):
        return Tree('exit_code_check', [command_tree(expr.command), expression_tree(expr.expected)])
    if isinstance(expr, EmptyExpression):
        return Tree('empty', [])
    raise TypeError(f"not an expression node: {expr!r}")


def command_tree(command: Command) -> Tree:
    if isinstance(command, InvokeProgram):
        return Tree('invoke', [expression_tree(command.program)])
    if isinstance(command, InvokeWithInput):
        return Tree('invoke_with_input', [expression_tree(command.input), expression_tree(command.program)])
    if isinstance(command, PipeToProgram):
        return Tree('pipe', [command_tree(command.source), expression_tree(command.program)])
    if isinstance(command, PipeToFile):
        return Tree('pipe_to_file', [command_tree(command.source), expression_tree(command.path)])
    raise TypeError(f"not a command node: {command!r}")


def statement_tree(stmt: Statement) -> Tree:
    if isinstance(stmt, CommandStatement):
        return Tree('command_stmt', [command_tree(stmt.command)])
    if isinstance(stmt, AssignmentStatement):
        return Tree('assign', [_token('IDENT', stmt.name), expression_tree(stmt.value)])
    if isinstance(stmt, TemplateDefinition):
        params = Tree('params', [expression_tree(p) for p in stmt.parameters])
        return Tree('template_def', [_token('IDENT', stmt.name), params, section_tree(stmt.body)])
    if isinstance(stmt, TemplateInstantiation):
        args = Tree('args', [expression_tree(a) for a in stmt.arguments])
        return Tree('template_inst', [_token('IDENT', stmt.name), args])
    if isinstance(stmt, SequenceStatement):
        return Tree('sequence', [statement_tree(stmt.first), statement_tree(stmt.second)])
    if isinstance(stmt, EmptyStatement):
        return Tree('empty_stmt', [])
    raise TypeError(f"not a statement node: {stmt!r}")


def section_tree(section: Section) -> Tree:
    children: list = [_token('IDENT', section.name)]
    children.extend(statement_tree(stmt) for stmt in section.statements)
    children.extend(section_tree(sub) for sub in section)
    return Tree('section', children)
