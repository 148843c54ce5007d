from __future__ import annotations

from typing import Any, Callable, Dict

from .config import Configuration
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
from .state import ExecutionState

from .eval.commands import eval_invoke, eval_invoke_with_input, eval_pipe, eval_pipe_to_file
from .eval.exit_code import eval_exit_code_check
from .eval.expr import eval_command_expr, eval_concat, eval_literal, eval_variable
from .eval.statements import (
    eval_assignment,
    eval_command_stmt,
    eval_sequence,
    eval_template_definition,
    eval_template_instantiation,
)

# ---------------- Public API ----------------

def eval_expression(node: Expression, config: Configuration, state: ExecutionState) -> str:
    return _dispatch(_EXPRESSION_DISPATCH, node)(node, config, state)


def eval_command(node: Command, config: Configuration, state: ExecutionState) -> str:
    return _dispatch(_COMMAND_DISPATCH, node)(node, config, state)


def eval_statement(node: Statement, config: Configuration, state: ExecutionState) -> Configuration:
    return _dispatch(_STATEMENT_DISPATCH, node)(node, config, state)


def run_section(section: Section, config: Configuration, state: ExecutionState) -> Configuration:
    """Run a section's statements in order; subsections are not entered"""
    return eval_statement(section.body, config, state)


def _dispatch(table: Dict[type, Callable[..., Any]], node: object) -> Callable[..., Any]:
    handler = table.get(type(node))
    if handler is None:
        raise TypeError(f"no evaluator for {type(node).__name__}")
    return handler

# ---------------- Dispatch tables ----------------

_EXPRESSION_DISPATCH: Dict[type, Callable[[Any, Configuration, ExecutionState], str]] = {
    LiteralExpression: eval_literal,
    VariableExpression: eval_variable,
    ConcatExpression: lambda n, config, state: eval_concat(n, config, state, eval_expression),
    CommandExpression: lambda n, config, state: eval_command_expr(n, config, state, eval_command),
    ExitCodeCheckExpression: lambda n, config, state: eval_exit_code_check(n, config, state, eval_expression, eval_command),
    EmptyExpression: lambda _, __, ___: "",
}

_COMMAND_DISPATCH: Dict[type, Callable[[Any, Configuration, ExecutionState], str]] = {
    InvokeProgram: lambda n, config, state: eval_invoke(n, config, state, eval_expression),
    InvokeWithInput: lambda n, config, state: eval_invoke_with_input(n, config, state, eval_expression),
    PipeToProgram: lambda n, config, state: eval_pipe(n, config, state, eval_expression, eval_command),
    PipeToFile: lambda n, config, state: eval_pipe_to_file(n, config, state, eval_expression, eval_command),
}

_STATEMENT_DISPATCH: Dict[type, Callable[[Any, Configuration, ExecutionState], Configuration]] = {
    CommandStatement: lambda n, config, state: eval_command_stmt(n, config, state, eval_command),
    AssignmentStatement: lambda n, config, state: eval_assignment(n, config, state, eval_expression),
    TemplateDefinition: lambda n, config, state: eval_template_definition(n, config, state, eval_expression),
    TemplateInstantiation: eval_template_instantiation,
    SequenceStatement: lambda n, config, state: eval_sequence(n, config, state, eval_statement),
    EmptyStatement: lambda _, config, __: config,
}
