from __future__ import annotations

from ..config import Configuration, Template
from ..diagnostics import Diagnostic
from ..nodes import (
    AssignmentStatement,
    CommandStatement,
    SequenceStatement,
    TemplateDefinition,
    TemplateInstantiation,
)
from ..state import ExecutionState
from .common import CommandEval, ExprEval, StmtEval, normalize_value


def eval_command_stmt(
    node: CommandStatement,
    config: Configuration,
    state: ExecutionState,
    eval_cmd: CommandEval,
) -> Configuration:
    output = eval_cmd(node.command, config, state)
    state.output.write(output)
    state.flush_error_message()
    return config


def eval_assignment(
    node: AssignmentStatement,
    config: Configuration,
    state: ExecutionState,
    eval_expr: ExprEval,
) -> Configuration:
    value = eval_expr(node.value, config, state)
    state.flush_error_message()
    return config.with_variable(node.name.contents, normalize_value(value))


def eval_template_definition(
    node: TemplateDefinition,
    config: Configuration,
    state: ExecutionState,
    eval_expr: ExprEval,
) -> Configuration:
    # Parameter names are expressions, resolved in the defining scope now.
    params = tuple(normalize_value(eval_expr(p, config, state)) for p in node.parameters)
    state.flush_error_message()
    return config.with_template(Template(node.name.contents, params, node.body))


def eval_template_instantiation(
    node: TemplateInstantiation,
    config: Configuration,
    state: ExecutionState,
) -> Configuration:
    state.error(Diagnostic.error(
        "misplaced template instantiation",
        f"template '{node.name.contents}' can only be instantiated in a 'tests' section",
        node.location,
    ))
    return config


def eval_sequence(
    node: SequenceStatement,
    config: Configuration,
    state: ExecutionState,
    eval_stmt: StmtEval,
) -> Configuration:
    config = eval_stmt(node.first, config, state)
    if state.failed:
        return config

    return eval_stmt(node.second, config, state)
