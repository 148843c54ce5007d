from __future__ import annotations

from ..config import Configuration
from ..nodes import CommandExpression, ConcatExpression, LiteralExpression, VariableExpression
from ..state import ExecutionState
from .common import CommandEval, ExprEval


def eval_literal(node: LiteralExpression, config: Configuration, state: ExecutionState) -> str:
    return node.token.contents


def eval_variable(node: VariableExpression, config: Configuration, state: ExecutionState) -> str:
    # Undefined variables read as their own name.
    name = node.name.contents
    value = config.lookup(name)
    return name if value is None else value


def eval_concat(
    node: ConcatExpression,
    config: Configuration,
    state: ExecutionState,
    eval_expr: ExprEval,
) -> str:
    pieces = []
    for part in node.parts:
        pieces.append(eval_expr(part, config, state))
        if state.failed:
            break
    return "".join(pieces)


def eval_command_expr(
    node: CommandExpression,
    config: Configuration,
    state: ExecutionState,
    eval_cmd: CommandEval,
) -> str:
    return eval_cmd(node.command, config, state)
