"""@(command, expected): run a command that may fail on purpose."""

from __future__ import annotations

from ..config import Configuration
from ..diagnostics import BufferedLog, Diagnostic
from ..nodes import ExitCodeCheckExpression
from ..state import ExecutionState
from .common import CommandEval, ExprEval


def exit_code_matches(observed: int, expected: str) -> bool:
    """A negative expectation accepts any failure; anything else must match exactly"""
    try:
        wanted = int(expected)
    except ValueError:
        return str(observed) == expected

    if wanted < 0:
        return observed != 0
    return observed == wanted


def eval_exit_code_check(
    node: ExitCodeCheckExpression,
    config: Configuration,
    state: ExecutionState,
    eval_expr: ExprEval,
    eval_cmd: CommandEval,
) -> str:
    # A stale exit code from an earlier failure must not be checked.
    if state.failed:
        return ""

    real_log = state.log
    real_suppress = state.suppress_error_messages
    pending = state.take_error_message()
    silenced = BufferedLog()

    state.log = silenced
    state.suppress_error_messages = True
    try:
        output = eval_cmd(node.command, config, state)
        observed = state.exit_code
        stderr = state.take_error_message()
    finally:
        state.log = real_log
        state.suppress_error_messages = real_suppress
        state.error_message = pending + state.error_message

    # The expectation is evaluated on a clean slate so that its own
    # evaluation is not mistaken for the command's failure.
    state.exit_code = 0
    expected = eval_expr(node.expected, config, state).strip()
    if state.failed:
        return output

    if exit_code_matches(observed, expected):
        return output

    state.append_error_message(stderr)
    state.flush_error_message()
    silenced.replay(state.log)
    state.log.log(Diagnostic.error(
        "exit code mismatch",
        f"expected exit code {expected}, but the command exited with {observed}",
        node.location,
    ))
    state.exit_code = 1
    return output
