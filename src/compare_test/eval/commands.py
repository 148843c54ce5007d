from __future__ import annotations

from typing import Optional

from ..builtin_programs import lookup_builtin
from ..config import Configuration
from ..nodes import InvokeProgram, InvokeWithInput, PipeToFile, PipeToProgram
from ..process import run_process, split_command_line, write_file
from ..state import ExecutionState
from .common import CommandEval, ExprEval


def invoke_command_line(state: ExecutionState, line: str, stdin: Optional[str]) -> str:
    """Split a command line and run it as a built-in or external program"""
    argv = split_command_line(line)
    if not argv:
        state.fail("cannot run an empty command")
        return ""

    program, args = argv[0], argv[1:]
    builtin = lookup_builtin(program)
    if builtin is not None:
        return builtin(state, args, stdin)

    return run_process(state, program, args, stdin)


def eval_invoke(
    node: InvokeProgram,
    config: Configuration,
    state: ExecutionState,
    eval_expr: ExprEval,
) -> str:
    line = eval_expr(node.program, config, state)
    if state.failed:
        return ""

    return invoke_command_line(state, line, None)


def eval_invoke_with_input(
    node: InvokeWithInput,
    config: Configuration,
    state: ExecutionState,
    eval_expr: ExprEval,
) -> str:
    stdin = eval_expr(node.input, config, state)
    if state.failed:
        return ""

    line = eval_expr(node.program, config, state)
    if state.failed:
        return ""

    return invoke_command_line(state, line, stdin)


def eval_pipe(
    node: PipeToProgram,
    config: Configuration,
    state: ExecutionState,
    eval_expr: ExprEval,
    eval_cmd: CommandEval,
) -> str:
    stdin = eval_cmd(node.source, config, state)
    if state.failed:
        return ""

    line = eval_expr(node.program, config, state)
    if state.failed:
        return ""

    return invoke_command_line(state, line, stdin)


def eval_pipe_to_file(
    node: PipeToFile,
    config: Configuration,
    state: ExecutionState,
    eval_expr: ExprEval,
    eval_cmd: CommandEval,
) -> str:
    contents = eval_cmd(node.source, config, state)
    if state.failed:
        return ""

    path = eval_expr(node.path, config, state).strip()
    if state.failed:
        return ""

    if not path:
        state.fail("cannot redirect output: no file name given")
        return ""

    write_file(state, path, contents)
    return ""
