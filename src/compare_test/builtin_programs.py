"""Pseudo-programs that run in-process instead of spawning an executable."""

from __future__ import annotations

import os
import tempfile
from typing import Callable, Dict, List, Optional

from .process import describe_os_error, read_file
from .state import ExecutionState

BuiltinFn = Callable[[ExecutionState, List[str], Optional[str]], str]

BUILTINS: Dict[str, BuiltinFn] = {}


def register_builtin(name: str):
    def dec(fn: BuiltinFn):
        BUILTINS[name] = fn
        return fn

    return dec


def lookup_builtin(name: str) -> Optional[BuiltinFn]:
    return BUILTINS.get(name)


@register_builtin("builtin-cat")
def _builtin_cat(state: ExecutionState, args: List[str], stdin: Optional[str]) -> str:
    """Concatenate files, or echo stdin when no files are named"""
    state.exit_code = 0
    if not args:
        return stdin or ""

    chunks = []
    for path in args:
        text = read_file(state, path)
        if text is None:
            return ""
        chunks.append(text)

    return "".join(chunks)


@register_builtin("builtin-mkdir")
def _builtin_mkdir(state: ExecutionState, args: List[str], stdin: Optional[str]) -> str:
    state.exit_code = 0
    if not args:
        state.fail("builtin-mkdir: missing directory operand")
        return ""

    for path in args:
        try:
            os.makedirs(state.resolve_path(path), exist_ok=True)
        except OSError as exc:
            state.fail(f"builtin-mkdir: {describe_os_error(exc, path)}")
            return ""

    return ""


@register_builtin("builtin-mktemp")
def _builtin_mktemp(state: ExecutionState, args: List[str], stdin: Optional[str]) -> str:
    """Create an empty temporary file ending in the given extension and print its path"""
    state.exit_code = 0
    if len(args) > 1:
        state.fail(f"builtin-mktemp: expected at most one extension; got {len(args)}")
        return ""

    suffix = args[0] if args else ""
    if suffix and not suffix.startswith("."):
        suffix = "." + suffix

    try:
        fd, path = tempfile.mkstemp(suffix=suffix)
    except OSError as exc:
        state.fail(f"builtin-mktemp: {describe_os_error(exc, tempfile.gettempdir())}")
        return ""

    os.close(fd)
    state.temp_files.register(path)
    return path
