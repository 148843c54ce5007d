"""External process and file I/O on behalf of an ExecutionState."""

from __future__ import annotations

import errno
import logging
import os
import shutil
import subprocess
from typing import List, Optional

from .state import ExecutionState

logger = logging.getLogger(__name__)

ENCODING = "utf-8"


# ============================================================================
# Command lines
# ============================================================================

class CommandLineSplitter:
    """Quote-aware splitter for 'program arg "quoted arg" escaped\\ arg' lines."""

    def __init__(self, line: str):
        self.line = line
        self.pos = 0

    def eof(self) -> bool:
        return self.pos >= len(self.line)

    def skip_whitespace(self) -> None:
        while not self.eof() and self.line[self.pos].isspace():
            self.pos += 1

    def consume_argument(self) -> str:
        """Consume one argument; quotes group, a backslash escapes the next character"""
        content = ""
        quote: Optional[str] = None

        while not self.eof():
            char = self.line[self.pos]
            if char == "\\":
                self.pos += 1
                if self.eof():
                    # Dangling backslash
                    content += "\\"
                    break
                content += self.line[self.pos]
            elif quote is not None:
                if char == quote:
                    quote = None
                else:
                    content += char
            elif char in ('"', "'"):
                quote = char
            elif char.isspace():
                break
            else:
                content += char
            self.pos += 1

        return content

    def split(self) -> List[str]:
        args: List[str] = []

        while True:
            self.skip_whitespace()
            if self.eof():
                return args
            args.append(self.consume_argument())


def split_command_line(line: str) -> List[str]:
    return CommandLineSplitter(line).split()


# ============================================================================
# Errors
# ============================================================================

def describe_os_error(exc: OSError, subject: str) -> str:
    if exc.errno == errno.ENAMETOOLONG:
        return f"path too long: '{subject}'"
    if isinstance(exc, FileNotFoundError):
        return f"file not found: '{subject}'"
    if isinstance(exc, PermissionError):
        return f"permission denied: '{subject}'"
    if isinstance(exc, IsADirectoryError):
        return f"'{subject}' is a directory"
    return f"{exc.strerror or exc}: '{subject}'"


# ============================================================================
# Files
# ============================================================================

def read_file(state: ExecutionState, path: str) -> Optional[str]:
    """Read a file relative to the working directory; None (and a failed state) on error"""
    resolved = state.resolve_path(path)
    try:
        with open(resolved, "r", encoding=ENCODING, errors="replace", newline="") as fh:
            return fh.read()
    except OSError as exc:
        state.fail(describe_os_error(exc, path))
        return None


def write_file(state: ExecutionState, path: str, contents: str) -> bool:
    resolved = state.resolve_path(path)
    parent = os.path.dirname(resolved)
    if parent and not os.path.isdir(parent):
        state.fail(f"cannot write '{path}': directory '{parent}' does not exist")
        return False

    try:
        with open(resolved, "w", encoding=ENCODING, newline="") as fh:
            fh.write(contents)
    except OSError as exc:
        state.fail(describe_os_error(exc, path))
        return False

    return True


# ============================================================================
# Processes
# ============================================================================

def resolve_executable(program: str, working_directory: str) -> Optional[str]:
    """Find a program on the working directory or PATH"""
    if os.path.dirname(program):
        return shutil.which(os.path.join(working_directory, program))

    search = os.pathsep.join([working_directory, os.environ.get("PATH", os.defpath)])
    return shutil.which(program, path=search)


def run_process(state: ExecutionState, program: str, args: List[str], stdin: Optional[str]) -> str:
    """
    Run a program to completion and return its stdout.

    stdin is written and closed before stdout is drained. The exit code lands
    on the state; stderr is appended to its error message buffer.
    """
    executable = resolve_executable(program, state.working_directory)
    if executable is None:
        state.fail(f"program not found: '{program}'")
        return ""

    logger.debug("running %s %s in %s", executable, args, state.working_directory)

    try:
        proc = subprocess.Popen(
            [executable, *args],
            cwd=state.working_directory,
            stdin=subprocess.PIPE if stdin is not None else subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )
    except OSError as exc:
        state.fail(f"could not start process: {describe_os_error(exc, program)}")
        return ""

    out, err = proc.communicate(stdin.encode(ENCODING) if stdin is not None else None)
    state.exit_code = proc.returncode
    state.append_error_message(err.decode(ENCODING, errors="replace"))
    return out.decode(ENCODING, errors="replace")
