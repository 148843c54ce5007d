"""Mutable per-branch execution context."""

from __future__ import annotations

import logging
import os
import threading
from typing import List, Optional

from .diagnostics import Diagnostic, DiagnosticSink, OutputWriter

logger = logging.getLogger(__name__)


class TempFileRegistry:
    """
    Temporary files created while running tests.

    One registry is shared by every state forked from a common root. Workers
    append concurrently; release() runs once after all of them are done.
    """

    def __init__(self) -> None:
        self._paths: List[str] = []
        self._lock = threading.Lock()
        self._released = False

    def register(self, path: str) -> None:
        with self._lock:
            self._paths.append(path)

    @property
    def paths(self) -> List[str]:
        with self._lock:
            return list(self._paths)

    def release(self) -> None:
        """Delete every registered file. Later calls do nothing."""
        with self._lock:
            if self._released:
                return
            self._released = True
            paths, self._paths = self._paths, []

        for path in paths:
            try:
                os.remove(path)
            except FileNotFoundError:
                pass
            except OSError as exc:
                logger.warning("could not remove temporary file %s: %s", path, exc)


class ExecutionState:
    """
    Runtime context threaded through evaluation.

    exit_code is the only error signal: zero means the branch is healthy.
    Process stderr accumulates in error_message until flush_error_message()
    writes it out; while suppression is on the buffer is kept as is.
    """

    def __init__(
        self,
        working_directory: str,
        log: DiagnosticSink,
        output: OutputWriter,
        temp_files: Optional[TempFileRegistry] = None,
    ):
        self.working_directory = working_directory
        self.log = log
        self.output = output
        self.temp_files = temp_files if temp_files is not None else TempFileRegistry()
        self.exit_code = 0
        self.error_message = ""
        self.suppress_error_messages = False

    def fork(self, working_directory: Optional[str] = None) -> ExecutionState:
        """New branch: own exit code and buffers, same temp-file registry"""
        return ExecutionState(
            working_directory if working_directory is not None else self.working_directory,
            self.log,
            self.output,
            self.temp_files,
        )

    @property
    def failed(self) -> bool:
        return self.exit_code != 0

    def resolve_path(self, path: str) -> str:
        return os.path.normpath(os.path.join(self.working_directory, path))

    def append_error_message(self, text: str) -> None:
        if text:
            self.error_message += text

    def take_error_message(self) -> str:
        text, self.error_message = self.error_message, ""
        return text

    def flush_error_message(self) -> None:
        if self.suppress_error_messages:
            return
        text = self.take_error_message()
        if text:
            self.output.write(text)

    def fail(self, message: str) -> None:
        """Mark the branch as failed with a buffered message"""
        self.exit_code = 1
        self.append_error_message(message if message.endswith("\n") else message + "\n")

    def error(self, diagnostic: Diagnostic) -> None:
        """Log a semantic error and poison this branch"""
        self.log.log(diagnostic)
        self.exit_code = 1
