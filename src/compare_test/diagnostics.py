"""Diagnostic entries and the sinks that collect or render them."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, TextIO

from rich.console import Console
from rich.markup import escape
from typing_extensions import Protocol

from .token_types import SourceLocation

logger = logging.getLogger(__name__)


class Severity(Enum):
    ERROR = "error"
    EVENT = "event"


@dataclass(frozen=True)
class Diagnostic:
    severity: Severity
    title: str
    message: str
    location: Optional[SourceLocation] = None

    @classmethod
    def error(cls, title: str, message: str, location: Optional[SourceLocation] = None) -> Diagnostic:
        return cls(Severity.ERROR, title, message, location)

    @classmethod
    def event(cls, title: str, message: str, location: Optional[SourceLocation] = None) -> Diagnostic:
        return cls(Severity.EVENT, title, message, location)

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR

    def __str__(self) -> str:
        prefix = f"{self.location}: " if self.location is not None else ""
        return f"{prefix}{self.severity.value}: {self.title}: {self.message}"


class DiagnosticSink(Protocol):
    def log(self, entry: Diagnostic) -> None: ...


class OutputWriter(Protocol):
    def write(self, text: str) -> None: ...


class BufferedLog:
    """In-memory sink. Entries can be replayed into another sink later."""

    def __init__(self) -> None:
        self.entries: List[Diagnostic] = []

    def log(self, entry: Diagnostic) -> None:
        self.entries.append(entry)

    def replay(self, sink: DiagnosticSink) -> None:
        for entry in self.entries:
            sink.log(entry)

    @property
    def errors(self) -> List[Diagnostic]:
        return [entry for entry in self.entries if entry.is_error]


class ConsoleLog:
    """
    Renders diagnostics and process output on a rich console.

    Workers share one ConsoleLog, so every write takes the lock. The error
    count drives the CLI exit code.
    """

    def __init__(self, file: Optional[TextIO] = None, color: Optional[bool] = None) -> None:
        self.console = Console(
            file=file,
            highlight=False,
            soft_wrap=True,
            force_terminal=color,
            no_color=color is False,
        )
        self.error_count = 0
        self._lock = threading.Lock()

    def log(self, entry: Diagnostic) -> None:
        if entry.is_error:
            logger.debug("diagnostic: %s", entry)

        with self._lock:
            if entry.is_error:
                self.error_count += 1
            self._render(entry)

    def write(self, text: str) -> None:
        if not text:
            return

        with self._lock:
            self.console.out(text, end="" if text.endswith("\n") else "\n", highlight=False)

    def print(self, markup: str) -> None:
        with self._lock:
            self.console.print(markup)

    def _render(self, entry: Diagnostic) -> None:
        colour = "red" if entry.is_error else "cyan"
        where = f"[bold]{escape(str(entry.location))}:[/bold] " if entry.location is not None else ""
        self.console.print(
            f"{where}[bold {colour}]{entry.severity.value}:[/bold {colour}] "
            f"[bold]{escape(entry.title)}:[/bold] {escape(entry.message)}"
        )

        if entry.location is None:
            return

        line = entry.location.document.line_text(entry.location.line)
        if not line.strip():
            return

        caret_width = max(1, min(entry.location.length, len(line) - entry.location.column + 1))
        self.console.print(f"  {escape(line)}")
        self.console.print(f"  {' ' * (entry.location.column - 1)}[{colour}]{'^' * caret_width}[/{colour}]")
