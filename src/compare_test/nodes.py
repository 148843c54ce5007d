"""
AST nodes for compare-test documents.

Each role (expression, command, statement) is a closed set of frozen
dataclasses. The evaluator dispatches on the concrete class, so adding a
variant means adding a parser production and an evaluator entry.

str() on any node renders it back to document syntax.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Mapping, Optional, Tuple, Union

from typing_extensions import TypeAlias

from .token_types import SourceLocation, Tok

# ---------- Expressions ----------

@dataclass(frozen=True)
class LiteralExpression:
    token: Tok

    @property
    def location(self) -> Optional[SourceLocation]:
        return self.token.location

    def __str__(self) -> str:
        return self.token.contents


@dataclass(frozen=True)
class VariableExpression:
    name: Tok
    parenthesized: bool = False

    @property
    def location(self) -> Optional[SourceLocation]:
        return self.name.location

    def __str__(self) -> str:
        if self.parenthesized:
            return f"$({self.name.contents})"
        return f"${self.name.contents}"


@dataclass(frozen=True)
class ConcatExpression:
    parts: Tuple[Expression, ...]

    @property
    def location(self) -> Optional[SourceLocation]:
        for part in self.parts:
            if part.location is not None:
                return part.location
        return None

    def __str__(self) -> str:
        return "".join(str(part) for part in self.parts)


@dataclass(frozen=True)
class CommandExpression:
    at: Tok
    command: Command

    @property
    def location(self) -> Optional[SourceLocation]:
        return self.at.location

    def __str__(self) -> str:
        return f"@({self.command})"


@dataclass(frozen=True)
class ExitCodeCheckExpression:
    """@(command, expected): runs command and compares its exit code"""

    at: Tok
    command: Command
    expected: Expression

    @property
    def location(self) -> Optional[SourceLocation]:
        return self.at.location

    def __str__(self) -> str:
        return f"@({self.command},{self.expected})"


@dataclass(frozen=True)
class EmptyExpression:
    @property
    def location(self) -> Optional[SourceLocation]:
        return None

    def __str__(self) -> str:
        return ""


Expression: TypeAlias = Union[
    LiteralExpression,
    VariableExpression,
    ConcatExpression,
    CommandExpression,
    ExitCodeCheckExpression,
    EmptyExpression,
]

# ---------- Commands ----------

@dataclass(frozen=True)
class InvokeProgram:
    program: Expression

    @property
    def location(self) -> Optional[SourceLocation]:
        return self.program.location

    def __str__(self) -> str:
        return str(self.program)


@dataclass(frozen=True)
class InvokeWithInput:
    """input |> program"""

    input: Expression
    program: Expression

    @property
    def location(self) -> Optional[SourceLocation]:
        return self.input.location or self.program.location

    def __str__(self) -> str:
        return f"{self.input}|>{self.program}"


@dataclass(frozen=True)
class PipeToProgram:
    source: Command
    program: Expression

    @property
    def location(self) -> Optional[SourceLocation]:
        return self.source.location

    def __str__(self) -> str:
        return f"{self.source}|{self.program}"


@dataclass(frozen=True)
class PipeToFile:
    source: Command
    path: Expression

    @property
    def location(self) -> Optional[SourceLocation]:
        return self.source.location

    def __str__(self) -> str:
        return f"{self.source}>{self.path}"


Command: TypeAlias = Union[InvokeProgram, InvokeWithInput, PipeToProgram, PipeToFile]

# ---------- Statements ----------

@dataclass(frozen=True)
class CommandStatement:
    command: Command

    @property
    def location(self) -> Optional[SourceLocation]:
        return self.command.location

    def __str__(self) -> str:
        return f"{self.command};"


@dataclass(frozen=True)
class AssignmentStatement:
    name: Tok
    value: Expression

    @property
    def location(self) -> Optional[SourceLocation]:
        return self.name.location

    def __str__(self) -> str:
        return f"{self.name.contents} ={self.value};"


@dataclass(frozen=True)
class TemplateDefinition:
    name: Tok
    parameters: Tuple[Expression, ...]
    body: Section

    @property
    def location(self) -> Optional[SourceLocation]:
        return self.name.location

    def __str__(self) -> str:
        params = ",".join(str(p) for p in self.parameters)
        return f"template {self.name.contents}<{params}> {{\n{_indent(self.body.render_body())}}}"


@dataclass(frozen=True)
class TemplateInstantiation:
    name: Tok
    arguments: Tuple[Expression, ...]

    @property
    def location(self) -> Optional[SourceLocation]:
        return self.name.location

    def __str__(self) -> str:
        args = ",".join(str(a) for a in self.arguments)
        return f"template {self.name.contents}<{args}>;"


@dataclass(frozen=True)
class SequenceStatement:
    first: Statement
    second: Statement

    @property
    def location(self) -> Optional[SourceLocation]:
        return self.first.location or self.second.location

    def __str__(self) -> str:
        return f"{self.first}\n{self.second}"


@dataclass(frozen=True)
class EmptyStatement:
    @property
    def location(self) -> Optional[SourceLocation]:
        return None

    def __str__(self) -> str:
        return ";"


Statement: TypeAlias = Union[
    CommandStatement,
    AssignmentStatement,
    TemplateDefinition,
    TemplateInstantiation,
    SequenceStatement,
    EmptyStatement,
]


def sequence(statements) -> Statement:
    """Fold statements into a left-to-right SequenceStatement chain"""
    result: Optional[Statement] = None
    for stmt in statements:
        result = stmt if result is None else SequenceStatement(result, stmt)
    return EmptyStatement() if result is None else result

# ---------- Sections ----------

@dataclass(frozen=True)
class Section:
    name: Tok
    statements: Tuple[Statement, ...] = ()
    subsections: Mapping[str, Section] = field(default_factory=dict)

    @property
    def is_leaf(self) -> bool:
        return not self.subsections

    @property
    def location(self) -> Optional[SourceLocation]:
        return self.name.location

    @property
    def body(self) -> Statement:
        return sequence(self.statements)

    def get(self, name: str) -> Optional[Section]:
        return self.subsections.get(name)

    def __iter__(self) -> Iterator[Section]:
        return iter(self.subsections.values())

    def render_body(self) -> str:
        lines = [f"{stmt}\n" for stmt in self.statements]
        lines.extend(f"{sub}\n" for sub in self.subsections.values())
        return "".join(lines)

    def __str__(self) -> str:
        if not self.name.contents:
            return self.render_body()
        return f"{self.name.contents} {{\n{_indent(self.render_body())}}}"


def _indent(text: str) -> str:
    out = []
    for line in text.splitlines(keepends=True):
        out.append(f"    {line}" if line.strip() else line)
    return "".join(out)
