from __future__ import annotations

from typing import Callable

from ..config import Configuration
from ..nodes import Command, Expression, Statement
from ..state import ExecutionState

ExprEval = Callable[[Expression, Configuration, ExecutionState], str]
CommandEval = Callable[[Command, Configuration, ExecutionState], str]
StmtEval = Callable[[Statement, Configuration, ExecutionState], Configuration]


def normalize_value(text: str) -> str:
    """Strip carriage returns and surrounding whitespace from captured output"""
    return text.replace("\r", "").strip()
