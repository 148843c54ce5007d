"""compare-test: run test descriptions under several configurations and compare the results."""

from .config import Configuration, Template
from .diagnostics import BufferedLog, ConsoleLog, Diagnostic, Severity
from .discovery import TestCase, TestCaseName, TestDiscovery, discover_tests
from .engine import TestOutcome, run_test_case, run_tests
from .evaluator import eval_command, eval_expression, eval_statement, run_section
from .lexer import Lexer, tokenize
from .parser import Parser, parse_file, parse_source
from .state import ExecutionState, TempFileRegistry
from .token_buffer import TokenBuffer

__version__ = "0.1.5"

__all__ = [
    "BufferedLog",
    "Configuration",
    "ConsoleLog",
    "Diagnostic",
    "ExecutionState",
    "Lexer",
    "Parser",
    "Severity",
    "TempFileRegistry",
    "Template",
    "TestCase",
    "TestCaseName",
    "TestDiscovery",
    "TestOutcome",
    "TokenBuffer",
    "discover_tests",
    "eval_command",
    "eval_expression",
    "eval_statement",
    "parse_file",
    "parse_source",
    "run_section",
    "run_test_case",
    "run_tests",
    "tokenize",
]
