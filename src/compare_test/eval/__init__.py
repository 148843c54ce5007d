"""Evaluator helper modules for the compare-test interpreter."""

__all__ = [
    "common",
    "expr",
    "commands",
    "exit_code",
    "statements",
]
