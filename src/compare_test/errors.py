from __future__ import annotations


class CompareTestError(Exception):
    """Base class for errors raised by compare-test itself"""
    pass


class UsageError(CompareTestError):
    """Bad command-line arguments"""
    pass
