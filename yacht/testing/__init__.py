"""Test execution: statement splitting, golden files, suites and orchestration."""

from .discovery import discover_suites
from .golden import TestFile
from .runner import TestRunner
from .statements import StatementSplitter
from .suite import TestSuite

__all__ = [
    "discover_suites",
    "StatementSplitter",
    "TestFile",
    "TestRunner",
    "TestSuite",
]
