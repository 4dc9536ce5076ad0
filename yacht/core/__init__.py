"""Core framework components."""

from .value_objects import FailedTest

__all__ = ["FailedTest"]
