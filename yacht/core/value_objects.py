"""Domain primitives for test bookkeeping."""

from dataclasses import dataclass


@dataclass(frozen=True)
class FailedTest:
    """A failed test, identified by its suite and test file name."""

    suite: str
    test: str

    def __str__(self) -> str:
        return f"{self.suite}/{self.test}"
