"""
yacht: Yet Another Scylla Harness for Testing

Provisions Scylla servers (a single node, a cluster, or a pre-installed
endpoint), runs CQL test scripts against them and compares the output with
recorded golden files.
"""

__version__ = "0.1.0"

# Core exports
from .core.enums import Outcome, ServerMode, ServerState
from .core.types import (
    ClusterConfig,
    RunResult,
    TestResult,
    TimeoutConfig,
    YachtConfig,
)

__all__ = [
    "__version__",
    "Outcome",
    "ServerMode",
    "ServerState",
    "ClusterConfig",
    "RunResult",
    "TestResult",
    "TimeoutConfig",
    "YachtConfig",
]
