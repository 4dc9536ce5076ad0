"""Core enumerations for the yacht harness.

Separated from types.py to break circular dependencies. This module contains
only enum definitions with no dependencies on other core modules.
"""

from enum import Enum


class ServerMode(Enum):
    """How the system under test is provisioned."""

    ENDPOINT = "uri"
    SINGLE = "single"
    CLUSTER = "cluster"


class ServerState(Enum):
    """Server lifecycle state. Only ever advances."""

    NOT_INSTALLED = "not_installed"
    INSTALLED = "installed"
    STARTED = "started"
    READY = "ready"
    CONNECTED = "connected"
    STOPPED = "stopped"


class Outcome(Enum):
    """Test file outcome."""

    PASS = "pass"
    NEW = "new"
    FAIL = "fail"
