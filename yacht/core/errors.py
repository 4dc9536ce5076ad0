"""Error hierarchy for the yacht harness.

Errors are split by how the harness reacts to them: infrastructure failures
abort the current suite/mode regardless of ``--force``, transport failures
abort the run, content mismatches are test outcomes and never raised.
"""

from pathlib import Path
from typing import Optional, Dict, Any


class YachtError(Exception):
    """Base exception for all yacht errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


# Configuration and Setup Errors
class ConfigurationError(YachtError):
    """Error in harness configuration or suite description."""


# Infrastructure Errors
class InfraError(YachtError):
    """Base class for infrastructure failures.

    Always fatal to the current suite/mode, independent of force mode.
    """


class FilesystemError(InfraError):
    """Directory or file operation failed."""


class ExecutableNotFoundError(InfraError):
    """Server binary is missing or not executable."""

    def __init__(self, message: str, path: Path,
                 details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, details)
        self.path = path


class ServerStartupError(InfraError):
    """Error starting a server instance."""

    def __init__(self, message: str, log_file: Optional[Path] = None,
                 details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, details)
        self.log_file = log_file


class StartupTimeoutError(ServerStartupError):
    """Server did not report readiness within the startup timeout."""

    def __init__(self, message: str, timeout: float, log_file: Optional[Path] = None,
                 details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, log_file, details)
        self.timeout = timeout


class ServerConnectionError(InfraError):
    """Connection to a server could not be established."""


class NetworkError(InfraError):
    """Address leasing error."""


# State machine errors
class ServerStateError(YachtError):
    """Server operation requested out of lifecycle order."""


# Test Execution Errors
class ExecutionError(YachtError):
    """Error during test execution."""


class TransportError(ExecutionError):
    """Transport or driver-internal failure while executing a statement.

    Distinct from an error reported by the server, which is ordinary output.
    """

    def __init__(self, message: str, statement: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, details)
        self.statement = statement


class QueryError(YachtError):
    """Server-reported error for an administrative statement."""

    def __init__(self, message: str, code: Optional[int] = None,
                 details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, details)
        self.code = code
