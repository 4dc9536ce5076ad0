"""Structured logging system with JSON output and rich terminal formatting."""

import logging
from typing import Any, Dict, Optional, Union, Protocol
from pathlib import Path

from .logger_factory import IsolatedLogManager


class Logger(Protocol):
    """Protocol for logger instances to enable dependency injection."""

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log debug message."""

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log info message."""

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log warning message."""

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log error message."""

    def exception(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log exception with traceback."""


# Global log manager instance
_log_manager = IsolatedLogManager("yacht")


def configure_logging(
    level: Union[int, str] = logging.WARNING,
    log_file: Optional[Path] = None,
    enable_console: bool = True,
) -> None:
    """Configure the global logging system."""
    _log_manager.configure(level=level, log_file=log_file, enable_console=enable_console)


def add_file_logging(log_file: Path, level: Union[int, str] = logging.DEBUG) -> None:
    """Add file logging to already-configured logging system.

    Used once the lane directory exists, without disrupting the
    already-configured console logging.
    """
    _log_manager.add_file_handler(log_file, level)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance."""
    return _log_manager.create_logger(name)


def shutdown_logging() -> None:
    """Shutdown the logging system."""
    _log_manager.shutdown()


def log_process_event(
    logger: Logger, event: str, pid: Optional[int] = None, **kwargs: Any
) -> None:
    """Log a process-related event."""
    extra: Dict[str, Any] = {"event_type": "process", "process_event": event}
    if pid is not None:
        extra["pid"] = pid
    extra.update(kwargs)
    logger.info("Process %s %s", pid, event, extra=extra)


def log_server_event(
    logger: Logger,
    event: str,
    node_id: Optional[str] = None,
    **kwargs: Any,
) -> None:
    """Log a server-related event."""
    extra: Dict[str, Any] = {"event_type": "server", "server_event": event}
    if node_id is not None:
        extra["node_id"] = str(node_id)
    extra.update(kwargs)
    logger.info("Server %s %s", node_id, event, extra=extra)


def log_test_event(
    logger: Logger, event: str, test_name: Optional[str] = None, **kwargs: Any
) -> None:
    """Log a test-related event."""
    extra: Dict[str, Any] = {"event_type": "test", "test_event": event}
    if test_name is not None:
        extra["test_name"] = test_name
    extra.update(kwargs)
    logger.info("Test %s %s", test_name, event, extra=extra)


def log_lane_event(
    logger: Logger, event: str, lane_id: Optional[str] = None, **kwargs: Any
) -> None:
    """Log a lane-related event."""
    extra: Dict[str, Any] = {"event_type": "lane", "lane_event": event}
    if lane_id is not None:
        extra["lane_id"] = lane_id
    extra.update(kwargs)
    logger.debug("Lane %s %s", lane_id, event, extra=extra)


def log_context(**kwargs: Any) -> Any:
    """Context manager for temporary logging context."""
    return _log_manager.context(**kwargs)
