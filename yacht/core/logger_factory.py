"""Logger factory for creating isolated logging environments."""

import logging
import threading
from typing import Any, Dict, Optional, Union
from pathlib import Path
from contextlib import contextmanager


from .log_formatters import StructuredFormatter, YachtRichHandler, LogContext


class IsolatedLogManager:
    """Non-singleton log manager for isolated logging environments."""

    def __init__(self, namespace: str = "") -> None:
        """Initialize isolated log manager.

        Args:
            namespace: Namespace prefix for logger names to ensure isolation
        """
        self._namespace = namespace
        self._configured = False
        self._json_handler: Optional[logging.Handler] = None
        self._console_handler: Optional[logging.Handler] = None
        self._loggers: Dict[str, logging.Logger] = {}
        self._context = LogContext()
        self._lock = threading.RLock()

    @property
    def is_configured(self) -> bool:
        """Whether configure() has been called."""
        return self._configured

    def configure(self,
                  level: Union[int, str] = logging.WARNING,
                  log_file: Optional[Path] = None,
                  enable_console: bool = True) -> None:
        """Configure this logging instance."""
        with self._lock:
            # Allow reconfiguration for test isolation
            if self._configured:
                self._clear_configuration()

            if log_file:
                self._set_json_handler(Path(log_file), level)

            if enable_console:
                self._console_handler = YachtRichHandler(
                    show_time=True,
                    show_path=False,
                    markup=False
                )
                self._console_handler.setLevel(level)

            for logger in self._loggers.values():
                self._attach_handlers(logger)

            self._configured = True

    def add_file_handler(self, log_file: Path,
                         level: Union[int, str] = logging.DEBUG) -> None:
        """Add JSON file logging to every managed logger."""
        with self._lock:
            if self._json_handler:
                for logger in self._loggers.values():
                    logger.removeHandler(self._json_handler)
                self._json_handler.close()
            self._set_json_handler(Path(log_file), level)
            for logger in self._loggers.values():
                logger.addHandler(self._json_handler)

    def create_logger(self, name: str) -> logging.Logger:
        """Create a logger instance with namespace isolation."""
        with self._lock:
            full_name = f"{self._namespace}.{name}" if self._namespace else name

            if full_name in self._loggers:
                return self._loggers[full_name]

            logger = logging.getLogger(full_name)

            # Ensure logger doesn't propagate to root to avoid global interference
            logger.propagate = False
            logger.setLevel(logging.DEBUG)
            self._attach_handlers(logger)

            self._loggers[full_name] = logger
            return logger

    def get_context(self) -> Dict[str, Any]:
        """Get current logging context for this instance."""
        return self._context.get_context()

    @contextmanager
    def context(self, **kwargs: Any):
        """Context manager for temporary context variables."""
        with self._context.context(**kwargs):
            yield

    def shutdown(self) -> None:
        """Shutdown this logging instance."""
        with self._lock:
            self._clear_configuration()
            self._context.clear_context()

    def _set_json_handler(self, log_file: Path, level: Union[int, str]) -> None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        self._json_handler = logging.FileHandler(log_file)
        self._json_handler.setFormatter(
            StructuredFormatter(include_context=True, context_getter=self.get_context)
        )
        self._json_handler.setLevel(level)

    def _attach_handlers(self, logger: logging.Logger) -> None:
        for handler in (self._json_handler, self._console_handler):
            if handler and handler not in logger.handlers:
                logger.addHandler(handler)

    def _clear_configuration(self) -> None:
        """Clear current configuration and handlers."""
        for logger in self._loggers.values():
            for handler in logger.handlers[:]:
                logger.removeHandler(handler)

        for handler in (self._json_handler, self._console_handler):
            if handler:
                try:
                    handler.close()
                except (OSError, RuntimeError):
                    pass  # Ignore handler close errors
        self._json_handler = None
        self._console_handler = None

        self._configured = False
