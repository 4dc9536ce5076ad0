"""Shared logging formatters and context management."""

import json
import logging
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterator, List, Optional
from contextlib import contextmanager

from rich.console import Console
from rich.logging import RichHandler
from rich.text import Text
from rich.theme import Theme

# LogRecord attributes that are not user supplied extras
_RECORD_ATTRIBUTES = frozenset(
    {
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "message",
        "taskName",
    }
)


class LogContext:
    """Per-thread stack of fields attached to every JSON log line.

    The runner pushes ``suite`` and ``mode`` around each suite invocation;
    cluster node threads start with an empty context.
    """

    def __init__(self) -> None:
        self._local = threading.local()

    def _stack(self) -> List[Dict[str, Any]]:
        stack = getattr(self._local, "stack", None)
        if stack is None:
            stack = self._local.stack = []
        return stack

    def get_context(self) -> Dict[str, Any]:
        """Fields of every active scope, innermost last."""
        merged: Dict[str, Any] = {}
        for fields in self._stack():
            merged.update(fields)
        return merged

    def clear_context(self) -> None:
        self._stack().clear()

    @contextmanager
    def context(self, **kwargs: Any) -> Iterator[None]:
        stack = self._stack()
        stack.append(kwargs)
        try:
            yield
        finally:
            # shutdown may have cleared the stack meanwhile
            if stack:
                stack.pop()


class StructuredFormatter(logging.Formatter):
    """JSON-lines formatter for the lane log file."""

    def __init__(
        self,
        include_context: bool = True,
        context_getter: Optional[Callable[[], Dict[str, Any]]] = None,
    ) -> None:
        super().__init__()
        self.include_context = include_context
        self._context_getter = context_getter

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_entry["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self.formatException(record.exc_info),
            }

        extra_fields = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRIBUTES
        }
        if extra_fields:
            log_entry["fields"] = extra_fields

        if self.include_context and self._context_getter is not None:
            context = self._context_getter()
            if context:
                log_entry["context"] = context

        return json.dumps(log_entry, default=str)


class YachtRichHandler(RichHandler):
    """Rich console handler that colors messages by event type."""

    STYLE_MAP = {
        "process": "yacht.process",
        "server": "yacht.server",
        "test": "yacht.test",
        "lane": "yacht.lane",
    }

    def __init__(self, *args, **kwargs):
        theme = Theme(
            {
                "logging.level.debug": "dim cyan",
                "logging.level.info": "dim blue",
                "logging.level.warning": "yellow",
                "logging.level.error": "red",
                "logging.level.critical": "bold red",
                "yacht.process": "bright_blue",
                "yacht.server": "bright_cyan",
                "yacht.test": "bright_magenta",
                "yacht.lane": "bright_green",
            }
        )

        console = Console(theme=theme, stderr=True)
        super().__init__(*args, console=console, **kwargs)

    def render_message(self, record: logging.LogRecord, message: str) -> Text:
        """Render message with context-aware styling."""
        text = Text(message)

        event_type = getattr(record, "event_type", None)
        if event_type in self.STYLE_MAP:
            text.stylize(self.STYLE_MAP[event_type])

        return text
