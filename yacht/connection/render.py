"""Rendering of statement results into the golden-file text format."""

from dataclasses import dataclass, field
from io import StringIO
from typing import Any, List, Optional, Sequence

from rich import box
from rich.console import Console
from rich.table import Table

OFFSET = "  "
MESSAGE_MAX_CHARS = 80


@dataclass
class QueryResult:
    """Result of execution of a single statement."""

    columns: List[str] = field(default_factory=list)
    rows: List[Sequence[Any]] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    error_code: Optional[str] = None  # e.g. "Invalid (0x2200)"
    error_message: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.error_code is not None


def format_value(value: Any) -> str:
    """Format a cell value deterministically.

    Maps and sets are printed in sorted order so the output does not depend
    on hashing or driver iteration order.
    """
    if value is None:
        return "null"
    if hasattr(value, "items"):
        items = sorted((format_value(k), format_value(v)) for k, v in value.items())
        return "{" + ", ".join(f"{k}: {v}" for k, v in items) + "}"
    if isinstance(value, (set, frozenset)):
        return "{" + ", ".join(sorted(format_value(v) for v in value)) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(format_value(v) for v in value) + "]"
    return str(value)


def first_line(message: str, limit: int = MESSAGE_MAX_CHARS) -> str:
    """First line of a server message, truncated."""
    lines = message.split("\n")
    return lines[0][:limit]


def render_table(columns: Sequence[str], rows: Sequence[Sequence[Any]]) -> str:
    """Render rows as a plain ASCII table, every line shifted by the offset."""
    table = Table(box=box.ASCII, show_edge=True, highlight=False)
    for name in columns:
        table.add_column(name, no_wrap=True, overflow="ignore")
    for row in rows:
        table.add_row(*(format_value(v) for v in row))

    buffer = StringIO()
    console = Console(
        file=buffer,
        width=1000,
        color_system=None,
        force_terminal=False,
        markup=False,
        highlight=False,
        emoji=False,
        legacy_windows=False,
    )
    console.print(table)

    lines = [line.rstrip() for line in buffer.getvalue().splitlines() if line.strip()]
    return "".join(f"{OFFSET}{line}\n" for line in lines)


def render_result(result: QueryResult) -> str:
    """Render a QueryResult into golden-file text."""
    if result.is_error:
        return (
            f"{OFFSET}{'status':>7}: ERROR\n"
            f"{OFFSET}{'code':>7}: {result.error_code}\n"
            f"{OFFSET}{'message':>7}: {first_line(result.error_message or '')}\n"
        )

    out = ""
    if result.warnings:
        out += f"{OFFSET}warnings: [{', '.join(result.warnings)}]\n"
    if result.rows:
        out += render_table(result.columns, result.rows)
    else:
        out += f"{OFFSET}OK\n"
    return out
