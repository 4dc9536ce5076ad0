"""Connections to CQL servers and result rendering."""

from .protocol import Connection, Connector
from .render import QueryResult, render_result

__all__ = ["Connection", "Connector", "QueryResult", "render_result"]
