"""Connection capability consumed by servers and the test engine."""

from typing import Optional, Protocol


class Connection(Protocol):
    """An open session against a server."""

    def execute(self, statement: str) -> str:
        """Execute one statement and return its rendered result.

        Server-reported errors are part of the rendered text. Transport and
        driver-internal failures raise TransportError.
        """

    def run(self, statement: str) -> None:
        """Execute an administrative statement, raising QueryError on failure."""

    def close(self) -> None:
        """Close the session."""


class Connector(Protocol):
    """Opens connections to a server address."""

    def connect(self, address: str, keyspace: Optional[str] = None) -> Connection:
        """Connect to address, optionally binding the session to a keyspace."""
