"""Server abstraction shared by the provisioning modes."""

from typing import Protocol

from ..connection.protocol import Connection
from ..core.enums import ServerMode, ServerState
from ..core.errors import ServerStateError
from ..lane.lane import Lane


class Server(Protocol):
    """A system under test the harness can start and connect to."""

    mode: ServerMode

    @property
    def mode_name(self) -> str:
        """Mode tag as used in suite descriptions."""

    @property
    def state(self) -> ServerState:
        """Current lifecycle state."""

    def start(self, lane: Lane) -> None:
        """Provision the server and prepare the test keyspace."""

    def connect(self) -> Connection:
        """Open a connection bound to the test keyspace."""


class ServerLifecycle:
    """Tracks the lifecycle state and rejects out-of-order transitions."""

    mode: ServerMode

    def __init__(self) -> None:
        self._state = ServerState.NOT_INSTALLED

    @property
    def mode_name(self) -> str:
        return self.mode.value

    @property
    def state(self) -> ServerState:
        return self._state

    def _require(self, action: str, *allowed: ServerState) -> None:
        if self._state not in allowed:
            raise ServerStateError(
                f"Cannot {action} {self.mode_name} server in state {self._state.value}",
                details={
                    "state": self._state.value,
                    "allowed": [state.value for state in allowed],
                },
            )

    def _advance(self, state: ServerState) -> None:
        self._state = state

    def mark_stopped(self) -> None:
        """Terminal state, entered when the server process is removed."""
        self._state = ServerState.STOPPED
