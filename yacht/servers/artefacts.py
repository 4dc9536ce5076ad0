"""Artefacts left behind by server provisioning."""

import subprocess
from pathlib import Path
from typing import Callable, Optional, Sequence

from ..connection.protocol import Connection
from ..core.log import get_logger, log_server_event
from ..core.process import terminate_process
from ..lane.artefact import Artefact
from ..lane.lane import Lane
from ..utils.filesystem import safe_remove

logger = get_logger(__name__)


def drop_keyspace_statement(keyspace: str) -> str:
    return f"DROP KEYSPACE IF EXISTS {keyspace}"


class DropKeyspaceArtefact(Artefact):
    """Destroy the test keyspace when done, through an administrative session."""

    def __init__(self, connection: Connection, keyspace: str,
                 depends_on: Sequence[Artefact] = ()) -> None:
        self._connection = connection
        self.keyspace = keyspace
        self.depends_on = tuple(depends_on)

    def drop(self) -> None:
        """Drop the keyspace, keeping the session open."""
        self._connection.run(drop_keyspace_statement(self.keyspace))

    def remove(self) -> None:
        try:
            self.drop()
        finally:
            self._connection.close()

    def __str__(self) -> str:
        return f"drop keyspace {self.keyspace}"


class ReleaseAddressArtefact(Artefact):
    """Return a leased address to the lane."""

    def __init__(self, lane: Lane, address: str) -> None:
        self._lane = lane
        self.address = address

    def remove(self) -> None:
        self._lane.release_address(self.address)

    def __str__(self) -> str:
        return f"release address {self.address}"


class UninstallArtefact(Artefact):
    """Remove a server data directory and its log file."""

    def __init__(self, directory: Path, log_file: Path) -> None:
        self.directory = directory
        self.log_file = log_file

    def remove(self) -> None:
        safe_remove(self.directory)
        safe_remove(self.log_file)

    def __str__(self) -> str:
        return f"uninstall {self.directory}"


class ProcessKillArtefact(Artefact):
    """Stop a server process: SIGTERM first, SIGKILL after the grace period."""

    def __init__(
        self,
        process: subprocess.Popen,
        node_id: str,
        grace_period: float = 3.0,
        on_stop: Optional[Callable[[], None]] = None,
    ) -> None:
        self.process = process
        self.node_id = node_id
        self.grace_period = grace_period
        self._on_stop = on_stop

    def remove(self) -> None:
        log_server_event(logger, "stopping", node_id=self.node_id, pid=self.process.pid)
        exit_code = terminate_process(self.process, self.grace_period)
        log_server_event(logger, "stopped", node_id=self.node_id, exit_code=exit_code)
        if self._on_stop is not None:
            self._on_stop()

    def __str__(self) -> str:
        return f"stop server {self.node_id} (pid {self.process.pid})"
