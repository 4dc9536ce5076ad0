"""A single Scylla server spawned from the build directory."""

import os
import subprocess
import uuid
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from ..connection.protocol import Connection, Connector
from ..core.enums import ServerMode, ServerState
from ..core.errors import ExecutableNotFoundError, FilesystemError, ServerStateError
from ..core.log import get_logger, log_server_event
from ..core.process import spawn_process
from ..core.types import YachtConfig
from ..lane.artefact import Artefact
from ..lane.lane import Lane
from ..utils.filesystem import ensure_dir
from .artefacts import ProcessKillArtefact, ReleaseAddressArtefact, UninstallArtefact
from .base import ServerLifecycle
from .config_template import write_scylla_config
from .endpoint import EndpointServer
from .readiness import wait_until_ready

logger = get_logger(__name__)


def find_scylla_executable(config: YachtConfig) -> Path:
    """Path of the server binary in the build directory.

    Raises:
        ExecutableNotFoundError: missing or not executable
    """
    exe = Path(config.scylla.builddir) / config.scylla.executable
    if not exe.is_file():
        raise ExecutableNotFoundError(
            f"Server executable {exe} not found", path=exe, details={"path": str(exe)}
        )
    if not os.access(exe, os.X_OK):
        raise ExecutableNotFoundError(
            f"{exe} is not executable", path=exe, details={"path": str(exe)}
        )
    return exe


class SingleServer(ServerLifecycle):
    """One server process with a private directory inside the lane.

    Scylla assumes all instances of a cluster use the same port, so each
    instance gets its own address. A cluster presets the address, the seed
    list and the cluster name; on its own the server leases an address and
    seeds itself.
    """

    mode = ServerMode.SINGLE

    def __init__(
        self,
        config: YachtConfig,
        connector: Connector,
        address: Optional[str] = None,
        seeds: Optional[str] = None,
        cluster_name: Optional[str] = None,
        replication_factor: Optional[int] = None,
        gossip_settle: int = 0,
    ) -> None:
        super().__init__()
        self._config = config
        self._connector = connector
        self.address = address
        self.seeds = seeds
        self.cluster_name = cluster_name
        self.replication_factor = replication_factor or config.replication_factor
        self.gossip_settle = gossip_settle

        self.executable: Optional[Path] = None
        self.dir: Optional[Path] = None
        self.log_file: Optional[Path] = None
        self.config_file: Optional[Path] = None
        self.process: Optional[subprocess.Popen] = None
        self.kill_artefact: Optional[ProcessKillArtefact] = None
        self._command: List[str] = []
        self._env: Dict[str, str] = {}
        self._endpoint: Optional[EndpointServer] = None

    def start(self, lane: Lane, setup_keyspace: bool = True) -> None:
        """Install, spawn and wait for the server, then prepare the keyspace.

        Args:
            lane: Lane owning the server directory and artefacts
            setup_keyspace: Whether to create the test keyspace right away;
                a cluster does it once for all its nodes
        """
        self._require("start", ServerState.NOT_INSTALLED)
        self.find_executable()
        self.install(lane)

        log_server_event(logger, "starting", node_id=self.address)
        self.launch(lane)
        elapsed = wait_until_ready(
            self.process,
            self.log_file,
            self._config.scylla.readiness_marker,
            timeout=self._config.timeouts.server_startup,
            poll_interval=self._config.timeouts.readiness_poll_interval,
            node_id=self.address,
        )
        log_server_event(logger, "started", node_id=self.address, startup_time=elapsed)

        if setup_keyspace:
            self.setup_keyspace(lane)
        self._advance(ServerState.READY)

    def find_executable(self) -> Path:
        """Locate the server binary, failing before anything is registered."""
        self.executable = find_scylla_executable(self._config)
        return self.executable

    def install(self, lane: Lane) -> None:
        """Lease an address, create the data directory and the configuration."""
        self._require("install", ServerState.NOT_INSTALLED)
        if self.executable is None:
            self.find_executable()

        if self.address is None:
            self.address = lane.lease_address()
            lane.add_suite_artefact(ReleaseAddressArtefact(lane, self.address))
        if self.seeds is None:
            self.seeds = self.address
        if self.cluster_name is None:
            self.cluster_name = str(uuid.uuid4())

        self.dir = lane.dir / self.address
        self.log_file = lane.dir / f"{self.address}.log"
        lane.add_suite_artefact(UninstallArtefact(self.dir, self.log_file))

        ensure_dir(self.dir)
        # SCYLLA_CONF is the configuration directory, scylla.yaml is implied
        self.config_file = write_scylla_config(
            self.dir,
            address=self.address,
            cluster_name=self.cluster_name,
            seeds=self.seeds,
            gossip_settle=self.gossip_settle,
        )

        env = dict(os.environ)
        # Do not confuse the binary with a setting inherited from the parent
        env.pop("SCYLLA_HOME", None)
        env["SCYLLA_CONF"] = str(self.dir)
        self._env = env
        self._command = [str(self.executable), f"--smp={self._config.scylla.smp}"]

        self._endpoint = EndpointServer(
            self.address,
            self._connector,
            keyspace=self._config.keyspace,
            replication_strategy=self._config.cluster.replication_strategy,
            replication_factor=self.replication_factor,
        )
        self._advance(ServerState.INSTALLED)
        log_server_event(logger, "installed", node_id=self.address, dir=str(self.dir))

    def launch(self, lane: Lane) -> None:
        """Spawn the process, registering its teardown before anything else."""
        self._require("launch", ServerState.INSTALLED)
        try:
            output = open(self.log_file, "wb")  # pylint: disable=consider-using-with
        except OSError as e:
            raise FilesystemError(f"Error creating log file {self.log_file}: {e}") from e
        # An interrupt must not drain the lane between spawn and registration
        with lane.registration():
            try:
                self.process = spawn_process(self._command, self.dir, self._env, output)
            finally:
                # The child holds its own descriptor
                output.close()

            self.kill_artefact = ProcessKillArtefact(
                self.process,
                node_id=self.address,
                grace_period=self._config.timeouts.process_graceful_stop,
                on_stop=self.mark_stopped,
            )
            lane.add_exit_artefact(self.kill_artefact)
        self._advance(ServerState.STARTED)

    def setup_keyspace(self, lane: Lane, depends_on: Sequence[Artefact] = ()) -> None:
        """Create the test keyspace through this node.

        The keyspace drop always depends on this node's process.
        """
        if self._endpoint is None or self.kill_artefact is None:
            raise ServerStateError(
                f"Cannot set up keyspace on server {self.address} before it is started",
                details={"state": self._state.value},
            )
        dependencies = tuple(depends_on)
        if not any(dep is self.kill_artefact for dep in dependencies):
            dependencies = (self.kill_artefact,) + dependencies
        self._endpoint.start(lane, depends_on=dependencies)

    def connect(self) -> Connection:
        self._require("connect", ServerState.READY, ServerState.CONNECTED)
        if self._endpoint is None:
            raise ServerStateError(f"Server {self.address} has no endpoint")
        connection = self._endpoint.connect()
        self._advance(ServerState.CONNECTED)
        return connection
