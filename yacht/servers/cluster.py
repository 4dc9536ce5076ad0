"""A cluster of Scylla servers started concurrently."""

import uuid
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import List, Optional

from ..connection.protocol import Connection, Connector
from ..core.enums import ServerMode, ServerState
from ..core.errors import ServerStateError
from ..core.log import get_logger, log_server_event
from ..core.types import YachtConfig
from ..lane.lane import Lane
from .artefacts import ReleaseAddressArtefact
from .base import ServerLifecycle
from .single import SingleServer, find_scylla_executable

logger = get_logger(__name__)


class ClusterServer(ServerLifecycle):
    """N single servers sharing a cluster name and a seed list.

    Nodes start in parallel and are all joined before the first error to
    complete, if any, is surfaced. A failing node does not cancel its siblings: every node that
    spawned registered its own teardown and is stopped with the lane.
    """

    mode = ServerMode.CLUSTER

    def __init__(self, config: YachtConfig, connector: Connector,
                 nodes: Optional[int] = None) -> None:
        super().__init__()
        self._config = config
        self._connector = connector
        self.node_count = nodes or config.cluster.nodes
        self.cluster_name: Optional[str] = None
        self.servers: List[SingleServer] = []

    def start(self, lane: Lane) -> None:
        self._require("start", ServerState.NOT_INSTALLED)
        find_scylla_executable(self._config)

        addresses = []
        for _ in range(self.node_count):
            address = lane.lease_address()
            lane.add_suite_artefact(ReleaseAddressArtefact(lane, address))
            addresses.append(address)
        seeds = ", ".join(addresses)
        self.cluster_name = str(uuid.uuid4())

        self.servers = [
            SingleServer(
                self._config,
                self._connector,
                address=address,
                seeds=seeds,
                cluster_name=self.cluster_name,
                replication_factor=self.node_count,
                # Clustered start needs gossip
                gossip_settle=self._config.cluster.gossip_settle,
            )
            for address in addresses
        ]
        self._advance(ServerState.INSTALLED)
        log_server_event(
            logger, "cluster_starting", node_id=self.cluster_name, nodes=addresses
        )

        with ThreadPoolExecutor(
            max_workers=self.node_count, thread_name_prefix="yacht-node"
        ) as executor:
            futures = {
                executor.submit(server.start, lane, setup_keyspace=False): server
                for server in self.servers
            }
            errors = []
            for future in as_completed(futures):
                error = future.exception()
                if error is not None:
                    logger.error("Node %s failed to start: %s", futures[future].address, error)
                    errors.append(error)

        if errors:
            raise errors[0]
        self._advance(ServerState.STARTED)

        # Keyspace drop must run while every node is still up
        kill_artefacts = [server.kill_artefact for server in self.servers]
        self.servers[0].setup_keyspace(lane, depends_on=kill_artefacts)
        self._advance(ServerState.READY)
        log_server_event(logger, "cluster_ready", node_id=self.cluster_name)

    def connect(self) -> Connection:
        self._require("connect", ServerState.READY, ServerState.CONNECTED)
        if not self.servers:
            raise ServerStateError("Cluster has no nodes")
        connection = self.servers[0].connect()
        self._advance(ServerState.CONNECTED)
        return connection
