"""A pre-installed server reached through an address."""

from typing import Optional, Sequence

from ..connection.protocol import Connection, Connector
from ..core.enums import ServerMode, ServerState
from ..core.errors import QueryError, ServerStartupError, TransportError
from ..core.log import get_logger, log_server_event
from ..lane.artefact import Artefact
from ..lane.lane import Lane
from .artefacts import DropKeyspaceArtefact
from .base import ServerLifecycle

logger = get_logger(__name__)

CREATE_KEYSPACE_TEMPLATE = """CREATE KEYSPACE IF NOT EXISTS {keyspace}
WITH REPLICATION = {{ 'class': '{strategy}', 'replication_factor' : {factor} }}
AND DURABLE_WRITES=true"""


def create_keyspace_statement(keyspace: str, strategy: str, factor: int) -> str:
    return CREATE_KEYSPACE_TEMPLATE.format(keyspace=keyspace, strategy=strategy, factor=factor)


class EndpointServer(ServerLifecycle):
    """Server that is already running, e.g. a developer's local instance.

    Starting it only prepares a fresh test keyspace; dropping the keyspace is
    registered as a suite-scoped artefact.
    """

    mode = ServerMode.ENDPOINT

    def __init__(
        self,
        address: str,
        connector: Connector,
        keyspace: str = "yacht",
        replication_strategy: str = "SimpleStrategy",
        replication_factor: int = 1,
    ) -> None:
        super().__init__()
        self.address = address
        self.keyspace = keyspace
        self.replication_strategy = replication_strategy or "SimpleStrategy"
        self.replication_factor = replication_factor or 1
        self._connector = connector
        self._drop_artefact: Optional[DropKeyspaceArtefact] = None

    @property
    def drop_artefact(self) -> Optional[DropKeyspaceArtefact]:
        return self._drop_artefact

    def start(self, lane: Lane, depends_on: Sequence[Artefact] = ()) -> None:
        """Recreate the test keyspace.

        Args:
            lane: Lane to register the keyspace drop with
            depends_on: Artefacts that must outlive the keyspace, e.g. the
                processes serving it
        """
        self._require("start", ServerState.NOT_INSTALLED)
        self._advance(ServerState.INSTALLED)

        # Administrative session, ServerConnectionError if unreachable
        admin = self._connector.connect(self.address)
        self._advance(ServerState.STARTED)

        artefact = DropKeyspaceArtefact(admin, self.keyspace, depends_on)
        try:
            # Leftovers of an earlier run
            artefact.drop()
            admin.run(create_keyspace_statement(
                self.keyspace, self.replication_strategy, self.replication_factor
            ))
        except (QueryError, TransportError) as e:
            admin.close()
            raise ServerStartupError(
                f"Failed to create keyspace {self.keyspace} on {self.address}: {e}",
                details={"address": self.address, "keyspace": self.keyspace},
            ) from e

        lane.add_suite_artefact(artefact)
        self._drop_artefact = artefact
        self._advance(ServerState.READY)
        log_server_event(
            logger,
            "keyspace_ready",
            node_id=self.address,
            keyspace=self.keyspace,
            replication_factor=self.replication_factor,
        )

    def connect(self) -> Connection:
        self._require("connect", ServerState.READY, ServerState.CONNECTED)
        connection = self._connector.connect(self.address, self.keyspace)
        self._advance(ServerState.CONNECTED)
        return connection
