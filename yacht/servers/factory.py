"""Maps a server mode to a fresh server value."""

from typing import Optional, Tuple

from ..connection.cql import CQLConnector
from ..connection.protocol import Connector
from ..core.enums import ServerMode
from ..core.errors import ConfigurationError
from ..core.types import YachtConfig
from .base import Server
from .cluster import ClusterServer
from .endpoint import EndpointServer
from .single import SingleServer


def split_uri(uri: str, default_port: int) -> Tuple[str, int]:
    """Split ``host[:port]`` into host and port."""
    host, sep, port = uri.rpartition(":")
    if not sep or not port.isdigit() or ":" in host:
        return uri, default_port
    return host, int(port)


def create_connector(config: YachtConfig, port: Optional[int] = None) -> CQLConnector:
    return CQLConnector(
        port=port or config.network.cql_port,
        connect_timeout=config.timeouts.connect,
        request_timeout=config.timeouts.request,
    )


def create_server(
    mode: ServerMode,
    config: YachtConfig,
    connector: Optional[Connector] = None,
) -> Server:
    """Create a server for one suite/mode invocation."""
    if mode == ServerMode.ENDPOINT:
        if not config.uri:
            raise ConfigurationError("Mode 'uri' requires a configured server address")
        host, port = split_uri(config.uri, config.network.cql_port)
        return EndpointServer(
            host,
            connector or create_connector(config, port),
            keyspace=config.keyspace,
            replication_strategy=config.cluster.replication_strategy,
            replication_factor=config.replication_factor,
        )
    connector = connector or create_connector(config)
    if mode == ServerMode.SINGLE:
        return SingleServer(config, connector)
    if mode == ServerMode.CLUSTER:
        return ClusterServer(config, connector)
    raise ConfigurationError(f"Unknown server mode: {mode}")
