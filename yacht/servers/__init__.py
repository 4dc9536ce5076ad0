"""Server provisioning: pre-installed endpoint, single instance and cluster."""

from .base import Server
from .cluster import ClusterServer
from .endpoint import EndpointServer
from .factory import create_server
from .single import SingleServer

__all__ = [
    "Server",
    "ClusterServer",
    "EndpointServer",
    "SingleServer",
    "create_server",
]
