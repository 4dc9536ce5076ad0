"""Loopback address leasing for server instances.

Scylla assumes every node of a cluster listens on the same port, so each
instance gets its own loopback address instead of its own port.
"""

import socket
import threading
from typing import List, Protocol, Set

from ..core.errors import NetworkError
from ..core.log import get_logger

logger = get_logger(__name__)


class AddressAllocator(Protocol):
    """Protocol for address allocation to enable dependency injection."""

    def lease(self) -> str:
        """Lease an unused address."""

    def release(self, address: str) -> None:
        """Release a previously leased address."""


class AddressPool:
    """Thread-safe pool of loopback addresses.

    Addresses are handed out lowest first, so a lane gets the same addresses
    from run to run.
    """

    def __init__(
        self,
        prefix: str = "127.0.0.",
        first_host: int = 2,
        last_host: int = 254,
        port: int = 9042,
        probe: bool = True,
    ) -> None:
        """Initialize address pool.

        Args:
            prefix: Address prefix the host number is appended to
            first_host: First host number in the range
            last_host: Last host number in the range, inclusive
            port: Port a leased address must have free
            probe: Whether to check that the port is bindable before leasing
        """
        self.prefix = prefix
        self.first_host = first_host
        self.last_host = last_host
        self.port = port
        self.probe = probe
        self._leased: Set[str] = set()
        self._lock = threading.Lock()

    @property
    def leased(self) -> List[str]:
        """Currently leased addresses."""
        with self._lock:
            return sorted(self._leased)

    def lease(self) -> str:
        """Lease an unused address.

        Raises:
            NetworkError: If every address in the range is taken
        """
        with self._lock:
            for host in range(self.first_host, self.last_host + 1):
                address = f"{self.prefix}{host}"
                if self._is_available(address):
                    self._leased.add(address)
                    logger.debug("Leased address %s", address)
                    return address

            raise NetworkError(
                f"No available addresses in range {self.prefix}{self.first_host}"
                f"-{self.prefix}{self.last_host}"
            )

    def release(self, address: str) -> None:
        """Release a previously leased address.

        Raises:
            NetworkError: If the address is not currently leased
        """
        with self._lock:
            if address not in self._leased:
                raise NetworkError(f"Address {address} is not leased")
            self._leased.remove(address)
            logger.debug("Released address %s", address)

    def _is_available(self, address: str) -> bool:
        if address in self._leased:
            return False
        if not self.probe:
            return True

        try:
            with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
                sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
                sock.bind((address, self.port))
                return True
        except OSError:
            return False


def create_address_pool(
    prefix: str = "127.0.0.",
    first_host: int = 2,
    last_host: int = 254,
    port: int = 9042,
    probe: bool = True,
) -> AddressPool:
    """Create an address pool after validating the range."""
    if first_host < 1 or last_host > 254:
        raise NetworkError(f"Host range {first_host}-{last_host} is out of bounds")
    return AddressPool(prefix, first_host, last_host, port, probe)
