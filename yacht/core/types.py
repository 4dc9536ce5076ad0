"""Core type definitions for the yacht harness."""

from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .enums import Outcome
from .value_objects import FailedTest


def _home() -> Path:
    return Path.home()


class ScyllaConfig(BaseModel):
    """Where to find the server binary and the test suites."""

    builddir: Path = Field(default_factory=lambda: _home() / "scylla" / "build" / "dev")
    srcdir: Path = Field(default_factory=lambda: _home() / "scylla" / "tests")
    executable: str = "scylla"
    smp: int = 1
    readiness_marker: str = r"Scylla.*initialization completed"


class ClusterConfig(BaseModel):
    """Cluster mode topology."""

    nodes: int = 3
    replication_strategy: str = "SimpleStrategy"
    # Seconds a clustered node waits for gossip to settle
    gossip_settle: int = 5


class TimeoutConfig(BaseModel):
    """Centralized timeout configuration to eliminate magical constants."""

    server_startup: float = 300.0
    readiness_poll_interval: float = 0.01
    process_graceful_stop: float = 3.0
    connect: float = 30.0
    request: float = 30.0


class NetworkConfig(BaseModel):
    """Loopback addresses leased to server instances."""

    address_prefix: str = "127.0.0."
    first_host: int = 2
    last_host: int = 254
    cql_port: int = 9042
    # Check the CQL port is bindable before leasing an address
    probe: bool = True


class YachtConfig(BaseModel):
    """Main harness configuration."""

    # YAML hands numbers over as such, e.g. lane_id: 2
    model_config = ConfigDict(coerce_numbers_to_str=True)

    scylla: ScyllaConfig = Field(default_factory=ScyllaConfig)
    cluster: ClusterConfig = Field(default_factory=ClusterConfig)
    timeouts: TimeoutConfig = Field(default_factory=TimeoutConfig)
    network: NetworkConfig = Field(default_factory=NetworkConfig)

    # Runtime configuration
    vardir: Path = Field(default_factory=Path.cwd)
    uri: Optional[str] = None
    lane_id: str = "1"
    keyspace: str = "yacht"
    replication_factor: int = 1

    # Test execution configuration
    force: bool = False
    filters: List[str] = Field(default_factory=list)
    statement_terminator: str = ";"
    diff_max_lines: int = 60
    log_level: str = "WARNING"

    @model_validator(mode="after")
    def validate_config(self) -> "YachtConfig":
        """Validate configuration - NO SIDE EFFECTS."""
        from .errors import ConfigurationError

        if self.cluster.nodes < 1:  # pylint: disable=no-member
            raise ConfigurationError("Cluster must have at least 1 node")
        if self.replication_factor < 1:
            raise ConfigurationError("Replication factor must be positive")
        if not self.statement_terminator:
            raise ConfigurationError("Statement terminator must not be empty")
        if self.diff_max_lines < 1:
            raise ConfigurationError("Diff line cap must be positive")
        if self.timeouts.server_startup <= 0:  # pylint: disable=no-member
            raise ConfigurationError("Server startup timeout must be positive")
        if self.network.first_host > self.network.last_host:  # pylint: disable=no-member
            raise ConfigurationError("Address range is empty")
        if not self.keyspace.isidentifier():
            raise ConfigurationError(f"Invalid keyspace name: {self.keyspace}")

        return self


# Result types for test execution
class TestResult(BaseModel):
    """Outcome of one test file, with the trimmed diff on failure."""

    __test__ = False

    name: str
    outcome: Outcome
    diff: Optional[str] = None


class RunResult(BaseModel):
    """Result of a whole harness run."""

    return_code: int = 0
    failed: List[FailedTest] = Field(default_factory=list)
