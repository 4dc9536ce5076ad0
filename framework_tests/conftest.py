"""Test configuration and fixtures for framework unit tests."""

import shutil
import stat
import tempfile
from pathlib import Path
from typing import Callable, Dict, List, Optional

import pytest

from yacht.core.types import YachtConfig
from yacht.lane.lane import Lane
from yacht.utils.addresses import AddressPool

READY_LINE = "INFO  2024-01-01 main - Scylla version 6.0 initialization completed."


@pytest.fixture
def temp_dir():
    """Provide a temporary directory for tests."""
    temp_path = Path(tempfile.mkdtemp(prefix="yacht_test_"))
    try:
        yield temp_path
    finally:
        if temp_path.exists():
            shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def yacht_config(temp_dir):
    """Configuration pointing every directory into temp_dir, with short timeouts."""
    return YachtConfig(
        vardir=temp_dir / "var",
        scylla={"builddir": temp_dir / "build", "srcdir": temp_dir / "src"},
        network={"probe": False},
        timeouts={
            "server_startup": 10.0,
            "readiness_poll_interval": 0.01,
            "process_graceful_stop": 2.0,
        },
    )


@pytest.fixture
def lane(yacht_config):
    """A prepared lane leasing addresses without probing the network."""
    lane = Lane(yacht_config.vardir, "1", AddressPool(probe=False))
    lane.prepare()
    yield lane
    lane.clear_before_exit()


def write_executable(path: Path, body: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("#!/bin/sh\n" + body, encoding="utf-8")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture
def fake_scylla(yacht_config):
    """A stand-in server binary: prints the readiness marker and keeps running."""
    return write_executable(
        Path(yacht_config.scylla.builddir) / "scylla",
        f'echo "starting with $1 in $SCYLLA_CONF"\necho "{READY_LINE}"\nexec sleep 60\n',
    )


@pytest.fixture
def make_scylla(yacht_config):
    """Write a stand-in server binary with the given shell body."""
    def make(body: str) -> Path:
        return write_executable(Path(yacht_config.scylla.builddir) / "scylla", body)
    return make


@pytest.fixture
def ready_line():
    return READY_LINE


class FakeConnection:
    """Connection recording what it was asked to execute."""

    def __init__(self, responses: Optional[Dict[str, str]] = None,
                 execute: Optional[Callable[[str], str]] = None) -> None:
        self.responses = responses or {}
        self._execute = execute
        self.executed: List[str] = []
        self.admin: List[str] = []
        self.closed = 0

    def execute(self, statement: str) -> str:
        self.executed.append(statement)
        if self._execute is not None:
            return self._execute(statement)
        return self.responses.get(statement, "  OK\n")

    def run(self, statement: str) -> None:
        self.admin.append(statement)

    def close(self) -> None:
        self.closed += 1


class FakeConnector:
    """Connector handing out FakeConnections and remembering them."""

    def __init__(self, connection_factory: Callable[[], FakeConnection] = FakeConnection) -> None:
        self._factory = connection_factory
        self.connections: List[FakeConnection] = []
        self.calls: List[tuple] = []

    def connect(self, address: str, keyspace: Optional[str] = None) -> FakeConnection:
        self.calls.append((address, keyspace))
        connection = self._factory()
        self.connections.append(connection)
        return connection


@pytest.fixture
def fake_connection():
    return FakeConnection()


@pytest.fixture
def fake_connector():
    return FakeConnector()



@pytest.fixture
def connection_class():
    """FakeConnection itself, for tests that script responses."""
    return FakeConnection


@pytest.fixture
def connector_class():
    return FakeConnector
