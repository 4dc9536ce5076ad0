"""Tests for the cluster server mode."""

import pytest

from yacht.core.enums import ServerState
from yacht.core.errors import ExecutableNotFoundError, ServerStartupError, StartupTimeoutError
from yacht.servers.cluster import ClusterServer


class TestClusterServer:
    """Test starting N nodes in parallel."""

    def test_start(self, yacht_config, lane, fake_connector, fake_scylla):
        """Test every node gets its own address and they share seeds and a name."""
        cluster = ClusterServer(yacht_config, fake_connector, nodes=3)

        cluster.start(lane)

        assert cluster.state is ServerState.READY
        addresses = [server.address for server in cluster.servers]
        assert addresses == ["127.0.0.2", "127.0.0.3", "127.0.0.4"]
        for server in cluster.servers:
            config = server.config_file.read_text()
            assert f"cluster_name: {cluster.cluster_name}" in config
            assert "- seeds: 127.0.0.2, 127.0.0.3, 127.0.0.4" in config
            assert "skip_wait_for_gossip_to_settle: 5" in config
            assert server.process.poll() is None

    def test_keyspace_created_once_through_first_node(
        self, yacht_config, lane, fake_connector, fake_scylla
    ):
        cluster = ClusterServer(yacht_config, fake_connector, nodes=2)
        cluster.start(lane)

        assert fake_connector.calls == [("127.0.0.2", None)]
        create = fake_connector.connections[0].admin[-1]
        assert "'replication_factor' : 2" in create

    def test_keyspace_drop_depends_on_every_node(
        self, yacht_config, lane, fake_connector, fake_scylla
    ):
        cluster = ClusterServer(yacht_config, fake_connector, nodes=2)
        cluster.start(lane)

        endpoint_artefact = cluster.servers[0]._endpoint.drop_artefact  # pylint: disable=protected-access
        for server in cluster.servers:
            assert endpoint_artefact.depends_on_artefact(server.kill_artefact)

    def test_connect_through_first_node(self, yacht_config, lane, fake_connector, fake_scylla):
        cluster = ClusterServer(yacht_config, fake_connector, nodes=2)
        cluster.start(lane)

        cluster.connect()

        assert fake_connector.calls[-1] == ("127.0.0.2", "yacht")
        assert cluster.state is ServerState.CONNECTED

    def test_clear_stops_all_nodes(self, yacht_config, lane, fake_connector, fake_scylla):
        cluster = ClusterServer(yacht_config, fake_connector, nodes=3)
        cluster.start(lane)

        lane.clear_before_next_suite()

        for server in cluster.servers:
            assert server.process.poll() is not None
            assert server.state is ServerState.STOPPED
            assert not server.dir.exists()

    def test_node_count_from_config(self, yacht_config, fake_connector):
        assert ClusterServer(yacht_config, fake_connector).node_count == 3


class TestClusterPartialFailure:
    """Test a cluster where one node fails to start."""

    def test_failed_node_tears_down_siblings(
        self, yacht_config, lane, fake_connector, make_scylla, ready_line
    ):
        """Test the error surfaces and the nodes that did start are stopped on exit."""
        make_scylla(
            'case "$SCYLLA_CONF" in *127.0.0.3) echo broken; exit 1;; esac\n'
            f'echo "{ready_line}"\nexec sleep 60\n'
        )
        cluster = ClusterServer(yacht_config, fake_connector, nodes=3)

        with pytest.raises(ServerStartupError):
            cluster.start(lane)

        assert fake_connector.calls == []
        for server in (cluster.servers[0], cluster.servers[2]):
            assert server.process.poll() is None

        lane.clear_before_exit()

        for server in cluster.servers:
            assert server.process.poll() is not None

    def test_first_completed_failure_surfaces(
        self, yacht_config, lane, fake_connector, make_scylla, ready_line
    ):
        """Test the error of the node that fails first wins over earlier nodes."""
        make_scylla(
            'case "$SCYLLA_CONF" in\n'
            "*127.0.0.2) echo booting; exec sleep 60;;\n"
            "*127.0.0.4) echo broken; exit 1;;\n"
            "esac\n"
            f'echo "{ready_line}"\nexec sleep 60\n'
        )
        config = yacht_config.model_copy(
            update={"timeouts": yacht_config.timeouts.model_copy(update={"server_startup": 1.0})}
        )
        cluster = ClusterServer(config, fake_connector, nodes=3)

        with pytest.raises(ServerStartupError) as exc_info:
            cluster.start(lane)

        assert not isinstance(exc_info.value, StartupTimeoutError)
        assert exc_info.value.details["exit_code"] == 1
        lane.clear_before_exit()


class TestClusterMissingExecutable:
    """Test the binary check done before any node is set up."""

    def test_nothing_registered(self, yacht_config, lane, fake_connector):
        cluster = ClusterServer(yacht_config, fake_connector, nodes=3)

        with pytest.raises(ExecutableNotFoundError):
            cluster.start(lane)

        assert cluster.servers == []
        assert cluster.state is ServerState.NOT_INSTALLED
        assert lane.lease_address() == "127.0.0.2"
