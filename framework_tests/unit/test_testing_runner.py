"""Tests for suite orchestration."""

from io import StringIO

import pytest
from rich.console import Console

from yacht.core.enums import ServerMode
from yacht.core.errors import ServerStartupError, TransportError
from yacht.core.value_objects import FailedTest
from yacht.lane.artefact import CallbackArtefact
from yacht.results.reporter import Reporter
from yacht.servers.factory import create_server
from yacht.testing.golden import TestFile
from yacht.testing.runner import TestRunner
from yacht.testing.suite import TestSuite


class FakeServer:
    """Server that registers a stop artefact and hands out a given connection."""

    def __init__(self, mode, connection, events, fail_start=False):
        self.mode = mode
        self._connection = connection
        self._events = events
        self._fail_start = fail_start

    @property
    def mode_name(self):
        return self.mode.value

    def start(self, lane):
        self._events.append(f"start {self.mode.value}")
        lane.add_exit_artefact(
            CallbackArtefact("server", lambda: self._events.append(f"stop {self.mode.value}"))
        )
        if self._fail_start:
            raise ServerStartupError("server did not come up")

    def connect(self):
        return self._connection


class FakeServerFactory:
    """Creates FakeServers and remembers the requested modes."""

    def __init__(self, connection, fail_start=False):
        self.connection = connection
        self.fail_start = fail_start
        self.events = []
        self.modes = []

    def __call__(self, mode, config, connector=None):
        self.modes.append(mode)
        return FakeServer(mode, self.connection, self.events, self.fail_start)


def make_suite(srcdir, name, tests, modes=(ServerMode.SINGLE,)):
    directory = srcdir / name
    directory.mkdir(parents=True, exist_ok=True)
    files = []
    for test, script in tests:
        path = directory / f"{test}.test.cql"
        path.write_text(script)
        files.append(TestFile(path))
    return TestSuite(name=name, path=directory, tests=files, modes=list(modes))


class TestTestRunner:
    """Test running suites across modes."""

    def setup_method(self):
        self.output = StringIO()
        self.reporter = Reporter(Console(file=self.output, width=120, color_system=None))

    def make_runner(self, config, lane, factory):
        return TestRunner(config, lane, reporter=self.reporter, server_factory=factory)

    def test_new_tests_pass_the_run(self, yacht_config, lane, temp_dir, fake_connection):
        suite = make_suite(temp_dir / "src", "basic", [("a", "SELECT 1;\n"), ("b", "SELECT 2;\n")])
        factory = FakeServerFactory(fake_connection)

        result = self.make_runner(yacht_config, lane, factory).run([suite])

        assert result.return_code == 0
        assert result.failed == []
        assert suite.tests[0].result.exists()
        assert suite.tests[1].result.exists()
        assert "basic/a" in self.output.getvalue()
        assert "All tests passed." in self.output.getvalue()

    def test_failure_stops_suite(self, yacht_config, lane, temp_dir, fake_connection):
        """Test without force the rest of the suite is skipped after a failure."""
        suite = make_suite(temp_dir / "src", "basic", [("a", "SELECT 1;\n"), ("b", "SELECT 2;\n")])
        suite.tests[0].result.write_text("SELECT 1;\n  something else\n")
        factory = FakeServerFactory(fake_connection)

        result = self.make_runner(yacht_config, lane, factory).run([suite])

        assert result.return_code == 1
        assert result.failed == [FailedTest("basic", "a")]
        assert suite.tests[0].reject.exists()
        assert not suite.tests[1].result.exists()
        assert "basic/a" in self.output.getvalue()

    def test_force_runs_remaining_tests(self, yacht_config, lane, temp_dir, fake_connection):
        suite = make_suite(temp_dir / "src", "basic", [("a", "SELECT 1;\n"), ("b", "SELECT 2;\n")])
        suite.tests[0].result.write_text("SELECT 1;\n  something else\n")
        config = yacht_config.model_copy(update={"force": True})

        result = self.make_runner(config, lane, FakeServerFactory(fake_connection)).run([suite])

        assert result.return_code == 1
        assert result.failed == [FailedTest("basic", "a")]
        assert suite.tests[1].result.exists()

    def test_failures_accumulate_across_modes(
        self, yacht_config, lane, temp_dir, fake_connection
    ):
        """Test each mode gets a fresh server and its own failure records."""
        suite = make_suite(
            temp_dir / "src", "lwt", [("cas", "SELECT 1;\n")],
            modes=(ServerMode.SINGLE, ServerMode.CLUSTER),
        )
        suite.tests[0].result.write_text("different\n")
        factory = FakeServerFactory(fake_connection)

        result = self.make_runner(yacht_config, lane, factory).run([suite])

        assert factory.modes == [ServerMode.SINGLE, ServerMode.CLUSTER]
        assert result.failed == [FailedTest("lwt", "cas"), FailedTest("lwt", "cas")]
        assert factory.events == ["start single", "stop single", "start cluster", "stop cluster"]

    def test_empty_suite_skipped(self, yacht_config, lane, temp_dir, fake_connection):
        suite = make_suite(temp_dir / "src", "empty", [])
        factory = FakeServerFactory(fake_connection)

        result = self.make_runner(yacht_config, lane, factory).run([suite])

        assert result.return_code == 0
        assert factory.modes == []

    def test_infra_error_aborts_run(self, yacht_config, lane, temp_dir, fake_connection):
        """Test a server that fails to start ends the run, force or not."""
        first = make_suite(temp_dir / "src", "a_suite", [("t", "SELECT 1;\n")])
        second = make_suite(temp_dir / "src", "b_suite", [("t", "SELECT 1;\n")])
        config = yacht_config.model_copy(update={"force": True})
        factory = FakeServerFactory(fake_connection, fail_start=True)

        result = self.make_runner(config, lane, factory).run([first, second])

        assert result.return_code == 1
        assert factory.modes == [ServerMode.SINGLE]
        assert factory.events == ["start single", "stop single"]
        assert lane.aborted
        assert "server did not come up" in self.output.getvalue()

    def test_transport_error_aborts_run(self, yacht_config, lane, temp_dir, connection_class):
        def broken(statement):
            raise TransportError("connection lost", statement=statement)

        first = make_suite(temp_dir / "src", "a_suite", [("t", "SELECT 1;\n")])
        second = make_suite(temp_dir / "src", "b_suite", [("t", "SELECT 1;\n")])
        connection = connection_class(execute=broken)
        factory = FakeServerFactory(connection)

        result = self.make_runner(yacht_config, lane, factory).run([first, second])

        assert result.return_code == 1
        assert factory.modes == [ServerMode.SINGLE]
        assert connection.closed == 1
        assert not first.tests[0].result.exists()

    def test_connection_closed_after_suite(self, yacht_config, lane, temp_dir, fake_connection):
        suite = make_suite(temp_dir / "src", "basic", [("a", "SELECT 1;\n")])
        self.make_runner(yacht_config, lane, FakeServerFactory(fake_connection)).run([suite])
        assert fake_connection.closed == 1

    @pytest.mark.parametrize("force", [False, True])
    def test_lane_failures_reset_between_suites(
        self, yacht_config, lane, temp_dir, fake_connection, force
    ):
        first = make_suite(temp_dir / "src", "a_suite", [("t", "SELECT 1;\n")])
        first.tests[0].result.write_text("different\n")
        second = make_suite(temp_dir / "src", "b_suite", [("t", "SELECT 1;\n")])
        config = yacht_config.model_copy(update={"force": force})

        result = self.make_runner(config, lane, FakeServerFactory(fake_connection)).run(
            [first, second]
        )

        assert result.failed == [FailedTest("a_suite", "t")]

    def test_configuration_error_keeps_summary(
        self, yacht_config, lane, temp_dir, fake_connection
    ):
        """Test a bad mode ends the run with the failures collected so far."""
        first = make_suite(temp_dir / "src", "a_suite", [("t", "SELECT 1;\n")])
        first.tests[0].result.write_text("different\n")
        second = make_suite(
            temp_dir / "src", "b_suite", [("t", "SELECT 1;\n")], modes=[ServerMode.ENDPOINT]
        )
        config = yacht_config.model_copy(update={"force": True, "uri": None})
        fakes = FakeServerFactory(fake_connection)

        def factory(mode, config, connector=None):
            if mode == ServerMode.ENDPOINT:
                return create_server(mode, config, connector)
            return fakes(mode, config, connector)

        result = self.make_runner(config, lane, factory).run([first, second])

        assert result.return_code == 1
        assert result.failed == [FailedTest("a_suite", "t")]
        assert "requires a configured server address" in self.output.getvalue()
        assert "Failed 1 test(s):" in self.output.getvalue()
