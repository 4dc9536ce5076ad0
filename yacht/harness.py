"""The main testing harness: lane setup, interrupt handling and the run itself."""

import os
import signal
import threading
from types import FrameType
from typing import Callable, Dict, Optional, Sequence

from .connection.protocol import Connector
from .core.log import add_file_logging, get_logger
from .core.types import RunResult, YachtConfig
from .lane.lane import Lane
from .results.reporter import Reporter
from .servers.factory import create_server
from .testing.discovery import discover_suites
from .testing.runner import ServerFactory, TestRunner
from .utils.addresses import create_address_pool

logger = get_logger(__name__)

INTERRUPT_EXIT_CODE = 130
LOG_FILE_NAME = "yacht.log"


class InterruptListener:
    """Kills running servers on SIGINT/SIGTERM and exits.

    The data directory is left intact for inspection. The signal handler
    only sets an event; a background thread does the teardown, so the main
    flow may be blocked anywhere, e.g. waiting for a server to boot.
    """

    def __init__(
        self,
        lane: Lane,
        exit_func: Callable[[int], None] = os._exit,  # pylint: disable=protected-access
        signals: Sequence[int] = (signal.SIGINT, signal.SIGTERM),
    ) -> None:
        self._lane = lane
        self._exit = exit_func
        self._signals = tuple(signals)
        self._event = threading.Event()
        self._stopped = False
        self._thread: Optional[threading.Thread] = None
        self._previous: Dict[int, object] = {}
        self.received: Optional[int] = None

    def install(self) -> None:
        """Register the signal handlers and start the listener thread."""
        for signum in self._signals:
            self._previous[signum] = signal.signal(signum, self._handle)
        self._thread = threading.Thread(
            target=self._listen, name="yacht-interrupt", daemon=True
        )
        self._thread.start()

    def uninstall(self) -> None:
        """Restore the previous handlers and stop the listener thread."""
        for signum, handler in self._previous.items():
            signal.signal(signum, handler)
        self._previous.clear()
        self._stopped = True
        self._event.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None

    def trigger(self, signum: int = signal.SIGINT) -> None:
        """Behave as if signum was received."""
        self.received = signum
        self._event.set()

    def wait(self, timeout: Optional[float] = None) -> None:
        """Wait for the listener thread to finish."""
        if self._thread is not None:
            self._thread.join(timeout)

    def _handle(self, signum: int, _frame: Optional[FrameType]) -> None:
        self.trigger(signum)

    def _listen(self) -> None:
        self._event.wait()
        if self._stopped:
            return
        logger.warning("Got signal %s, stopping servers", self.received)
        self._lane.clear_before_exit()
        self._exit(INTERRUPT_EXIT_CODE)

    def __enter__(self) -> "InterruptListener":
        self.install()
        return self

    def __exit__(self, *exc_info) -> None:
        self.uninstall()


def create_lane(config: YachtConfig) -> Lane:
    network = config.network
    addresses = create_address_pool(
        prefix=network.address_prefix,
        first_host=network.first_host,
        last_host=network.last_host,
        port=network.cql_port,
        probe=network.probe,
    )
    return Lane(config.vardir, config.lane_id, addresses)


class Yacht:
    """Harness state for one run: configuration, lane and reporter."""

    def __init__(
        self,
        config: YachtConfig,
        reporter: Optional[Reporter] = None,
        lane: Optional[Lane] = None,
        server_factory: ServerFactory = create_server,
        connector: Optional[Connector] = None,
        exit_func: Callable[[int], None] = os._exit,  # pylint: disable=protected-access
    ) -> None:
        self.config = config
        self.reporter = reporter or Reporter()
        self.lane = lane or create_lane(config)
        self._server_factory = server_factory
        self._connector = connector
        self._exit_func = exit_func

    def run(self) -> RunResult:
        """Discover suites, prepare the lane and run everything.

        Raises:
            ConfigurationError: bad source directory or suite description
            FilesystemError: the lane directory could not be prepared
        """
        suites = discover_suites(
            self.config.scylla.srcdir, self.config.filters, self.config.uri
        )
        for suite in suites:
            self.reporter.collected(suite)

        self.lane.prepare()
        add_file_logging(self.lane.dir / LOG_FILE_NAME)
        logger.info("Lane %s prepared in %s", self.lane.id, self.lane.dir)

        runner = TestRunner(
            self.config,
            self.lane,
            reporter=self.reporter,
            server_factory=self._server_factory,
            connector=self._connector,
        )
        with InterruptListener(self.lane, exit_func=self._exit_func):
            return runner.run(suites)
