"""Test lane: a working directory plus the artefacts tracked for one run."""

import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional, Set

from ..core.errors import FilesystemError
from ..core.log import get_logger, log_lane_event
from ..utils.addresses import AddressAllocator, AddressPool
from ..utils.filesystem import recreate_dir
from .artefact import Artefact

logger = get_logger(__name__)


class Lane:
    """A directory on disk with the data of running servers, log files and so on.

    Two artefact queues are kept. Exit-scoped artefacts (running processes)
    must be removed whenever the harness stops, including on interrupt.
    Suite-scoped artefacts (directories, keyspaces, leased addresses) are
    removed before the next suite starts and survive an abort for postmortem
    inspection.

    Queue mutation and draining are serialized by a lock: cluster nodes
    register artefacts from worker threads and the interrupt listener drains
    concurrently with the main flow.
    """

    def __init__(
        self,
        vardir: Path,
        lane_id: str = "1",
        addresses: Optional[AddressAllocator] = None,
    ) -> None:
        self.id = lane_id
        self._dir = Path(vardir) / f"lane{lane_id}"
        self._addresses = addresses or AddressPool()
        self._exit_artefacts: List[Artefact] = []
        self._suite_artefacts: List[Artefact] = []
        self._lock = threading.RLock()
        self._prepared = False
        self._aborted = False
        self.failed: List[str] = []

    @property
    def dir(self) -> Path:
        """Lane data directory."""
        return self._dir

    @property
    def aborted(self) -> bool:
        """Whether the exit-scoped artefacts have been released for good."""
        return self._aborted

    def prepare(self) -> Path:
        """Wipe and recreate the lane directory. Allowed once per run."""
        if self._prepared:
            raise FilesystemError(
                f"Lane {self.id} directory {self._dir} is already prepared",
                details={"lane": self.id},
            )
        recreate_dir(self._dir)
        self._prepared = True
        log_lane_event(logger, "prepared", lane_id=self.id, dir=str(self._dir))
        return self._dir

    def add_exit_artefact(self, artefact: Artefact) -> None:
        """Track an artefact that must be removed when the harness exits.

        After an abort nothing is drained anymore, so the artefact is
        removed right away.
        """
        with self._lock:
            if self._aborted:
                logger.warning(
                    "Lane %s is aborted, removing %s immediately", self.id, artefact
                )
                self._release(artefact, [], set(), pull_dependents=False)
                return
            self._exit_artefacts.append(artefact)
        log_lane_event(logger, "exit_artefact_added", lane_id=self.id, artefact=str(artefact))

    @contextmanager
    def registration(self) -> Iterator[None]:
        """Hold off draining while a resource is created and registered.

        A process spawned inside the block is either registered before an
        interrupt drains the lane, or removed on registration after it.
        """
        with self._lock:
            yield

    def add_suite_artefact(self, artefact: Artefact) -> None:
        """Track an artefact that must be removed before the next suite."""
        with self._lock:
            self._suite_artefacts.append(artefact)
        log_lane_event(logger, "suite_artefact_added", lane_id=self.id, artefact=str(artefact))

    def clear_before_next_suite(self) -> None:
        """Clear the lane between two suite invocations.

        Exit-scoped artefacts are removed first, then suite-scoped ones, each
        queue in append order. An artefact that another queued artefact
        depends on is removed only after that dependent.
        """
        with self._lock:
            pending = self._exit_artefacts + self._suite_artefacts
            self._exit_artefacts = []
            self._suite_artefacts = []
            done: Set[int] = set()
            for artefact in pending:
                self._release(artefact, pending, done, pull_dependents=True)
            self.failed.clear()
        log_lane_event(logger, "cleared", lane_id=self.id, removed=len(pending))

    def clear_before_exit(self) -> None:
        """Remove exit-scoped artefacts, such as running servers, on exit.

        The lane directory and suite-scoped state stay for inspection.
        """
        with self._lock:
            self._aborted = True
            pending = self._exit_artefacts
            self._exit_artefacts = []
            done: Set[int] = set()
            for artefact in pending:
                self._release(artefact, pending, done, pull_dependents=False)
        log_lane_event(logger, "aborted", lane_id=self.id, removed=len(pending))

    def lease_address(self) -> str:
        """Lease a network address unique within this lane."""
        return self._addresses.lease()

    def release_address(self, address: str) -> None:
        """Return a leased address to the pool."""
        self._addresses.release(address)

    def record_failure(self, test_name: str) -> None:
        """Remember a failed test of the current suite pass."""
        with self._lock:
            self.failed.append(test_name)

    def _release(
        self,
        artefact: Artefact,
        pending: List[Artefact],
        done: Set[int],
        pull_dependents: bool,
    ) -> None:
        if id(artefact) in done:
            return
        done.add(id(artefact))

        if pull_dependents:
            for other in pending:
                if id(other) not in done and other.depends_on_artefact(artefact):
                    self._release(other, pending, done, pull_dependents)

        try:
            artefact.remove()
            log_lane_event(logger, "artefact_removed", lane_id=self.id, artefact=str(artefact))
        except Exception as e:  # pylint: disable=broad-exception-caught
            # Keep draining: one stuck artefact must not leak the others
            logger.error("Lane %s: failed to remove %s: %s", self.id, artefact, e)
