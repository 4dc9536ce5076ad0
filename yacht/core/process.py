"""Process spawning and escalating shutdown for server instances."""

import os
import signal
import subprocess
import threading
import time
from pathlib import Path
from typing import IO, Dict, List, Optional

import psutil

from .errors import ServerStartupError
from .log import get_logger, log_process_event

logger = get_logger(__name__)


def spawn_process(
    command: List[str],
    cwd: Path,
    env: Dict[str, str],
    output: IO,
) -> subprocess.Popen:
    """Spawn a long-running process with stdout and stderr redirected to output.

    The process gets its own session, so a terminal interrupt reaches the
    harness only and servers are stopped through their artefacts.
    """
    logger.debug("Working directory: %s", cwd)
    logger.debug("Command: %s", " ".join(command))
    try:
        process = subprocess.Popen(
            command,
            cwd=cwd,
            env=env,
            stdin=subprocess.DEVNULL,
            stdout=output,
            stderr=subprocess.STDOUT,
            start_new_session=True,
        )
    except (OSError, subprocess.SubprocessError, ValueError) as e:
        log_process_event(logger, "spawn_failed", command=command, error=str(e))
        raise ServerStartupError(f"Failed to spawn {command[0]}: {e}") from e
    log_process_event(logger, "spawned", pid=process.pid, command=command)
    return process


def get_child_pids(parent_pid: int) -> List[int]:
    """Get all child process PIDs for a given parent PID, recursively."""
    try:
        parent = psutil.Process(parent_pid)
        return [child.pid for child in parent.children(recursive=True)]
    except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess) as e:
        logger.debug("Could not get children for PID %s: %s", parent_pid, e)
        return []


def kill_process_tree(root_pid: int, signal_num: int = signal.SIGKILL) -> int:
    """Send a signal to a process and all its descendants.

    Returns:
        Number of processes the signal was delivered to
    """
    delivered = 0
    for pid in get_child_pids(root_pid) + [root_pid]:
        try:
            os.kill(pid, signal_num)
            delivered += 1
        except (ProcessLookupError, PermissionError):
            logger.debug("PID %s already dead or inaccessible", pid)
    return delivered


def _signal_group(process: subprocess.Popen, signal_num: int) -> None:
    """Signal the process group of process, falling back to the process itself."""
    try:
        os.killpg(process.pid, signal_num)
    except (ProcessLookupError, PermissionError) as e:
        logger.debug("Could not signal process group %s: %s", process.pid, e)
        try:
            process.send_signal(signal_num)
        except ProcessLookupError:
            pass


class GracefulTerminator:
    """SIGTERM, then SIGKILL after a grace period unless the process exited.

    The SIGKILL is armed as a cancellable timer and disarmed as soon as the
    exit is observed, so a recycled PID is never signalled.
    """

    def __init__(self, process: subprocess.Popen, grace_period: float = 3.0) -> None:
        self._process = process
        self._grace_period = grace_period
        self._timer: Optional[threading.Timer] = None
        self.force_killed = False

    def _force_kill(self) -> None:
        # Runs on the timer thread, only while the process was not reaped yet
        if self._process.returncode is not None:
            return
        self.force_killed = True
        logger.warning(
            "Process %s did not stop within %ss, sending SIGKILL",
            self._process.pid,
            self._grace_period,
        )
        kill_process_tree(self._process.pid, signal.SIGKILL)
        _signal_group(self._process, signal.SIGKILL)

    def terminate(self) -> int:
        """Stop the process and block until it exited.

        Returns:
            The process exit code
        """
        process = self._process
        if process.poll() is not None:
            return process.returncode

        start = time.monotonic()
        log_process_event(logger, "stopping", pid=process.pid)
        _signal_group(process, signal.SIGTERM)
        self._timer = threading.Timer(self._grace_period, self._force_kill)
        self._timer.daemon = True
        self._timer.start()
        try:
            returncode = process.wait()
        finally:
            self._timer.cancel()
        log_process_event(
            logger,
            "stopped",
            pid=process.pid,
            exit_code=returncode,
            forced=self.force_killed,
            duration=time.monotonic() - start,
        )
        return returncode


def terminate_process(process: subprocess.Popen, grace_period: float = 3.0) -> int:
    """Gracefully terminate a process, escalating to SIGKILL after grace_period."""
    return GracefulTerminator(process, grace_period).terminate()
