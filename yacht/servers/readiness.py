"""Readiness detection by polling a server log file for a marker line."""

import re
import subprocess
import time
from pathlib import Path
from typing import IO, Optional, Pattern, Union

from ..core.errors import ServerStartupError, StartupTimeoutError
from ..core.log import get_logger

logger = get_logger(__name__)


class LogWatcher:
    """Incrementally scans a growing log file for a pattern.

    Keeps its own read handle, so the position is not disturbed by the
    server appending to the file. Only complete lines are matched.
    """

    def __init__(self, log_file: Path, pattern: Union[str, Pattern[str]]) -> None:
        self.log_file = Path(log_file)
        self._pattern = re.compile(pattern) if isinstance(pattern, str) else pattern
        self._handle: Optional[IO[bytes]] = None
        self._pending = b""

    def found(self) -> bool:
        """Read whatever was appended since the last call and look for the pattern."""
        if self._handle is None:
            try:
                self._handle = open(self.log_file, "rb")  # pylint: disable=consider-using-with
            except FileNotFoundError:
                return False
        chunk = self._handle.read()
        if not chunk:
            return False
        *lines, self._pending = (self._pending + chunk).split(b"\n")
        return any(
            self._pattern.search(line.decode("utf-8", errors="replace")) for line in lines
        )

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None


def wait_until_ready(
    process: subprocess.Popen,
    log_file: Path,
    marker: str,
    timeout: float = 300.0,
    poll_interval: float = 0.01,
    node_id: str = "",
) -> float:
    """Block until the readiness marker shows up in log_file.

    Returns:
        Seconds it took the server to become ready

    Raises:
        StartupTimeoutError: marker not seen within timeout
        ServerStartupError: process exited before becoming ready
    """
    watcher = LogWatcher(log_file, marker)
    start = time.monotonic()
    deadline = start + timeout
    try:
        while True:
            if watcher.found():
                return time.monotonic() - start
            exit_code = process.poll()
            if exit_code is not None:
                raise ServerStartupError(
                    f"Server {node_id} exited with code {exit_code} before becoming ready, "
                    f"check server log at {log_file}",
                    log_file=log_file,
                    details={"node_id": node_id, "exit_code": exit_code},
                )
            if time.monotonic() >= deadline:
                raise StartupTimeoutError(
                    f"Failed to start server {node_id} within {timeout}s, "
                    f"check server log at {log_file}",
                    timeout=timeout,
                    log_file=log_file,
                    details={"node_id": node_id},
                )
            time.sleep(poll_interval)
    finally:
        watcher.close()
