"""CQL connection adapter over the DataStax/Scylla Python driver."""

import re
from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple

from cassandra import (
    AlreadyExists,
    ConfigurationException,
    DriverException,
    FunctionFailure,
    InvalidRequest,
    OperationTimedOut,
    ReadFailure,
    ReadTimeout,
    Unauthorized,
    Unavailable,
    WriteFailure,
    WriteTimeout,
)
from cassandra.cluster import EXEC_PROFILE_DEFAULT, Cluster, ExecutionProfile, NoHostAvailable
from cassandra.connection import ConnectionException
from cassandra.policies import WhiteListRoundRobinPolicy
from cassandra.protocol import ErrorMessage
from cassandra.query import tuple_factory

from ..core.errors import QueryError, ServerConnectionError, TransportError
from ..core.log import get_logger
from .render import QueryResult, render_result

logger = get_logger(__name__)

ERROR_CODES: Mapping[int, str] = MappingProxyType({
    0x0000: "Server error",
    0x000A: "Protocol error",
    0x0100: "Bad credentials",
    0x1000: "Unavailable",
    0x1001: "Overloaded",
    0x1002: "Bootstrapping",
    0x1003: "Truncate error",
    0x1100: "Write timeout",
    0x1200: "Read timeout",
    0x1300: "Read failure",
    0x1400: "Function failure",
    0x1500: "Write failure",
    0x1600: "CDC write failure",
    0x2000: "Syntax error",
    0x2100: "Unauthorized",
    0x2200: "Invalid",
    0x2300: "Config error",
    0x2400: "Already exists",
    0x2500: "Unprepared",
})

# Most specific first: AlreadyExists is a ConfigurationException
_EXCEPTION_CODES: Tuple[Tuple[type, int], ...] = (
    (AlreadyExists, 0x2400),
    (ConfigurationException, 0x2300),
    (InvalidRequest, 0x2200),
    (Unauthorized, 0x2100),
    (Unavailable, 0x1000),
    (ReadTimeout, 0x1200),
    (WriteTimeout, 0x1100),
    (ReadFailure, 0x1300),
    (WriteFailure, 0x1500),
    (FunctionFailure, 0x1400),
)

_SERVER_EXCEPTIONS = tuple(cls for cls, _ in _EXCEPTION_CODES)

_SUMMARY_MESSAGE = re.compile(r'message="(.*)"', re.DOTALL)

CRASH_HINT = "check out vardir, it has most probably crashed"


def error_text(code: int) -> str:
    """Human readable error code, e.g. ``Invalid (0x2200)``."""
    name = ERROR_CODES.get(code, "Unknown")
    return f"{name} (0x{code:04X})"


def server_error(exc: BaseException) -> Optional[Tuple[int, str]]:
    """Extract (code, message) from a server-reported error, None otherwise."""
    if isinstance(exc, ErrorMessage):
        return exc.code, str(exc.message)
    for cls, code in _EXCEPTION_CODES:
        if isinstance(exc, cls):
            text = str(exc)
            match = _SUMMARY_MESSAGE.search(text)
            return code, match.group(1) if match else text
    return None


class CQLConnection:
    """Connection backed by a driver session."""

    def __init__(self, cluster: Cluster, session: Any, address: str,
                 request_timeout: float = 30.0) -> None:
        self._cluster = cluster
        self._session = session
        self.address = address
        self._request_timeout = request_timeout
        self._closed = False

    def execute(self, statement: str) -> str:
        try:
            result_set = self._session.execute(statement, timeout=self._request_timeout)
        except (ErrorMessage,) + _SERVER_EXCEPTIONS as e:
            code, message = server_error(e)
            return render_result(QueryResult(error_code=error_text(code), error_message=message))
        except (NoHostAvailable, ConnectionException) as e:
            raise TransportError(
                f"Lost connection to {self.address}: {CRASH_HINT}",
                statement=statement,
                details={"address": self.address, "error": str(e)},
            ) from e
        except (OperationTimedOut, DriverException, OSError) as e:
            raise TransportError(
                f"Driver error executing statement on {self.address}: {e}",
                statement=statement,
                details={"address": self.address},
            ) from e

        columns = list(result_set.column_names or [])
        rows = [tuple(row) for row in result_set] if columns else []
        warnings = getattr(result_set.response_future, "warnings", None) or []
        return render_result(QueryResult(columns=columns, rows=rows, warnings=list(warnings)))

    def run(self, statement: str) -> None:
        try:
            self._session.execute(statement, timeout=self._request_timeout)
        except (ErrorMessage,) + _SERVER_EXCEPTIONS as e:
            code, message = server_error(e)
            raise QueryError(f"{error_text(code)}: {message}", code=code,
                             details={"statement": statement}) from e
        except (NoHostAvailable, ConnectionException, OperationTimedOut,
                DriverException, OSError) as e:
            raise TransportError(
                f"Failed to execute statement on {self.address}: {e}",
                statement=statement,
            ) from e

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        logger.debug("Closing CQL session to %s", self.address)
        self._cluster.shutdown()


class CQLConnector:
    """Opens CQL sessions against a single node address."""

    def __init__(self, port: int = 9042, connect_timeout: float = 30.0,
                 request_timeout: float = 30.0) -> None:
        self.port = port
        self.connect_timeout = connect_timeout
        self.request_timeout = request_timeout

    def connect(self, address: str, keyspace: Optional[str] = None) -> CQLConnection:
        profile = ExecutionProfile(
            load_balancing_policy=WhiteListRoundRobinPolicy([address]),
            row_factory=tuple_factory,
            request_timeout=self.request_timeout,
        )
        cluster = Cluster(
            [address],
            port=self.port,
            connect_timeout=self.connect_timeout,
            execution_profiles={EXEC_PROFILE_DEFAULT: profile},
        )
        try:
            session = cluster.connect(keyspace)
        except (NoHostAvailable, ConnectionException, OperationTimedOut,
                DriverException, OSError) as e:
            cluster.shutdown()
            raise ServerConnectionError(
                f"Failed to connect to {address}:{self.port}: {e}",
                details={"address": address, "port": self.port, "keyspace": keyspace},
            ) from e
        logger.debug("Connected to %s:%s (keyspace %s)", address, self.port, keyspace)
        return CQLConnection(cluster, session, address, self.request_timeout)
