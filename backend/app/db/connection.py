"""
MongoDB connection manager.

One live database handle per process. The manager moves through three phases:

    UNINITIALIZED --acquire()--> CONNECTING --success--> READY
          ^                           |
          +---------failure-----------+

Concurrent callers that arrive while a connection is being established all
await the same in-flight attempt, so at most one connection establishment is
outstanding at a time. A failed attempt returns the slot to UNINITIALIZED and
the next acquire() starts a fresh attempt.
"""

import asyncio
import re
import time
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase

from app.core.config import get_settings
from app.core.exceptions import ConnectionFailure
from app.core.logging import get_logger
from app.core.metrics import record_db_connect

logger = get_logger(__name__)

_CREDENTIALS_RE = re.compile(r"//([^:/@]+):([^@]+)@")


def redact_uri(uri: str) -> str:
    """Hide the password part of a connection string for logging."""
    return _CREDENTIALS_RE.sub(r"//\1:***@", uri)


class ConnectionPhase(str, Enum):
    UNINITIALIZED = "uninitialized"
    CONNECTING = "connecting"
    READY = "ready"


@dataclass
class DatabaseHandle:
    """Live client plus the selected database."""

    client: AsyncIOMotorClient
    database: AsyncIOMotorDatabase
    transactions_supported: bool = False

    def collection(self, name: str) -> AsyncIOMotorCollection:
        return self.database[name]

    def close(self) -> None:
        self.client.close()


Connector = Callable[[str, str], Awaitable[DatabaseHandle]]


async def motor_connector(uri: str, database_name: str) -> DatabaseHandle:
    """Open a Motor client, verify it with a ping and detect transaction support."""
    settings = get_settings()
    client = AsyncIOMotorClient(
        uri,
        serverSelectionTimeoutMS=settings.MONGODB_SERVER_SELECTION_TIMEOUT_MS,
        connectTimeoutMS=settings.MONGODB_CONNECT_TIMEOUT_MS,
    )
    try:
        await client.admin.command("ping")
        hello = await client.admin.command({"hello": 1})
    except BaseException:
        # Also covers cancellation, so an abandoned connect never leaks the client
        client.close()
        raise

    # Replica set members report setName, mongos reports msg == "isdbgrid"
    transactions_supported = bool(hello.get("setName") or hello.get("msg") == "isdbgrid")
    return DatabaseHandle(
        client=client,
        database=client[database_name],
        transactions_supported=transactions_supported,
    )


class ConnectionManager:
    """Memoizes a single database handle and de-duplicates concurrent connects."""

    def __init__(
        self,
        uri: str,
        database_name: str,
        connector: Optional[Connector] = None,
    ):
        self._uri = uri
        self._database_name = database_name
        self._connector = connector or motor_connector
        self._phase = ConnectionPhase.UNINITIALIZED
        self._handle: Optional[DatabaseHandle] = None
        self._pending: Optional[asyncio.Task] = None

    @property
    def phase(self) -> ConnectionPhase:
        return self._phase

    @property
    def handle(self) -> Optional[DatabaseHandle]:
        return self._handle

    async def acquire(self) -> DatabaseHandle:
        """Return the live handle, connecting first if needed."""
        if self._handle is not None:
            return self._handle

        if self._pending is None:
            self._phase = ConnectionPhase.CONNECTING
            self._pending = asyncio.ensure_future(self._connect())

        pending = self._pending
        try:
            # A cancelled caller must not cancel the attempt other callers share
            return await asyncio.shield(pending)
        except asyncio.CancelledError:
            # close() abandoned the shared attempt; the caller itself was not cancelled
            if pending.cancelled():
                raise ConnectionFailure(
                    ConnectionAbortedError("connection manager closed while connecting")
                ) from None
            raise

    async def _connect(self) -> DatabaseHandle:
        start = time.perf_counter()
        logger.info(
            "mongodb_connecting",
            uri=redact_uri(self._uri),
            database=self._database_name,
        )
        try:
            handle = await self._connector(self._uri, self._database_name)
        except Exception as e:
            self._phase = ConnectionPhase.UNINITIALIZED
            self._pending = None
            record_db_connect(success=False, duration=time.perf_counter() - start)
            logger.error("mongodb_connection_failed", error=str(e))
            raise ConnectionFailure(e) from e

        self._handle = handle
        self._phase = ConnectionPhase.READY
        self._pending = None

        duration = time.perf_counter() - start
        record_db_connect(success=True, duration=duration)
        logger.info(
            "mongodb_connected",
            database=self._database_name,
            transactions_supported=handle.transactions_supported,
            duration_ms=round(duration * 1000, 2),
        )
        return handle

    async def close(self) -> None:
        """Drop the cached handle (or abandon an in-flight attempt)."""
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
        if self._handle is not None:
            self._handle.close()
            self._handle = None
            logger.info("mongodb_disconnected", database=self._database_name)
        self._phase = ConnectionPhase.UNINITIALIZED


# Process-wide slot. Read back from the module dict so importlib.reload()
# reuses the existing manager instead of leaking a second connection.
_manager: Optional[ConnectionManager] = globals().get("_manager")


def get_connection_manager() -> ConnectionManager:
    """Get or create the process-wide connection manager."""
    global _manager

    if _manager is None:
        settings = get_settings()
        _manager = ConnectionManager(settings.MONGODB_URI, settings.MONGODB_DATABASE)
    return _manager


def install_connection_manager(manager: ConnectionManager) -> None:
    """Replace the process-wide manager (used by tests and embedding code)."""
    global _manager
    _manager = manager


async def reset_connection_manager() -> None:
    """Close and forget the process-wide manager."""
    global _manager
    if _manager is not None:
        await _manager.close()
        _manager = None


async def acquire_connection() -> DatabaseHandle:
    return await get_connection_manager().acquire()
