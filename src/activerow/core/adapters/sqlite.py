"""SQLite database adapter."""

from __future__ import annotations

import sqlite3
import threading
from typing import Any

from activerow.core.errors import DatabaseConnectionError
from activerow.core.logging import get_logger
from activerow.core.protocols import Connection

from .base import DatabaseAdapter
from .types import DatabaseConfig, DatabaseType

logger = get_logger(__name__)


class SQLiteAdapter(DatabaseAdapter):
    """
    SQLite database adapter.

    Uses the built-in sqlite3 module. Suitable for:
    - Development and testing
    - Single-process applications

    One connection is shared by every caller.  ``acquire()`` takes a
    re-entrant lock that ``release()`` gives back, so lifecycle calls from
    different threads are serialized.
    """

    def __init__(
        self,
        path: str = ":memory:",
        *,
        readonly: bool = False,
        timeout: float = 5.0,
        autocommit: bool = True,
        **kwargs: Any,
    ):
        config = DatabaseConfig(
            db_type=DatabaseType.SQLITE,
            path=path,
            readonly=readonly,
            autocommit=autocommit,
            options=kwargs,
        )
        super().__init__(config)
        self._timeout = timeout
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.RLock()

    def connect(self) -> None:
        """Connect to SQLite database."""
        path = self._config.path or ":memory:"
        uri = path.startswith("file:")

        try:
            self._conn = sqlite3.connect(
                path,
                timeout=self._timeout,
                check_same_thread=False,
                uri=uri,
            )
            self._conn.execute("PRAGMA foreign_keys = ON")

            if self._config.readonly:
                self._conn.execute("PRAGMA query_only = ON")

            self._connected = True
            logger.debug("adapter_connected", backend="sqlite", path=path)

        except sqlite3.Error as e:
            raise DatabaseConnectionError(
                f"Failed to connect to SQLite: {e}",
                cause=e,
            ) from e

    def disconnect(self) -> None:
        """Close SQLite connection."""
        with self._lock:
            if self._conn:
                self._conn.close()
                self._conn = None
                self._connected = False
                logger.debug("adapter_disconnected", backend="sqlite")

    def acquire(self) -> Connection:
        """Lock and return the shared connection, connecting on first use."""
        self._lock.acquire()
        try:
            if not self._conn:
                self.connect()
        except BaseException:
            self._lock.release()
            raise
        return self._conn

    def release(self, conn: Connection) -> None:  # noqa: ARG002
        self._lock.release()

    def executescript(self, script: str) -> None:
        """Run a multi-statement SQL script (schema setup)."""
        with self.connection() as conn:
            conn.executescript(script)
            conn.commit()


__all__ = [
    "SQLiteAdapter",
]
