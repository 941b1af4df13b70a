"""Database adapter base class.

Manifesto:
    All database adapters share a common lifecycle (connect/disconnect),
    connection hand-out (acquire/release), and dialect management.  The
    abstract base class implements the
    :class:`~activerow.core.protocols.ConnectionProvider` contract so
    records never depend on a specific database vendor.

Features:
    - Abstract ``connect()``, ``disconnect()``, ``acquire()``, ``release()``
    - Property-based dialect, autocommit and connection-state introspection
    - ``connection()`` context manager pairing acquire with release
    - Context-manager protocol for the adapter lifecycle

Tags:
    activerow, database, abstract-base, adapter-pattern, provider

Doc-Types:
    api-reference
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager

from activerow.core.dialect import Dialect, get_dialect
from activerow.core.protocols import Connection

from .types import DatabaseConfig, DatabaseType


class DatabaseAdapter(ABC):
    """
    Abstract base class for database adapters.

    Provides common functionality and defines the interface
    that all adapters must implement.
    """

    def __init__(self, config: DatabaseConfig, *, dialect: Dialect | None = None):
        self._config = config
        self._connected = False
        self._dialect: Dialect = dialect or get_dialect(config.db_type.value)

    @property
    def dialect(self) -> Dialect:
        """SQL dialect for this adapter's database type."""
        return self._dialect

    def use_dialect(self, dialect: Dialect | str) -> None:
        """Render SQL for ``dialect`` instead of the backend default."""
        self._dialect = get_dialect(dialect) if isinstance(dialect, str) else dialect

    @property
    def autocommit(self) -> bool:
        """Whether write statements are committed immediately."""
        return self._config.autocommit

    @property
    def db_type(self) -> DatabaseType:
        """Database type."""
        return self._config.db_type

    @property
    def config(self) -> DatabaseConfig:
        return self._config

    @property
    def is_connected(self) -> bool:
        """Whether adapter is connected."""
        return self._connected

    @abstractmethod
    def connect(self) -> None:
        """Establish connection to database."""
        ...

    @abstractmethod
    def disconnect(self) -> None:
        """Close connection to database."""
        ...

    @abstractmethod
    def acquire(self) -> Connection:
        """Get a connection (may be from pool)."""
        ...

    @abstractmethod
    def release(self, conn: Connection) -> None:
        """Return a connection obtained from :meth:`acquire`."""
        ...

    @contextmanager
    def connection(self) -> Iterator[Connection]:
        """Acquire a connection for the duration of a ``with`` block."""
        conn = self.acquire()
        try:
            yield conn
        finally:
            self.release(conn)

    def __enter__(self) -> DatabaseAdapter:
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.disconnect()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._config.to_connection_string()!r})"


__all__ = [
    "DatabaseAdapter",
]
