"""
Canonical protocol definitions for activerow.

This module is the single source of truth for the structural contracts the
lifecycle engine depends on.  Records never import a database driver; they
ask a ``ConnectionProvider`` for a DB-API ``Connection`` and hand it to a
:class:`~activerow.core.command.Command`.

Manifesto:
    Protocols define contracts without inheritance.  They enable:
    - **Decoupling:** Records depend on shape, not implementation
    - **Testability:** Any object matching the protocol works (including
      a ``MagicMock`` with the right attributes)
    - **Portability:** Same entity code on SQLite, MySQL, or any engine
      SQLAlchemy can reach

Architecture:
    ::

        protocols.py (YOU ARE HERE)
        ├── Cursor              — DB-API 2.0 cursor subset
        ├── Connection          — DB-API 2.0 connection subset
        └── ConnectionProvider  — acquire/release + dialect + autocommit

        Implementations:
        ┌────────────────────────────────────────────────────────┐
        │ SQLiteAdapter      → one shared sqlite3 connection     │
        │ MySQLAdapter       → mysql.connector pool              │
        │ SQLAlchemyAdapter  → engine.raw_connection() pool      │
        └────────────────────────────────────────────────────────┘

Guardrails:
    ❌ DON'T: Duplicate these protocols in other modules
    ✅ DO: Import from activerow.core.protocols

    ❌ DON'T: Hold a connection across lifecycle calls
    ✅ DO: acquire() once per call and release() when it finishes

Tags:
    protocol, connection, provider, db-api, activerow, contracts

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from activerow.core.dialect import Dialect

# ---------------------------------------------------------------------------
# DB-API Protocols
# ---------------------------------------------------------------------------


@runtime_checkable
class Cursor(Protocol):
    """The part of a PEP 249 cursor used by :class:`Command`."""

    @property
    def description(self) -> Sequence[Sequence[Any]] | None: ...

    @property
    def rowcount(self) -> int: ...

    def execute(self, sql: str, params: Sequence[Any] = ()) -> Any: ...

    def fetchall(self) -> list[Sequence[Any]]: ...

    def close(self) -> None: ...


@runtime_checkable
class Connection(Protocol):
    """
    Minimal SYNCHRONOUS DB-API connection.

    ``sqlite3.Connection``, ``mysql.connector`` connections and
    SQLAlchemy's pooled raw connections all satisfy it.
    """

    def cursor(self) -> Cursor:
        """Open a cursor."""
        ...

    def commit(self) -> None:
        """Commit current transaction."""
        ...

    def rollback(self) -> None:
        """Rollback current transaction."""
        ...

    def close(self) -> None:
        """Close (or return to its pool) the connection."""
        ...


# ---------------------------------------------------------------------------
# Provider Protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class ConnectionProvider(Protocol):
    """
    Source of connections for the lifecycle engine.

    Each lifecycle call acquires exactly one connection, runs all of its
    statements on it (the last-insert-id query after an INSERT must see the
    same session), then releases it.

    Examples:
        >>> provider = SQLiteAdapter()
        >>> conn = provider.acquire()
        >>> try:
        ...     Command(conn, provider.dialect).prepare("SELECT 1").execute_rows()
        ... finally:
        ...     provider.release(conn)
    """

    @property
    def dialect(self) -> Dialect:
        """Dialect used to render statements for this provider."""
        ...

    @property
    def autocommit(self) -> bool:
        """Commit after every write statement."""
        ...

    def acquire(self) -> Connection:
        """Get a connection (may be from a pool)."""
        ...

    def release(self, conn: Connection) -> None:
        """Give back a connection obtained from :meth:`acquire`."""
        ...


__all__ = [
    "Connection",
    "ConnectionProvider",
    "Cursor",
]
