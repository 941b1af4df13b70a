"""SQL dialect abstraction for the query builders.

Provides a ``Dialect`` protocol and concrete implementations for the
supported backends.  Query builders never emit backend-specific text
themselves; when a statement is rendered they ask the dialect for
placeholders, identifier quoting, ``LIMIT`` clauses, and the "last
generated identity" query.

Manifesto:
    Builders describe *what* a statement is; dialects decide *how* it is
    spelled.  The same ``SelectBuilder`` renders with ``?`` for SQLite,
    ``%s`` for MySQL drivers, and ``$1``-style numbering where a driver
    wants it, without the builder knowing.

    - **One interface:** Dialect protocol for all lexical decisions
    - **Zero coupling:** Builders and records never import database drivers
    - **Testable:** SQLiteDialect for tests, MySQLDialect by default

Architecture::

    ┌──────────────────────────────────────────────────────────────────┐
    │                     Dialect Abstraction Layer                     │
    └──────────────────────────────────────────────────────────────────┘

    Builder parts:   "SELECT " Ident(id) " FROM " Ident(users) " WHERE "
                     Ident(id) "=" Param(7) Limit(1)
                              │
                              ▼
    ┌──────────────┐ ┌──────────────┐ ┌──────────────────┐
    │ MySQL        │ │ SQLite       │ │ PostgreSQL       │
    │ `id`=%s      │ │ `id`=?       │ │ "id"=%s          │
    │ LIMIT 1      │ │ LIMIT 1 (*)  │ │ LIMIT 1 (*)      │
    │ LAST_INSERT_ │ │ last_insert_ │ │ lastval()        │
    │ ID()         │ │ rowid()      │ │                  │
    └──────────────┘ └──────────────┘ └──────────────────┘

    (*) SELECT only; UPDATE/DELETE ... LIMIT is not portable

Examples:
    >>> from activerow.core.dialect import get_dialect
    >>> d = get_dialect("sqlite")
    >>> d.placeholders(3)
    '?, ?, ?'
    >>> d.quote("users")
    '`users`'

Guardrails:
    ❌ DON'T: Hard-code placeholders or quoting in builders
    ✅ DO: Emit Ident/Param parts and let the dialect render them

Tags:
    dialect, sql, abstraction, portability, database, activerow

Doc-Types:
    - API Reference
    - Database Portability Guide
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class Dialect(Protocol):
    """SQL dialect contract.

    Every method returns a **SQL fragment** (string) valid for the target
    database.
    """

    @property
    def name(self) -> str:
        """Human-readable dialect name (e.g. ``'sqlite'``)."""
        ...

    # -- Placeholder generation --------------------------------------------

    def placeholder(self, index: int) -> str:
        """Single positional placeholder (0-based index).

        ``index`` is ignored by dialects that use anonymous placeholders
        (SQLite ``?``, MySQL ``%s``) but required by numbered styles.
        """
        ...

    def placeholders(self, count: int) -> str:
        """Comma-separated placeholder list."""
        ...

    # -- Identifiers ---------------------------------------------------------

    def quote(self, identifier: str) -> str:
        """Quote a table or column name."""
        ...

    # -- Clauses ---------------------------------------------------------------

    def limit(self, count: int, *, write: bool = False) -> str:
        """``LIMIT`` clause (with leading space), or ``''`` when unsupported.

        ``write`` is true for UPDATE and DELETE statements.
        """
        ...

    def last_insert_id(self) -> str:
        """Query returning the identity generated by the last INSERT."""
        ...


# =========================================================================
# Concrete Dialect Implementations
# =========================================================================


class _BacktickQuoting:
    def quote(self, identifier: str) -> str:
        return "`" + identifier.replace("`", "``") + "`"


class MySQLDialect(_BacktickQuoting):
    """MySQL dialect — ``%s`` placeholders, backtick identifiers.

    Compatible with ``mysql.connector`` and ``PyMySQL`` (both use
    ``%s`` format paramstyle).
    """

    @property
    def name(self) -> str:
        return "mysql"

    def placeholder(self, index: int) -> str:  # noqa: ARG002
        return "%s"

    def placeholders(self, count: int) -> str:
        return ", ".join("%s" for _ in range(count))

    def limit(self, count: int, *, write: bool = False) -> str:  # noqa: ARG002
        return f" LIMIT {int(count)}"

    def last_insert_id(self) -> str:
        return "SELECT LAST_INSERT_ID()"


class SQLiteDialect(_BacktickQuoting):
    """SQLite dialect — ``?`` placeholders, backtick identifiers.

    Stock SQLite builds lack ``SQLITE_ENABLE_UPDATE_DELETE_LIMIT``, so
    write statements render without ``LIMIT``.
    """

    @property
    def name(self) -> str:
        return "sqlite"

    def placeholder(self, index: int) -> str:  # noqa: ARG002
        return "?"

    def placeholders(self, count: int) -> str:
        return ", ".join("?" for _ in range(count))

    def limit(self, count: int, *, write: bool = False) -> str:
        if write:
            return ""
        return f" LIMIT {int(count)}"

    def last_insert_id(self) -> str:
        return "SELECT last_insert_rowid()"


class PostgreSQLDialect:
    """PostgreSQL dialect — ``%s`` placeholders (psycopg), double-quoted identifiers."""

    @property
    def name(self) -> str:
        return "postgresql"

    def placeholder(self, index: int) -> str:  # noqa: ARG002
        return "%s"

    def placeholders(self, count: int) -> str:
        return ", ".join("%s" for _ in range(count))

    def quote(self, identifier: str) -> str:
        return '"' + identifier.replace('"', '""') + '"'

    def limit(self, count: int, *, write: bool = False) -> str:
        if write:
            return ""
        return f" LIMIT {int(count)}"

    def last_insert_id(self) -> str:
        return "SELECT lastval()"


# =========================================================================
# Registry / Factory
# =========================================================================

# Pre-instantiated singletons (dialects are stateless)
_DIALECTS: dict[str, Dialect] = {
    "mysql": MySQLDialect(),
    "mariadb": MySQLDialect(),  # alias
    "sqlite": SQLiteDialect(),
    "postgresql": PostgreSQLDialect(),
    "postgres": PostgreSQLDialect(),  # alias
}

DEFAULT_DIALECT: Dialect = _DIALECTS["mysql"]


def get_dialect(db_type: str) -> Dialect:
    """Get a dialect by database type name.

    Args:
        db_type: One of ``'mysql'``, ``'sqlite'``, ``'postgresql'`` or a
                 name added with :func:`register_dialect`.

    Raises:
        ValueError: If ``db_type`` is not recognised.
    """
    key = db_type.lower() if isinstance(db_type, str) else db_type.value
    if key not in _DIALECTS:
        raise ValueError(
            f"Unknown dialect '{db_type}'. "
            f"Supported: {sorted(set(_DIALECTS) - {'postgres', 'mariadb'})}"
        )
    return _DIALECTS[key]


def register_dialect(name: str, dialect: Dialect) -> None:
    """Register a custom dialect implementation.

    Useful for third-party database drivers or test doubles.
    """
    _DIALECTS[name.lower()] = dialect


__all__ = [
    "DEFAULT_DIALECT",
    "Dialect",
    "MySQLDialect",
    "PostgreSQLDialect",
    "SQLiteDialect",
    "get_dialect",
    "register_dialect",
]
