"""Provider factory — create connection providers from URL strings.

This is the **single entry point** for turning configuration into a
:class:`~activerow.core.protocols.ConnectionProvider`.  ``configure()`` and
application code should call ``create_provider()`` rather than importing
backend-specific adapter classes.

Supported URL schemes
---------------------
==================  ==========================================  ============
Scheme              Example                                     Adapter
==================  ==========================================  ============
``memory``          ``memory`` or ``:memory:`` or ``None``       SQLite RAM
``sqlite``          ``sqlite:///path/to/file.db``                SQLite file
``(file path)``     ``./data/app.db`` or ``/tmp/app.db``         SQLite file
``mysql``           ``mysql://user:pw@host:port/db``             MySQLAdapter
``mariadb``         ``mariadb://user:pw@host/db``                 MySQLAdapter
``(registered)``    ``duckdb://app.db`` (after registering)        custom
``(anything else)`` ``postgresql+psycopg2://...``                SQLAlchemy
==================  ==========================================  ============

Every provider is built by :data:`~activerow.core.adapters.adapter_registry`.
``mysql+<driver>://`` URLs go through SQLAlchemy; a bare ``mysql://`` uses
the pooled ``mysql.connector`` adapter.

Usage
-----
::

    from activerow.core.connection import create_provider

    provider = create_provider()                       # in-memory SQLite
    provider = create_provider("sqlite:///app.db")
    provider = create_provider("mysql://app:pw@localhost/app")
    provider = create_provider("postgresql://app:pw@localhost/app")
"""

from __future__ import annotations

from pathlib import Path
from typing import Any
from urllib.parse import unquote, urlsplit

from activerow.core.adapters import DatabaseAdapter, adapter_registry
from activerow.core.dialect import Dialect
from activerow.core.errors import ConfigError
from activerow.core.logging import get_logger

logger = get_logger(__name__)


# ── URL parsing ──────────────────────────────────────────────────────────


def _parse_url(db: str | None) -> tuple[str, str]:
    """Parse a database URL into (scheme, target).

    Returns
    -------
    tuple[str, str]
        (scheme, target) where scheme is ``"memory"``, ``"sqlite"``, ``"file"``,
        or the adapter name :data:`adapter_registry` resolves for the URL
        (``"mysql"``, ``"mariadb"``, a custom registration, or
        ``"sqlalchemy"``).
    """
    if db is None or db in ("", "memory", ":memory:"):
        return "memory", ":memory:"

    # Explicit URL schemes
    for prefix in ("sqlite:///", "sqlite://"):
        if db.startswith(prefix):
            path = db[len(prefix):]
            if not path or path == ":memory:":
                return "memory", ":memory:"
            return "sqlite", path

    if "://" in db:
        return adapter_registry.resolve_scheme(db), db

    # Bare file path — treat as SQLite file
    return "file", db


def _mysql_kwargs(url: str) -> dict[str, Any]:
    parts = urlsplit(url)
    database = parts.path.lstrip("/")
    if not parts.hostname or not database:
        raise ConfigError(f"MySQL URL needs a host and a database: {parts.scheme}://{parts.hostname or ''}/")
    return {
        "host": parts.hostname,
        "port": parts.port or 3306,
        "database": database,
        "username": unquote(parts.username) if parts.username else None,
        "password": unquote(parts.password) if parts.password else None,
    }


# ── Main factory ─────────────────────────────────────────────────────────


def create_provider(
    db: str | None = None,
    *,
    dialect: Dialect | str | None = None,
    autocommit: bool = True,
    data_dir: str | None = None,
) -> DatabaseAdapter:
    """Create a connection provider from a URL, path, or keyword.

    Parameters
    ----------
    db:
        Database URL, file path, or keyword (see module docstring).
    dialect:
        Override the dialect the provider renders SQL for.
    autocommit:
        Commit after every write statement.
    data_dir:
        For SQLite paths, resolve relative paths within this directory.
    """
    scheme, target = _parse_url(db)

    if scheme == "memory":
        provider = adapter_registry.create("sqlite", ":memory:", autocommit=autocommit)

    elif scheme in ("sqlite", "file"):
        if data_dir and not Path(target).is_absolute():
            target = str(Path(data_dir) / target)
        provider = adapter_registry.create("sqlite", target, autocommit=autocommit)

    elif scheme in ("mysql", "mariadb"):
        provider = adapter_registry.create(scheme, **_mysql_kwargs(target), autocommit=autocommit)

    elif scheme == "sqlalchemy":
        provider = adapter_registry.create(scheme, target, dialect=dialect, autocommit=autocommit)
        dialect = None

    else:
        provider = adapter_registry.create(scheme, target, autocommit=autocommit)

    if dialect is not None:
        provider.use_dialect(dialect)

    logger.debug(
        "provider_created",
        scheme=scheme,
        adapter=type(provider).__name__,
        dialect=provider.dialect.name,
    )
    return provider


__all__ = [
    "create_provider",
]
