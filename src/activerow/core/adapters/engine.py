"""SQLAlchemy engine adapter.

Wraps a SQLAlchemy ``Engine`` so any database SQLAlchemy can reach works
as a connection provider.  Records still render their own SQL; only
``engine.raw_connection()`` is used, which hands out pooled DB-API
connections.  Pooling is the engine's.

Examples:
    >>> adapter = SQLAlchemyAdapter("postgresql+psycopg2://app:pw@db/app")
    >>> adapter.dialect.name
    'postgresql'
    >>> adapter = SQLAlchemyAdapter(
    ...     "mysql+pymysql://app:pw@db/app",
    ...     connect_args={"client_flag": 2},   # FOUND_ROWS
    ... )

Tags:
    activerow, sqlalchemy, engine, pool, adapter
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from activerow.core.dialect import Dialect, get_dialect
from activerow.core.errors import ConfigError, DatabaseConnectionError
from activerow.core.logging import get_logger
from activerow.core.protocols import Connection

from .base import DatabaseAdapter
from .types import DatabaseConfig, DatabaseType

logger = get_logger(__name__)

# SQLAlchemy dialect name -> activerow dialect name
_DIALECT_NAMES = {
    "sqlite": "sqlite",
    "mysql": "mysql",
    "mariadb": "mysql",
    "postgresql": "postgresql",
}


def _dialect_for(engine: Engine) -> Dialect:
    name = _DIALECT_NAMES.get(engine.dialect.name)
    if name is None:
        raise ConfigError(
            f"No activerow dialect for SQLAlchemy dialect {engine.dialect.name!r}; "
            "pass dialect= explicitly"
        )
    return get_dialect(name)


class SQLAlchemyAdapter(DatabaseAdapter):
    """Connection provider backed by a SQLAlchemy engine.

    Args:
        url_or_engine: A database URL or an existing ``Engine``
        dialect: Override the dialect derived from the engine
        autocommit: Commit after every write statement
        **engine_kwargs: Forwarded to ``sqlalchemy.create_engine``
    """

    def __init__(
        self,
        url_or_engine: str | Engine,
        *,
        dialect: Dialect | str | None = None,
        autocommit: bool = True,
        **engine_kwargs: Any,
    ):
        if isinstance(url_or_engine, Engine):
            engine = url_or_engine
        else:
            engine = create_engine(url_or_engine, **engine_kwargs)

        if isinstance(dialect, str):
            dialect = get_dialect(dialect)
        resolved = dialect or _dialect_for(engine)
        try:
            db_type = DatabaseType(resolved.name)
        except ValueError:
            raise ConfigError(f"Unsupported dialect for SQLAlchemyAdapter: {resolved.name!r}") from None

        config = DatabaseConfig(
            db_type=db_type,
            host=engine.url.host or "",
            port=engine.url.port or 0,
            database=engine.url.database or "",
            username=engine.url.username,
            autocommit=autocommit,
        )
        super().__init__(config, dialect=resolved)
        self._engine = engine

    @property
    def engine(self) -> Engine:
        return self._engine

    def connect(self) -> None:
        """Check out and return one connection to verify the engine works."""
        try:
            self._engine.raw_connection().close()
        except SQLAlchemyError as e:
            raise DatabaseConnectionError(
                f"Failed to connect via SQLAlchemy: {e}",
                cause=e,
            ) from e
        self._connected = True
        logger.debug("adapter_connected", backend=self._engine.dialect.name)

    def disconnect(self) -> None:
        """Dispose of the engine's pool."""
        self._engine.dispose()
        self._connected = False
        logger.debug("adapter_disconnected", backend=self._engine.dialect.name)

    def acquire(self) -> Connection:
        try:
            conn = self._engine.raw_connection()
        except SQLAlchemyError as e:
            raise DatabaseConnectionError(
                f"Failed to connect via SQLAlchemy: {e}",
                cause=e,
            ) from e
        self._connected = True
        return conn

    def release(self, conn: Connection) -> None:
        conn.close()  # returns the connection to the engine's pool


__all__ = [
    "SQLAlchemyAdapter",
]
