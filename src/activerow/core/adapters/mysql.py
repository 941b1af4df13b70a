"""MySQL database adapter.

Uses ``mysql.connector`` from the ``mysql-connector-python`` package.
MySQL uses **format** (``%s``) placeholder style.

Install the driver::

    pip install mysql-connector-python
    # or:  pip install activerow[mysql]

This adapter is import-guarded: if ``mysql.connector`` is not installed
a clear :class:`~activerow.core.errors.ConfigError` is raised at
``connect()`` time.

Connections are opened with the ``FOUND_ROWS`` client flag, so an UPDATE
reports the rows it *matched* rather than the rows it changed.  Without it,
saving an unmodified record would look like a missing row.
"""

from __future__ import annotations

from typing import Any

from activerow.core.errors import ConfigError, DatabaseConnectionError
from activerow.core.logging import get_logger
from activerow.core.protocols import Connection

from .base import DatabaseAdapter
from .types import DatabaseConfig, DatabaseType

logger = get_logger(__name__)


class MySQLAdapter(DatabaseAdapter):
    """MySQL / MariaDB database adapter.

    Uses ``mysql.connector`` connection pooling; ``release()`` closes the
    pooled connection, which returns it to the pool.
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 3306,
        database: str = "",
        username: str | None = None,
        password: str | None = None,
        *,
        pool_size: int = 5,
        charset: str = "utf8mb4",
        autocommit: bool = True,
        **kwargs: Any,
    ):
        config = DatabaseConfig(
            db_type=DatabaseType.MYSQL,
            host=host,
            port=port,
            database=database,
            username=username,
            password=password,
            pool_size=pool_size,
            autocommit=autocommit,
            options={**(kwargs or {}), "charset": charset},
        )
        super().__init__(config)
        self._pool: Any = None

    def connect(self) -> None:
        """Create the MySQL connection pool."""
        try:
            from mysql.connector import pooling
            from mysql.connector.constants import ClientFlag
        except ImportError:
            raise ConfigError(
                "mysql-connector-python is required for MySQL. "
                "Install with: pip install mysql-connector-python"
            ) from None

        try:
            self._pool = pooling.MySQLConnectionPool(
                pool_name="activerow_mysql_pool",
                pool_size=self._config.pool_size,
                host=self._config.host,
                port=self._config.port,
                database=self._config.database,
                user=self._config.username,
                password=self._config.password,
                charset=self._config.options.get("charset", "utf8mb4"),
                connect_timeout=self._config.connect_timeout,
                client_flags=[ClientFlag.FOUND_ROWS],
                autocommit=False,
            )
            self._connected = True
            logger.debug(
                "adapter_connected",
                backend="mysql",
                host=self._config.host,
                database=self._config.database,
            )
        except Exception as e:
            raise DatabaseConnectionError(
                f"Failed to connect to MySQL: {e}",
                cause=e,
            ) from e

    def disconnect(self) -> None:
        """Drop the pool; pooled connections close as they are released."""
        self._pool = None
        self._connected = False
        logger.debug("adapter_disconnected", backend="mysql")

    def acquire(self) -> Connection:
        """Get connection from pool."""
        if not self._pool:
            self.connect()
        return self._pool.get_connection()

    def release(self, conn: Connection) -> None:
        """Return connection to pool."""
        conn.close()  # mysql.connector returns to pool on close


__all__ = [
    "MySQLAdapter",
]
