"""Database types and configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from activerow.core.errors import ConfigError


class DatabaseType(str, Enum):
    """Supported database types."""

    SQLITE = "sqlite"
    MYSQL = "mysql"
    POSTGRESQL = "postgresql"


@dataclass
class DatabaseConfig:
    """
    Configuration for database connection.

    Different fields are used by different database types.
    """

    # Common
    db_type: DatabaseType = DatabaseType.SQLITE
    autocommit: bool = True

    # SQLite
    path: str | None = None

    # MySQL / PostgreSQL
    host: str = "localhost"
    port: int = 3306
    database: str = ""
    username: str | None = None
    password: str | None = None

    # Connection pool
    pool_size: int = 5

    # Options
    connect_timeout: int = 10
    readonly: bool = False

    # Extra options (driver-specific)
    options: dict[str, Any] = field(default_factory=dict)

    def to_connection_string(self) -> str:
        """Generate connection string for the database type (password masked)."""
        match self.db_type:
            case DatabaseType.SQLITE:
                return self.path or ":memory:"
            case DatabaseType.MYSQL | DatabaseType.POSTGRESQL:
                user = self.username or ""
                secret = ":***" if self.password else ""
                return f"{self.db_type.value}://{user}{secret}@{self.host}:{self.port}/{self.database}"
            case _:
                raise ConfigError(f"Connection string not supported for: {self.db_type}")


__all__ = [
    "DatabaseType",
    "DatabaseConfig",
]
