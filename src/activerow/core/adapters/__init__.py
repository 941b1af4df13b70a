"""Database adapters -- connection providers for the lifecycle engine.

Manifesto:
    Entity code must run identically on SQLite (tests, small apps) and
    MySQL or any other engine in production.  Every adapter implements the
    ``ConnectionProvider`` contract: hand out a DB-API connection, take it
    back, and say which dialect its SQL is spelled in.

    Optional drivers are **import-guarded**: ``mysql.connector`` is only
    required at ``connect()`` time, not at import time::

        pip install activerow[mysql]        # mysql-connector-python

Architecture::

    DatabaseAdapter (base.py)        Abstract base with connect/acquire/release
        |-- SQLiteAdapter            stdlib sqlite3 (always available)
        |-- MySQLAdapter             mysql.connector pool (optional)
        |-- SQLAlchemyAdapter        any SQLAlchemy engine

    AdapterRegistry (registry.py)    Singleton: name -> adapter class
    DatabaseConfig (types.py)        Dataclass of connection parameters
    DatabaseType (types.py)          Enum of supported backends

Guardrails:
    ❌ Importing optional drivers at module scope
    ✅ Import-guarded at ``connect()`` time with clear ``ConfigError``

Tags:
    activerow, database, adapters, multi-backend, import-guarded,
    registry-pattern, sqlite, mysql, sqlalchemy

Doc-Types:
    package-overview, module-index
"""

from .base import DatabaseAdapter
from .engine import SQLAlchemyAdapter
from .mysql import MySQLAdapter
from .registry import AdapterRegistry, adapter_registry, get_adapter
from .sqlite import SQLiteAdapter
from .types import DatabaseConfig, DatabaseType

__all__ = [
    "AdapterRegistry",
    "DatabaseAdapter",
    "DatabaseConfig",
    "DatabaseType",
    "MySQLAdapter",
    "SQLAlchemyAdapter",
    "SQLiteAdapter",
    "adapter_registry",
    "get_adapter",
]
