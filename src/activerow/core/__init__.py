"""activerow core -- declarative active-record mapping primitives.

Manifesto:
    An entity class should be the only description of its table.  Column
    names, the identity column, NOT NULL and length rules, auto-increment
    handling: all of it is read from the class's annotations once and then
    enforced on every create, save, get, find and remove.

    - **Protocol-first:** Connection, ConnectionProvider and Dialect are
      protocols, not base classes
    - **Derive once:** Metadata is built exactly once per type, eagerly
    - **Import-guarded extras:** mysql.connector loaded at connect time

Architecture::

    Layer 1 -- Types & Errors
        errors.py          Structured error hierarchy (ActiveRowError ...)
        values.py          Typed Value union + explicit coercion rules
        markers.py         Id, Column, Nullable, AutoIncrement, MaxLength
        logging.py         structlog configuration

    Layer 2 -- Mapping
        columns.py         ColumnInfo + bound field accessors
        metadata.py        derive_metadata() + MetadataRegistry

    Layer 3 -- SQL
        dialect.py         MySQL / SQLite / PostgreSQL lexical rules
        query.py           Select/Insert/Update/Delete/Where builders
        protocols.py       Connection, ConnectionProvider
        command.py         Command (prepare/bind/execute) + RowSet
        adapters/          SQLite, MySQL, SQLAlchemy providers
        connection.py      create_provider(url)

    Layer 4 -- Lifecycle
        record.py          Record base: get/find/create/save/remove
        settings.py        ActiveRowSettings + configure()

Tags:
    activerow, orm, active-record, metadata, query-builder

Doc-Types:
    package-overview, architecture-map, module-index
"""

from activerow.core.adapters import (
    DatabaseAdapter,
    DatabaseConfig,
    DatabaseType,
    MySQLAdapter,
    SQLAlchemyAdapter,
    SQLiteAdapter,
    get_adapter,
)
from activerow.core.columns import ColumnInfo, FieldAccessor
from activerow.core.command import Command, RowSet
from activerow.core.connection import create_provider
from activerow.core.dialect import (
    Dialect,
    MySQLDialect,
    PostgreSQLDialect,
    SQLiteDialect,
    get_dialect,
    register_dialect,
)
from activerow.core.errors import (
    ActiveRowError,
    ConfigError,
    DatabaseConnectionError,
    DefinitionError,
    ErrorCategory,
    ErrorContext,
    MaxLengthError,
    NoConnectionError,
    NoRowsAffectedError,
    NullValueError,
    QueryBuildError,
    RecordException,
    RecordNotFoundError,
    ValueCoercionError,
)
from activerow.core.logging import LogContext, configure_logging, get_logger
from activerow.core.markers import AutoIncrement, Column, Id, MaxLength, Nullable
from activerow.core.metadata import Metadata, MetadataRegistry, get_metadata, metadata_registry
from activerow.core.protocols import Connection, ConnectionProvider
from activerow.core.query import (
    DeleteBuilder,
    InsertBuilder,
    QueryBuilder,
    SelectBuilder,
    Statement,
    UpdateBuilder,
    WhereBuilder,
)
from activerow.core.record import Record, register, table
from activerow.core.settings import ActiveRowSettings, configure
from activerow.core.values import NULL, Value, ValueKind

__all__ = [
    # markers
    "AutoIncrement",
    "Column",
    "Id",
    "MaxLength",
    "Nullable",
    # record
    "Record",
    "register",
    "table",
    # metadata
    "ColumnInfo",
    "FieldAccessor",
    "Metadata",
    "MetadataRegistry",
    "get_metadata",
    "metadata_registry",
    # values
    "NULL",
    "Value",
    "ValueKind",
    # query
    "DeleteBuilder",
    "InsertBuilder",
    "QueryBuilder",
    "SelectBuilder",
    "Statement",
    "UpdateBuilder",
    "WhereBuilder",
    # dialect
    "Dialect",
    "MySQLDialect",
    "PostgreSQLDialect",
    "SQLiteDialect",
    "get_dialect",
    "register_dialect",
    # execution
    "Command",
    "Connection",
    "ConnectionProvider",
    "RowSet",
    # adapters
    "DatabaseAdapter",
    "DatabaseConfig",
    "DatabaseType",
    "MySQLAdapter",
    "SQLAlchemyAdapter",
    "SQLiteAdapter",
    "create_provider",
    "get_adapter",
    # errors
    "ActiveRowError",
    "ConfigError",
    "DatabaseConnectionError",
    "DefinitionError",
    "ErrorCategory",
    "ErrorContext",
    "MaxLengthError",
    "NoConnectionError",
    "NoRowsAffectedError",
    "NullValueError",
    "QueryBuildError",
    "RecordException",
    "RecordNotFoundError",
    "ValueCoercionError",
    # config / logging
    "ActiveRowSettings",
    "LogContext",
    "configure",
    "configure_logging",
    "get_logger",
]
