"""
Structured error types for activerow.

Every failure raised by the mapping layer belongs to one of two families:

- **DefinitionError:** the entity type itself is malformed (duplicate
  identity column, no columns, a method marked as a column, ...). Raised
  while the type's metadata is derived, normally at class-definition time.
- **RecordException:** a lifecycle operation failed (no connection, a
  not-null field holding None, a value longer than its bound, zero rows
  returned or affected). Raised per call; callers may recover.

Manifesto:
    - **Fail loudly and early:** Definition problems surface before the first
      query, never deep in a request path
    - **Absence is exceptional:** Zero rows is always an error, never an
      empty success value
    - **Rich context:** Errors carry table/column/field metadata for logging
    - **Error chaining:** Driver exceptions are kept as ``cause``

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────────┐
        │                       ActiveRowError                             │
        │  (category, retryable, context, cause)                           │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │  DefinitionError       RecordException        QueryBuildError    │
        │  (DEFINITION)          (RECORD)               (QUERY)            │
        │                             │                                    │
        │                        NoConnectionError                         │
        │                        NullValueError                            │
        │                        MaxLengthError                            │
        │                        ValueCoercionError                        │
        │                        RecordNotFoundError                       │
        │                        NoRowsAffectedError                       │
        │                                                                  │
        │  DatabaseConnectionError (DATABASE, retryable)                   │
        │  ConfigError (CONFIG)                                            │
        └─────────────────────────────────────────────────────────────────┘

Examples:
    >>> error = RecordNotFoundError("No records found for users at 7")
    >>> error.with_context(table="users")
    RecordNotFoundError('No records found for users at 7', category=RECORD)
    >>> error.to_dict()["context"]
    {'table': 'users'}

Tags:
    error-handling, exception-hierarchy, orm, activerow

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field as dataclass_field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """
    Standard error categories for classification and routing.

    Attributes:
        DEFINITION: Malformed entity type declaration
        RECORD: Lifecycle operation failure (get/find/create/save/remove)
        QUERY: Query builder misuse
        DATABASE: Driver or connection failure
        CONFIG: Missing or invalid settings
        INTERNAL: Bugs, unexpected state
    """

    DEFINITION = "DEFINITION"
    RECORD = "RECORD"
    QUERY = "QUERY"
    DATABASE = "DATABASE"
    CONFIG = "CONFIG"
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """
    Structured metadata context for errors.

    Attributes:
        entity: Name of the entity type involved
        table: SQL table name
        column: SQL column name
        field: Python attribute name
        operation: Lifecycle operation (``get``, ``find``, ``create``, ...)
        metadata: Additional key-value pairs
    """

    entity: str | None = None
    table: str | None = None
    column: str | None = None
    field: str | None = None
    operation: str | None = None

    metadata: dict[str, Any] = dataclass_field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["entity", "table", "column", "field", "operation"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class ActiveRowError(Exception):
    """
    Base exception for all activerow errors.

    Subclasses set ``default_category`` and ``default_retryable`` to give
    sensible defaults for their domain.

    Examples:
        >>> error = ActiveRowError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.retryable
        False
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> ActiveRowError:
        """
        Add context to this error (fluent API).

        Usage:
            raise RecordNotFoundError("No records").with_context(
                table="users",
                operation="get",
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# DEFINITION ERRORS (registration time)
# =============================================================================


class DefinitionError(ActiveRowError):
    """
    Entity type declaration is invalid.

    Never retryable: the class must be fixed. Raised while deriving the
    type's metadata, which happens at class-definition time unless the type
    opts out of eager registration.
    """

    default_category = ErrorCategory.DEFINITION
    default_retryable = False


# =============================================================================
# RECORD ERRORS (operation time)
# =============================================================================


class RecordException(ActiveRowError):
    """Exception type produced by record operations."""

    default_category = ErrorCategory.RECORD
    default_retryable = False


class NoConnectionError(RecordException):
    """No connection provider is bound to the record type."""


class NullValueError(RecordException):
    """A not-null column held ``None`` when read for writing."""


class MaxLengthError(RecordException):
    """A length-bearing value exceeded its declared ``MaxLength``."""


class ValueCoercionError(RecordException):
    """A typed value could not be coerced to the field's declared type."""

    def __init__(self, message: str, *, value: Any = None, target: Any = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.value = value
        self.target = target


class RecordNotFoundError(RecordException):
    """``get``/``find`` returned no rows."""


class NoRowsAffectedError(RecordException):
    """``create``/``save``/``remove`` affected no rows."""


# =============================================================================
# QUERY / DATABASE / CONFIG ERRORS
# =============================================================================


class QueryBuildError(ActiveRowError, ValueError):
    """A query builder was used incorrectly."""

    default_category = ErrorCategory.QUERY
    default_retryable = False


class DatabaseConnectionError(ActiveRowError):
    """Database connection could not be established."""

    default_category = ErrorCategory.DATABASE
    default_retryable = True


class ConfigError(ActiveRowError):
    """
    Configuration error.

    Never retryable - configuration must be fixed.
    """

    default_category = ErrorCategory.CONFIG
    default_retryable = False


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def _dbapi_bases(error: Exception) -> set[str]:
    # DB-API 2.0 drivers share class names, not a common base class
    return {klass.__name__ for klass in type(error).__mro__ if klass.__module__ != "builtins"}


def is_retryable(error: Exception) -> bool:
    """Check if an error is retryable.

    Driver ``OperationalError``s (lost connection, locked database) and
    socket-level failures are retryable; integrity and programming errors
    are not.
    """
    if isinstance(error, ActiveRowError):
        return error.retryable
    if isinstance(error, (ConnectionError, BrokenPipeError, TimeoutError)):
        return True
    return "OperationalError" in _dbapi_bases(error)


def categorize_error(error: Exception) -> ErrorCategory:
    """Get the category of an error.

    Driver exceptions (anything deriving from a DB-API ``DatabaseError`` or
    ``InterfaceError``) are ``DATABASE``.
    """
    if isinstance(error, ActiveRowError):
        return error.category
    if isinstance(error, (ConnectionError, TimeoutError)):
        return ErrorCategory.DATABASE
    if _dbapi_bases(error) & {"DatabaseError", "InterfaceError"}:
        return ErrorCategory.DATABASE
    return ErrorCategory.INTERNAL


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "ActiveRowError",
    "DefinitionError",
    "RecordException",
    "NoConnectionError",
    "NullValueError",
    "MaxLengthError",
    "ValueCoercionError",
    "RecordNotFoundError",
    "NoRowsAffectedError",
    "QueryBuildError",
    "DatabaseConnectionError",
    "ConfigError",
    "is_retryable",
    "categorize_error",
]
