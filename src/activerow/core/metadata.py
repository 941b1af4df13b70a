"""Per-type metadata derivation and the process-wide metadata registry.

The first time an entity type is used (normally when its class statement
finishes executing) its declared members are walked once and turned into an
immutable :class:`Metadata`: the table name, the identity column, and an
ordered map of column name -> :class:`~activerow.core.columns.ColumnInfo`.

Manifesto:
    Mapping metadata is a property of the type, not of a call.  Deriving it
    per query would be slow and, worse, would defer definition errors until
    some request path first touched the type.  Deriving it once, eagerly,
    turns a malformed class into an import-time failure.

    - **Exactly once:** Per-type lock, double-checked; losers of a race wait
      for the winner and reuse its result
    - **Immutable:** ``Metadata`` and ``ColumnInfo`` are frozen once built
    - **Loud:** Every rule violation is a ``DefinitionError``

Architecture::

    MetadataRegistry (process-wide, keyed by type)
    ├── _entries: dict[type, Metadata]       read without locking
    ├── _locks:   dict[type, Lock]           one lock per type
    └── get(cls) ──► derive_metadata(cls) ──► Metadata
                         │
                         ├── _declared_members(cls)   Annotated fields + marked callables
                         ├── _build_column(...)       markers ─► ColumnInfo
                         └── post-checks              id present, ≥ 1 column

Derivation rules:
    - A member is a column iff it carries ``Id`` or ``Column``
    - A callable member marked as a column is rejected
    - Column name is the ``Column("name")`` override, else the attribute name
    - A second ``Id`` is rejected
    - ``Nullable`` clears ``not_null``
    - ``AutoIncrement`` requires a numeric field on the identity column
    - ``MaxLength(n)`` sets ``max_length``
    - No identity column, or no columns at all, is rejected

Examples:
    >>> from typing import Annotated
    >>> from activerow.core.markers import Column, Id
    >>> class Point:
    ...     id: Annotated[int, Id]
    ...     x: Annotated[float, Column]
    >>> meta = derive_metadata(Point)
    >>> meta.table, meta.id_column, meta.column_names()
    ('Point', 'id', ('id', 'x'))

Tags:
    metadata, registry, reflection, thread-safe, lazy-init, activerow

Doc-Types:
    - API Reference
    - Architecture Documentation
"""

from __future__ import annotations

import re
import threading
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Annotated, Any, ClassVar, get_args, get_origin, get_type_hints

from activerow.core.columns import UNBOUNDED, ColumnInfo, FieldAccessor, is_numeric_type, unwrap_annotation
from activerow.core.errors import DefinitionError, RecordException
from activerow.core.logging import get_logger
from activerow.core.markers import (
    AutoIncrement,
    Id,
    MaxLength,
    Nullable,
    column_name_override,
    is_column_marker,
    markers_of,
)
from activerow.core.values import Value

logger = get_logger(__name__)

IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_$]*$")


@dataclass(frozen=True)
class Metadata:
    """Everything the lifecycle engine knows about one entity type."""

    entity: type
    table: str
    id_column: str
    _columns: Mapping[str, ColumnInfo]

    def columns(self) -> tuple[ColumnInfo, ...]:
        """Column descriptors in declaration order."""
        return tuple(self._columns.values())

    def column_names(self) -> tuple[str, ...]:
        return tuple(self._columns)

    def column(self, name: str) -> ColumnInfo:
        """Gets a column definition, by name."""
        if not isinstance(name, str):
            raise RecordException(
                f"Column names must be strings, got {type(name).__name__}"
            ).with_context(entity=self.entity.__name__, table=self.table)
        try:
            return self._columns[name]
        except KeyError:
            raise RecordException(
                f"{self.entity.__name__} has no column named {name!r}"
            ).with_context(entity=self.entity.__name__, table=self.table, column=name) from None

    def has_column(self, name: str) -> bool:
        return name in self._columns

    @property
    def id(self) -> ColumnInfo:
        return self._columns[self.id_column]

    def values(self, instance: Any) -> list[Value]:
        """Gets a list of column values, for this instance."""
        return [info.get(instance) for info in self._columns.values()]

    def __iter__(self) -> Iterator[ColumnInfo]:
        return iter(self._columns.values())

    def __len__(self) -> int:
        return len(self._columns)


# =========================================================================
# Derivation
# =========================================================================


def resolve_table_name(cls: type) -> str:
    """Table override from ``__table__`` (set by the ``table=`` class keyword)."""
    name = cls.__dict__.get("__table__")
    if name is None:
        name = cls.__name__
    if not isinstance(name, str):
        raise DefinitionError(
            f"{cls.__name__}.__table__ must be a string, got {type(name).__name__}"
        ).with_context(entity=cls.__name__)
    if not IDENTIFIER_RE.match(name):
        raise DefinitionError(
            f"{cls.__name__}: {name!r} is not a valid table name"
        ).with_context(entity=cls.__name__, table=name)
    return name


def _declared_members(cls: type) -> Iterator[tuple[str, Any, tuple[Any, ...], bool]]:
    """Yield ``(attribute, annotation, markers, is_callable)`` per marked member.

    Annotated fields come first in MRO order (base classes before
    subclasses), followed by callables carrying decorator-attached markers.
    """
    try:
        hints = get_type_hints(cls, include_extras=True)
    except (NameError, TypeError) as e:
        raise DefinitionError(
            f"Cannot resolve annotations of {cls.__name__}: {e}", cause=e
        ).with_context(entity=cls.__name__) from e

    seen: set[str] = set()
    for attr, hint in hints.items():
        if get_origin(hint) is ClassVar:
            continue
        if get_origin(hint) is not Annotated:
            continue
        markers = tuple(get_args(hint)[1:])
        member = _class_member(cls, attr)
        seen.add(attr)
        yield attr, hint, markers, _is_callable_member(member)

    for klass in reversed(cls.__mro__):
        for attr, member in vars(klass).items():
            if attr in seen:
                continue
            markers = markers_of(member)
            if markers:
                seen.add(attr)
                yield attr, None, markers, True


def _class_member(cls: type, attr: str) -> Any:
    for klass in cls.__mro__:
        if attr in vars(klass):
            return vars(klass)[attr]
    return None


def _is_callable_member(member: Any) -> bool:
    if isinstance(member, (staticmethod, classmethod, property)):
        return True
    return callable(member) and not isinstance(member, type)


def _build_column(
    cls: type,
    attr: str,
    annotation: Any,
    markers: tuple[Any, ...],
) -> ColumnInfo:
    name = column_name_override(markers) or attr
    if not IDENTIFIER_RE.match(name):
        raise DefinitionError(
            f"{cls.__name__}.{attr}: {name!r} is not a valid column name"
        ).with_context(entity=cls.__name__, field=attr, column=name)

    field_type, admits_none = unwrap_annotation(annotation)

    is_id = any(marker is Id for marker in markers)
    not_null = not any(marker is Nullable for marker in markers)
    auto_increment = False
    max_length = UNBOUNDED

    for marker in markers:
        if marker is AutoIncrement:
            if not is_numeric_type(field_type):
                raise DefinitionError(
                    f"Cannot increment {attr} in {cls.__name__}: field type is not numeric"
                ).with_context(entity=cls.__name__, field=attr, column=name)
            if not is_id:
                raise DefinitionError(
                    f"Cannot increment {attr} in {cls.__name__}: AutoIncrement is only valid on the Id column"
                ).with_context(entity=cls.__name__, field=attr, column=name)
            auto_increment = True
        elif isinstance(marker, MaxLength):
            max_length = marker.max_length
        elif marker is MaxLength:
            raise DefinitionError(
                f"{cls.__name__}.{attr}: MaxLength requires a bound, e.g. MaxLength(50)"
            ).with_context(entity=cls.__name__, field=attr)

    return ColumnInfo(
        name=name,
        field=attr,
        is_id=is_id,
        not_null=not_null,
        auto_increment=auto_increment,
        max_length=max_length,
        accessor=FieldAccessor(cls, attr, field_type, admits_none or not not_null),
    )


def derive_metadata(cls: type) -> Metadata:
    """Walk ``cls``'s declared members once and build its :class:`Metadata`.

    Raises:
        DefinitionError: If the declaration breaks any of the module's rules.
    """
    table = resolve_table_name(cls)
    id_column: str | None = None
    columns: dict[str, ColumnInfo] = {}

    for attr, annotation, markers, is_callable in _declared_members(cls):
        if not any(is_column_marker(marker) for marker in markers):
            continue

        if is_callable:
            raise DefinitionError(
                f"Functions as columns are unsupported: {cls.__name__}.{attr}"
            ).with_context(entity=cls.__name__, field=attr)

        info = _build_column(cls, attr, annotation, markers)

        if info.name in columns:
            raise DefinitionError(
                f"{cls.__name__} defines column {info.name!r} more than once"
            ).with_context(entity=cls.__name__, column=info.name)

        if info.is_id:
            if id_column is not None:
                raise DefinitionError(
                    f"{cls.__name__} already defined an Id column."
                ).with_context(entity=cls.__name__, column=info.name)
            id_column = info.name

        columns[info.name] = info

    if not columns:
        raise DefinitionError(
            f"{cls.__name__} defines no valid columns."
        ).with_context(entity=cls.__name__)

    if id_column is None:
        raise DefinitionError(
            f"{cls.__name__} doesn't define an Id column."
        ).with_context(entity=cls.__name__)

    meta = Metadata(
        entity=cls,
        table=table,
        id_column=id_column,
        _columns=MappingProxyType(columns),
    )
    logger.debug(
        "metadata_registered",
        entity=cls.__name__,
        table=table,
        id_column=id_column,
        columns=list(columns),
    )
    return meta


# =========================================================================
# Registry
# =========================================================================


class MetadataRegistry:
    """Concurrent-safe, lazily populated map of entity type -> Metadata.

    ``get()`` derives a type's metadata at most once.  Reads of an already
    registered type take no lock.  A failed derivation is not cached, so
    every later access re-raises the same ``DefinitionError``.
    """

    def __init__(self) -> None:
        self._entries: dict[type, Metadata] = {}
        self._locks: dict[type, threading.Lock] = {}
        self._guard = threading.Lock()

    def get(self, cls: type) -> Metadata:
        meta = self._entries.get(cls)
        if meta is not None:
            return meta

        with self._guard:
            lock = self._locks.setdefault(cls, threading.Lock())

        with lock:
            meta = self._entries.get(cls)
            if meta is None:
                meta = derive_metadata(cls)
                self._entries[cls] = meta
        return meta

    def is_registered(self, cls: type) -> bool:
        return cls in self._entries

    def registered(self) -> list[type]:
        return list(self._entries)

    def discard(self, cls: type) -> None:
        """Forget one type (test helper)."""
        with self._guard:
            self._entries.pop(cls, None)
            self._locks.pop(cls, None)

    def clear(self) -> None:
        """Forget every type (test helper)."""
        with self._guard:
            self._entries.clear()
            self._locks.clear()


# Global registry
metadata_registry = MetadataRegistry()


def get_metadata(cls: type) -> Metadata:
    """Resolve ``cls``'s metadata from the global registry."""
    return metadata_registry.get(cls)


__all__ = [
    "Metadata",
    "MetadataRegistry",
    "derive_metadata",
    "get_metadata",
    "metadata_registry",
    "resolve_table_name",
]
