"""Declarative column markers.

Entity types describe their mapping with markers placed inside
``typing.Annotated`` field annotations::

    class User(Record, table="users"):
        id: Annotated[int | None, Id, AutoIncrement] = None
        name: Annotated[str, Column, MaxLength(50)] = ""
        email: Annotated[str | None, Column("email_address"), Nullable] = None

==================  ========================================================
Marker              Meaning
==================  ========================================================
``Column``          Field is a column named after the attribute
``Column("n")``     Field is a column named ``n``
``Id``              Field is the primary key (implies ``Column``)
``Nullable``        Column may hold NULL (default is NOT NULL)
``AutoIncrement``   Database generates the value; numeric identity only
``MaxLength(n)``    Length-bearing value may not exceed ``n``
==================  ========================================================

The table name is given as a class keyword (``table="users"``) or a
``__table__`` attribute, or with the ``@table("users")`` decorator; without
any of these the class name is used.

Markers may also be applied as decorators.  This only exists so that the
registry can reject methods marked as columns with a clear error.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from activerow.core.errors import DefinitionError

MARKERS_ATTR = "__activerow_markers__"


def _underlying(member: Any) -> Any:
    if isinstance(member, (staticmethod, classmethod)):
        return member.__func__
    if isinstance(member, property):
        return member.fget
    return member


def attach_markers(member: Any, *markers: Any) -> Any:
    """Record ``markers`` on a class member (function, property, ...)."""
    target = _underlying(member)
    try:
        setattr(target, MARKERS_ATTR, markers_of(member) + markers)
    except AttributeError as e:
        raise DefinitionError(
            f"Cannot attach column markers to {member!r}", cause=e
        ) from e
    return member


def markers_of(member: Any) -> tuple[Any, ...]:
    """Markers previously attached to ``member`` with :func:`attach_markers`."""
    return tuple(getattr(_underlying(member), MARKERS_ATTR, ()))


class Marker:
    """A flag marker (``Id``, ``Nullable``, ``AutoIncrement``)."""

    __slots__ = ("name",)

    def __init__(self, name: str) -> None:
        self.name = name

    def __call__(self, member: Any) -> Any:
        return attach_markers(member, self)

    def __repr__(self) -> str:
        return self.name


Id = Marker("Id")
"""Indicates that this column is the primary id."""

Nullable = Marker("Nullable")
"""Indicates that this column may be null."""

AutoIncrement = Marker("AutoIncrement")
"""Indicates that this column is auto incremented by the database.

Only meaningful on the id column, and only on numeric fields.
"""


@dataclass(frozen=True)
class Column:
    """Marks a field as a column, optionally overriding its name."""

    name: str | None = None

    def __post_init__(self) -> None:
        # bare @Column applied to a method lands here with the function as name
        if callable(self.name):
            raise DefinitionError(
                f"Functions as columns are unsupported: {getattr(self.name, '__qualname__', self.name)!s}"
            )
        if self.name is not None and not isinstance(self.name, str):
            raise DefinitionError(
                f"Column name must be a string, got {type(self.name).__name__}"
            )

    def __call__(self, member: Any) -> Any:
        return attach_markers(member, self)


@dataclass(frozen=True)
class MaxLength:
    """Bounds the length of a string, bytes, or sequence field."""

    max_length: int

    def __post_init__(self) -> None:
        if isinstance(self.max_length, bool) or not isinstance(self.max_length, int) or self.max_length < 0:
            raise DefinitionError(
                f"MaxLength must be a non-negative integer, got {self.max_length!r}"
            )

    def __call__(self, member: Any) -> Any:
        return attach_markers(member, self)


def is_column_marker(marker: Any) -> bool:
    """Whether ``marker`` makes a member a column (``Id`` or ``Column``)."""
    return marker is Id or marker is Column or isinstance(marker, Column)


def column_name_override(markers: tuple[Any, ...]) -> str | None:
    """The explicit column name given by a ``Column("name")`` marker, if any."""
    for marker in markers:
        if isinstance(marker, Column) and marker.name is not None:
            return marker.name
    return None


__all__ = [
    "AutoIncrement",
    "Column",
    "Id",
    "MaxLength",
    "Marker",
    "Nullable",
    "attach_markers",
    "column_name_override",
    "is_column_marker",
    "markers_of",
]
