"""Column descriptors and their bound field accessors.

Each mapped field gets one :class:`ColumnInfo`.  Besides the SQL-facing
metadata it owns a :class:`FieldAccessor` bound to one attribute of one
entity type, and exposes the pair of operations the lifecycle engine uses
to touch entity fields:

- ``info.get(instance) -> Value``: read the field, enforcing NOT NULL and
  ``MaxLength`` before anything is sent to the database
- ``info.set(instance, value)``: coerce a :class:`Value` to the field's
  declared type and assign it

No other code in activerow reads or writes entity attributes directly.

Architecture::

    ColumnInfo (frozen)
    ├── name, field, is_id, not_null, auto_increment, max_length
    └── accessor: FieldAccessor
            ├── field_type      unwrapped annotation (Optional stripped)
            ├── admits_none     annotation allows None
            ├── read(instance)  -> raw attribute value
            └── write(instance, Value)

Tags:
    column, accessor, descriptor, constraints, activerow
"""

from __future__ import annotations

import types
from collections.abc import Sized
from dataclasses import dataclass
from dataclasses import field as dataclass_field
from decimal import Decimal
from typing import Annotated, Any, Union, get_args, get_origin

from activerow.core.errors import MaxLengthError, NullValueError
from activerow.core.values import Value

UNBOUNDED = -1


def unwrap_annotation(annotation: Any) -> tuple[Any, bool]:
    """Strip ``Annotated`` and ``Optional`` from a field annotation.

    Returns ``(base_type, admits_none)``.  ``X | None`` with a single
    non-None member unwraps to ``X``; wider unions are returned unchanged.
    """
    if get_origin(annotation) is Annotated:
        annotation = get_args(annotation)[0]

    if get_origin(annotation) is Union or isinstance(annotation, types.UnionType):
        args = get_args(annotation)
        members = [arg for arg in args if arg is not type(None)]
        admits_none = len(members) != len(args)
        if len(members) == 1:
            return members[0], admits_none
        return annotation, admits_none

    if annotation is Any or annotation is object or annotation is Value:
        return annotation, True
    return annotation, annotation is None or annotation is type(None)


def is_numeric_type(tp: Any) -> bool:
    """Whether ``tp`` is a numeric field type (``bool`` excluded)."""
    return isinstance(tp, type) and issubclass(tp, (int, float, Decimal)) and not issubclass(tp, bool)


class FieldAccessor:
    """Reads and writes one attribute of one entity type.

    The accessor is created once per column when the type's metadata is
    derived and shared by every instance of that type.
    """

    __slots__ = ("owner", "field", "field_type", "admits_none")

    def __init__(self, owner: type, field: str, field_type: Any, admits_none: bool) -> None:
        self.owner = owner
        self.field = field
        self.field_type = field_type
        self.admits_none = admits_none

    @property
    def passthrough(self) -> bool:
        """Field is typed as a generic value; no coercion on write."""
        return self.field_type is Value or self.field_type is Any or self.field_type is object

    def read(self, instance: Any) -> Any:
        return getattr(instance, self.field, None)

    def write(self, instance: Any, value: Value) -> None:
        if self.passthrough:
            converted = value if self.field_type is Value else value.unwrap()
        else:
            converted = value.coerce(self.field_type, nullable=self.admits_none)
        setattr(instance, self.field, converted)

    def __repr__(self) -> str:
        return f"FieldAccessor({self.owner.__name__}.{self.field})"


@dataclass(frozen=True)
class ColumnInfo:
    """Metadata for one entity field / table column pair."""

    name: str
    """SQL-facing column name."""

    field: str
    """Python attribute name."""

    is_id: bool = False
    not_null: bool = True
    auto_increment: bool = False

    max_length: int = UNBOUNDED
    """Length bound for text, bytes, and sequences; ``-1`` is unbounded."""

    accessor: FieldAccessor | None = dataclass_field(default=None, repr=False, compare=False)

    def get(self, instance: Any) -> Value:
        """Gets the value of the field bound to this column."""
        raw = self.accessor.read(instance)

        if raw is None or (isinstance(raw, Value) and raw.is_null):
            if self.not_null and not self.auto_increment:
                raise NullValueError(
                    f"Non-nullable value of {self.field} was null."
                ).with_context(column=self.name, field=self.field)
            return Value.of(raw)

        if self.max_length != UNBOUNDED and _length_of(raw) > self.max_length:
            raise MaxLengthError(
                f"Value of {self.field} exceeds max length."
            ).with_context(
                column=self.name, field=self.field, max_length=self.max_length
            )

        return Value.of(raw)

    def set(self, instance: Any, value: Any) -> None:
        """Sets the value of the field bound to this column."""
        self.accessor.write(instance, Value.of(value))


def _length_of(raw: Any) -> int:
    if isinstance(raw, Value):
        return len(raw) if raw.has_length else -1
    if isinstance(raw, Sized):
        return len(raw)
    return -1


__all__ = [
    "UNBOUNDED",
    "ColumnInfo",
    "FieldAccessor",
    "is_numeric_type",
    "unwrap_annotation",
]
