"""Typed values -- the universal currency between fields and SQL parameters.

A :class:`Value` is an explicit tagged union over the kinds a column can
carry.  Column accessors produce one when reading a field, query builders
bind them as parameters, and result rows come back as sequences of them.

Manifesto:
    Entity fields, driver parameters, and result cells disagree about types
    (SQLite hands back ``int`` for booleans and ``str`` for timestamps).
    Routing every crossing through one tagged type keeps the conversion
    rules in one place, where they can be read and tested.

    - **Explicit kinds:** ``ValueKind`` names every supported payload
    - **Explicit coercion:** ``Value.coerce()`` documents each conversion
    - **Null is a kind:** ``NULL`` is a value, not a missing value

Coercion rules (``Value.coerce(target)``):

    ========== ==========================================================
    Target     Accepted kinds
    ========== ==========================================================
    bool       BOOL; INT 0/1; TEXT ``true/false/1/0/yes/no`` (any case)
    int        BOOL, INT; FLOAT/DECIMAL with no fractional part; TEXT
               holding an integer literal
    float      BOOL, INT, FLOAT, DECIMAL; TEXT holding a number
    Decimal    BOOL, INT, FLOAT (via ``str``), DECIMAL; TEXT
    str        TEXT; BYTES (UTF-8); BOOL/INT/FLOAT/DECIMAL (``str()``);
               DATE/DATETIME (ISO 8601)
    bytes      BYTES; TEXT (UTF-8)
    date       DATE; DATETIME (date part); TEXT (ISO 8601)
    datetime   DATETIME; DATE (midnight); TEXT (ISO 8601)
    list/tuple ARRAY (items coerced to the element type when declared)
    Enum       payload passed to the enum constructor
    ========== ==========================================================

    NULL coerces to ``None`` when the target admits ``None``; otherwise it
    is a :class:`~activerow.core.errors.ValueCoercionError`.  Anything not in
    the table is a ``ValueCoercionError``.

Examples:
    >>> Value.of(42).kind
    <ValueKind.INT: 'INT'>
    >>> Value.of("42").coerce(int)
    42
    >>> Value.of([1, 2]).coerce(list[str])
    ['1', '2']

Tags:
    typed-value, variant, coercion, tagged-union, activerow

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import datetime as _dt
import types
from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Union, get_args, get_origin

from activerow.core.errors import ValueCoercionError

_TRUE_TEXT = frozenset({"true", "1", "yes", "on"})
_FALSE_TEXT = frozenset({"false", "0", "no", "off"})


class ValueKind(str, Enum):
    """Runtime tag of a :class:`Value`."""

    NULL = "NULL"
    BOOL = "BOOL"
    INT = "INT"
    FLOAT = "FLOAT"
    DECIMAL = "DECIMAL"
    TEXT = "TEXT"
    BYTES = "BYTES"
    DATE = "DATE"
    DATETIME = "DATETIME"
    ARRAY = "ARRAY"


_NUMERIC_KINDS = frozenset({ValueKind.BOOL, ValueKind.INT, ValueKind.FLOAT, ValueKind.DECIMAL})
_LENGTH_KINDS = frozenset({ValueKind.TEXT, ValueKind.BYTES, ValueKind.ARRAY})


@dataclass(frozen=True)
class Value:
    """A tagged scalar, array, or null payload.

    Build instances with :meth:`Value.of` rather than the constructor; it
    picks the kind from the payload's runtime type.  ``ARRAY`` payloads are
    tuples of ``Value``.
    """

    kind: ValueKind
    payload: Any = None

    # -- Construction --------------------------------------------------------

    @classmethod
    def of(cls, obj: Any) -> Value:
        """Wrap a Python object (pass-through if it already is a ``Value``)."""
        if isinstance(obj, Value):
            return obj
        if obj is None:
            return NULL
        # bool before int: bool is an int subclass
        if isinstance(obj, bool):
            return cls(ValueKind.BOOL, obj)
        if isinstance(obj, Enum):
            return cls.of(obj.value)
        if isinstance(obj, int):
            return cls(ValueKind.INT, obj)
        if isinstance(obj, float):
            return cls(ValueKind.FLOAT, obj)
        if isinstance(obj, Decimal):
            return cls(ValueKind.DECIMAL, obj)
        if isinstance(obj, str):
            return cls(ValueKind.TEXT, obj)
        if isinstance(obj, (bytes, bytearray, memoryview)):
            return cls(ValueKind.BYTES, bytes(obj))
        # datetime before date: datetime is a date subclass
        if isinstance(obj, _dt.datetime):
            return cls(ValueKind.DATETIME, obj)
        if isinstance(obj, _dt.date):
            return cls(ValueKind.DATE, obj)
        if isinstance(obj, (list, tuple)):
            return cls(ValueKind.ARRAY, tuple(cls.of(item) for item in obj))
        raise ValueCoercionError(
            f"Cannot wrap value of type {type(obj).__name__}",
            value=obj,
        )

    # -- Introspection -------------------------------------------------------

    @property
    def is_null(self) -> bool:
        return self.kind is ValueKind.NULL

    @property
    def is_numeric(self) -> bool:
        return self.kind in _NUMERIC_KINDS

    @property
    def has_length(self) -> bool:
        """Whether the payload exposes a length (text, bytes, arrays)."""
        return self.kind in _LENGTH_KINDS

    def __len__(self) -> int:
        if not self.has_length:
            raise TypeError(f"{self.kind.value} value has no length")
        return len(self.payload)

    def __bool__(self) -> bool:
        return not self.is_null

    def unwrap(self) -> Any:
        """Return the plain Python payload (arrays become lists)."""
        if self.kind is ValueKind.ARRAY:
            return [item.unwrap() for item in self.payload]
        return self.payload

    # -- Coercion ------------------------------------------------------------

    def coerce(self, target: Any, *, nullable: bool = True) -> Any:
        """Convert the payload to ``target`` following the module's rules."""
        if target is Any or target is object:
            return self.unwrap()
        if target is Value:
            return self

        origin = get_origin(target)
        if origin is Union or _is_union_type(target):
            members = [arg for arg in get_args(target) if arg is not type(None)]
            admits_none = len(members) != len(get_args(target))
            if self.is_null:
                return self._coerce_null(target, admits_none or nullable)
            return self._coerce_union(members, target)

        if self.is_null:
            return self._coerce_null(target, nullable)

        if origin in (list, tuple) or target in (list, tuple):
            return self._coerce_array(target, origin or target)

        if not isinstance(target, type):
            raise ValueCoercionError(
                f"Unsupported coercion target {target!r}", value=self.payload, target=target
            )
        if issubclass(target, Enum):
            return self._coerce_enum(target)
        if issubclass(target, bool):
            return self._to_bool()
        if issubclass(target, int):
            return self._to_int()
        if issubclass(target, float):
            return self._to_float()
        if issubclass(target, Decimal):
            return self._to_decimal()
        if issubclass(target, str):
            return self._to_str()
        if issubclass(target, bytes):
            return self._to_bytes()
        if issubclass(target, _dt.datetime):
            return self._to_datetime()
        if issubclass(target, _dt.date):
            return self._to_date()
        raise self._fail(target)

    def _coerce_null(self, target: Any, nullable: bool) -> None:
        if nullable:
            return None
        raise ValueCoercionError(
            f"Cannot coerce NULL to non-nullable {_type_name(target)}",
            value=None,
            target=target,
        )

    def _coerce_union(self, members: list[Any], target: Any) -> Any:
        # Exact kind match first, so Union[int, str] keeps "7" as text.
        for member in members:
            if get_origin(member) is None and isinstance(member, type) and isinstance(self.payload, member):
                if not (member is int and isinstance(self.payload, bool)):
                    return self.payload
        for member in members:
            try:
                return self.coerce(member, nullable=False)
            except ValueCoercionError:
                continue
        raise self._fail(target)

    def _coerce_array(self, target: Any, container: type) -> Any:
        if self.kind is not ValueKind.ARRAY:
            raise self._fail(target)
        args = get_args(target)
        if container is tuple and len(args) == 2 and args[1] is Ellipsis:
            item_type: Any = args[0]
        elif container is list and args:
            item_type = args[0]
        elif container is tuple and args:
            if len(args) != len(self.payload):
                raise self._fail(target)
            return tuple(item.coerce(arg) for item, arg in zip(self.payload, args))
        else:
            item_type = Any
        return container(item.coerce(item_type) for item in self.payload)

    def _coerce_enum(self, target: type[Enum]) -> Enum:
        try:
            return target(self.unwrap())
        except ValueError as e:
            raise ValueCoercionError(
                f"{self.payload!r} is not a valid {target.__name__}",
                value=self.payload,
                target=target,
                cause=e,
            ) from e

    def _to_bool(self) -> bool:
        if self.kind is ValueKind.BOOL:
            return self.payload
        if self.kind is ValueKind.INT and self.payload in (0, 1):
            return bool(self.payload)
        if self.kind is ValueKind.TEXT:
            text = self.payload.strip().lower()
            if text in _TRUE_TEXT:
                return True
            if text in _FALSE_TEXT:
                return False
        raise self._fail(bool)

    def _to_int(self) -> int:
        if self.kind in (ValueKind.BOOL, ValueKind.INT):
            return int(self.payload)
        if self.kind is ValueKind.FLOAT and self.payload.is_integer():
            return int(self.payload)
        if self.kind is ValueKind.DECIMAL and self.payload == self.payload.to_integral_value():
            return int(self.payload)
        if self.kind is ValueKind.TEXT:
            try:
                return int(self.payload.strip())
            except ValueError as e:
                raise self._fail(int, e) from e
        raise self._fail(int)

    def _to_float(self) -> float:
        if self.is_numeric:
            return float(self.payload)
        if self.kind is ValueKind.TEXT:
            try:
                return float(self.payload.strip())
            except ValueError as e:
                raise self._fail(float, e) from e
        raise self._fail(float)

    def _to_decimal(self) -> Decimal:
        if self.kind is ValueKind.DECIMAL:
            return self.payload
        if self.kind in (ValueKind.BOOL, ValueKind.INT):
            return Decimal(int(self.payload))
        if self.kind is ValueKind.FLOAT:
            return Decimal(str(self.payload))
        if self.kind is ValueKind.TEXT:
            try:
                return Decimal(self.payload.strip())
            except InvalidOperation as e:
                raise self._fail(Decimal, e) from e
        raise self._fail(Decimal)

    def _to_str(self) -> str:
        if self.kind is ValueKind.TEXT:
            return self.payload
        if self.kind is ValueKind.BYTES:
            try:
                return self.payload.decode("utf-8")
            except UnicodeDecodeError as e:
                raise self._fail(str, e) from e
        if self.is_numeric:
            return str(self.payload)
        if self.kind in (ValueKind.DATE, ValueKind.DATETIME):
            return self.payload.isoformat()
        raise self._fail(str)

    def _to_bytes(self) -> bytes:
        if self.kind is ValueKind.BYTES:
            return self.payload
        if self.kind is ValueKind.TEXT:
            return self.payload.encode("utf-8")
        raise self._fail(bytes)

    def _to_date(self) -> _dt.date:
        if self.kind is ValueKind.DATETIME:
            return self.payload.date()
        if self.kind is ValueKind.DATE:
            return self.payload
        if self.kind is ValueKind.TEXT:
            try:
                return _dt.date.fromisoformat(self.payload.strip()[:10])
            except ValueError as e:
                raise self._fail(_dt.date, e) from e
        raise self._fail(_dt.date)

    def _to_datetime(self) -> _dt.datetime:
        if self.kind is ValueKind.DATETIME:
            return self.payload
        if self.kind is ValueKind.DATE:
            return _dt.datetime.combine(self.payload, _dt.time())
        if self.kind is ValueKind.TEXT:
            try:
                return _dt.datetime.fromisoformat(self.payload.strip())
            except ValueError as e:
                raise self._fail(_dt.datetime, e) from e
        raise self._fail(_dt.datetime)

    def _fail(self, target: Any, cause: Exception | None = None) -> ValueCoercionError:
        return ValueCoercionError(
            f"Cannot coerce {self.kind.value} value {self.payload!r} to {_type_name(target)}",
            value=self.payload,
            target=target,
            cause=cause,
        )

    def __repr__(self) -> str:
        if self.is_null:
            return "Value(NULL)"
        return f"Value({self.kind.value}, {self.payload!r})"


NULL = Value(ValueKind.NULL)


def wrap_all(values: Sequence[Any]) -> list[Value]:
    """Wrap each item of ``values`` with :meth:`Value.of`."""
    return [Value.of(v) for v in values]


def _is_union_type(target: Any) -> bool:
    # PEP 604 unions (int | None)
    return isinstance(target, types.UnionType)


def _type_name(target: Any) -> str:
    return getattr(target, "__name__", None) or repr(target)


__all__ = [
    "NULL",
    "Value",
    "ValueKind",
    "wrap_all",
]
