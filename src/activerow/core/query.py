"""Query builder algebra.

Four statement builders and one predicate builder, each assembling SQL text
plus the ordered parameters that go with it::

    SelectBuilder().select(cols).from_(table)[.limit(n)].where(pred)
    InsertBuilder().insert(cols).into(table).value(v)...
    UpdateBuilder().update(table)[.limit(n)].set(col, v)....where(pred)
    DeleteBuilder().from_(table)[.limit(n)].where(pred)
    WhereBuilder().equals(col, v)...   /   .raw("`a`=? AND `b`=?", [x, y])

Parameter ordering
------------------
Builders do not concatenate strings as they go.  They accumulate *parts*:
literal text, identifiers, limits, and parameters.  A parameter part holds
its value, so a placeholder and the value it binds are always appended by
the same call and can never drift apart.  :meth:`QueryBuilder.render`
walks the parts once, asking the dialect to spell each identifier and
placeholder, and numbers placeholders by their position in the final
parameter list.  The parameters of a statement are therefore, by
construction, in the order their placeholders appear in the SQL text.

Examples:
    >>> q = SelectBuilder().select(["id", "name"]).from_("users").limit(1)
    >>> q = q.where(WhereBuilder().equals("id", 7))
    >>> q.build()
    'SELECT `id`, `name` FROM `users` WHERE `id`=%s LIMIT 1'
    >>> q.parameters
    [Value(INT, 7)]

Tags:
    query-builder, sql, parameters, injection-safe, activerow
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, NamedTuple, Union

from activerow.core.dialect import DEFAULT_DIALECT, Dialect
from activerow.core.errors import QueryBuildError
from activerow.core.values import Value

RAW_MARKER = "?"


# =========================================================================
# Parts
# =========================================================================


@dataclass(frozen=True)
class Ident:
    """A table or column name, quoted by the dialect at render time."""

    name: str


@dataclass(frozen=True)
class Param:
    """One bound parameter; renders as the dialect's placeholder."""

    value: Value


@dataclass(frozen=True)
class Limit:
    """A ``LIMIT`` clause; rendered (or dropped) by the dialect."""

    count: int
    write: bool = False


Part = Union[str, Ident, Param, Limit]


class Statement(NamedTuple):
    """A rendered statement: SQL text and its ordered parameters."""

    sql: str
    parameters: tuple[Value, ...]

    def args(self) -> tuple[Any, ...]:
        """Parameters unwrapped to plain Python objects for a DB-API driver."""
        return tuple(p.unwrap() for p in self.parameters)


def render_parts(parts: Sequence[Part], dialect: Dialect | None = None) -> Statement:
    """Render a part list into a :class:`Statement`."""
    dialect = dialect or DEFAULT_DIALECT
    sql: list[str] = []
    params: list[Value] = []
    for part in parts:
        if isinstance(part, str):
            sql.append(part)
        elif isinstance(part, Ident):
            sql.append(dialect.quote(part.name))
        elif isinstance(part, Param):
            sql.append(dialect.placeholder(len(params)))
            params.append(part.value)
        elif isinstance(part, Limit):
            sql.append(dialect.limit(part.count, write=part.write))
        else:
            raise QueryBuildError(f"Unknown query part {part!r}")
    return Statement("".join(sql), tuple(params))


def _join(items: Iterable[Sequence[Part]], separator: str) -> list[Part]:
    out: list[Part] = []
    for i, item in enumerate(items):
        if i:
            out.append(separator)
        out.extend(item)
    return out


def _names(columns: Iterable[str] | str) -> list[str]:
    if isinstance(columns, str):
        return [columns]
    return list(columns)


def _split_markers(fragment: str) -> list[str]:
    """Split ``fragment`` on ``?`` markers that sit outside quotes."""
    pieces: list[str] = []
    start = 0
    quote: str | None = None
    for i, ch in enumerate(fragment):
        if quote is not None:
            if ch == quote:
                quote = None
        elif ch in "'\"`":
            quote = ch
        elif ch == RAW_MARKER:
            pieces.append(fragment[start:i])
            start = i + 1
    if quote is not None:
        raise QueryBuildError(f"Unterminated {quote} quote in condition {fragment!r}")
    pieces.append(fragment[start:])
    return pieces


def _check_limit(count: int) -> int:
    if isinstance(count, bool) or not isinstance(count, int) or count < 0:
        raise QueryBuildError(f"limit must be a non-negative integer, got {count!r}")
    return count


# =========================================================================
# Base
# =========================================================================


class QueryBuilder:
    """Base class for every builder.

    Subclasses implement :meth:`parts`; rendering and parameter access are
    shared.
    """

    def parts(self) -> list[Part]:
        raise NotImplementedError

    def render(self, dialect: Dialect | None = None) -> Statement:
        return render_parts(self.parts(), dialect)

    def build(self, dialect: Dialect | None = None) -> str:
        """SQL text for ``dialect`` (MySQL when omitted)."""
        return self.render(dialect).sql

    @property
    def parameters(self) -> list[Value]:
        """Bound values in placeholder order."""
        return [part.value for part in self.parts() if isinstance(part, Param)]


# =========================================================================
# Predicate
# =========================================================================


class WhereBuilder(QueryBuilder):
    """Conjunctive predicate builder.

    Conditions are joined with ``AND``.  There is deliberately no ``OR``,
    range, or ``IN`` support.
    """

    def __init__(self) -> None:
        self._conditions: list[list[Part]] = []

    def equals(self, column: str, value: Any) -> WhereBuilder:
        """Append ``column=?`` with ``value`` as its parameter."""
        self._conditions.append([Ident(column), "=", Param(Value.of(value))])
        return self

    def conditions(self, mapping: Mapping[str, Any]) -> WhereBuilder:
        """Append one equality per mapping entry, in mapping order."""
        for column, value in mapping.items():
            self.equals(column, value)
        return self

    def raw(self, fragment: str, values: Sequence[Any] = ()) -> WhereBuilder:
        """Append a pre-joined condition using ``?`` as the placeholder marker.

        The fragment is emitted verbatim apart from its markers, so it must
        only ever be built from trusted identifiers.  A ``?`` inside a quoted
        literal or identifier (single, double or backtick quoted) is text, not a
        marker.
        """
        pieces = _split_markers(fragment)
        if len(pieces) - 1 != len(values):
            raise QueryBuildError(
                f"Condition has {len(pieces) - 1} placeholders but {len(values)} values"
            )
        parts: list[Part] = [pieces[0]]
        for value, piece in zip(values, pieces[1:]):
            parts.append(Param(Value.of(value)))
            parts.append(piece)
        self._conditions.append(parts)
        return self

    @property
    def empty(self) -> bool:
        return not self._conditions

    def parts(self) -> list[Part]:
        return _join(self._conditions, " AND ")


def _predicate(predicate: WhereBuilder | str | None, values: Sequence[Any]) -> WhereBuilder | None:
    if predicate is None:
        return None
    if isinstance(predicate, WhereBuilder):
        if values:
            raise QueryBuildError("values are only accepted with a raw condition string")
        return predicate
    return WhereBuilder().raw(predicate, values)


class _Filtered(QueryBuilder):
    """Shared ``WHERE``/``LIMIT`` handling for select, update, and delete."""

    _write = False

    def __init__(self) -> None:
        self._table: str | None = None
        self._limit: int | None = None
        self._where: WhereBuilder | None = None

    def limit(self, count: int):
        self._limit = _check_limit(count)
        return self

    def where(self, predicate: WhereBuilder | str | None, values: Sequence[Any] = ()):
        """Attach a predicate builder, or a raw condition plus its values."""
        self._where = _predicate(predicate, values)
        return self

    def _require_table(self) -> str:
        if not self._table:
            raise QueryBuildError(f"{type(self).__name__} has no table")
        return self._table

    def _tail(self) -> list[Part]:
        parts: list[Part] = []
        if self._where is not None and not self._where.empty:
            parts.append(" WHERE ")
            parts.extend(self._where.parts())
        if self._limit is not None:
            parts.append(Limit(self._limit, write=self._write))
        return parts


# =========================================================================
# Statements
# =========================================================================


class SelectBuilder(_Filtered):
    """``SELECT <columns> FROM <table> [WHERE ...] [LIMIT n]``"""

    def __init__(self) -> None:
        super().__init__()
        self._columns: list[str] = []

    def select(self, columns: Iterable[str] | str) -> SelectBuilder:
        self._columns = _names(columns)
        return self

    def from_(self, table: str) -> SelectBuilder:
        self._table = table
        return self

    def parts(self) -> list[Part]:
        table = self._require_table()
        parts: list[Part] = ["SELECT "]
        if self._columns:
            parts.extend(_join(([Ident(c)] for c in self._columns), ", "))
        else:
            parts.append("*")
        parts.extend([" FROM ", Ident(table)])
        parts.extend(self._tail())
        return parts

    @staticmethod
    def last_insert_id() -> LastInsertIdQuery:
        """Query for the identity generated by the last INSERT."""
        return LastInsertIdQuery()


class LastInsertIdQuery(QueryBuilder):
    """Dialect-specific "fetch last generated identity" query."""

    def parts(self) -> list[Part]:
        return []

    def render(self, dialect: Dialect | None = None) -> Statement:
        return Statement((dialect or DEFAULT_DIALECT).last_insert_id(), ())


class InsertBuilder(QueryBuilder):
    """``INSERT INTO <table> (<columns>) VALUES (<values>)``"""

    def __init__(self) -> None:
        self._table: str | None = None
        self._columns: list[str] = []
        self._values: list[Value] = []

    def insert(self, columns: Iterable[str] | str) -> InsertBuilder:
        self._columns = _names(columns)
        return self

    def into(self, table: str) -> InsertBuilder:
        self._table = table
        return self

    def value(self, value: Any) -> InsertBuilder:
        """Append the value for the next column, in column order."""
        self._values.append(Value.of(value))
        return self

    def parts(self) -> list[Part]:
        if not self._table:
            raise QueryBuildError("InsertBuilder has no table")
        if not self._columns:
            raise QueryBuildError("InsertBuilder has no columns")
        if len(self._values) != len(self._columns):
            raise QueryBuildError(
                f"InsertBuilder has {len(self._columns)} columns but {len(self._values)} values"
            )
        parts: list[Part] = ["INSERT INTO ", Ident(self._table), " ("]
        parts.extend(_join(([Ident(c)] for c in self._columns), ", "))
        parts.append(") VALUES (")
        parts.extend(_join(([Param(v)] for v in self._values), ", "))
        parts.append(")")
        return parts


class UpdateBuilder(_Filtered):
    """``UPDATE <table> SET <col>=? ... [WHERE ...] [LIMIT n]``"""

    _write = True

    def __init__(self) -> None:
        super().__init__()
        self._assignments: list[list[Part]] = []

    def update(self, table: str) -> UpdateBuilder:
        self._table = table
        return self

    def set(self, column: str, value: Any) -> UpdateBuilder:
        self._assignments.append([Ident(column), "=", Param(Value.of(value))])
        return self

    def parts(self) -> list[Part]:
        table = self._require_table()
        if not self._assignments:
            raise QueryBuildError("UpdateBuilder has no assignments")
        parts: list[Part] = ["UPDATE ", Ident(table), " SET "]
        parts.extend(_join(self._assignments, ", "))
        parts.extend(self._tail())
        return parts


class DeleteBuilder(_Filtered):
    """``DELETE FROM <table> [WHERE ...] [LIMIT n]``"""

    _write = True

    def from_(self, table: str) -> DeleteBuilder:
        self._table = table
        return self

    def parts(self) -> list[Part]:
        table = self._require_table()
        parts: list[Part] = ["DELETE FROM ", Ident(table)]
        parts.extend(self._tail())
        return parts


__all__ = [
    "DeleteBuilder",
    "Ident",
    "InsertBuilder",
    "LastInsertIdQuery",
    "Limit",
    "Param",
    "QueryBuilder",
    "SelectBuilder",
    "Statement",
    "UpdateBuilder",
    "WhereBuilder",
    "render_parts",
]
