"""Prepared-statement execution on one acquired connection.

``Command`` is the prepare / bind / execute surface the lifecycle engine
talks to.  It owns a cursor for the duration of one statement and decodes
results into :class:`~activerow.core.values.Value` rows so that nothing
above it sees driver row types.

Examples:
    >>> cmd = Command(conn, get_dialect("sqlite"))
    >>> rows = cmd.prepare("SELECT ? AS n").bind([Value.of(1)]).execute_rows()
    >>> rows.column_names, rows[0]
    (('n',), (Value(INT, 1),))
    >>> cmd.execute(statement)          # Statement from a builder
    >>> cmd.execute_count()             # rows affected

Tags:
    command, execution, prepared-statement, rowset, activerow
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from typing import Any

from activerow.core.dialect import DEFAULT_DIALECT, Dialect
from activerow.core.errors import QueryBuildError, categorize_error, is_retryable
from activerow.core.logging import get_logger
from activerow.core.protocols import Connection
from activerow.core.query import Statement
from activerow.core.values import Value, wrap_all

logger = get_logger(__name__)


class RowSet:
    """Rows returned by a query, decoded to typed values."""

    __slots__ = ("column_names", "rows")

    def __init__(self, column_names: Sequence[str], rows: Sequence[Sequence[Value]]):
        self.column_names: tuple[str, ...] = tuple(column_names)
        self.rows: tuple[tuple[Value, ...], ...] = tuple(tuple(row) for row in rows)

    @property
    def empty(self) -> bool:
        return not self.rows

    def first(self) -> tuple[Value, ...]:
        """First row; ``IndexError`` when empty."""
        return self.rows[0]

    def scalar(self) -> Value:
        """First column of the first row."""
        return self.rows[0][0]

    def mappings(self) -> Iterator[dict[str, Value]]:
        """Yield each row as ``{column: Value}``."""
        for row in self.rows:
            yield dict(zip(self.column_names, row))

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[tuple[Value, ...]]:
        return iter(self.rows)

    def __getitem__(self, index: int) -> tuple[Value, ...]:
        return self.rows[index]

    def __repr__(self) -> str:
        return f"RowSet(columns={list(self.column_names)}, rows={len(self.rows)})"


class Command:
    """One statement against one connection.

    Args:
        conn: A DB-API connection (see :class:`~activerow.core.protocols.Connection`)
        dialect: Dialect the SQL was rendered for (only used for logging)
        autocommit: Commit after :meth:`execute_count`
    """

    def __init__(self, conn: Connection, dialect: Dialect | None = None, *, autocommit: bool = True):
        self._conn = conn
        self._dialect = dialect or DEFAULT_DIALECT
        self._autocommit = autocommit
        self._sql: str | None = None
        self._params: tuple[Value, ...] = ()

    @property
    def sql(self) -> str | None:
        return self._sql

    @property
    def parameters(self) -> tuple[Value, ...]:
        return self._params

    def prepare(self, sql: str) -> Command:
        """Set the SQL text; clears previously bound parameters."""
        self._sql = sql
        self._params = ()
        return self

    def bind(self, params: Sequence[Any]) -> Command:
        """Bind parameters, in placeholder order."""
        self._params = tuple(wrap_all(params))
        return self

    def execute(self, statement: Statement) -> Command:
        """Prepare and bind a rendered builder statement in one step."""
        return self.prepare(statement.sql).bind(statement.parameters)

    def execute_rows(self) -> RowSet:
        """Run the statement and fetch every row."""
        cursor = self._run()
        try:
            names = [desc[0] for desc in (cursor.description or ())]
            rows = [wrap_all(row) for row in cursor.fetchall()]
        finally:
            cursor.close()
        self._log(rows=len(rows))
        return RowSet(names, rows)

    def execute_count(self) -> int:
        """Run the statement and return the number of affected rows."""
        cursor = self._run()
        try:
            count = cursor.rowcount
        finally:
            cursor.close()
        if self._autocommit:
            self._conn.commit()
        self._log(rowcount=count)
        return count

    def _run(self) -> Any:
        if self._sql is None:
            raise QueryBuildError("Command executed before prepare()")
        args = tuple(p.unwrap() for p in self._params)
        cursor = self._conn.cursor()
        try:
            cursor.execute(self._sql, args)
        except Exception as e:
            cursor.close()
            logger.warning(
                "statement_failed",
                sql=self._sql,
                params=len(self._params),
                dialect=self._dialect.name,
                error=type(e).__name__,
                category=categorize_error(e).value,
                retryable=is_retryable(e),
            )
            raise
        return cursor

    def _log(self, **result: Any) -> None:
        logger.debug(
            "statement_executed",
            sql=self._sql,
            params=len(self._params),
            dialect=self._dialect.name,
            **result,
        )


__all__ = [
    "Command",
    "RowSet",
]
