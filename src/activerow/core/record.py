"""
Record base class and the lifecycle engine.

An entity is a class deriving from :class:`Record` whose fields carry column
markers.  The five lifecycle operations translate into builder statements,
run through a :class:`~activerow.core.command.Command` on a connection from
the bound provider, and bind result rows back through column accessors.

Manifesto:
    Mapping an entity should take one class statement, and using it one
    method call.  Everything between (table names, placeholder order,
    NOT NULL checks, last-insert-id lookups) is derived once from the
    class and never restated by the caller.

    - **Loud:** Zero rows is always a ``RecordException``; no ``None``
      sentinels, no silent no-ops
    - **Checked early:** NULL and length violations are raised by the read
      accessors before any SQL is sent
    - **Stateless:** No identity map, no session, no caching of instances

Architecture::

    User.get(7)
      │
      ├── metadata()            registry lookup (derived once per type)
      ├── query_for_get(7)      SelectBuilder ... WHERE `id`=? LIMIT 1
      ├── _connection()         provider.acquire() ... provider.release()
      │     └── Command(conn, dialect).execute(stmt).execute_rows()
      └── _bind(row)            cls.__new__(cls) + ColumnInfo.set() per column

    Operation     Statement                                         Zero rows
    ───────────   ───────────────────────────────────────────────   ─────────────────────
    get(key)      SELECT all FROM t WHERE id=? LIMIT 1              RecordNotFoundError
    find(**c)     SELECT all FROM t WHERE a=? AND b=?               RecordNotFoundError
    create()      INSERT INTO t (all) VALUES (...) [+ last id]      NoRowsAffectedError
    save(*cols)   UPDATE t SET c=?... WHERE id=? LIMIT 1            NoRowsAffectedError
    remove()      DELETE FROM t WHERE id=? LIMIT 1                  NoRowsAffectedError

Examples:
    >>> from typing import Annotated
    >>> from activerow import AutoIncrement, Column, Id, MaxLength, Record
    >>> class User(Record, table="users"):
    ...     id: Annotated[int | None, Id, AutoIncrement] = None
    ...     name: Annotated[str, Column, MaxLength(50)] = ""
    >>> Record.use(create_provider("sqlite:///app.db"))
    >>> user = User(name="ada")
    >>> user.create()
    >>> User.get(user.id).name
    'ada'
    >>> user.name = "grace"
    >>> user.save("name")
    >>> user.remove()

Guardrails:
    ❌ DON'T: Build SQL strings from entity values
    ✅ DO: Go through query_for_* so parameters stay bound

    ❌ DON'T: Expect ``get``/``find`` to return None on a miss
    ✅ DO: Catch ``RecordNotFoundError`` where a miss is expected

Tags:
    record, active-record, lifecycle, crud, orm, activerow

Doc-Types:
    - API Reference
    - Architecture Documentation
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from typing import Any, TypeVar

from activerow.core.command import Command, RowSet
from activerow.core.errors import (
    DefinitionError,
    NoConnectionError,
    NoRowsAffectedError,
    RecordException,
    RecordNotFoundError,
)
from activerow.core.logging import get_logger
from activerow.core.metadata import Metadata, metadata_registry
from activerow.core.protocols import Connection, ConnectionProvider
from activerow.core.query import (
    DeleteBuilder,
    InsertBuilder,
    QueryBuilder,
    SelectBuilder,
    UpdateBuilder,
    WhereBuilder,
)
from activerow.core.values import Value

logger = get_logger(__name__)

R = TypeVar("R", bound="Record")


class Record:
    """Base class for mapped entities.

    Class keywords:
        table: Table name (defaults to the class name)
        abstract: Shared base with no table of its own; never registered
        eager: Derive metadata when the class is defined (default ``True``)

    ``__init__`` accepts field values as keyword arguments.  Instances
    returned by :meth:`get` and :meth:`find` are built without calling
    ``__init__``.
    """

    __abstract__ = True
    __eager__ = True
    _provider = None

    def __init_subclass__(
        cls,
        *,
        table: str | None = None,
        abstract: bool = False,
        eager: bool | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init_subclass__(**kwargs)
        if table is not None:
            cls.__table__ = table
        cls.__abstract__ = abstract
        if eager is not None:
            cls.__eager__ = eager
        if not abstract and cls.__eager__:
            metadata_registry.get(cls)

    def __init__(self, **values: Any) -> None:
        fields = {info.field for info in type(self).metadata()}
        for name, value in values.items():
            if name not in fields:
                raise TypeError(f"{type(self).__name__}() got an unexpected keyword argument {name!r}")
            setattr(self, name, value)

    def __repr__(self) -> str:
        meta = type(self).metadata()
        shown = ", ".join(f"{info.field}={getattr(self, info.field, None)!r}" for info in meta)
        return f"{type(self).__name__}({shown})"

    # =====================================================================
    # Metadata
    # =====================================================================

    @classmethod
    def metadata(cls) -> Metadata:
        """This type's column registry (derived on first use)."""
        if cls.__dict__.get("__abstract__", False):
            raise DefinitionError(
                f"{cls.__name__} is abstract and has no table."
            ).with_context(entity=cls.__name__)
        return metadata_registry.get(cls)

    @classmethod
    def get_table_name(cls) -> str:
        """Returns the name of the table for this type."""
        return cls.metadata().table

    @classmethod
    def get_id_column(cls) -> str:
        """Returns the name of the primary id column."""
        return cls.metadata().id_column

    @classmethod
    def get_column_names(cls) -> tuple[str, ...]:
        """Returns a list of column names."""
        return cls.metadata().column_names()

    @classmethod
    def column_values(cls, instance: Record) -> list[Value]:
        """Returns a list of column values, for the given instance."""
        return cls.metadata().values(instance)

    # =====================================================================
    # Connection
    # =====================================================================

    @classmethod
    def use(cls, provider: ConnectionProvider | None) -> None:
        """Bind ``provider`` to this type and its subclasses.

        ``Record.use(p)`` sets the default for every entity; binding on an
        entity overrides it.  ``use(None)`` removes this type's binding.
        """
        cls._provider = provider

    @classmethod
    def get_provider(cls) -> ConnectionProvider:
        """Nearest provider bound on this type's MRO."""
        for klass in cls.__mro__:
            provider = klass.__dict__.get("_provider")
            if provider is not None:
                return provider
        raise NoConnectionError(
            "Record has no database connection."
        ).with_context(entity=cls.__name__)

    @classmethod
    @contextmanager
    def _connection(cls) -> Iterator[_Session]:
        provider = cls.get_provider()
        conn = provider.acquire()
        try:
            yield _Session(conn, provider)
        finally:
            provider.release(conn)

    # =====================================================================
    # Queries
    # =====================================================================

    @classmethod
    def query_for_get(cls, key: Any) -> SelectBuilder:
        """Creates a query for the get() operation."""
        meta = cls.metadata()
        return (
            SelectBuilder()
            .select(meta.column_names())
            .from_(meta.table)
            .limit(1)
            .where(WhereBuilder().equals(meta.id_column, key))
        )

    @classmethod
    def query_for_find(cls, conditions: Mapping[str, Any]) -> SelectBuilder:
        """Creates a query for the find() operation."""
        meta = cls.metadata()
        if not conditions:
            raise RecordException(
                f"find() on {cls.__name__} needs at least one condition."
            ).with_context(entity=cls.__name__, table=meta.table, operation="find")
        for name in conditions:
            meta.column(name)
        return (
            SelectBuilder()
            .select(meta.column_names())
            .from_(meta.table)
            .where(WhereBuilder().conditions(conditions))
        )

    @classmethod
    def query_for_create(cls, instance: Record) -> InsertBuilder:
        """Creates a query for the create() operation."""
        meta = cls.metadata()
        query = InsertBuilder().insert(meta.column_names()).into(meta.table)
        for value in meta.values(instance):
            query.value(value)
        return query

    @classmethod
    def query_for_save(cls, instance: Record, columns: Sequence[str] = ()) -> UpdateBuilder:
        """Creates a query for the save() operation.

        ``columns`` limits the SET list; all columns are written when empty.
        """
        meta = cls.metadata()
        if isinstance(columns, str):
            columns = (columns,)
        infos = [meta.column(name) for name in columns] if columns else meta.columns()
        query = UpdateBuilder().update(meta.table).limit(1)
        for info in infos:
            query.set(info.name, info.get(instance))
        return query.where(WhereBuilder().equals(meta.id_column, meta.id.get(instance)))

    @classmethod
    def query_for_remove(cls, instance: Record) -> DeleteBuilder:
        """Creates a query for the remove() operation."""
        meta = cls.metadata()
        return (
            DeleteBuilder()
            .from_(meta.table)
            .limit(1)
            .where(WhereBuilder().equals(meta.id_column, meta.id.get(instance)))
        )

    # =====================================================================
    # Lifecycle
    # =====================================================================

    @classmethod
    def get(cls: type[R], key: Any) -> R:
        """Gets an instance of this type by its primary id.

        Raises:
            RecordNotFoundError: No row has that id.
        """
        meta = cls.metadata()
        query = cls.query_for_get(key)
        with cls._connection() as session:
            rows = session.rows(query)

        if rows.empty:
            logger.info("record_not_found", entity=cls.__name__, table=meta.table, operation="get")
            raise RecordNotFoundError(
                f"No records found for {meta.table} at {key}"
            ).with_context(entity=cls.__name__, table=meta.table, operation="get")
        return cls._bind(meta, rows.column_names, rows.first())

    @classmethod
    def find(cls: type[R], conditions: Mapping[str, Any] | None = None, /, **kwargs: Any) -> list[R]:
        """Finds every instance whose columns equal the given values.

        Conditions may be passed as a mapping, as keywords, or both::

            User.find({"name": "ada"})
            User.find(name="ada", active=True)

        Raises:
            RecordException: No conditions, or an unknown column name.
            RecordNotFoundError: No rows matched.
        """
        criteria = dict(conditions or {})
        criteria.update(kwargs)

        meta = cls.metadata()
        query = cls.query_for_find(criteria)
        with cls._connection() as session:
            rows = session.rows(query)

        if rows.empty:
            logger.info("record_not_found", entity=cls.__name__, table=meta.table, operation="find")
            raise RecordNotFoundError(
                f"No records found for {meta.table} at {criteria}"
            ).with_context(entity=cls.__name__, table=meta.table, operation="find")
        return [cls._bind(meta, rows.column_names, row) for row in rows]

    def create(self) -> None:
        """Creates this object in the database, if it does not yet exist.

        An auto-increment id is written back into the instance.
        """
        cls = type(self)
        meta = cls.metadata()
        query = cls.query_for_create(self)
        with cls._connection() as session:
            count = session.count(query)
            if count < 1:
                raise NoRowsAffectedError(
                    f"No records were created for {cls.__name__} by create()."
                ).with_context(entity=cls.__name__, table=meta.table, operation="create")

            if meta.id.auto_increment:
                rows = session.rows(SelectBuilder.last_insert_id())
                meta.id.set(self, rows.scalar())

    def save(self, *columns: str | Iterable[str]) -> None:
        """Saves this object to the database, if it already exists.

        Optionally specifies the column names to be updated, either as
        arguments or as one sequence: ``save("a", "b")`` or ``save(["a", "b"])``.
        """
        if len(columns) == 1 and not isinstance(columns[0], str) and isinstance(columns[0], Iterable):
            columns = tuple(columns[0])
        cls = type(self)
        meta = cls.metadata()
        query = cls.query_for_save(self, columns)
        with cls._connection() as session:
            count = session.count(query)
        if count < 1:
            raise NoRowsAffectedError(
                f"No records were updated for {cls.__name__} by save()."
            ).with_context(entity=cls.__name__, table=meta.table, operation="save")

    def remove(self) -> None:
        """Removes this object from the database, if it already exists."""
        cls = type(self)
        meta = cls.metadata()
        query = cls.query_for_remove(self)
        with cls._connection() as session:
            count = session.count(query)
        if count < 1:
            raise NoRowsAffectedError(
                f"No records were removed for {cls.__name__} by remove()."
            ).with_context(entity=cls.__name__, table=meta.table, operation="remove")

    # =====================================================================
    # Binding
    # =====================================================================

    @classmethod
    def _bind(cls: type[R], meta: Metadata, names: Sequence[str], row: Sequence[Value]) -> R:
        instance = cls.__new__(cls)
        for name, value in zip(names, row):
            meta.column(name).set(instance, value)
        return instance


class _Session:
    """One acquired connection plus the provider it came from."""

    __slots__ = ("conn", "provider")

    def __init__(self, conn: Connection, provider: ConnectionProvider):
        self.conn = conn
        self.provider = provider

    def _command(self, query: QueryBuilder) -> Command:
        command = Command(self.conn, self.provider.dialect, autocommit=self.provider.autocommit)
        return command.execute(query.render(self.provider.dialect))

    def rows(self, query: QueryBuilder) -> RowSet:
        return self._command(query).execute_rows()

    def count(self, query: QueryBuilder) -> int:
        return self._command(query).execute_count()


# =========================================================================
# Table decorator
# =========================================================================


def table(name_or_cls: str | type | None = None):
    """Class decorator naming an entity's table.

    ``@table("users")`` uses ``users``; bare ``@table`` uses the class name.
    Equivalent to the ``table=`` class keyword, which is preferred.
    """

    def apply(cls: type, name: str) -> type:
        cls.__table__ = name
        metadata_registry.discard(cls)
        if issubclass(cls, Record) and not cls.__dict__.get("__abstract__", False) and cls.__eager__:
            metadata_registry.get(cls)
        return cls

    if isinstance(name_or_cls, type):
        return apply(name_or_cls, name_or_cls.__name__)
    if name_or_cls is None:
        return lambda cls: apply(cls, cls.__name__)
    if not isinstance(name_or_cls, str):
        raise DefinitionError(f"table name must be a string, got {type(name_or_cls).__name__}")
    return lambda cls: apply(cls, name_or_cls)


def register(cls: type[R]) -> Metadata:
    """Derive (or fetch) ``cls``'s metadata now."""
    return metadata_registry.get(cls)


__all__ = [
    "Record",
    "register",
    "table",
]
