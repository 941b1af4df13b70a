"""Tests for Command and RowSet."""

from __future__ import annotations

import sqlite3
from unittest.mock import MagicMock, patch

import pytest

from activerow.core.command import Command, RowSet
from activerow.core.dialect import get_dialect
from activerow.core.errors import QueryBuildError
from activerow.core.query import SelectBuilder, WhereBuilder
from activerow.core.values import NULL, Value


@pytest.fixture
def conn(sqlite_provider):
    c = sqlite_provider.acquire()
    yield c
    sqlite_provider.release(c)


class TestRowSet:
    def test_empty(self):
        rows = RowSet(["a"], [])
        assert rows.empty
        assert len(rows) == 0

    def test_indexing_and_mappings(self):
        rows = RowSet(["a", "b"], [[Value.of(1), NULL]])
        assert rows[0] == (Value.of(1), NULL)
        assert rows.scalar() == Value.of(1)
        assert list(rows.mappings()) == [{"a": Value.of(1), "b": NULL}]


class TestCommandOnSQLite:
    def test_prepare_bind_execute_rows(self, conn):
        rows = Command(conn, get_dialect("sqlite")).prepare("SELECT ? AS n, ? AS s").bind([1, "x"]).execute_rows()
        assert rows.column_names == ("n", "s")
        assert rows[0] == (Value.of(1), Value.of("x"))

    def test_execute_statement(self, conn):
        conn.execute("CREATE TABLE t (a INTEGER)")
        conn.execute("INSERT INTO t VALUES (1), (2)")
        stmt = SelectBuilder().select("a").from_("t").where(WhereBuilder().equals("a", 2)).render(get_dialect("sqlite"))
        rows = Command(conn).execute(stmt).execute_rows()
        assert [r[0].payload for r in rows] == [2]

    def test_execute_count(self, conn):
        conn.execute("CREATE TABLE t (a INTEGER)")
        conn.execute("INSERT INTO t VALUES (1), (1), (2)")
        count = Command(conn).prepare("DELETE FROM t WHERE a = ?").bind([1]).execute_count()
        assert count == 2

    def test_prepare_clears_params(self, conn):
        cmd = Command(conn).prepare("SELECT ?").bind([1])
        cmd.prepare("SELECT 1")
        assert cmd.parameters == ()

    def test_execute_before_prepare(self, conn):
        with pytest.raises(QueryBuildError):
            Command(conn).execute_rows()


class TestCommandCommit:
    def test_autocommit_after_count(self):
        conn = MagicMock()
        conn.cursor.return_value.rowcount = 1
        Command(conn, autocommit=True).prepare("DELETE").execute_count()
        conn.commit.assert_called_once()

    def test_no_commit_without_autocommit(self):
        conn = MagicMock()
        conn.cursor.return_value.rowcount = 1
        Command(conn, autocommit=False).prepare("DELETE").execute_count()
        conn.commit.assert_not_called()

    def test_cursor_closed_on_error(self):
        conn = MagicMock()
        cursor = conn.cursor.return_value
        cursor.execute.side_effect = RuntimeError("boom")
        with pytest.raises(RuntimeError):
            Command(conn).prepare("SELECT 1").execute_rows()
        cursor.close.assert_called_once()

    def test_args_are_unwrapped(self):
        conn = MagicMock()
        conn.cursor.return_value.description = [("a",)]
        conn.cursor.return_value.fetchall.return_value = []
        Command(conn).prepare("SELECT %s").bind([Value.of([1, 2])]).execute_rows()
        conn.cursor.return_value.execute.assert_called_once_with("SELECT %s", ([1, 2],))


class TestCommandFailureLogging:
    def test_driver_error_is_logged_with_category(self, conn):
        with patch("activerow.core.command.logger") as log:
            with pytest.raises(sqlite3.OperationalError):
                Command(conn, get_dialect("sqlite")).prepare("SELECT * FROM missing").execute_rows()

        log.warning.assert_called_once()
        event, fields = log.warning.call_args.args[0], log.warning.call_args.kwargs
        assert event == "statement_failed"
        assert fields["error"] == "OperationalError"
        assert fields["category"] == "DATABASE"
        assert fields["retryable"] is True
        assert fields["params"] == 0

    def test_integrity_error_is_not_retryable(self, conn):
        conn.execute("CREATE TABLE uniq (a INTEGER PRIMARY KEY)")
        conn.execute("INSERT INTO uniq VALUES (1)")
        with patch("activerow.core.command.logger") as log:
            with pytest.raises(sqlite3.IntegrityError):
                Command(conn).prepare("INSERT INTO uniq VALUES (?)").bind([1]).execute_count()

        fields = log.warning.call_args.kwargs
        assert (fields["category"], fields["retryable"]) == ("DATABASE", False)

    def test_parameter_values_are_not_logged(self):
        conn = MagicMock()
        conn.cursor.return_value.execute.side_effect = RuntimeError("boom")
        with patch("activerow.core.command.logger") as log:
            with pytest.raises(RuntimeError):
                Command(conn).prepare("SELECT %s").bind(["secret"]).execute_rows()

        fields = log.warning.call_args.kwargs
        assert "secret" not in repr(fields)
        assert fields["category"] == "INTERNAL"
