"""Tests for ``activerow.core.adapters.mysql`` — MySQL adapter (driver mocked)."""

from __future__ import annotations

import sys
from unittest.mock import MagicMock, patch

import pytest

from activerow.core.adapters.mysql import MySQLAdapter
from activerow.core.errors import ConfigError, DatabaseConnectionError


@pytest.fixture
def fake_driver():
    """Install a fake ``mysql.connector`` package for the duration of a test."""
    pooling = MagicMock(name="pooling")
    client_flag = MagicMock(name="ClientFlag")
    client_flag.FOUND_ROWS = 2
    constants = MagicMock(name="constants", ClientFlag=client_flag)
    connector = MagicMock(name="connector", pooling=pooling, constants=constants)
    mysql = MagicMock(name="mysql", connector=connector)
    modules = {
        "mysql": mysql,
        "mysql.connector": connector,
        "mysql.connector.pooling": pooling,
        "mysql.connector.constants": constants,
    }
    with patch.dict(sys.modules, modules):
        yield pooling


class TestMySQLAdapterInit:
    def test_defaults(self):
        adapter = MySQLAdapter(database="app")
        assert adapter.db_type.value == "mysql"
        assert adapter.dialect.name == "mysql"
        assert adapter.config.port == 3306
        assert adapter.is_connected is False

    def test_repr_masks_password(self):
        adapter = MySQLAdapter(database="app", username="u", password="secret")
        assert "secret" not in repr(adapter)


class TestMySQLAdapterConnect:
    def test_missing_driver(self):
        with patch.dict(sys.modules, {"mysql": None, "mysql.connector": None}):
            with pytest.raises(ConfigError, match="mysql-connector-python"):
                MySQLAdapter(database="app").connect()

    def test_pool_uses_found_rows(self, fake_driver):
        MySQLAdapter(host="db", database="app", username="u", password="p").connect()
        kwargs = fake_driver.MySQLConnectionPool.call_args.kwargs
        assert kwargs["client_flags"] == [2]
        assert kwargs["host"] == "db"
        assert kwargs["database"] == "app"
        assert kwargs["user"] == "u"

    def test_pool_failure(self, fake_driver):
        fake_driver.MySQLConnectionPool.side_effect = RuntimeError("refused")
        with pytest.raises(DatabaseConnectionError):
            MySQLAdapter(database="app").connect()


class TestMySQLAdapterAcquire:
    def test_acquire_from_pool_and_release_closes(self, fake_driver):
        pool = fake_driver.MySQLConnectionPool.return_value
        adapter = MySQLAdapter(database="app")
        conn = adapter.acquire()
        assert conn is pool.get_connection.return_value
        adapter.release(conn)
        conn.close.assert_called_once()

    def test_disconnect(self, fake_driver):
        adapter = MySQLAdapter(database="app")
        adapter.connect()
        adapter.disconnect()
        assert adapter.is_connected is False
