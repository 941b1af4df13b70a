"""Tests for the Dialect abstraction layer."""

from __future__ import annotations

import pytest

from activerow.core.dialect import (
    DEFAULT_DIALECT,
    Dialect,
    MySQLDialect,
    PostgreSQLDialect,
    SQLiteDialect,
    get_dialect,
    register_dialect,
)


# =========================================================================
# Fixtures
# =========================================================================


@pytest.fixture(params=["sqlite", "postgresql", "mysql"])
def dialect(request: pytest.FixtureRequest) -> Dialect:
    """Parametric fixture: run each test against every dialect."""
    return get_dialect(request.param)


# =========================================================================
# Protocol conformance
# =========================================================================


class TestProtocol:
    """Verify all concrete dialects implement the Dialect protocol."""

    def test_isinstance(self, dialect: Dialect) -> None:
        assert isinstance(dialect, Dialect)

    def test_name(self, dialect: Dialect) -> None:
        assert isinstance(dialect.name, str)
        assert len(dialect.name) > 0

    def test_select_limit_everywhere(self, dialect: Dialect) -> None:
        assert dialect.limit(1) == " LIMIT 1"

    def test_placeholders_count(self, dialect: Dialect) -> None:
        assert dialect.placeholders(3).count(",") == 2


# =========================================================================
# Per-dialect spelling
# =========================================================================


class TestMySQL:
    def test_placeholder(self) -> None:
        assert MySQLDialect().placeholder(0) == "%s"

    def test_quote_escapes_backtick(self) -> None:
        assert MySQLDialect().quote("we`ird") == "`we``ird`"

    def test_write_limit(self) -> None:
        assert MySQLDialect().limit(1, write=True) == " LIMIT 1"

    def test_last_insert_id(self) -> None:
        assert MySQLDialect().last_insert_id() == "SELECT LAST_INSERT_ID()"

    def test_is_default(self) -> None:
        assert DEFAULT_DIALECT.name == "mysql"


class TestSQLite:
    def test_placeholders(self) -> None:
        assert SQLiteDialect().placeholders(3) == "?, ?, ?"

    def test_no_write_limit(self) -> None:
        assert SQLiteDialect().limit(1, write=True) == ""

    def test_last_insert_id(self) -> None:
        assert SQLiteDialect().last_insert_id() == "SELECT last_insert_rowid()"


class TestPostgreSQL:
    def test_quote(self) -> None:
        assert PostgreSQLDialect().quote('a"b') == '"a""b"'

    def test_no_write_limit(self) -> None:
        assert PostgreSQLDialect().limit(1, write=True) == ""

    def test_last_insert_id(self) -> None:
        assert PostgreSQLDialect().last_insert_id() == "SELECT lastval()"


# =========================================================================
# Registry
# =========================================================================


class TestRegistry:
    def test_aliases(self) -> None:
        assert get_dialect("postgres").name == "postgresql"
        assert get_dialect("MariaDB").name == "mysql"

    def test_unknown(self) -> None:
        with pytest.raises(ValueError, match="Unknown dialect"):
            get_dialect("cobol")

    def test_register_custom(self) -> None:
        custom = SQLiteDialect()
        register_dialect("MyLite", custom)
        assert get_dialect("mylite") is custom
