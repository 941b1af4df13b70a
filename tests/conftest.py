"""
Shared pytest fixtures and configuration for activerow tests.

This module provides:
- Provider binding cleanup for test isolation
- In-memory SQLite providers with the example ``users`` schema
- A recording provider that fails the test if any SQL reaches it

Usage:
    Fixtures are auto-discovered by pytest.  Use them as function arguments:

    def test_create(users_db):
        ...
"""

import sys
from pathlib import Path
from typing import Generator
from unittest.mock import MagicMock

import pytest

# Ensure activerow package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from activerow.core.adapters import SQLiteAdapter
from activerow.core.dialect import get_dialect
from activerow.core.record import Record


USERS_SCHEMA = """
CREATE TABLE users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    email TEXT
);
"""


# =============================================================================
# Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def reset_record_bindings() -> Generator[None, None, None]:
    """Unbind any provider a test attached to ``Record`` or an entity."""
    yield
    for klass in [Record, *_all_subclasses(Record)]:
        if "_provider" in klass.__dict__ and klass is not Record:
            delattr(klass, "_provider")
    Record.use(None)


def _all_subclasses(cls: type) -> list[type]:
    found = []
    for sub in cls.__subclasses__():
        found.append(sub)
        found.extend(_all_subclasses(sub))
    return found


# =============================================================================
# Providers
# =============================================================================


@pytest.fixture
def sqlite_provider() -> Generator[SQLiteAdapter, None, None]:
    """Connected in-memory SQLite adapter."""
    adapter = SQLiteAdapter(":memory:")
    adapter.connect()
    yield adapter
    adapter.disconnect()


@pytest.fixture
def users_db(sqlite_provider: SQLiteAdapter) -> SQLiteAdapter:
    """SQLite adapter with the ``users`` table, bound to ``Record``."""
    sqlite_provider.executescript(USERS_SCHEMA)
    Record.use(sqlite_provider)
    return sqlite_provider


@pytest.fixture
def mock_provider() -> MagicMock:
    """Provider whose connection records every cursor call.

    ``mock_provider.conn.cursor.return_value`` is the cursor; assert on
    ``execute.call_args_list`` to see exactly which SQL ran.
    """
    provider = MagicMock(name="provider")
    provider.dialect = get_dialect("mysql")
    provider.autocommit = True
    conn = MagicMock(name="conn")
    provider.acquire.return_value = conn
    provider.conn = conn
    return provider

