"""Tests for core.settings module.

Covers:
- ActiveRowSettings instantiation with defaults
- Environment variable override
- Field validation
- configure() binding a provider to Record
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from activerow.core.adapters import SQLiteAdapter
from activerow.core.record import Record
from activerow.core.settings import ActiveRowSettings, configure


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ["DATABASE_URL", "DIALECT", "AUTOCOMMIT", "LOG_LEVEL", "LOG_JSON", "EAGER_REGISTRATION"]:
        monkeypatch.delenv(f"ACTIVEROW_{name}", raising=False)
    # keep a developer's .env out of the tests
    monkeypatch.chdir(tmp_path)
    yield
    Record.__eager__ = True


class TestActiveRowSettingsDefaults:
    def test_database_url(self):
        assert ActiveRowSettings().database_url == "memory"

    def test_dialect_unset(self):
        assert ActiveRowSettings().dialect is None

    def test_autocommit(self):
        assert ActiveRowSettings().autocommit is True

    def test_log_level(self):
        assert ActiveRowSettings().log_level == "INFO"

    def test_eager_registration(self):
        assert ActiveRowSettings().eager_registration is True


class TestActiveRowSettingsEnvOverride:
    def test_database_url(self, monkeypatch):
        monkeypatch.setenv("ACTIVEROW_DATABASE_URL", "sqlite:///app.db")
        assert ActiveRowSettings().database_url == "sqlite:///app.db"

    def test_bool_parsing(self, monkeypatch):
        monkeypatch.setenv("ACTIVEROW_AUTOCOMMIT", "false")
        assert ActiveRowSettings().autocommit is False

    def test_log_level_uppercased(self, monkeypatch):
        monkeypatch.setenv("ACTIVEROW_LOG_LEVEL", "debug")
        assert ActiveRowSettings().log_level == "DEBUG"

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            ActiveRowSettings(log_level="LOUD")

    def test_dotenv_file(self, tmp_path):
        (tmp_path / ".env").write_text("ACTIVEROW_DIALECT=mysql\n")
        assert ActiveRowSettings().dialect == "mysql"


class TestConfigure:
    def test_binds_provider(self):
        provider = configure(ActiveRowSettings(log_json=True))
        assert isinstance(provider, SQLiteAdapter)
        assert Record.get_provider() is provider

    def test_applies_dialect_and_autocommit(self):
        provider = configure(ActiveRowSettings(dialect="mysql", autocommit=False, log_json=True))
        assert provider.dialect.name == "mysql"
        assert provider.autocommit is False

    def test_eager_registration_flag(self):
        configure(ActiveRowSettings(eager_registration=False, log_json=True))
        assert Record.__eager__ is False
