"""Environment-driven settings for activerow.

``ActiveRowSettings`` reads ``ACTIVEROW_*`` environment variables (and a
``.env`` file) so that applications can point their records at a database
without code changes.

Examples:
    >>> import os
    >>> os.environ["ACTIVEROW_DATABASE_URL"] = "sqlite:///app.db"
    >>> ActiveRowSettings().database_url
    'sqlite:///app.db'

Tags:
    settings, configuration, pydantic, environment, activerow
"""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from activerow.core.connection import create_provider
from activerow.core.logging import configure_logging
from activerow.core.protocols import ConnectionProvider
from activerow.core.record import Record


class ActiveRowSettings(BaseSettings):
    """Settings consumed by :func:`activerow.configure`.

    Fields
    ──────
    database_url        : ``memory``, ``sqlite:///path``, a bare file path,
                          ``mysql://user:pw@host/db``, or any SQLAlchemy URL
    dialect             : Override the dialect inferred from the URL
    autocommit          : Commit after every write statement
    log_level           : Structlog log level
    log_json            : JSON logs (True), console (False), auto (unset)
    eager_registration  : Derive entity metadata at class-definition time
    """

    model_config = SettingsConfigDict(
        env_prefix="ACTIVEROW_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Database ─────────────────────────────────────────────────
    database_url: str = Field(default="memory", description="Database URL or path")
    dialect: str | None = Field(default=None, description="Dialect override")
    autocommit: bool = True

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    log_json: bool | None = None

    # ── Registration ─────────────────────────────────────────────
    eager_registration: bool = True

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"invalid log level {value!r}")
        return level


def configure(settings: ActiveRowSettings | None = None) -> ConnectionProvider:
    """Apply settings: configure logging and bind a provider to ``Record``.

    Returns the provider so callers can run schema setup on it.
    """
    settings = settings or ActiveRowSettings()
    configure_logging(level=settings.log_level, json_format=settings.log_json)

    provider = create_provider(
        settings.database_url,
        dialect=settings.dialect,
        autocommit=settings.autocommit,
    )
    Record.__eager__ = settings.eager_registration
    Record.use(provider)
    return provider


__all__ = [
    "ActiveRowSettings",
    "configure",
]
