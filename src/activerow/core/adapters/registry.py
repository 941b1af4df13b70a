"""Adapter registry: adapter names and URL schemes to adapter classes.

``create_provider()`` never instantiates an adapter class directly; every
provider it builds comes out of :data:`adapter_registry`.  Re-registering a
name therefore changes what ``create_provider()`` returns for that URL
scheme, and registering a new name teaches it a new scheme::

    adapter_registry.register("duckdb", DuckDBAdapter)
    create_provider("duckdb:///analytics.db")   # DuckDBAdapter("duckdb:///...")

Built-in names
--------------
==============  ======================  ===================================
Name            Adapter                 Reached from
==============  ======================  ===================================
``sqlite``      SQLiteAdapter           ``memory``, ``sqlite:///``, paths
``mysql``       MySQLAdapter            ``mysql://``
``mariadb``     MySQLAdapter            ``mariadb://``
``sqlalchemy``  SQLAlchemyAdapter       any other ``scheme://`` URL
==============  ======================  ===================================

Tags:
    activerow, database, registry, factory, url-scheme
"""

from __future__ import annotations

from typing import Any

from activerow.core.errors import ConfigError

from .base import DatabaseAdapter
from .engine import SQLAlchemyAdapter
from .mysql import MySQLAdapter
from .sqlite import SQLiteAdapter
from .types import DatabaseType

FALLBACK = "sqlalchemy"


class AdapterRegistry:
    """Name -> adapter class table with URL-scheme resolution."""

    def __init__(self) -> None:
        self._adapters: dict[str, type[DatabaseAdapter]] = {}
        self.register("sqlite", SQLiteAdapter)
        self.register("mysql", MySQLAdapter)
        self.register("mariadb", MySQLAdapter)
        self.register(FALLBACK, SQLAlchemyAdapter)

    def register(self, name: str, adapter_class: type[DatabaseAdapter]) -> None:
        """Register (or replace) the adapter for ``name``."""
        if not (isinstance(adapter_class, type) and issubclass(adapter_class, DatabaseAdapter)):
            raise ConfigError(f"{adapter_class!r} is not a DatabaseAdapter subclass")
        self._adapters[name.lower()] = adapter_class

    def unregister(self, name: str) -> None:
        """Drop ``name``; the SQLAlchemy fallback cannot be removed."""
        name = name.lower()
        if name == FALLBACK:
            raise ConfigError("The sqlalchemy fallback adapter cannot be unregistered")
        self._adapters.pop(name, None)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._adapters

    def resolve_scheme(self, url: str) -> str:
        """Adapter name serving ``url``: its scheme if registered, else the fallback.

        Driver-qualified schemes (``mysql+pymysql://``) always go to the
        fallback, since the driver is SQLAlchemy's to pick.
        """
        scheme = url.split("://", 1)[0].lower() if "://" in url else ""
        if scheme and "+" not in scheme and scheme in self:
            return scheme
        return FALLBACK

    def create(self, name: str, *args: Any, **kwargs: Any) -> DatabaseAdapter:
        """Instantiate the adapter registered as ``name``."""
        try:
            adapter_class = self._adapters[name.lower()]
        except KeyError:
            raise ConfigError(f"Unknown database adapter: {name.lower()}") from None
        return adapter_class(*args, **kwargs)

    def list_adapters(self) -> list[str]:
        return sorted(self._adapters)


adapter_registry = AdapterRegistry()


def get_adapter(db_type: DatabaseType | str, *args: Any, **kwargs: Any) -> DatabaseAdapter:
    """Create an adapter from :data:`adapter_registry`.

    Usage:
        adapter = get_adapter(DatabaseType.SQLITE, path="data.db")
        adapter = get_adapter("sqlalchemy", "postgresql://app@db/app")
    """
    name = db_type.value if isinstance(db_type, DatabaseType) else db_type
    return adapter_registry.create(name, *args, **kwargs)


__all__ = [
    "AdapterRegistry",
    "adapter_registry",
    "get_adapter",
]
