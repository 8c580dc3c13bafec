"""Database adapters -- one interface over MySQL and SQLite handles.

Manifesto:
    The connection provider owns a read handle and a write handle.  Each
    handle is an adapter, so the provider, the catalog and the record engine
    only ever see ``query()`` returning plain dicts.

    The MySQL adapter is **import-guarded**: the driver is only required at
    ``connect()`` time, not at import time.  Install the extra::

        pip install unfy-data[mysql]        # mysql-connector-python

Architecture::

    DatabaseAdapter (base.py)        Abstract base with connect/query
        |-- SQLiteAdapter            stdlib sqlite3 (always available)
        |-- MySQLAdapter             mysql.connector (optional)

    AdapterRegistry (registry.py)    DatabaseType -> adapter class
    DatabaseConfig (types.py)        Connection parameters for one handle
    DatabaseType (types.py)          Enum of supported backends

Guardrails:
    ❌ Importing optional drivers at module scope
    ✅ Import-guarded at ``connect()`` time with clear ``ConfigError``
    ❌ ``adapter = MySQLAdapter(...)`` directly in the provider
    ✅ ``adapter = get_adapter(DatabaseType.MYSQL, **config)``

Tags:
    unfy-core, database, adapters, import-guarded, registry-pattern,
    sqlite, mysql

Doc-Types:
    package-overview, module-index
"""

from unfy.core.dialect import Dialect, get_dialect

from .base import DatabaseAdapter
from .mysql import MySQLAdapter
from .registry import AdapterRegistry, adapter_registry, get_adapter
from .sqlite import SQLiteAdapter
from .types import DatabaseConfig, DatabaseType

__all__ = [
    # Types
    "DatabaseType",
    "DatabaseConfig",
    # Dialects
    "Dialect",
    "get_dialect",
    # Base class
    "DatabaseAdapter",
    # Implementations
    "SQLiteAdapter",
    "MySQLAdapter",
    # Registry
    "AdapterRegistry",
    "adapter_registry",
    "get_adapter",
]
