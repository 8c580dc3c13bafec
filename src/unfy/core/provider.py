"""
Connection provider: the read and write handles for one backend.

Manifesto:
    Every query the record engine compiles goes through one object that
    owns the configured handles, knows the dialect, escapes literals and
    answers "does this table exist?".  It initializes itself on first use,
    and a failed initialization is final: the error is logged once and
    re-raised on every later access, with no reconnect attempts.

    - **Two handles:** MySQL gets independent read (``_r``) and write
      (``_w``) credentials; SQLite shares one handle for both roles
    - **Lazy:** nothing connects until a handle, the dialect or a query is
      first needed
    - **Cached table list:** fetched once, then served from the process
      memo or the cache collaborator until ``invalidate_tables()``

Architecture:
    ::

        DatabaseSettings ──► ConnectionProvider.init()
                               │  validate required fields
                               │  get_adapter(type, ...)  ×1 (sqlite) / ×2 (mysql)
                               ▼
                            reader / writer adapters
                               │
              escape() ◄───────┼───────► table_exists() ──► memo → cache["tables"] → SHOW TABLES

Guardrails:
    ❌ DON'T: Log passwords from the database settings
    ✅ DO: Log ``DatabaseConfig.describe()``

    ❌ DON'T: Retry ``init()`` after a failure
    ✅ DO: Re-raise the stored ``ConfigError``

Tags:
    connection, provider, escaping, table-list, unfy-core

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from typing import Any

from unfy.core.adapters import DatabaseAdapter, DatabaseType, adapter_registry
from unfy.core.adapters.registry import AdapterRegistry
from unfy.core.cache import CacheBackend
from unfy.core.config import DatabaseSettings
from unfy.core.dialect import Dialect
from unfy.core.errors import ConfigError, InvalidConfigError, MissingConfigError
from unfy.core.logging import get_logger

logger = get_logger(__name__)

TABLES_CACHE_KEY = "tables"

_MYSQL_REQUIRED = ("host", "name", "username_r", "username_w")
_MYSQL_PASSWORDS = ("password_r", "password_w")


class ConnectionProvider:
    """Owns the read/write adapters for the configured backend.

    Args:
        settings: The ``database`` section of :class:`UnfySettings`.
        cache: Cache collaborator for the table list (optional).
        registry: Adapter registry (the global one by default).
    """

    def __init__(
        self,
        settings: DatabaseSettings,
        cache: CacheBackend | None = None,
        *,
        registry: AdapterRegistry | None = None,
    ):
        self._settings = settings
        self._cache = cache
        self._registry = registry or adapter_registry
        self._reader: DatabaseAdapter | None = None
        self._writer: DatabaseAdapter | None = None
        self._error: ConfigError | None = None
        self._tables: list[str] | None = None

    # ------------------------------------------------------------------ #
    # Initialization
    # ------------------------------------------------------------------ #

    @property
    def is_initialized(self) -> bool:
        return self._reader is not None

    @property
    def error(self) -> ConfigError | None:
        """The initialization failure, if any."""
        return self._error

    def init(self) -> None:
        """Validate the settings and open the handles.

        Idempotent once successful.  After a failure the same error is
        raised again without touching the backend.
        """
        if self._error is not None:
            raise self._error
        if self._reader is not None:
            return

        try:
            reader, writer = self._open()
        except ConfigError as e:
            self._error = e
            logger.error("provider_init_failed", **e.to_dict())
            raise

        self._reader, self._writer = reader, writer
        logger.info(
            "provider_initialized",
            backend=reader.db_type.value,
            target=reader.config.describe(),
            shared_handle=reader is writer,
        )

    def _open(self) -> tuple[DatabaseAdapter, DatabaseAdapter]:
        s = self._settings
        if not s.type:
            raise MissingConfigError("database.type")

        match s.type:
            case DatabaseType.MYSQL.value:
                missing = [f"database.{key}" for key in _MYSQL_REQUIRED if not getattr(s, key)]
                missing += [f"database.{key}" for key in _MYSQL_PASSWORDS if getattr(s, key) is None]
                if missing:
                    raise MissingConfigError(missing)
                common = {
                    "host": s.host,
                    "port": s.port,
                    "database": s.name,
                    "charset": s.charset,
                    "connect_timeout": s.connect_timeout,
                }
                reader = self._registry.create(
                    s.type, username=s.username_r, password=s.password_r, **common
                )
                writer = self._registry.create(
                    s.type, username=s.username_w, password=s.password_w, **common
                )
            case DatabaseType.SQLITE.value:
                if not s.path:
                    raise MissingConfigError("database.path")
                reader = writer = self._registry.create(s.type, path=s.path)
            case _:
                raise InvalidConfigError("database.type", s.type)

        reader.connect()
        if writer is not reader:
            try:
                writer.connect()
            except ConfigError:
                reader.disconnect()
                raise
        return reader, writer

    # ------------------------------------------------------------------ #
    # Handles
    # ------------------------------------------------------------------ #

    @property
    def reader(self) -> DatabaseAdapter:
        """Read handle (auto-initializes)."""
        self.init()
        return self._reader

    @property
    def writer(self) -> DatabaseAdapter:
        """Write handle (auto-initializes). Same object as ``reader`` on SQLite."""
        self.init()
        return self._writer

    @property
    def dialect(self) -> Dialect:
        return self.reader.dialect

    @property
    def db_type(self) -> DatabaseType:
        return self.reader.db_type

    # ------------------------------------------------------------------ #
    # Escaping and queries
    # ------------------------------------------------------------------ #

    def escape(self, text: Any) -> str:
        """Dialect-escaped *text* without surrounding quotes."""
        return self.dialect.escape(str(text))

    def quote(self, identifier: str) -> str:
        return self.dialect.quote_identifier(identifier)

    def query(self, sql: str) -> list[dict[str, Any]]:
        """Run *sql* on the read handle.

        Raises:
            QueryError: The statement failed; the driver error is chained.
        """
        reader = self.reader
        logger.debug("sql_executed", backend=reader.db_type.value, sql=sql)
        return reader.query(sql)

    def query_one(self, sql: str) -> dict[str, Any] | None:
        rows = self.query(sql)
        return rows[0] if rows else None

    # ------------------------------------------------------------------ #
    # Table list
    # ------------------------------------------------------------------ #

    def tables(self) -> list[str]:
        """Lowercased names of every table, fetched at most once."""
        if self._tables is not None:
            return self._tables

        cached = self._cache.get(TABLES_CACHE_KEY) if self._cache is not None else None
        if isinstance(cached, list):
            self._tables = [str(name).lower() for name in cached]
            return self._tables

        names = self.reader.query_column(self.dialect.list_tables_query())
        self._tables = [_name(raw).lower() for raw in names]
        if self._cache is not None:
            self._cache.set(TABLES_CACHE_KEY, self._tables)
        logger.info("table_list_refreshed", tables=len(self._tables))
        return self._tables

    def table_exists(self, name: str) -> bool:
        return name.lower() in self.tables()

    def invalidate_tables(self) -> None:
        """Drop the memoized and cached table list."""
        self._tables = None
        if self._cache is not None:
            self._cache.delete(TABLES_CACHE_KEY)

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def close(self) -> None:
        """Close both handles. A later access initializes again."""
        reader, writer = self._reader, self._writer
        self._reader = self._writer = None
        if writer is not None and writer is not reader:
            writer.disconnect()
        if reader is not None:
            reader.disconnect()

    def __enter__(self) -> ConnectionProvider:
        self.init()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def _name(raw: Any) -> str:
    if isinstance(raw, (bytes, bytearray)):
        return bytes(raw).decode("utf-8")
    return str(raw)


__all__ = [
    "ConnectionProvider",
    "TABLES_CACHE_KEY",
]
