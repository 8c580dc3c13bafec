"""unfy core -- schema catalog and record engine over MySQL and SQLite.

Manifesto:
    Application code asks for rows by table name and filter map; it never
    writes SQL and never branches on the backend.  The core normalizes two
    introspection dialects into one logical type model and compiles filter
    specifications into WHERE / JOIN clauses with stable pagination.

Architecture::

    Layer 1 -- Types, errors and ambient stack
        errors.py          Structured error hierarchy (UnfyError, ConfigError, ...)
        logging.py         structlog configuration
        config/            pydantic-settings (UNFY_* environment, .env files)
        cache.py           CacheBackend protocol, InMemoryCache, RedisCache
        serialize.py       Tab-indented JSON text form

    Layer 2 -- Database access
        dialect.py         MySQL / SQLite SQL fragments and type mapping
        adapters/          DatabaseAdapter + SQLite / MySQL handles
        provider.py        ConnectionProvider (read/write handles, table list)
        columns.py         Column, ColumnType, TableSchema
        catalog.py         SchemaCatalog (per-table columns, cached)

    Layer 3 -- Record engine
        filters.py         Filter/sort key grammar → JOIN / WHERE / ORDER BY
        record.py          Record (lazy row, overlay, relations)
        recordset.py       RecordSet (count, pages, iteration)
        registry.py        Table name → Record class
        context.py         DataContext wiring + process default

Tags:
    unfy-core, package-overview

Doc-Types:
    package-overview, module-index
"""

from unfy.core.cache import CacheBackend, InMemoryCache, RedisCache, create_cache
from unfy.core.catalog import SchemaCatalog
from unfy.core.columns import Column, ColumnType, TableSchema
from unfy.core.context import DataContext, get_context, reset_context, set_context
from unfy.core.dialect import Dialect, MySQLDialect, SQLiteDialect, get_dialect
from unfy.core.errors import (
    ConfigError,
    ConstraintError,
    DatabaseConnectionError,
    DatabaseError,
    ErrorCategory,
    ErrorContext,
    InvalidConfigError,
    MissingConfigError,
    QueryError,
    SchemaError,
    UnfyError,
    ValidationError,
)
from unfy.core.filters import Direction, QueryCompiler, parse_key
from unfy.core.provider import ConnectionProvider
from unfy.core.record import Record
from unfy.core.recordset import RecordSet
from unfy.core.registry import RecordRegistry, record_registry

__all__ = [
    # Errors
    "ErrorCategory",
    "ErrorContext",
    "UnfyError",
    "ConfigError",
    "MissingConfigError",
    "InvalidConfigError",
    "DatabaseConnectionError",
    "DatabaseError",
    "QueryError",
    "SchemaError",
    "ValidationError",
    "ConstraintError",
    # Cache
    "CacheBackend",
    "InMemoryCache",
    "RedisCache",
    "create_cache",
    # Schema
    "Column",
    "ColumnType",
    "TableSchema",
    "SchemaCatalog",
    # Database
    "Dialect",
    "MySQLDialect",
    "SQLiteDialect",
    "get_dialect",
    "ConnectionProvider",
    # Records
    "Direction",
    "QueryCompiler",
    "parse_key",
    "Record",
    "RecordSet",
    "RecordRegistry",
    "record_registry",
    # Context
    "DataContext",
    "get_context",
    "set_context",
    "reset_context",
]
