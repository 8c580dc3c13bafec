"""
Schema catalog: per-table column metadata in the logical type model.

Manifesto:
    A table's columns are introspected once per process and then served
    from memory.  The cache collaborator sits between the two so a fleet of
    processes sharing Redis introspects each table once per TTL window,
    not once per process.

    Introspection is tolerant row by row and strict table by table: an
    unknown native type or a garbled introspection row is skipped, while
    a failed introspection query raises :class:`SchemaError` for that
    table alone.

Architecture:
    ::

        columns_for("widget")
            │
            ├── memo hit ───────────────────────────► TableSchema.columns
            ├── cache["table:widget"] (list of dicts) ► Column.from_dict
            └── dialect.columns_query("widget")
                    │  provider.query()
                    ▼
                dialect.parse_column(row) per row ──► None → skipped
                    │
                    ▼
                memo + cache.set("table:widget", [col.to_dict(), ...])

Examples:
    >>> catalog = SchemaCatalog(provider, cache)
    >>> catalog.columns_for("widget")["qty"].logical_type
    <ColumnType.INT: 'Int'>
    >>> catalog.has_column("widget", "colour")
    False

Tags:
    schema, catalog, introspection, caching, unfy-core

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from typing import Any

from unfy.core.cache import CacheBackend
from unfy.core.columns import Column, TableSchema
from unfy.core.errors import ErrorContext, QueryError, SchemaError
from unfy.core.logging import LogContext, get_logger
from unfy.core.provider import ConnectionProvider

logger = get_logger(__name__)


def schema_cache_key(table: str) -> str:
    return f"table:{table}"


class SchemaCatalog:
    """Builds and memoizes :class:`TableSchema` objects."""

    def __init__(self, provider: ConnectionProvider, cache: CacheBackend | None = None):
        self._provider = provider
        self._cache = cache
        self._schemas: dict[str, TableSchema] = {}

    def schema(self, table: str) -> TableSchema:
        """Schema for *table* (memo → cache → introspection).

        Raises:
            SchemaError: Introspection failed or the table does not exist.
        """
        name = table.lower()
        found = self._schemas.get(name)
        if found is not None:
            return found

        schema = self._from_cache(name)
        if schema is None:
            schema = self._introspect(name)
            if self._cache is not None:
                self._cache.set(schema_cache_key(name), [c.to_dict() for c in schema])

        self._schemas[name] = schema
        return schema

    def columns_for(self, table: str) -> dict[str, Column]:
        return self.schema(table).columns

    def has_column(self, table: str, name: str) -> bool:
        return name in self.schema(table)

    def column(self, table: str, name: str) -> Column | None:
        return self.schema(table).get(name)

    def coerce(self, table: str, field: str, value: Any) -> Any:
        """Convert *value* with the column's logical type; unknown columns pass through."""
        column = self.column(table, field)
        return value if column is None else column.coerce(value)

    def invalidate(self, table: str | None = None) -> None:
        """Forget one table's schema (or all memoized schemas)."""
        names = [table.lower()] if table else list(self._schemas)
        for name in names:
            self._schemas.pop(name, None)
            if self._cache is not None:
                self._cache.delete(schema_cache_key(name))

    # ------------------------------------------------------------------ #

    def _from_cache(self, name: str) -> TableSchema | None:
        if self._cache is None:
            return None
        cached = self._cache.get(schema_cache_key(name))
        if not isinstance(cached, list):
            return None
        try:
            columns = [Column.from_dict(item) for item in cached]
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("schema_cache_unreadable", table=name, error=str(e))
            return None
        return TableSchema(name, {c.name: c for c in columns})

    def _introspect(self, name: str) -> TableSchema:
        dialect = self._provider.dialect
        sql = dialect.columns_query(name)

        with LogContext(table=name):
            try:
                rows = self._provider.query(sql)
            except QueryError as e:
                raise SchemaError(
                    f"Schema introspection failed for table {name}: {e.message}",
                    context=ErrorContext(table=name, backend=dialect.name, query=sql),
                    cause=e,
                ) from e

            if not rows and not self._provider.table_exists(name):
                raise SchemaError(
                    f"Unknown table: {name}",
                    context=ErrorContext(table=name, backend=dialect.name, query=sql),
                )

            columns: dict[str, Column] = {}
            skipped = 0
            for row in rows:
                try:
                    column = dialect.parse_column(row)
                except (TypeError, ValueError, AttributeError) as e:
                    logger.debug("schema_row_malformed", row=repr(row), error=str(e))
                    column = None
                if column is None:
                    skipped += 1
                    continue
                columns[column.name] = column

            logger.info("schema_built", columns=len(columns), skipped=skipped)

        return TableSchema(name, columns)


__all__ = [
    "SchemaCatalog",
    "schema_cache_key",
]
