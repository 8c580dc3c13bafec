"""
Data context: the explicitly constructed wiring of settings, cache,
connection provider, schema catalog and record registry.

Manifesto:
    Records and record sets need a provider (to query), a catalog (for
    typed access) and a registry (to pick relation classes).  Instead of
    process-global singletons each of them is handed one ``DataContext``.
    Code that does not pass one gets the lazily built default from
    ``get_context()``, which is created once per process and replaced only
    through ``set_context()`` / ``reset_context()``.

Architecture:
    ::

        get_settings() ──► DataContext
                              ├── cache     create_cache(settings)
                              ├── provider  ConnectionProvider(settings.database, cache)
                              ├── catalog   SchemaCatalog(provider, cache)
                              └── registry  record_registry

        ctx.record("widget", 7)           → Widget | Record | None
        ctx.records("widget", {">qty": 2}) → RecordSet | None

Examples:
    >>> ctx = DataContext(UnfySettings(database={"type": "sqlite", "path": "site.db"}))
    >>> ctx.record("widget", 7).get("name")
    'bolt'

Tags:
    context, dependency-injection, wiring, unfy-core

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from unfy.core.cache import CacheBackend, create_cache
from unfy.core.catalog import SchemaCatalog
from unfy.core.columns import TableSchema
from unfy.core.config import UnfySettings, get_settings
from unfy.core.logging import get_logger
from unfy.core.provider import ConnectionProvider
from unfy.core.registry import RecordRegistry, record_registry

if TYPE_CHECKING:
    from unfy.core.record import Record
    from unfy.core.recordset import RecordSet

logger = get_logger(__name__)


class DataContext:
    """Everything a Record or RecordSet needs to reach the database."""

    def __init__(
        self,
        settings: UnfySettings | None = None,
        *,
        cache: CacheBackend | None = None,
        provider: ConnectionProvider | None = None,
        catalog: SchemaCatalog | None = None,
        registry: RecordRegistry | None = None,
    ):
        self.settings = settings or get_settings()
        self.cache = cache if cache is not None else create_cache(self.settings)
        self.provider = provider or ConnectionProvider(self.settings.database, self.cache)
        self.catalog = catalog or SchemaCatalog(self.provider, self.cache)
        self.registry = registry or record_registry

    def record(self, table: str, source: Any) -> Record | None:
        """A lazy record of *table*, or ``None`` if the table is unknown."""
        record_cls = self.registry.resolve(table, self.provider.table_exists)
        if record_cls is None:
            logger.debug("record_table_unknown", table=table)
            return None
        return record_cls(source, table=table.lower(), context=self)

    def records(
        self,
        table: str,
        filters: Mapping[str, Any] | None = None,
        sorts: Any = None,
        **kwargs: Any,
    ) -> RecordSet | None:
        """A lazy record set over *table*, or ``None`` if the table is unknown."""
        from unfy.core.recordset import RecordSet

        if self.registry.resolve(table, self.provider.table_exists) is None:
            logger.debug("record_table_unknown", table=table)
            return None
        return RecordSet(filters, sorts, table=table.lower(), context=self, **kwargs)

    def schema(self, table: str) -> TableSchema:
        return self.catalog.schema(table)

    def close(self) -> None:
        self.provider.close()

    def __enter__(self) -> DataContext:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


# ── Process default ──────────────────────────────────────────────────────

_default_context: DataContext | None = None


def get_context() -> DataContext:
    """The process-wide default context, built on first call."""
    global _default_context
    if _default_context is None:
        _default_context = DataContext()
    return _default_context


def set_context(context: DataContext | None) -> None:
    """Install *context* as the default (``None`` clears it)."""
    global _default_context
    _default_context = context


def reset_context() -> None:
    """Close and drop the default context (primarily for testing)."""
    global _default_context
    if _default_context is not None:
        _default_context.close()
    _default_context = None


__all__ = [
    "DataContext",
    "get_context",
    "reset_context",
    "set_context",
]
