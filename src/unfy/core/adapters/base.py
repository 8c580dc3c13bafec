"""Database adapter base class.

Manifesto:
    The connection provider holds one read and one write handle.  Both are
    adapters: the abstract base defines the lifecycle and the query surface
    so the provider never depends on a specific driver.

Features:
    - Abstract ``connect()``, ``disconnect()``, ``get_connection()``
    - ``query()`` / ``query_one()`` / ``query_column()`` returning plain dicts
    - Driver exceptions wrapped in :class:`~unfy.core.errors.QueryError`
    - Context-manager protocol for connection lifecycle

Tags:
    unfy-core, database, abstract-base, adapter-pattern

Doc-Types:
    api-reference
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from unfy.core.dialect import Dialect, get_dialect
from unfy.core.errors import ErrorContext, QueryError

from .types import DatabaseConfig, DatabaseType


class DatabaseAdapter(ABC):
    """
    Abstract base class for database adapters.

    Subclasses set ``_driver_errors`` to the driver's exception base class
    (or a tuple of them) once the driver is imported; anything matching it
    that escapes a query is re-raised as :class:`QueryError`.
    """

    _driver_errors: type[BaseException] | tuple[type[BaseException], ...] = ()

    def __init__(self, config: DatabaseConfig):
        self._config = config
        self._connected = False
        self._dialect: Dialect = get_dialect(config.db_type.value)

    @property
    def config(self) -> DatabaseConfig:
        return self._config

    @property
    def dialect(self) -> Dialect:
        """SQL dialect for this adapter's database type."""
        return self._dialect

    @property
    def db_type(self) -> DatabaseType:
        """Database type."""
        return self._config.db_type

    @property
    def is_connected(self) -> bool:
        """Whether adapter is connected."""
        return self._connected

    @abstractmethod
    def connect(self) -> None:
        """Establish connection to database."""
        ...

    @abstractmethod
    def disconnect(self) -> None:
        """Close connection to database."""
        ...

    @abstractmethod
    def get_connection(self) -> Any:
        """Get the live driver connection, connecting if needed."""
        ...

    @abstractmethod
    def _fetch_all(self, conn: Any, sql: str, params: tuple) -> list[dict[str, Any]]:
        """Run *sql* on *conn* and return every row as a dict."""
        ...

    def _query_error(self, sql: str, error: BaseException) -> QueryError:
        return QueryError(
            f"Query failed: {error}",
            context=ErrorContext(backend=self.db_type.value, query=sql),
            cause=error if isinstance(error, Exception) else None,
        )

    def query(self, sql: str, params: tuple = ()) -> list[dict[str, Any]]:
        """Execute query and return results as dicts (column order kept)."""
        conn = self.get_connection()
        try:
            return self._fetch_all(conn, sql, params)
        except self._driver_errors as e:
            raise self._query_error(sql, e) from e

    def query_one(self, sql: str, params: tuple = ()) -> dict[str, Any] | None:
        """Execute query and return single result."""
        results = self.query(sql, params)
        return results[0] if results else None

    def query_column(self, sql: str, params: tuple = ()) -> list[Any]:
        """Execute query and return the first column of every row."""
        return [next(iter(row.values())) for row in self.query(sql, params) if row]

    def __enter__(self) -> DatabaseAdapter:
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.disconnect()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._config.describe()!r})"


__all__ = [
    "DatabaseAdapter",
]
