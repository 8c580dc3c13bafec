"""SQLite database adapter."""

from __future__ import annotations

import sqlite3
from typing import Any

from unfy.core.errors import DatabaseConnectionError

from .base import DatabaseAdapter
from .types import DatabaseConfig, DatabaseType


class SQLiteAdapter(DatabaseAdapter):
    """
    SQLite database adapter.

    Uses the built-in sqlite3 module.  One adapter serves both the read and
    the write role for a single database file.
    """

    _driver_errors = sqlite3.Error

    def __init__(
        self,
        path: str = ":memory:",
        *,
        readonly: bool = False,
        timeout: float = 5.0,
        **kwargs: Any,
    ):
        config = DatabaseConfig(
            db_type=DatabaseType.SQLITE,
            path=path,
            readonly=readonly,
            options=kwargs,
        )
        super().__init__(config)
        self._timeout = timeout
        self._conn: sqlite3.Connection | None = None

    def connect(self) -> None:
        """Connect to SQLite database."""
        path = self._config.path or ":memory:"
        uri = path.startswith("file:")

        try:
            self._conn = sqlite3.connect(
                path,
                timeout=self._timeout,
                check_same_thread=False,
                uri=uri,
            )
            self._conn.row_factory = sqlite3.Row

            # Enable foreign keys
            self._conn.execute("PRAGMA foreign_keys = ON")

            if self._config.readonly:
                self._conn.execute("PRAGMA query_only = ON")

            self._connected = True

        except sqlite3.Error as e:
            raise DatabaseConnectionError(
                f"Failed to connect to SQLite at {path}: {e}",
                cause=e,
            ).with_context(backend="sqlite") from e

    def disconnect(self) -> None:
        """Close SQLite connection."""
        if self._conn:
            self._conn.close()
            self._conn = None
            self._connected = False

    def get_connection(self) -> sqlite3.Connection:
        """Get the SQLite connection."""
        if not self._conn:
            self.connect()
        return self._conn

    def _fetch_all(self, conn: Any, sql: str, params: tuple) -> list[dict[str, Any]]:
        cursor = conn.execute(sql, params)
        return [dict(row) for row in cursor.fetchall()]


__all__ = [
    "SQLiteAdapter",
]
