"""MySQL database adapter.

Uses ``mysql.connector`` from the ``mysql-connector-python`` package.

Install the driver::

    pip install mysql-connector-python
    # or:  pip install unfy-data[mysql]

This adapter is import-guarded: if ``mysql.connector`` is not installed
a clear :class:`~unfy.core.errors.ConfigError` is raised at
``connect()`` time.
"""

from __future__ import annotations

from typing import Any

from unfy.core.errors import ConfigError, DatabaseConnectionError

from .base import DatabaseAdapter
from .types import DatabaseConfig, DatabaseType


class MySQLAdapter(DatabaseAdapter):
    """MySQL / MariaDB database adapter.

    Holds a single connection (no pooling).  Autocommit is on so a
    long-lived read handle always sees committed data.
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 3306,
        database: str = "",
        username: str | None = None,
        password: str | None = None,
        *,
        charset: str = "utf8mb4",
        connect_timeout: int = 10,
        **kwargs: Any,
    ):
        config = DatabaseConfig(
            db_type=DatabaseType.MYSQL,
            host=host,
            port=port,
            database=database,
            username=username,
            password=password,
            charset=charset,
            connect_timeout=connect_timeout,
            options=kwargs,
        )
        super().__init__(config)
        self._conn: Any = None

    def connect(self) -> None:
        """Connect to MySQL database."""
        try:
            import mysql.connector
        except ImportError:
            raise ConfigError(
                "mysql-connector-python is required for MySQL. "
                "Install with: pip install unfy-data[mysql]"
            ) from None

        self._driver_errors = mysql.connector.Error

        try:
            self._conn = mysql.connector.connect(
                host=self._config.host,
                port=self._config.port,
                database=self._config.database,
                user=self._config.username,
                password=self._config.password,
                charset=self._config.charset,
                connection_timeout=self._config.connect_timeout,
                autocommit=True,
                **self._config.options,
            )
            self._connected = True
        except mysql.connector.Error as e:
            raise DatabaseConnectionError(
                f"Failed to connect to {self._config.describe()}: {e}",
                cause=e,
            ).with_context(backend="mysql") from e

    def disconnect(self) -> None:
        """Close the MySQL connection."""
        conn, self._conn = self._conn, None
        self._connected = False
        if conn is not None:
            conn.close()

    def get_connection(self) -> Any:
        """Get the MySQL connection."""
        if self._conn is None:
            self.connect()
        return self._conn

    def _fetch_all(self, conn: Any, sql: str, params: tuple) -> list[dict[str, Any]]:
        cursor = conn.cursor(dictionary=True)
        try:
            cursor.execute(sql, params or None)
            return list(cursor.fetchall())
        finally:
            cursor.close()


__all__ = [
    "MySQLAdapter",
]
