"""Tests for unfy.core.adapters — SQLite, MySQL (mocked driver) and the registry."""

from __future__ import annotations

import sqlite3
import sys
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from unfy.core.adapters import (
    AdapterRegistry,
    DatabaseConfig,
    DatabaseType,
    MySQLAdapter,
    SQLiteAdapter,
    get_adapter,
)
from unfy.core.errors import ConfigError, DatabaseConnectionError, InvalidConfigError, QueryError


class FakeMySQLError(Exception):
    pass


def fake_mysql_modules(connection=None, connect_error=None):
    """``mysql`` / ``mysql.connector`` stand-ins for ``patch.dict(sys.modules)``."""
    connector = MagicMock()
    connector.Error = FakeMySQLError
    if connect_error is not None:
        connector.connect.side_effect = connect_error
    else:
        connector.connect.return_value = connection or MagicMock()
    mysql = SimpleNamespace(connector=connector)
    return {"mysql": mysql, "mysql.connector": connector}


class TestDatabaseConfig:
    def test_describe_hides_password(self):
        config = DatabaseConfig(
            db_type=DatabaseType.MYSQL, host="db1", database="site", username="ro", password="secret"
        )
        assert config.describe() == "mysql://ro@db1:3306/site"
        assert "secret" not in config.describe()

    def test_describe_sqlite(self):
        assert DatabaseConfig(path="site.db").describe() == "site.db"


class TestSQLiteAdapter:
    def test_default_memory(self):
        adapter = SQLiteAdapter()
        assert adapter.db_type == DatabaseType.SQLITE
        assert adapter.is_connected is False
        assert adapter.dialect.name == "sqlite"

    def test_query_returns_dicts(self):
        with SQLiteAdapter() as adapter:
            conn = adapter.get_connection()
            conn.execute("CREATE TABLE t (id INTEGER PRIMARY KEY, name TEXT)")
            conn.execute("INSERT INTO t VALUES (1, 'a')")
            assert adapter.query("SELECT * FROM t") == [{"id": 1, "name": "a"}]
            assert adapter.query_one("SELECT * FROM t WHERE id = 2") is None
            assert adapter.query_column("SELECT name FROM t") == ["a"]

    def test_get_connection_auto_connects(self):
        adapter = SQLiteAdapter()
        assert isinstance(adapter.get_connection(), sqlite3.Connection)
        assert adapter.is_connected
        adapter.disconnect()
        assert not adapter.is_connected

    def test_driver_error_becomes_query_error(self):
        with SQLiteAdapter() as adapter:
            with pytest.raises(QueryError) as exc:
                adapter.query("SELECT * FROM missing")
        assert isinstance(exc.value.__cause__, sqlite3.OperationalError)
        assert exc.value.context.query == "SELECT * FROM missing"
        assert exc.value.context.backend == "sqlite"

    def test_readonly_rejects_writes(self):
        with SQLiteAdapter(readonly=True) as adapter:
            with pytest.raises(QueryError):
                adapter.query("CREATE TABLE t (id INTEGER)")

    def test_connect_failure(self, tmp_path):
        adapter = SQLiteAdapter(path=str(tmp_path / "missing" / "site.db"))
        with pytest.raises(DatabaseConnectionError, match="Failed to connect"):
            adapter.connect()


class TestMySQLAdapter:
    def test_init_does_not_import_driver(self):
        with patch.dict(sys.modules, {"mysql": None, "mysql.connector": None}):
            adapter = MySQLAdapter(host="db1", database="site")
        assert adapter.is_connected is False

    def test_missing_driver_is_config_error(self):
        with patch.dict(sys.modules, {"mysql": None, "mysql.connector": None}):
            with pytest.raises(ConfigError, match="mysql-connector-python"):
                MySQLAdapter().connect()

    def test_connect_passes_credentials(self):
        modules = fake_mysql_modules()
        with patch.dict(sys.modules, modules):
            MySQLAdapter(host="db1", port=3307, database="site", username="ro", password="pw").connect()
        kwargs = modules["mysql.connector"].connect.call_args.kwargs
        assert kwargs["host"] == "db1"
        assert kwargs["port"] == 3307
        assert kwargs["database"] == "site"
        assert (kwargs["user"], kwargs["password"]) == ("ro", "pw")
        assert kwargs["charset"] == "utf8mb4"

    def test_connect_failure(self):
        modules = fake_mysql_modules(connect_error=FakeMySQLError("Access denied"))
        with patch.dict(sys.modules, modules):
            with pytest.raises(DatabaseConnectionError, match="Access denied") as exc:
                MySQLAdapter(host="db1", database="site", username="ro", password="pw").connect()
        assert "pw" not in str(exc.value)
        assert isinstance(exc.value, ConfigError)

    def test_query_uses_dictionary_cursor(self):
        connection = MagicMock()
        cursor = connection.cursor.return_value
        cursor.fetchall.return_value = [{"Tables_in_site": "widget"}]
        with patch.dict(sys.modules, fake_mysql_modules(connection)):
            adapter = MySQLAdapter(database="site")
            assert adapter.query_column("SHOW TABLES") == ["widget"]
        connection.cursor.assert_called_with(dictionary=True)
        cursor.execute.assert_called_with("SHOW TABLES", None)
        cursor.close.assert_called_once()

    def test_driver_error_becomes_query_error(self):
        connection = MagicMock()
        connection.cursor.return_value.execute.side_effect = FakeMySQLError("Unknown column")
        with patch.dict(sys.modules, fake_mysql_modules(connection)):
            adapter = MySQLAdapter(database="site")
            with pytest.raises(QueryError, match="Unknown column"):
                adapter.query("SELECT nope FROM widget")

    def test_disconnect_closes(self):
        connection = MagicMock()
        with patch.dict(sys.modules, fake_mysql_modules(connection)):
            adapter = MySQLAdapter()
            adapter.connect()
            adapter.disconnect()
        connection.close.assert_called_once()
        assert not adapter.is_connected


class TestAdapterRegistry:
    def test_defaults(self):
        assert AdapterRegistry().list_adapters() == ["mysql", "sqlite"]

    def test_get_adapter_by_enum_and_name(self):
        assert isinstance(get_adapter(DatabaseType.SQLITE, path=":memory:"), SQLiteAdapter)
        assert isinstance(get_adapter("MySQL", host="db1"), MySQLAdapter)

    def test_unknown_adapter(self):
        with pytest.raises(InvalidConfigError, match="Unknown database adapter"):
            get_adapter("oracle")

    def test_register_custom(self):
        registry = AdapterRegistry()
        registry.register("Memory", SQLiteAdapter)
        assert isinstance(registry.create("memory"), SQLiteAdapter)
