"""Tests for unfy.core.catalog — schema building, caching, failures."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from unfy.core.catalog import SchemaCatalog, schema_cache_key
from unfy.core.columns import Column, ColumnType
from unfy.core.dialect import MySQLDialect
from unfy.core.errors import QueryError, SchemaError


class TestSQLiteCatalog:
    def test_columns_in_database_order(self, ctx):
        columns = ctx.catalog.columns_for("widget")
        assert list(columns) == ["id", "name", "qty"]
        assert columns["name"].length == 40
        assert columns["qty"].logical_type == ColumnType.INT

    def test_mixed_types_and_defaults(self, ctx):
        columns = ctx.catalog.columns_for("orders")
        assert columns["total"].logical_type == ColumnType.FLOAT
        assert columns["total"].max == 999999
        assert columns["placed"].logical_type == ColumnType.DATETIME
        assert columns["paid"].default is False
        assert columns["note"].default == "none"

    def test_unknown_types_are_skipped(self, ctx):
        assert list(ctx.catalog.columns_for("blobby")) == ["id"]

    def test_has_column(self, ctx):
        assert ctx.catalog.has_column("widget", "qty")
        assert not ctx.catalog.has_column("widget", "colour")

    def test_table_name_is_case_insensitive(self, ctx):
        assert ctx.catalog.schema("WIDGET") is ctx.catalog.schema("widget")

    def test_missing_table_is_schema_error(self, ctx):
        with pytest.raises(SchemaError, match="Unknown table: nope") as exc:
            ctx.catalog.columns_for("nope")
        assert exc.value.context.table == "nope"

    def test_failure_is_per_table(self, ctx):
        with pytest.raises(SchemaError):
            ctx.catalog.columns_for("nope")
        assert ctx.catalog.has_column("widget", "id")

    def test_built_once_per_process(self, ctx):
        with patch.object(ctx.provider, "query", wraps=ctx.provider.query) as spy:
            ctx.catalog.columns_for("widget")
            ctx.catalog.columns_for("widget")
            ctx.catalog.has_column("widget", "qty")
        assert spy.call_count == 1

    def test_written_to_cache_as_plain_dicts(self, ctx, cache):
        ctx.catalog.columns_for("widget")
        cached = cache.get(schema_cache_key("widget"))
        assert [item["name"] for item in cached] == ["id", "name", "qty"]
        assert cached[1]["type"] == "String"

    def test_read_from_cache(self, ctx, cache):
        cache.set(schema_cache_key("ghost"), [Column("x", ColumnType.BOOL, "bool").to_dict()])
        with patch.object(ctx.provider, "query") as spy:
            columns = ctx.catalog.columns_for("ghost")
        spy.assert_not_called()
        assert columns["x"].logical_type == ColumnType.BOOL

    def test_unreadable_cache_entry_is_rebuilt(self, ctx, cache):
        cache.set(schema_cache_key("widget"), [{"bogus": True}])
        assert list(ctx.catalog.columns_for("widget")) == ["id", "name", "qty"]

    def test_invalidate(self, ctx, cache):
        ctx.catalog.columns_for("widget")
        ctx.catalog.invalidate("widget")
        assert cache.get(schema_cache_key("widget")) is None
        with patch.object(ctx.provider, "query", wraps=ctx.provider.query) as spy:
            ctx.catalog.columns_for("widget")
        assert spy.call_count == 1

    def test_coerce_through_catalog(self, ctx):
        assert ctx.catalog.coerce("widget", "qty", "3") == 3
        assert ctx.catalog.coerce("widget", "unknown", "3") == "3"


class TestMySQLCatalog:
    """Catalog over a provider stub speaking the MySQL dialect."""

    @pytest.fixture
    def provider(self):
        provider = MagicMock()
        provider.dialect = MySQLDialect()
        provider.table_exists.return_value = True
        return provider

    def test_show_columns_rows(self, provider):
        provider.query.return_value = [
            {"Field": "id", "Type": "int(10) unsigned", "Default": None},
            {"Field": "qty", "Type": "smallint(6)", "Default": "0"},
            {"Field": "shape", "Type": "geometry", "Default": None},
            {"Field": "body", "Type": "longtext", "Default": None},
        ]
        columns = SchemaCatalog(provider).columns_for("widget")
        provider.query.assert_called_once_with("SHOW COLUMNS FROM `widget`")
        assert list(columns) == ["id", "qty", "body"]
        assert columns["id"].max == 4294967295
        assert columns["qty"].default == 0
        assert columns["body"].length == 4294967295

    def test_garbled_rows_are_skipped(self, provider):
        provider.query.return_value = [
            {"Field": "id", "Type": "int(11)"},
            {"Field": "price", "Type": "decimal(x,y)"},
            {"nonsense": 1},
        ]
        assert list(SchemaCatalog(provider).columns_for("widget")) == ["id"]

    def test_introspection_failure(self, provider):
        provider.query.side_effect = QueryError("Table 'site.nope' doesn't exist")
        with pytest.raises(SchemaError, match="doesn't exist") as exc:
            SchemaCatalog(provider).columns_for("nope")
        assert exc.value.context.query == "SHOW COLUMNS FROM `nope`"
        assert isinstance(exc.value.__cause__, QueryError)
