"""Tests for unfy.core.columns — Column coercion, range checks, text forms."""

from __future__ import annotations

import json
from datetime import date, datetime, timedelta

import pytest

from unfy.core.columns import Column, ColumnType, TableSchema
from unfy.core.errors import ConstraintError, ValidationError


def col(logical: ColumnType, **kwargs) -> Column:
    return Column(name=kwargs.pop("name", "c"), logical_type=logical, native_type="x", **kwargs)


class TestCoerce:
    def test_none_passes_through(self):
        assert col(ColumnType.INT).coerce(None) is None

    def test_int(self):
        assert col(ColumnType.INT).coerce(" 42 ") == 42

    def test_float(self):
        assert col(ColumnType.FLOAT).coerce("1.5") == 1.5

    @pytest.mark.parametrize("raw,expected", [("yes", True), ("0", False), (1, True), ("FALSE", False)])
    def test_bool(self, raw, expected):
        assert col(ColumnType.BOOL).coerce(raw) is expected

    def test_bool_rejects_garbage(self):
        with pytest.raises(ValidationError):
            col(ColumnType.BOOL).coerce("maybe")

    def test_datetime_from_string(self):
        assert col(ColumnType.DATETIME).coerce("2024-03-01 10:30:00") == datetime(2024, 3, 1, 10, 30)

    def test_datetime_from_date(self):
        assert col(ColumnType.DATETIME).coerce(date(2024, 3, 1)) == datetime(2024, 3, 1)

    def test_time_delta_kept(self):
        delta = timedelta(hours=2)
        assert col(ColumnType.DATETIME).coerce(delta) is delta

    def test_string_from_bytes(self):
        assert col(ColumnType.STRING).coerce(b"bolt") == "bolt"

    def test_failure_is_validation_error(self):
        with pytest.raises(ValidationError) as exc:
            col(ColumnType.INT, name="qty").coerce("three")
        assert exc.value.field == "qty"
        assert exc.value.constraint == "type"


class TestCheck:
    def test_in_range(self):
        col(ColumnType.INT, min=-32768, max=32767).check(100)

    def test_above_max(self):
        with pytest.raises(ConstraintError) as exc:
            col(ColumnType.INT, min=0, max=65535).check(70000)
        assert exc.value.constraint == "max"

    def test_below_min(self):
        with pytest.raises(ConstraintError) as exc:
            col(ColumnType.INT, min=0, max=255).check("-1")
        assert exc.value.constraint == "min"

    def test_string_length(self):
        column = col(ColumnType.STRING, length=4)
        column.check("bolt")
        with pytest.raises(ConstraintError):
            column.check("bolts")

    def test_none_is_always_allowed(self):
        col(ColumnType.INT, min=1, max=2).check(None)


class TestSerialization:
    def test_dict_round_trip(self):
        column = Column("qty", ColumnType.INT, "smallint", 6, -32768, 32767, 0)
        assert Column.from_dict(column.to_dict()) == column

    def test_to_text_is_tab_indented_json(self):
        column = Column("qty", ColumnType.INT, "int")
        text = column.to_text(1)
        assert all(line.startswith("\t") for line in text.splitlines())
        assert json.loads(text)["type"] == "Int"

    def test_schema_iteration_and_membership(self):
        schema = TableSchema("widget", {
            "id": Column("id", ColumnType.INT, "int"),
            "name": Column("name", ColumnType.STRING, "varchar", 40),
        })
        assert [c.name for c in schema] == ["id", "name"]
        assert "name" in schema
        assert len(schema) == 2
        assert schema.get("nope") is None
        assert json.loads(schema.to_text())["columns"]["name"]["length"] == 40
