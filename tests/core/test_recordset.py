"""Tests for unfy.core.recordset — counting, paging, joins, dedupe."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from unfy.core.errors import QueryError
from unfy.core.filters import Direction
from unfy.core.record import Record
from unfy.core.recordset import RecordSet


@pytest.fixture
def widgets(db):
    db.executemany(
        "INSERT INTO widget (id, name, qty) VALUES (?, ?, ?)",
        [(1, "nut", 1), (2, "gear", 5), (3, "cog", 2)],
    )


@pytest.fixture
def many(db):
    db.executemany(
        "INSERT INTO widget (id, name, qty) VALUES (?, ?, ?)",
        [(i, f"w{i}", i % 7) for i in range(1, 201)],
    )


@pytest.fixture
def fan_out(db):
    db.executemany("INSERT INTO orders (id, total) VALUES (?, ?)", [(1, 10), (2, 20)])
    db.executemany(
        "INSERT INTO owner (id, orders_id, region) VALUES (?, ?, ?)",
        [(1, 1, "west"), (2, 1, "west"), (3, 2, "west")],
    )


class TestCounting:
    def test_filtered_count_and_first_row(self, ctx, widgets):
        records = RecordSet({">qty": 2}, table="widget", context=ctx)
        assert records.count() == 1
        assert records.at(0).id == 2

    def test_unfiltered_count(self, ctx, widgets):
        assert RecordSet(table="widget", context=ctx).count() == 3

    def test_empty(self, ctx):
        records = RecordSet(table="widget", context=ctx)
        assert records.count() == 0
        assert not records
        assert list(records) == []

    def test_count_is_memoized(self, ctx, widgets):
        records = RecordSet(table="widget", context=ctx)
        with patch.object(ctx.provider, "query_one", wraps=ctx.provider.query_one) as spy:
            records.count()
            records.count()
            len(records)
        assert spy.call_count == 1

    def test_where_invalidates(self, ctx, widgets):
        records = RecordSet(table="widget", context=ctx)
        assert records.count() == 3
        assert records.where("<qty", 3).count() == 2
        assert records.filters == {"<qty": 3}

    def test_where_drops_memoized_page(self, ctx, widgets):
        records = RecordSet(table="widget", context=ctx)
        first = records.at(0)
        assert first.id == 1
        with patch.object(ctx.provider, "query", wraps=ctx.provider.query) as spy:
            records.where(">qty", 1)
            assert records.at(0).id == 2
        assert spy.call_count == 2

    def test_order_by_drops_memoized_count_and_page(self, ctx, widgets):
        records = RecordSet(table="widget", context=ctx)
        first = records.at(0)
        assert first.get("name") == "nut"
        with patch.object(ctx.provider, "query", wraps=ctx.provider.query) as spy:
            records.order_by("qty", "desc")
            reordered = records.at(0)
        assert reordered is not first
        assert reordered.get("name") == "gear"
        assert spy.call_count == 2
        assert "ORDER BY \"widget\".\"qty\" DESC" in spy.call_args_list[-1].args[0]

    def test_null_filter(self, ctx, db, widgets):
        db.execute("INSERT INTO widget (id, name, qty) VALUES (4, 'spring', NULL)")
        assert RecordSet({"qty": None}, table="widget", context=ctx).count() == 1
        assert RecordSet({"!qty": None}, table="widget", context=ctx).count() == 3


class TestAccess:
    def test_out_of_range(self, ctx, widgets):
        records = RecordSet(table="widget", context=ctx)
        with pytest.raises(IndexError):
            records.at(3)
        with pytest.raises(IndexError):
            records.at(-1)

    def test_records_are_built_once(self, ctx, widgets):
        records = RecordSet(table="widget", context=ctx)
        first = records.at(0)
        assert isinstance(first, Record)
        assert records.at(0) is first
        assert first.get("name") == "nut"

    def test_sequence_protocol(self, ctx, widgets):
        records = RecordSet(table="widget", context=ctx)
        assert [r.id for r in records] == [1, 2, 3]
        assert records[-1].id == 3
        assert [r.id for r in records[1:]] == [2, 3]
        assert len(records) == 3

    def test_sorted(self, ctx, widgets):
        records = RecordSet(None, {"qty": "desc"}, table="widget", context=ctx)
        assert [r.get("name") for r in records] == ["gear", "cog", "nut"]

    def test_order_by(self, ctx, widgets):
        records = RecordSet(table="widget", context=ctx).order_by("name")
        assert records.sorts == {"name": Direction.ASC}
        assert [r.get("name") for r in records] == ["cog", "gear", "nut"]

    def test_registered_record_class(self, ctx, widgets):
        class Widget(Record):
            pass

        ctx.registry.register("widget", Widget)
        assert isinstance(RecordSet(table="widget", context=ctx).at(0), Widget)

    def test_record_class_attribute(self, ctx, widgets):
        class Widget(Record):
            pass

        class Widgets(RecordSet):
            table = "widget"
            record_class = Widget

        assert isinstance(Widgets(context=ctx).at(0), Widget)

    def test_invalid_column_raises_query_error(self, ctx, widgets):
        with pytest.raises(QueryError):
            RecordSet({"bogus": 1}, table="widget", context=ctx).count()

    def test_page_size_must_be_positive(self, ctx):
        with pytest.raises(ValueError):
            RecordSet(table="widget", context=ctx, page_size=0)


class TestPaging:
    def test_stable_windows(self, ctx, many):
        records = RecordSet(table="widget", context=ctx, page_size=100)
        assert records.count() == 200
        with patch.object(ctx.provider, "query", wraps=ctx.provider.query) as spy:
            assert records.at(5).id == 6
            assert records.at(150).id == 151
            assert records.at(6).id == 7
            assert records.at(7).id == 8
        assert spy.call_count == 3

    def test_page_sql(self, ctx):
        records = RecordSet({">qty": 2}, table="widget", context=ctx, page_size=10)
        assert records.sql(2) == (
            'SELECT "widget".* FROM "widget" WHERE "widget"."qty" > \'2\' '
            'ORDER BY "widget"."id" ASC LIMIT 10 OFFSET 20'
        )
        assert records.count_sql() == (
            'SELECT COUNT("widget"."id") AS total FROM "widget" WHERE "widget"."qty" > \'2\''
        )

    def test_default_page_size_from_settings(self, ctx):
        assert RecordSet(table="widget", context=ctx).page_size == ctx.settings.page_size


class TestJoins:
    def test_join_sql(self, ctx):
        records = RecordSet({"owner.region": "west"}, table="orders", context=ctx)
        assert records.join_bearing
        assert records.count_sql() == (
            'SELECT COUNT(DISTINCT "orders"."id") AS total FROM "orders" '
            'JOIN "owner" AS "owner" ON "owner"."orders_id" = "orders"."id" '
            "WHERE \"owner\".\"region\" = 'west'"
        )

    def test_fan_out_without_dedupe(self, ctx, fan_out):
        records = RecordSet({"owner.region": "west"}, table="orders", context=ctx)
        assert records.count() == 2
        assert [r.id for r in records] == [1, 1]

    def test_fan_out_with_dedupe(self, ctx, fan_out):
        records = RecordSet({"owner.region": "west"}, table="orders", context=ctx, dedupe=True)
        assert "GROUP BY" in records.sql()
        assert [r.id for r in records] == [1, 2]

    def test_sort_alone_keeps_rows_without_children(self, ctx, db):
        db.executemany("INSERT INTO orders (id, total) VALUES (?, ?)", [(1, 10), (2, 20), (3, 30)])
        db.execute("INSERT INTO owner (id, orders_id, name) VALUES (1, 1, 'amy')")
        records = RecordSet(None, ["owner.name"], table="orders", context=ctx)
        assert records.count() == 3
        assert "JOIN" not in records.count_sql()
        assert "LEFT JOIN \"owner\"" in records.sql()
        assert [r.id for r in records] == [2, 3, 1]

    def test_filter_and_sort_share_inner_join(self, ctx, fan_out, db):
        db.execute("INSERT INTO orders (id, total) VALUES (3, 30)")
        records = RecordSet(
            {"owner.region": "west"}, ["owner.name"], table="orders", context=ctx, dedupe=True
        )
        assert records.count() == 2
        assert "LEFT JOIN" not in records.sql()

    def test_dedupe_ignored_without_joins(self, ctx):
        assert "GROUP BY" not in RecordSet(table="widget", context=ctx, dedupe=True).sql()

    def test_sort_through_join(self, ctx, fan_out, db):
        db.execute("UPDATE owner SET name = 'zed' WHERE id = 3")
        db.execute("UPDATE owner SET name = 'amy' WHERE id IN (1, 2)")
        records = RecordSet(None, {"owner.name": "desc"}, table="orders", context=ctx, dedupe=True)
        assert [r.id for r in records] == [2, 1]


class TestViews:
    def test_to_dict(self, ctx, widgets):
        payload = RecordSet({"<qty": 2}, table="widget", context=ctx).to_dict()
        assert payload == {
            "table": "widget",
            "filters": {"<qty": 2},
            "sorts": {},
            "count": 1,
            "rows": [{"id": 1, "name": "nut", "qty": 1}],
        }

    def test_repr(self, ctx):
        assert repr(RecordSet({"a": 1}, table="Widget", context=ctx)) == (
            "<RecordSet widget filters={'a': 1}>"
        )
