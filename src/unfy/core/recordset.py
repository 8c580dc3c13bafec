"""
RecordSet: a compiled filter/sort specification over one table, paged.

Manifesto:
    A record set does nothing until it is counted, indexed or iterated.
    Then it issues one ``COUNT`` (memoized) and one windowed ``SELECT`` per
    page it touches, keeping only the most recent page.  Raw rows become
    :class:`Record` objects the first time their slot is read.

    Pages are ordered by the requested sorts and then always by
    ``<table>.id``, so a window never shifts between two fetches of the
    same page.

Join-bearing pages:
    A dotted filter joins child tables, and a one-to-many join can return
    the same base row more than once.  The count uses
    ``COUNT(DISTINCT <table>.id)`` over the filter joins only; joins that
    exist just for a dotted sort key are ``LEFT JOIN``s and never reach the
    count.  The page query only collapses duplicates when ``dedupe`` is on
    (``GROUP BY <table>.id``); with it off (the default,
    ``dedupe_joined_pages``) the page can hold repeated rows and
    ``count()`` can be smaller than the number of rows iterated.

Examples:
    >>> rs = RecordSet({">qty": 2}, table="widget")
    >>> rs.count()
    1
    >>> rs.at(0).get("id")
    2
    >>> rs.sql()
    'SELECT "widget".* FROM "widget" WHERE "widget"."qty" > \\'2\\' ORDER BY "widget"."id" ASC LIMIT 100 OFFSET 0'

Tags:
    recordset, pagination, query, lazy-loading, unfy-core

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any, ClassVar

from unfy.core.context import DataContext, get_context
from unfy.core.filters import CompiledQuery, Direction, QueryCompiler, normalize_sorts
from unfy.core.logging import get_logger
from unfy.core.record import Record
from unfy.core.serialize import to_text

logger = get_logger(__name__)


class RecordSet:
    """Lazy, paginated sequence of Records matching a filter specification.

    Subclasses name their table the same way :class:`Record` subclasses
    do, and may pin ``record_class``.
    """

    table: ClassVar[str] = ""
    record_class: ClassVar[type[Record] | None] = None

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if not cls.__dict__.get("table"):
            cls.table = cls.__name__.lower()

    def __init__(
        self,
        filters: Mapping[str, Any] | None = None,
        sorts: Any = None,
        *,
        table: str | None = None,
        context: DataContext | None = None,
        page_size: int | None = None,
        dedupe: bool | None = None,
    ):
        name = (table or type(self).table).lower()
        if not name:
            raise ValueError("A RecordSet needs a table name")
        self.table = name  # type: ignore[misc]
        self._context = context or get_context()

        settings = self._context.settings
        self.page_size = page_size if page_size is not None else settings.page_size
        if self.page_size <= 0:
            raise ValueError(f"page_size must be positive, got {self.page_size}")
        self.dedupe = settings.dedupe_joined_pages if dedupe is None else dedupe

        self._filters: dict[str, Any] = dict(filters or {})
        self._sorts: dict[str, Direction] = normalize_sorts(sorts)
        self._compiled: CompiledQuery | None = None
        self._count: int | None = None
        self._page: tuple[int, list[Any]] | None = None

    # ------------------------------------------------------------------ #
    # Specification
    # ------------------------------------------------------------------ #

    @property
    def filters(self) -> dict[str, Any]:
        return dict(self._filters)

    @property
    def sorts(self) -> dict[str, Direction]:
        return dict(self._sorts)

    def where(self, key: str, value: Any) -> RecordSet:
        """Add or replace one filter; memoized count and page are dropped."""
        self._filters[key] = value
        self._invalidate()
        return self

    def order_by(self, column: str, direction: Direction | str | None = None) -> RecordSet:
        self._sorts[column] = Direction.parse(direction)
        self._invalidate()
        return self

    def _invalidate(self) -> None:
        self._compiled = None
        self._count = None
        self._page = None

    def _compile(self) -> CompiledQuery:
        if self._compiled is None:
            dialect = self._context.provider.dialect
            self._compiled = QueryCompiler(self.table, dialect).compile(self._filters, self._sorts)
        return self._compiled

    @property
    def join_bearing(self) -> bool:
        return self._compile().join_bearing

    # ------------------------------------------------------------------ #
    # SQL
    # ------------------------------------------------------------------ #

    def _from_clause(self, compiled: CompiledQuery, *, include_outer: bool = True) -> str:
        q = self._context.provider.quote
        joins = compiled.joins_sql(include_outer=include_outer)
        parts = [f"FROM {q(self.table)}", joins, compiled.where_sql()]
        return " ".join(part for part in parts if part)

    def count_sql(self) -> str:
        compiled = self._compile()
        q = self._context.provider.quote
        id_column = f"{q(self.table)}.{q('id')}"
        counted = f"DISTINCT {id_column}" if compiled.filter_joins else id_column
        from_clause = self._from_clause(compiled, include_outer=False)
        return f"SELECT COUNT({counted}) AS total {from_clause}"

    def sql(self, page: int = 0) -> str:
        """The windowed SELECT for *page*."""
        compiled = self._compile()
        q = self._context.provider.quote
        id_column = f"{q(self.table)}.{q('id')}"
        parts = [f"SELECT {q(self.table)}.*", self._from_clause(compiled)]
        if self.dedupe and compiled.join_bearing:
            parts.append(f"GROUP BY {id_column}")
        order = [*compiled.order, f"{id_column} {Direction.ASC.value}"]
        parts.append("ORDER BY " + ", ".join(order))
        parts.append(f"LIMIT {self.page_size} OFFSET {page * self.page_size}")
        return " ".join(parts)

    # ------------------------------------------------------------------ #
    # Access
    # ------------------------------------------------------------------ #

    def count(self) -> int:
        """Number of distinct matching rows (memoized).

        Raises:
            QueryError: The compiled count query failed.
        """
        if self._count is None:
            row = self._context.provider.query_one(self.count_sql())
            self._count = int(next(iter(row.values()))) if row else 0
            logger.debug("count_fetched", table=self.table, count=self._count)
        return self._count

    def at(self, offset: int) -> Record:
        """Record at *offset* in the ordered result.

        Raises:
            IndexError: *offset* is negative or not below ``count()``.
            QueryError: The page query failed.
        """
        total = self.count()
        if offset < 0 or offset >= total:
            raise IndexError(f"{self.table} offset {offset} out of range (count {total})")

        page, slot = divmod(offset, self.page_size)
        if self._page is None or self._page[0] != page:
            rows = self._context.provider.query(self.sql(page))
            self._page = (page, list(rows))
            logger.debug("page_fetched", table=self.table, page=page, rows=len(rows))

        rows = self._page[1]
        if slot >= len(rows):
            raise IndexError(f"{self.table} offset {offset} missing from page {page}")

        item = rows[slot]
        if not isinstance(item, Record):
            item = self._make_record(item)
            rows[slot] = item
        return item

    def _make_record(self, row: Mapping[str, Any]) -> Record:
        record_cls = self.record_class or self._context.registry.record_class(self.table)
        return record_cls(row, table=self.table, context=self._context)

    def __iter__(self) -> Iterator[Record]:
        for offset in range(self.count()):
            yield self.at(offset)

    def __len__(self) -> int:
        return self.count()

    def __bool__(self) -> bool:
        return self.count() > 0

    def __getitem__(self, index: int | slice) -> Any:
        if isinstance(index, slice):
            return [self.at(i) for i in range(*index.indices(self.count()))]
        if index < 0:
            index += self.count()
        return self.at(index)

    # ------------------------------------------------------------------ #
    # Views
    # ------------------------------------------------------------------ #

    def to_dict(self) -> dict[str, Any]:
        return {
            "table": self.table,
            "filters": self._filters,
            "sorts": {k: v.value for k, v in self._sorts.items()},
            "count": self.count(),
            "rows": [record.to_dict() for record in self],
        }

    def to_text(self, indent: int = 0) -> str:
        return to_text(self.to_dict(), indent)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.table} filters={self._filters!r}>"


__all__ = [
    "RecordSet",
]
