"""
Filter and sort compiler: specification maps → JOIN / WHERE / ORDER BY.

Manifesto:
    A record set is described by two ordered maps.  Filter keys carry an
    optional comparator prefix and an optional dot path of joined tables;
    sort keys carry the same dot path.  This module turns both into SQL
    fragments for one base table, with every identifier quoted and every
    literal escaped through the dialect.

Filter key grammar:
    ::

        [comparator] [table "." ...] column

        comparator  "=" | "==" | "!" | "!=" | "<" | ">" | "<=" | ">="
                    ("==" is "=", "!" is "!="; no prefix means "=")

    ``None`` as the value is the explicit null marker:

        =, <, <=   →  column IS NULL
        !=, >, >=  →  column IS NOT NULL

    Clauses are ANDed.  There is no OR.

Join inference:
    For ``orders`` and the key ``owner.address.city``::

        JOIN "owner" AS "owner" ON "owner"."orders_id" = "orders"."id"
        JOIN "address" AS "owner_address" ON "owner_address"."owner_id" = "owner"."id"
        WHERE "owner_address"."city" = '...'

    Aliases are the cumulative path joined with ``_`` and each alias is
    joined once per query.  Any join makes the query *join-bearing*.

    Filters join with an inner ``JOIN``.  A path that only a sort key uses
    is joined with ``LEFT JOIN`` so ordering never drops base rows; rows
    without a child sort with NULL in that column.

Tags:
    sql, compiler, filters, joins, pagination, unfy-core

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from unfy.core.dialect import Dialect

# Longest tokens first so "<=" is not read as "<"
_COMPARATORS = ("<=", ">=", "!=", "==", "=", "!", "<", ">")
_SHORTHAND = {"==": "=", "!": "!="}
_IS_NULL = {"=": "IS NULL", "<": "IS NULL", "<=": "IS NULL"}
_IS_NOT_NULL = {"!=": "IS NOT NULL", ">": "IS NOT NULL", ">=": "IS NOT NULL"}


class Direction(str, Enum):
    ASC = "ASC"
    DESC = "DESC"

    @classmethod
    def parse(cls, value: Any) -> Direction:
        """``None`` and unset directions mean ascending."""
        if value is None:
            return cls.ASC
        if isinstance(value, Direction):
            return value
        text = str(value).strip().upper()
        if text in ("", "ASC", "ASCENDING"):
            return cls.ASC
        if text in ("DESC", "DESCENDING"):
            return cls.DESC
        raise ValueError(f"Unknown sort direction: {value!r}")


@dataclass(frozen=True)
class FilterKey:
    """A parsed filter or sort key."""

    comparator: str
    path: tuple[str, ...]
    column: str

    @property
    def is_joined(self) -> bool:
        return bool(self.path)


def parse_key(key: str) -> FilterKey:
    """Split a filter key into comparator, join path and column.

    >>> parse_key(">=owner.region")
    FilterKey(comparator='>=', path=('owner',), column='region')
    """
    comparator = "="
    text = key.strip()
    for token in _COMPARATORS:
        if text.startswith(token):
            comparator = _SHORTHAND.get(token, token)
            text = text[len(token):].strip()
            break

    prefix, _, column = text.rpartition(".")
    column = column.strip()
    if not column:
        raise ValueError(f"Filter key names no column: {key!r}")
    path = tuple(segment.strip().lower() for segment in prefix.split(".")) if prefix else ()
    if any(not segment for segment in path):
        raise ValueError(f"Filter key has an empty table segment: {key!r}")
    return FilterKey(comparator, path, column)


def normalize_sorts(sorts: Any) -> dict[str, Direction]:
    """Accept a mapping, a list of column names / ``(column, direction)``
    pairs, a single column name, or ``None``."""
    if not sorts:
        return {}
    if isinstance(sorts, str):
        return {sorts: Direction.ASC}
    if isinstance(sorts, Mapping):
        return {str(k): Direction.parse(v) for k, v in sorts.items()}
    result: dict[str, Direction] = {}
    for item in sorts:
        if isinstance(item, str):
            result[item] = Direction.ASC
        else:
            column, direction = item
            result[str(column)] = Direction.parse(direction)
    return result


def render_literal(value: Any, dialect: Dialect) -> str:
    """Quoted, escaped SQL literal for a filter value."""
    if isinstance(value, bool):
        value = int(value)
    elif isinstance(value, datetime):
        value = value.isoformat(" ")
    elif isinstance(value, Enum):
        value = value.value
    return "'" + dialect.escape(str(value)) + "'"


@dataclass(frozen=True)
class Join:
    """One inferred child join; ``outer`` joins are introduced by sorts only."""

    table: str
    alias: str
    parent_table: str
    parent_alias: str
    outer: bool = False

    def render(self, dialect: Dialect) -> str:
        q = dialect.quote_identifier
        keyword = "LEFT JOIN" if self.outer else "JOIN"
        return (
            f"{keyword} {q(self.table)} AS {q(self.alias)} "
            f"ON {q(self.alias)}.{q(self.parent_table + '_id')} = {q(self.parent_alias)}.{q('id')}"
        )


@dataclass
class CompiledQuery:
    """SQL fragments for one base table; empty strings when absent."""

    table: str
    joins: list[Join] = field(default_factory=list)
    conditions: list[str] = field(default_factory=list)
    order: list[str] = field(default_factory=list)
    dialect: Dialect | None = None

    @property
    def join_bearing(self) -> bool:
        return bool(self.joins)

    @property
    def filter_joins(self) -> list[Join]:
        """Inner joins; the only ones that can narrow the base rows."""
        return [j for j in self.joins if not j.outer]

    def joins_sql(self, *, include_outer: bool = True) -> str:
        joins = self.joins if include_outer else self.filter_joins
        return " ".join(j.render(self.dialect) for j in joins)

    def where_sql(self) -> str:
        return "WHERE " + " AND ".join(self.conditions) if self.conditions else ""


class QueryCompiler:
    """Compiles filter and sort specifications for *table*.

    Example:
        >>> compiled = QueryCompiler("orders", get_dialect("sqlite")).compile(
        ...     {"owner.region": "west"}, {}
        ... )
        >>> compiled.where_sql()
        'WHERE "owner"."region" = \\'west\\''
    """

    def __init__(self, table: str, dialect: Dialect):
        self.table = table.lower()
        self.dialect = dialect

    def compile(
        self,
        filters: Mapping[str, Any] | None,
        sorts: Mapping[str, Direction] | Iterable[str] | None,
    ) -> CompiledQuery:
        compiled = CompiledQuery(self.table, dialect=self.dialect)
        seen: set[str] = set()
        q = self.dialect.quote_identifier

        for key, value in (filters or {}).items():
            parsed = parse_key(key)
            alias = self._join_path(parsed.path, compiled, seen)
            column = f"{q(alias)}.{q(parsed.column)}"
            if value is None:
                test = _IS_NULL.get(parsed.comparator) or _IS_NOT_NULL[parsed.comparator]
                compiled.conditions.append(f"{column} {test}")
            else:
                literal = render_literal(value, self.dialect)
                compiled.conditions.append(f"{column} {parsed.comparator} {literal}")

        for key, direction in normalize_sorts(sorts).items():
            parsed = parse_key(key)
            alias = self._join_path(parsed.path, compiled, seen, outer=True)
            compiled.order.append(f"{q(alias)}.{q(parsed.column)} {direction.value}")

        return compiled

    def _join_path(
        self,
        path: tuple[str, ...],
        compiled: CompiledQuery,
        seen: set[str],
        *,
        outer: bool = False,
    ) -> str:
        """Emit missing joins for *path*; return the alias that owns the column."""
        parent_table = parent_alias = self.table
        alias = self.table
        for index, segment in enumerate(path):
            alias = "_".join(path[: index + 1])
            if alias not in seen:
                seen.add(alias)
                compiled.joins.append(Join(segment, alias, parent_table, parent_alias, outer))
            parent_table, parent_alias = segment, alias
        return alias


__all__ = [
    "CompiledQuery",
    "Direction",
    "FilterKey",
    "Join",
    "QueryCompiler",
    "normalize_sorts",
    "parse_key",
    "render_literal",
]
