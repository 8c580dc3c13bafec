"""
Record: one lazily hydrated table row with an overlay of pending changes.

Manifesto:
    A record built from an id costs nothing until a field is read; then it
    fetches its whole row once.  A record built from a full row (as record
    sets build them) never queries at all.  Changes are kept in an overlay
    above the persisted row and are never written back: this layer reads.

    Relations are found by naming convention, not foreign-key metadata:

    - ``order.get("owner")``      → the ``owner`` record whose id is ``order.owner_id``
    - ``owner.get("orders_list")``→ every ``orders`` row with ``owner_id = owner.id``

Architecture:
    ::

        get(field)
          │ hydrate once if persisted == {"id": N}
          │     SELECT * FROM t WHERE id = N LIMIT 1   (WHERE FALSE if N <= 0)
          ▼
        overlay ─► persisted ─► relation cache ─► resolve relation (cached)

        set(field, v)    no-op unless exists(field) or v == get(field)
                         "x_id" changed → cached relation "x" evicted
                         "id" changed   → cached "*_list" relations evicted

Examples:
    >>> widget = Record(7, table="widget")
    >>> widget.get("name")
    'bolt'
    >>> widget.set("qty", 5)
    >>> widget.get("qty"), widget.changes
    (5, {'qty': 5})

Guardrails:
    ❌ DON'T: Expect ``set`` to persist anything
    ✅ DO: Read ``changes`` and write them through your own write path

    ❌ DON'T: Build a Record from an arbitrary object
    ✅ DO: Pass an id or a mapping that contains ``id``

Tags:
    record, lazy-loading, overlay, relations, unfy-core

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any, ClassVar

from unfy.core.context import DataContext, get_context
from unfy.core.logging import get_logger
from unfy.core.serialize import to_text

logger = get_logger(__name__)

COLLECTION_SUFFIX = "_list"
FOREIGN_KEY_SUFFIX = "_id"


class Record:
    """A single table row.

    Subclasses name their table with a ``table`` class attribute or inherit
    the lowercased class name::

        class Widget(Record):      # table "widget"
            pass

        class Line(Record):
            table = "order_line"
    """

    table: ClassVar[str] = ""

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if not cls.__dict__.get("table"):
            cls.table = cls.__name__.lower()

    def __init__(
        self,
        source: Any,
        *,
        table: str | None = None,
        context: DataContext | None = None,
    ):
        name = (table or type(self).table).lower()
        if not name:
            raise ValueError("A Record needs a table name")
        self.table = name  # type: ignore[misc]
        self._context = context or get_context()
        self._persisted: dict[str, Any] = _persisted_from(source, name)
        self._overlay: dict[str, Any] = {}
        self._relations: dict[str, Any] = {}
        self._fetched = len(self._persisted) > 1

    # ------------------------------------------------------------------ #
    # Hydration
    # ------------------------------------------------------------------ #

    @property
    def context(self) -> DataContext:
        return self._context

    @property
    def is_hydrated(self) -> bool:
        return len(self._persisted) > 1

    def _hydrate(self) -> None:
        if self._fetched:
            return
        self._fetched = True

        provider = self._context.provider
        dialect = provider.dialect
        record_id = _as_int(self._persisted.get("id"))
        if record_id is None or record_id <= 0:
            condition = dialect.boolean_false()
        else:
            condition = f"{dialect.quote_identifier('id')} = {record_id}"
        sql = f"SELECT * FROM {dialect.quote_identifier(self.table)} WHERE {condition} LIMIT 1"

        row = provider.query_one(sql)
        if row is None:
            logger.debug("record_not_found", table=self.table, id=self._persisted.get("id"))
            return
        self._persisted = dict(row)

    # ------------------------------------------------------------------ #
    # Field access
    # ------------------------------------------------------------------ #

    def exists(self, field: str) -> bool:
        """True for hydrated columns, ``x`` when ``x_id`` is a column, and
        any ``*_list`` collection name."""
        self._hydrate()
        return (
            field in self._persisted
            or field + FOREIGN_KEY_SUFFIX in self._persisted
            or field.endswith(COLLECTION_SUFFIX)
        )

    def get(self, field: str) -> Any:
        if not self.exists(field):
            return None
        if field in self._overlay:
            return self._overlay[field]
        if field in self._persisted:
            return self._persisted[field]
        if field in self._relations:
            return self._relations[field]
        relation = self._resolve_relation(field)
        if relation is not None:
            self._relations[field] = relation
        return relation

    def set(self, field: str, value: Any) -> None:
        if not self.exists(field) or self.get(field) == value:
            return

        if field in self._persisted and self._persisted[field] == value:
            self._overlay.pop(field, None)
        else:
            self._overlay[field] = value

        if field == "id":
            for key in [k for k in self._relations if k.endswith(COLLECTION_SUFFIX)]:
                del self._relations[key]
        elif field.endswith(FOREIGN_KEY_SUFFIX):
            self._relations.pop(field[: -len(FOREIGN_KEY_SUFFIX)], None)

    def unset(self, field: str) -> None:
        """Clear a value in the overlay (``id`` becomes ``0``)."""
        if not self.exists(field):
            return
        self.set(field, 0 if field == "id" else None)

    def count(self) -> int:
        """Number of hydrated columns."""
        self._hydrate()
        return len(self._persisted)

    @property
    def id(self) -> Any:
        if "id" in self._overlay:
            return self._overlay["id"]
        return self._persisted.get("id")

    # ------------------------------------------------------------------ #
    # Relations
    # ------------------------------------------------------------------ #

    def _resolve_relation(self, field: str) -> Any:
        if field.endswith(COLLECTION_SUFFIX):
            own_id = _as_int(self.id)
            if own_id is None or own_id <= 0:
                return None
            child = field[: -len(COLLECTION_SUFFIX)]
            related = self._context.records(child, {self.table + FOREIGN_KEY_SUFFIX: own_id})
        else:
            key = field + FOREIGN_KEY_SUFFIX
            value = self._overlay[key] if key in self._overlay else self._persisted.get(key)
            if value is None:
                return None
            related = self._context.record(field, value)

        if related is None:
            logger.debug("relation_unresolved", table=self.table, field=field)
        return related

    # ------------------------------------------------------------------ #
    # Typed access
    # ------------------------------------------------------------------ #

    def typed(self, field: str) -> Any:
        """``get(field)`` converted to the column's logical type."""
        return self._context.catalog.coerce(self.table, field, self.get(field))

    def set_checked(self, field: str, value: Any) -> None:
        """Validate against the column's type and range, then ``set``.

        Raises:
            ValidationError: The value does not convert.
            ConstraintError: The value is out of range or too long.
        """
        column = self._context.catalog.column(self.table, field)
        if column is not None:
            column.check(value)
            value = column.coerce(value)
        self.set(field, value)

    # ------------------------------------------------------------------ #
    # Views
    # ------------------------------------------------------------------ #

    def to_dict(self) -> dict[str, Any]:
        """Overlay merged over the persisted row."""
        self._hydrate()
        return {**self._persisted, **self._overlay}

    @property
    def changes(self) -> dict[str, Any]:
        return dict(self._overlay)

    @property
    def is_dirty(self) -> bool:
        return bool(self._overlay)

    def to_text(self, indent: int = 0) -> str:
        return to_text(self.to_dict(), indent)

    def __str__(self) -> str:
        return self.to_text()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.table}#{self.id}>"

    # Mapping-style sugar over get / set / unset

    def __getitem__(self, field: str) -> Any:
        if not self.exists(field):
            raise KeyError(field)
        return self.get(field)

    def __setitem__(self, field: str, value: Any) -> None:
        self.set(field, value)

    def __delitem__(self, field: str) -> None:
        self.unset(field)

    def __contains__(self, field: object) -> bool:
        return isinstance(field, str) and self.exists(field)

    def __iter__(self) -> Iterator[str]:
        self._hydrate()
        return iter(list(self._persisted))

    def __len__(self) -> int:
        return self.count()


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


def _persisted_from(source: Any, table: str) -> dict[str, Any]:
    if isinstance(source, Mapping):
        if "id" not in source:
            raise ValueError(f"A {table} row needs an 'id' key")
        return dict(source)
    if not isinstance(source, bool):
        record_id = _as_int(source)
        if record_id is not None:
            return {"id": record_id}
    raise ValueError(f"Cannot build a {table} record from {source!r}")


__all__ = [
    "COLLECTION_SUFFIX",
    "FOREIGN_KEY_SUFFIX",
    "Record",
]
