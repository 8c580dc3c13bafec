"""Table name → Record class registry.

Relations are resolved by naming convention: ``order.owner`` becomes a
record of table ``owner``.  The registry decides which class that record
is: an explicitly registered subclass, or the generic :class:`Record` when
the table exists in the database.

Usage::

    from unfy.core.record import Record
    from unfy.core.registry import record_registry

    @record_registry.record
    class Widget(Record):
        pass

    record_registry.record_class("widget")   # Widget
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, TypeVar

from unfy.core.logging import get_logger

if TYPE_CHECKING:
    from unfy.core.record import Record

logger = get_logger(__name__)

R = TypeVar("R", bound="type[Record]")


class RecordRegistry:
    """Maps lowercased table names to Record subclasses."""

    def __init__(self):
        self._classes: dict[str, type[Record]] = {}

    def register(self, table: str, record_cls: type[Record]) -> None:
        self._classes[table.lower()] = record_cls
        logger.debug("record_class_registered", table=table.lower(), cls=record_cls.__name__)

    def record(self, record_cls: R) -> R:
        """Class decorator registering *record_cls* under its ``table``."""
        self.register(record_cls.table, record_cls)
        return record_cls

    def unregister(self, table: str) -> None:
        self._classes.pop(table.lower(), None)

    def record_class(self, table: str) -> type[Record]:
        """Registered class for *table*, else the generic Record."""
        found = self._classes.get(table.lower())
        if found is not None:
            return found
        from unfy.core.record import Record

        return Record

    def resolve(self, table: str, table_exists: Callable[[str], bool]) -> type[Record] | None:
        """Class for *table*, or ``None`` when nothing is registered and the
        table does not exist."""
        name = table.lower()
        if name in self._classes:
            return self._classes[name]
        if table_exists(name):
            return self.record_class(name)
        return None

    def tables(self) -> list[str]:
        return sorted(self._classes)

    def __contains__(self, table: object) -> bool:
        return isinstance(table, str) and table.lower() in self._classes


# Default registry, shared by every DataContext that is not given its own
record_registry = RecordRegistry()


__all__ = [
    "RecordRegistry",
    "record_registry",
]
