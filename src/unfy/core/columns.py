"""Logical column model shared by both dialects.

A :class:`Column` is the backend-independent description of one native
column: its logical type, declared or implied length, numeric range and
default.  The dialects build columns from introspection rows; the catalog
caches them; the typed accessor layer uses :meth:`Column.coerce` and
:meth:`Column.check`.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any

from unfy.core.errors import ConstraintError, ValidationError
from unfy.core.serialize import to_text

_TRUE_WORDS = frozenset({"1", "true", "t", "yes", "y", "on"})
_FALSE_WORDS = frozenset({"0", "false", "f", "no", "n", "off", ""})


class ColumnType(str, Enum):
    """Backend-independent classification of a native column."""

    INT = "Int"
    FLOAT = "Float"
    STRING = "String"
    BOOL = "Bool"
    DATETIME = "DateTime"


@dataclass(frozen=True)
class Column:
    """Immutable description of one table column."""

    name: str
    logical_type: ColumnType
    native_type: str
    length: int | None = None
    min: int | float | None = None
    max: int | float | None = None
    default: Any = None

    @property
    def is_numeric(self) -> bool:
        return self.logical_type in (ColumnType.INT, ColumnType.FLOAT)

    def coerce(self, value: Any) -> Any:
        """Convert a raw driver value to this column's logical type.

        ``None`` passes through.  Raises :class:`ValidationError` when the
        value cannot be represented.
        """
        if value is None:
            return None
        try:
            match self.logical_type:
                case ColumnType.INT:
                    if isinstance(value, str):
                        value = value.strip()
                    return int(value)
                case ColumnType.FLOAT:
                    return float(value)
                case ColumnType.BOOL:
                    return _to_bool(value)
                case ColumnType.DATETIME:
                    return _to_datetime(value)
                case _:
                    if isinstance(value, (bytes, bytearray)):
                        return bytes(value).decode("utf-8")
                    return str(value)
        except (TypeError, ValueError, ArithmeticError) as e:
            raise ValidationError(
                f"Cannot convert {value!r} to {self.logical_type.value} for column {self.name}",
                field=self.name,
                value=value,
                constraint="type",
                cause=e,
            ) from e

    def check(self, value: Any) -> None:
        """Raise :class:`ConstraintError` if *value* does not fit the column."""
        if value is None:
            return
        value = self.coerce(value)
        if self.is_numeric:
            if self.min is not None and value < self.min:
                raise ConstraintError(
                    f"{self.name}={value!r} is below the minimum {self.min}",
                    field=self.name,
                    value=value,
                    constraint="min",
                )
            if self.max is not None and value > self.max:
                raise ConstraintError(
                    f"{self.name}={value!r} is above the maximum {self.max}",
                    field=self.name,
                    value=value,
                    constraint="max",
                )
        elif self.logical_type == ColumnType.STRING and self.length is not None:
            if len(value) > self.length:
                raise ConstraintError(
                    f"{self.name} is longer than {self.length} characters",
                    field=self.name,
                    value=value,
                    constraint="length",
                )

    def to_dict(self) -> dict[str, Any]:
        """Plain-dict form, safe for any JSON cache backend."""
        return {
            "name": self.name,
            "type": self.logical_type.value,
            "length": self.length,
            "min": self.min,
            "max": self.max,
            "default": self.default,
            "native_type": self.native_type,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Column:
        return cls(
            name=data["name"],
            logical_type=ColumnType(data["type"]),
            native_type=data.get("native_type", ""),
            length=data.get("length"),
            min=data.get("min"),
            max=data.get("max"),
            default=data.get("default"),
        )

    def to_text(self, indent: int = 0) -> str:
        return to_text(self.to_dict(), indent)


@dataclass(frozen=True)
class TableSchema:
    """Ordered column metadata for one table (database column order)."""

    name: str
    columns: dict[str, Column] = field(default_factory=dict)

    def __contains__(self, name: object) -> bool:
        return name in self.columns

    def __iter__(self) -> Iterator[Column]:
        return iter(self.columns.values())

    def __len__(self) -> int:
        return len(self.columns)

    def get(self, name: str) -> Column | None:
        return self.columns.get(name)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "columns": {name: col.to_dict() for name, col in self.columns.items()},
        }

    def to_text(self, indent: int = 0) -> str:
        return to_text(self.to_dict(), indent)


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        word = value.strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
        raise ValueError(f"not a boolean: {value!r}")
    return bool(value)


def _to_datetime(value: Any) -> Any:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time())
    # MySQL TIME columns come back as timedelta
    if isinstance(value, (time, timedelta)):
        return value
    if isinstance(value, (bytes, bytearray)):
        value = bytes(value).decode("utf-8")
    if isinstance(value, (int, float, Decimal)):
        return datetime.fromtimestamp(float(value))
    return datetime.fromisoformat(str(value).strip())


__all__ = [
    "Column",
    "ColumnType",
    "TableSchema",
]
