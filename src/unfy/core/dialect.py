"""SQL dialects for the two supported backend families.

A ``Dialect`` owns everything that differs between MySQL and SQLite at the
SQL-text level: identifier quoting, literal escaping, the unsatisfiable
boolean, the table-listing query, the column-introspection query and the
mapping from one introspection row to a logical :class:`Column`.

Manifesto:
    The record engine compiles SQL text itself.  Keeping every
    backend-specific fragment behind one protocol means the filter compiler,
    the catalog and the provider never branch on the backend name.

    - **One interface:** Dialect protocol for all dialect-specific SQL
    - **Stateless:** dialects are pre-instantiated singletons
    - **Lossless mapping:** native type tokens are kept on the Column for
      diagnostics, the logical type drives everything else

Architecture::

    SHOW COLUMNS FROM `widget`          PRAGMA table_info("widget")
    ┌──────────────────────────┐        ┌──────────────────────────┐
    │ Field  Type  Default ... │        │ cid name type dflt_value │
    └────────────┬─────────────┘        └────────────┬─────────────┘
                 │ MySQLDialect.parse_column         │ SQLiteDialect.parse_column
                 ▼                                   ▼
          Column(name, logical_type, native_type, length, min, max, default)

Examples:
    >>> from unfy.core.dialect import get_dialect
    >>> d = get_dialect("mysql")
    >>> d.escape("O'Brien")
    "O\\\\'Brien"
    >>> d.parse_column({"Field": "qty", "Type": "smallint unsigned", "Default": None}).max
    65535

Guardrails:
    ❌ DON'T: Wrap the result of ``escape()`` in quotes inside the dialect
    ✅ DO: Let callers add the quote characters they need

    ❌ DON'T: Raise on an unknown native type
    ✅ DO: Return ``None`` so the catalog skips the column

Tags:
    dialect, sql, mysql, sqlite, introspection, type-mapping, unfy-core

Doc-Types:
    - API Reference
    - Architecture Documentation
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

from unfy.core.columns import Column, ColumnType

# Integer ranges by MySQL integer type: (signed min, signed max, unsigned max)
_MYSQL_INT_RANGES: dict[str, tuple[int, int, int]] = {
    "tinyint": (-128, 127, 255),
    "smallint": (-32768, 32767, 65535),
    "mediumint": (-8388608, 8388607, 16777215),
    "int": (-2147483648, 2147483647, 4294967295),
    "integer": (-2147483648, 2147483647, 4294967295),
    "bigint": (-(2**63), 2**63 - 1, 2**64 - 1),
}

_MYSQL_TEXT_LENGTHS: dict[str, int] = {
    "tinytext": 255,
    "text": 65535,
    "mediumtext": 16777215,
    "longtext": 4294967295,
}

FLOAT_MAX = 3.402823466e38
DOUBLE_MAX = 1.7976931348623157e308

SQLITE_INT_MIN = -(2**63)
SQLITE_INT_MAX = 2**63 - 1
SQLITE_TEXT_LENGTH = 2**31 - 1

_MYSQL_TYPE_RE = re.compile(r"^\s*(\w+)\s*(?:\(([^)]*)\))?(.*)$")

_MYSQL_ESCAPES = {
    "\0": "\\0",
    "\n": "\\n",
    "\r": "\\r",
    "\\": "\\\\",
    "'": "\\'",
    '"': '\\"',
    "\x1a": "\\Z",
}


@runtime_checkable
class Dialect(Protocol):
    """SQL dialect contract.

    Every method returns a SQL fragment, a full statement, or a parsed
    :class:`Column`; none of them touch a connection.
    """

    @property
    def name(self) -> str:
        """Backend family name (``'mysql'`` / ``'sqlite'``)."""
        ...

    def quote_identifier(self, name: str) -> str:
        """Quote a table, alias or column name."""
        ...

    def escape(self, text: str) -> str:
        """Escape *text* for use inside a quoted literal.

        The result carries no outer quote characters.
        """
        ...

    def boolean_false(self) -> str:
        """An always-false condition usable in a WHERE clause."""
        ...

    def list_tables_query(self) -> str:
        """Statement whose first result column is every table name."""
        ...

    def columns_query(self, table: str) -> str:
        """Native column-introspection statement for *table*."""
        ...

    def parse_column(self, row: Mapping[str, Any]) -> Column | None:
        """Map one introspection row to a Column, or ``None`` if unknown."""
        ...


# =========================================================================
# Shared helpers
# =========================================================================


def _decimal_bounds(args: str | None, unsigned: bool) -> tuple[ColumnType, int, int, int]:
    """Logical type, length and range for ``decimal(P,S)``.

    ``S == 0`` is an integer; the integral part holds ``P - S`` digits.
    """
    precision, scale = 10, 0
    if args:
        parts = [p.strip() for p in args.split(",")]
        precision = int(parts[0])
        if len(parts) > 1 and parts[1]:
            scale = int(parts[1])
    logical = ColumnType.INT if scale == 0 else ColumnType.FLOAT
    maximum = 10 ** (precision - scale) - 1
    minimum = 0 if unsigned else -maximum
    return logical, precision, minimum, maximum


def _convert_default(logical: ColumnType, raw: Any) -> Any:
    """Best-effort conversion of a literal default to the logical type.

    Values that do not convert (``CURRENT_TIMESTAMP``, ``b'0'``) are kept
    as text so they stay JSON-serializable in a shared cache.
    """
    if raw is None:
        return None
    if isinstance(raw, (bytes, bytearray)):
        raw = bytes(raw).decode("utf-8", errors="replace")
    text = str(raw)
    try:
        match logical:
            case ColumnType.INT:
                return int(text)
            case ColumnType.FLOAT:
                return float(text)
            case ColumnType.BOOL:
                return text.strip().lower() in ("1", "true")
    except ValueError:
        return text
    return text


def _text(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8")
    return str(value)


# =========================================================================
# MySQL
# =========================================================================


class MySQLDialect:
    """MySQL / MariaDB dialect (``SHOW COLUMNS`` introspection)."""

    @property
    def name(self) -> str:
        return "mysql"

    def quote_identifier(self, name: str) -> str:
        return "`" + name.replace("`", "``") + "`"

    def escape(self, text: str) -> str:
        # Same character set as mysql_real_escape_string
        return "".join(_MYSQL_ESCAPES.get(ch, ch) for ch in str(text))

    def boolean_false(self) -> str:
        return "FALSE"

    def list_tables_query(self) -> str:
        return "SHOW TABLES"

    def columns_query(self, table: str) -> str:
        return f"SHOW COLUMNS FROM {self.quote_identifier(table)}"

    def parse_column(self, row: Mapping[str, Any]) -> Column | None:
        name = row.get("Field")
        raw_type = row.get("Type")
        if not name or not raw_type:
            return None

        match = _MYSQL_TYPE_RE.match(_text(raw_type))
        if match is None:
            return None
        base = match.group(1).lower()
        args = match.group(2)
        unsigned = "unsigned" in match.group(3).lower().split()

        logical: ColumnType
        length: int | None = None
        minimum: int | float | None = None
        maximum: int | float | None = None

        if base in _MYSQL_INT_RANGES:
            # tinyint(1) is still an integer column; the width is display only
            logical = ColumnType.INT
            signed_min, signed_max, unsigned_max = _MYSQL_INT_RANGES[base]
            minimum, maximum = (0, unsigned_max) if unsigned else (signed_min, signed_max)
            length = int(args) if args and args.strip().isdigit() else None
        elif base in ("decimal", "numeric", "dec", "fixed"):
            logical, length, minimum, maximum = _decimal_bounds(args, unsigned)
        elif base == "float":
            logical = ColumnType.FLOAT
            maximum = FLOAT_MAX
            minimum = 0 if unsigned else -FLOAT_MAX
        elif base in ("double", "real"):
            logical = ColumnType.FLOAT
            maximum = DOUBLE_MAX
            minimum = 0 if unsigned else -DOUBLE_MAX
        elif base in ("char", "varchar"):
            logical = ColumnType.STRING
            length = int(args) if args and args.strip().isdigit() else None
        elif base in _MYSQL_TEXT_LENGTHS:
            logical = ColumnType.STRING
            length = _MYSQL_TEXT_LENGTHS[base]
        elif base in ("date", "datetime", "timestamp", "time"):
            logical = ColumnType.DATETIME
        elif base == "year":
            logical = ColumnType.INT
            length = int(args) if args and args.strip().isdigit() else 4
            minimum, maximum = 0, 10**length - 1
        elif base in ("bool", "boolean"):
            logical = ColumnType.BOOL
        else:
            return None

        return Column(
            name=_text(name),
            logical_type=logical,
            native_type=base,
            length=length,
            min=minimum,
            max=maximum,
            default=_convert_default(logical, row.get("Default")),
        )


# =========================================================================
# SQLite
# =========================================================================


class SQLiteDialect:
    """SQLite dialect (``PRAGMA table_info`` introspection).

    Declared types are classified with SQLite's own affinity rules, extended
    with BOOL, DATE/TIME and ``DECIMAL(P,S)`` so schemas written for MySQL
    map the same way.
    """

    @property
    def name(self) -> str:
        return "sqlite"

    def quote_identifier(self, name: str) -> str:
        return '"' + name.replace('"', '""') + '"'

    def escape(self, text: str) -> str:
        return str(text).replace("'", "''")

    def boolean_false(self) -> str:
        return "0"

    def list_tables_query(self) -> str:
        return "SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%'"

    def columns_query(self, table: str) -> str:
        return f"PRAGMA table_info({self.quote_identifier(table)})"

    def parse_column(self, row: Mapping[str, Any]) -> Column | None:
        name = row.get("name")
        if not name or "type" not in row:
            return None

        declared = _text(row.get("type") or "").strip()
        upper = declared.upper()
        match = _MYSQL_TYPE_RE.match(declared)
        args = match.group(2) if match else None

        logical: ColumnType
        length: int | None = None
        minimum: int | float | None = None
        maximum: int | float | None = None

        if not upper or "BLOB" in upper:
            return None
        if "INT" in upper:
            logical = ColumnType.INT
            minimum, maximum = SQLITE_INT_MIN, SQLITE_INT_MAX
        elif "CHAR" in upper or "CLOB" in upper or "TEXT" in upper:
            logical = ColumnType.STRING
            length = int(args) if args and args.strip().isdigit() else SQLITE_TEXT_LENGTH
        elif "BOOL" in upper:
            logical = ColumnType.BOOL
        elif "DATE" in upper or "TIME" in upper:
            logical = ColumnType.DATETIME
        elif ("DEC" in upper or "NUMERIC" in upper) and args:
            logical, length, minimum, maximum = _decimal_bounds(args, unsigned=False)
        elif any(token in upper for token in ("NUMERIC", "DEC", "REAL", "FLOA", "DOUB")):
            logical = ColumnType.FLOAT
            minimum, maximum = -DOUBLE_MAX, DOUBLE_MAX
        else:
            return None

        return Column(
            name=_text(name),
            logical_type=logical,
            native_type=declared,
            length=length,
            min=minimum,
            max=maximum,
            default=self._parse_default(logical, row.get("dflt_value")),
        )

    @staticmethod
    def _parse_default(logical: ColumnType, raw: Any) -> Any:
        """``dflt_value`` is the default's SQL text; only literals are kept."""
        if raw is None:
            return None
        text = _text(raw).strip()
        if len(text) >= 2 and text[0] == text[-1] == "'":
            literal = text[1:-1].replace("''", "'")
            if logical in (ColumnType.STRING, ColumnType.DATETIME):
                return literal
            return _convert_default(logical, literal)
        if logical == ColumnType.BOOL and text.upper() in ("TRUE", "FALSE"):
            return text.upper() == "TRUE"
        try:
            number = float(text)
        except ValueError:
            # NULL, CURRENT_TIMESTAMP and other expressions
            return None
        if logical == ColumnType.INT and number.is_integer():
            return int(number)
        if logical == ColumnType.BOOL:
            return bool(number)
        return number if logical == ColumnType.FLOAT else text


# =========================================================================
# Registry / Factory
# =========================================================================

# Pre-instantiated singletons (dialects are stateless)
_DIALECTS: dict[str, Dialect] = {
    "mysql": MySQLDialect(),
    "sqlite": SQLiteDialect(),
}


def get_dialect(db_type: Any) -> Dialect:
    """Get a dialect by backend family name.

    Args:
        db_type: ``'mysql'`` or ``'sqlite'`` (or a ``DatabaseType`` member).

    Raises:
        ValueError: If ``db_type`` is not recognised.

    Example:
        >>> get_dialect("sqlite").quote_identifier("widget")
        '"widget"'
    """
    key = db_type.lower() if isinstance(db_type, str) else db_type.value
    if key not in _DIALECTS:
        raise ValueError(f"Unknown dialect '{db_type}'. Supported: {sorted(_DIALECTS)}")
    return _DIALECTS[key]


def register_dialect(name: str, dialect: Dialect) -> None:
    """Register a custom dialect implementation (e.g. a test double)."""
    _DIALECTS[name.lower()] = dialect


__all__ = [
    "Dialect",
    "MySQLDialect",
    "SQLiteDialect",
    "get_dialect",
    "register_dialect",
]
