"""
Structured error types for the unfy data-access layer.

Every failure the data layer surfaces is an :class:`UnfyError` carrying a
category, a structured :class:`ErrorContext` (table, backend, query) and the
chained driver exception.  Callers catch the narrow type they care about;
logging and the CLI use ``to_dict()``.

Manifesto:
    - **Typed hierarchy:** configuration, connection, schema and query
      failures are distinct types, not one generic exception
    - **Rich context:** errors carry the table and SQL that failed
    - **Error chaining:** driver exceptions are preserved as ``cause``
    - **No retry semantics:** the data layer never retries or reconnects;
      every failure is surfaced immediately

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────────┐
        │                          UnfyError                            │
        │               (category, context, cause)                      │
        ├──────────────────────────────────────────────────────────────┤
        │                                                               │
        │  ConfigError                DatabaseError     ValidationError │
        │  (CONFIG)                   (DATABASE)        (VALIDATION)    │
        │     │                          │                  │           │
        │  MissingConfigError         QueryError        ConstraintError │
        │  InvalidConfigError         SchemaError                       │
        │  DatabaseConnectionError                                      │
        └──────────────────────────────────────────────────────────────┘

    ``DatabaseConnectionError`` is a ``ConfigError``: a backend that refuses
    the connection is treated exactly like bad configuration (fatal for the
    process, reported once) while still being distinguishable by type.

Examples:
    >>> err = QueryError("no such column: qty").with_context(table="widget")
    >>> err.context.table
    'widget'
    >>> err.to_dict()["category"]
    'DATABASE'

Guardrails:
    ❌ DON'T: Let ``sqlite3.Error`` / ``mysql.connector.Error`` escape the layer
    ✅ DO: Wrap them in ``QueryError`` / ``SchemaError`` with ``cause=``

    ❌ DON'T: Retry after ``DatabaseConnectionError``
    ✅ DO: Report it once and treat the database as unavailable

Tags:
    error-handling, exception-hierarchy, error-context, unfy-core

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and log routing."""

    CONFIG = "CONFIG"             # Missing config, invalid settings, refused connection
    DATABASE = "DATABASE"         # Query and introspection failures
    VALIDATION = "VALIDATION"     # Values outside a column's declared range
    INTERNAL = "INTERNAL"         # Bugs, unexpected state


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Attributes:
        table: Table the failing operation targeted
        backend: Backend family (``"mysql"`` / ``"sqlite"``)
        query: SQL text that failed, if any
        metadata: Additional key-value pairs
    """

    table: str | None = None
    backend: str | None = None
    query: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["table", "backend", "query"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class UnfyError(Exception):
    """
    Base exception for all unfy data-layer errors.

    Subclasses set ``default_category``; instances carry a message, an
    :class:`ErrorContext` and an optional chained ``cause``.

    Examples:
        >>> try:
        ...     raise OSError("disk full")
        ... except OSError as e:
        ...     error = UnfyError("write failed", cause=e)
        >>> error.__cause__
        OSError('disk full')
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> UnfyError:
        """
        Add context to this error (fluent API).

        Usage:
            raise QueryError("bad filter").with_context(
                table="widget",
                query=sql,
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(UnfyError):
    """
    Configuration error.

    Fatal to any further database access: the provider reports it once and
    re-raises it on every later access.
    """

    default_category = ErrorCategory.CONFIG


class MissingConfigError(ConfigError):
    """Required configuration is missing."""

    def __init__(self, keys: list[str] | str, message: str | None = None):
        self.keys = [keys] if isinstance(keys, str) else list(keys)
        super().__init__(message or f"Missing required configuration: {', '.join(self.keys)}")


class InvalidConfigError(ConfigError):
    """Configuration value is invalid."""

    def __init__(self, key: str, value: Any, message: str | None = None):
        self.key = key
        self.value = value
        super().__init__(message or f"Invalid configuration for {key}: {value!r}")


class DatabaseConnectionError(ConfigError):
    """The backend refused or failed the connection attempt."""

    default_category = ErrorCategory.DATABASE


# =============================================================================
# DATABASE ERRORS
# =============================================================================


class DatabaseError(UnfyError):
    """Database query or introspection error."""

    default_category = ErrorCategory.DATABASE


class QueryError(DatabaseError):
    """A compiled query failed at execution."""

    pass


class SchemaError(DatabaseError):
    """Schema introspection failed for a table.

    Only operations that need that table's schema fail; other tables stay
    usable.
    """

    pass


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(UnfyError):
    """
    A value does not fit a column.

    Never raised by plain ``Record.set``; only the typed accessor layer
    validates.
    """

    default_category = ErrorCategory.VALIDATION

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any = None,
        constraint: str | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value
        self.constraint = constraint

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.field:
            result["field"] = self.field
        if self.value is not None:
            result["value"] = repr(self.value)
        if self.constraint:
            result["constraint"] = self.constraint
        return result


class ConstraintError(ValidationError):
    """Value outside a column's range or length."""

    pass


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "UnfyError",
    "ConfigError",
    "MissingConfigError",
    "InvalidConfigError",
    "DatabaseConnectionError",
    "DatabaseError",
    "QueryError",
    "SchemaError",
    "ValidationError",
    "ConstraintError",
]
