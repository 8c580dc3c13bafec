"""Database types and connection configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class DatabaseType(str, Enum):
    """Supported backend families."""

    MYSQL = "mysql"
    SQLITE = "sqlite"


@dataclass
class DatabaseConfig:
    """
    Configuration for one database handle.

    Different fields are used by different database types.  A MySQL
    provider builds two of these (read and write credentials); SQLite
    builds one.
    """

    # Common
    db_type: DatabaseType = DatabaseType.SQLITE

    # SQLite
    path: str | None = None

    # MySQL
    host: str = "localhost"
    port: int = 3306
    database: str = ""
    username: str | None = None
    password: str | None = None
    charset: str = "utf8mb4"

    # Options
    connect_timeout: int = 10
    readonly: bool = False

    # Extra options (driver-specific)
    options: dict[str, Any] = field(default_factory=dict)

    def describe(self) -> str:
        """Connection target without credentials, for logs and error messages."""
        match self.db_type:
            case DatabaseType.SQLITE:
                return self.path or ":memory:"
            case _:
                user = f"{self.username}@" if self.username else ""
                return f"mysql://{user}{self.host}:{self.port}/{self.database}"


__all__ = [
    "DatabaseType",
    "DatabaseConfig",
]
