"""
Centralized settings for the unfy data layer.

Manifesto:
    One validated, cached settings object is the only place the data layer
    reads process configuration from.  Values come from ``UNFY_*``
    environment variables and ``.env`` files; nested sections use ``__``
    (``UNFY_DATABASE__TYPE=mysql``).

    Settings load even when the database section is incomplete.  Required
    fields are checked when the connection provider initializes, so a
    misconfigured process reports one ``ConfigError`` instead of failing at
    import time.

Tags:
    unfy-core, configuration, settings, pydantic, caching, validation

Doc-Types:
    api-reference
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseModel):
    """Connection parameters for one backend family.

    MySQL uses ``host``/``name`` and two credential pairs (``_r`` for the
    read handle, ``_w`` for the write handle).  SQLite uses ``path``.
    """

    type: str | None = None
    host: str | None = None
    port: int = 3306
    name: str | None = None
    username_r: str | None = None
    password_r: str | None = None
    username_w: str | None = None
    password_w: str | None = None
    path: str | None = None
    charset: str = "utf8mb4"
    connect_timeout: int = 10

    @field_validator("type")
    @classmethod
    def _lower_type(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip().lower()
        return value or None

    @field_validator("path")
    @classmethod
    def _normalize_path(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip()
        if value.startswith("./"):
            value = value[2:]
        return value or None


class CacheSettings(BaseModel):
    """Cache collaborator settings."""

    enabled: bool = False
    backend: Literal["memory", "redis"] = "memory"
    prefix: str = "unfy_"
    redis_url: str = "redis://localhost:6379/0"
    min_ttl_minutes: int = 15
    max_ttl_minutes: int = 60
    max_size: int = 10_000


class UnfySettings(BaseSettings):
    """unfy data-layer configuration.

    All fields can be set via ``UNFY_*`` environment variables or ``.env``
    files.
    """

    model_config = SettingsConfigDict(
        env_prefix="UNFY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    # ── Sections ─────────────────────────────────────────────────
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)

    # ── Record sets ──────────────────────────────────────────────
    page_size: int = Field(default=100, gt=0)
    dedupe_joined_pages: bool = Field(
        default=False,
        description="Collapse fan-out rows in join-bearing page fetches",
    )

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="WARNING")
    log_format: Literal["json", "console", "auto"] = Field(default="auto")


# ── Env-file discovery ───────────────────────────────────────────────────


def find_project_root(start: Path | None = None) -> Path:
    """Walk upward from *start* to the nearest ``pyproject.toml`` or ``.git``.

    Falls back to *start* (or cwd) when no marker is found.
    """
    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        if (directory / "pyproject.toml").exists() or (directory / ".git").exists():
            return directory
    return current


def discover_env_files(project_root: Path | None = None) -> list[Path]:
    """Return the ``.env`` files that exist, in load order (later wins)."""
    root = (project_root or find_project_root()).resolve()
    candidates = [root / ".env", root / ".env.local"]
    return [p for p in candidates if p.is_file()]


# ── Settings factory with caching ────────────────────────────────────────

_settings_cache: dict[str, UnfySettings] = {}


def get_settings(
    *,
    project_root: Path | None = None,
    _force_reload: bool = False,
) -> UnfySettings:
    """Load, validate, and cache an :class:`UnfySettings` instance.

    Parameters
    ----------
    project_root:
        Override the auto-detected project root used for ``.env`` discovery.
    _force_reload:
        Bypass cache and reload from disk.
    """
    root = (project_root or find_project_root()).resolve()
    cache_key = str(root)

    if not _force_reload and cache_key in _settings_cache:
        return _settings_cache[cache_key]

    env_files = discover_env_files(root)
    settings = UnfySettings(_env_file=env_files or None)  # type: ignore[call-arg]

    _settings_cache[cache_key] = settings
    return settings


def clear_settings_cache() -> None:
    """Clear the settings cache (primarily for testing)."""
    _settings_cache.clear()


__all__ = [
    "CacheSettings",
    "DatabaseSettings",
    "UnfySettings",
    "clear_settings_cache",
    "discover_env_files",
    "find_project_root",
    "get_settings",
]
