"""Configuration for the unfy data layer.

Quick start::

    from unfy.core.config import get_settings

    settings = get_settings()
    settings.database.type      # "mysql" | "sqlite" | None
    settings.page_size          # 100
"""

from .settings import (
    CacheSettings,
    DatabaseSettings,
    UnfySettings,
    clear_settings_cache,
    discover_env_files,
    find_project_root,
    get_settings,
)

__all__ = [
    "CacheSettings",
    "DatabaseSettings",
    "UnfySettings",
    "clear_settings_cache",
    "discover_env_files",
    "find_project_root",
    "get_settings",
]
