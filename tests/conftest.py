"""
Shared pytest fixtures for unfy tests.

This module provides:
- Isolation fixtures (settings cache, default context, record registry)
- An in-memory SQLite ``DataContext`` with the test schema created
- A raw connection fixture for seeding rows

Usage:
    def test_something(ctx, db):
        db.execute("INSERT INTO widget (id, name, qty) VALUES (7, 'bolt', 3)")
        assert ctx.record("widget", 7).get("name") == "bolt"
"""

from __future__ import annotations

from collections.abc import Generator
from pathlib import Path

import pytest
import structlog

from unfy.core.cache import InMemoryCache
from unfy.core.config import DatabaseSettings, UnfySettings, clear_settings_cache
from unfy.core.context import DataContext, set_context
from unfy.core.registry import record_registry

SCHEMA = """
CREATE TABLE widget (id INTEGER PRIMARY KEY, name VARCHAR(40), qty INT);
CREATE TABLE line (id INTEGER PRIMARY KEY, widget_id INT, amount REAL);
CREATE TABLE orders (
    id INTEGER PRIMARY KEY,
    total DECIMAL(8,2),
    placed DATETIME,
    paid BOOLEAN DEFAULT 0,
    note TEXT DEFAULT 'none',
    owner_id INT
);
CREATE TABLE owner (id INTEGER PRIMARY KEY, orders_id INT, region TEXT, name VARCHAR(20));
CREATE TABLE address (id INTEGER PRIMARY KEY, owner_id INT, city TEXT);
CREATE TABLE blobby (id INTEGER PRIMARY KEY, data BLOB, misc);
"""


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark every test without an explicit marker as a unit test."""
    for item in items:
        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Isolation Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def isolate_globals(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Clear cached settings, logging config, the default context and registered classes."""
    for name in (
        "UNFY_DATABASE__TYPE",
        "UNFY_DATABASE__PATH",
        "UNFY_PAGE_SIZE",
        "UNFY_LOG_LEVEL",
        "UNFY_LOG_FORMAT",
    ):
        monkeypatch.delenv(name, raising=False)
    registered = dict(record_registry._classes)
    clear_settings_cache()
    set_context(None)
    structlog.reset_defaults()
    yield
    set_context(None)
    structlog.reset_defaults()
    clear_settings_cache()
    record_registry._classes.clear()
    record_registry._classes.update(registered)


# =============================================================================
# Database Fixtures
# =============================================================================


def make_settings(path: str = ":memory:", **overrides) -> UnfySettings:
    return UnfySettings(
        database=DatabaseSettings(type="sqlite", path=path),
        **overrides,
    )


@pytest.fixture
def cache() -> InMemoryCache:
    return InMemoryCache(max_size=1000)


@pytest.fixture
def ctx(cache: InMemoryCache) -> Generator[DataContext, None, None]:
    """In-memory SQLite context with the test schema."""
    context = DataContext(make_settings(), cache=cache)
    context.provider.writer.get_connection().executescript(SCHEMA)
    yield context
    context.close()


@pytest.fixture
def db(ctx: DataContext):
    """Raw sqlite3 connection behind ``ctx`` (autocommit-style helper)."""
    conn = ctx.provider.writer.get_connection()
    yield conn
    conn.commit()


@pytest.fixture
def sqlite_file(tmp_path: Path) -> str:
    """A SQLite file with the test schema and a few widgets."""
    import sqlite3

    path = tmp_path / "site.db"
    conn = sqlite3.connect(path)
    conn.executescript(SCHEMA)
    conn.executemany(
        "INSERT INTO widget (id, name, qty) VALUES (?, ?, ?)",
        [(1, "nut", 1), (2, "gear", 5), (3, "cog", 2), (7, "bolt", 3)],
    )
    conn.commit()
    conn.close()
    return str(path)
