"""
Key-value cache collaborator for the table list and per-table schemas.

The data layer only relies on ``get(key)`` and ``set(key, value)``.  Two
backends implement the full :class:`CacheBackend` protocol: an in-process
LRU (the default) and Redis for sharing catalogs across worker processes.

Manifesto:
    Schema introspection is a round trip per table; the table list is a
    round trip per process.  Both are stable for the lifetime of a
    deployment, so they are cached.  The cache itself owns expiry: the data
    layer never invalidates a schema on its own.

    - **Protocol-based:** CacheBackend defines the contract
    - **Namespaced:** every key is prefixed (``unfy_`` by default) so a
      shared Redis database can host several sites
    - **Jittered TTL:** shared-backend entries expire at a random point in a
      window so a fleet does not re-introspect every table at once

Architecture:
    ::

        CacheBackend (Protocol)
        ├── InMemoryCache  — single process, bounded LRU
        └── RedisCache     — shared, JSON values

        API: get(key) → value | None
             set(key, value, ttl_seconds=None)
             delete(key)
             exists(key) → bool
             clear()

Examples:
    >>> from unfy.core.cache import InMemoryCache
    >>> cache = InMemoryCache(max_size=100)
    >>> cache.set("tables", ["widget", "orders"])
    >>> cache.get("tables")
    ['widget', 'orders']

Guardrails:
    ❌ DON'T: Store live objects (Column, Record) in a shared backend
    ✅ DO: Store JSON-serializable dicts and lists

Tags:
    cache, caching, redis, in-memory, ttl, unfy-core

Doc-Types:
    - API Reference
    - Infrastructure Guide
"""

from __future__ import annotations

import json
import random
import time
from typing import Any, Protocol

from unfy.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_PREFIX = "unfy_"


class CacheBackend(Protocol):
    """Protocol for cache backend implementations.

    Keys are strings, values are JSON-serializable.
    """

    def get(self, key: str) -> Any | None:
        """Retrieve a value by key, or ``None`` if missing or expired."""
        ...

    def set(self, key: str, value: Any, *, ttl_seconds: int | None = None) -> None:
        """Store a value with optional TTL (``None`` → backend default)."""
        ...

    def delete(self, key: str) -> None:
        """Remove a key. No-op if it does not exist."""
        ...

    def exists(self, key: str) -> bool:
        """Check if a key exists and has not expired."""
        ...

    def clear(self) -> None:
        """Remove all keys."""
        ...


def jittered_ttl(min_seconds: int, max_seconds: int) -> int:
    """Pick a TTL uniformly in ``[min_seconds, max_seconds]``.

    >>> 900 <= jittered_ttl(900, 3600) <= 3600
    True
    """
    low, high = sorted((min_seconds, max_seconds))
    return random.randint(low, high)


# ------------------------------------------------------------------ #
# In-Memory Cache
# ------------------------------------------------------------------ #


class InMemoryCache:
    """Bounded in-memory cache with optional TTL.

    Uses LRU eviction when ``max_size`` is reached.  With the default
    ``default_ttl_seconds=None`` entries live for the process lifetime,
    which is what the schema catalog expects from a local cache.

    Example:
        cache = InMemoryCache(max_size=500)
        cache.set("table:widget", [{"name": "id", ...}])
    """

    def __init__(
        self,
        *,
        max_size: int = 10_000,
        default_ttl_seconds: int | None = None,
        prefix: str = DEFAULT_PREFIX,
    ):
        self._store: dict[str, tuple[Any, float | None]] = {}
        self._access_order: list[str] = []
        self._max_size = max_size
        self._default_ttl = default_ttl_seconds
        self._prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def get(self, key: str) -> Any | None:
        """Retrieve a value by key."""
        full_key = self._key(key)
        if full_key not in self._store:
            return None

        value, expires_at = self._store[full_key]

        if expires_at is not None and time.time() > expires_at:
            self.delete(key)
            return None

        self._touch(full_key)
        return value

    def set(self, key: str, value: Any, *, ttl_seconds: int | None = None) -> None:
        """Store a value with optional TTL."""
        full_key = self._key(key)
        ttl = ttl_seconds if ttl_seconds is not None else self._default_ttl
        expires_at = (time.time() + ttl) if ttl else None

        # Evict LRU if at capacity
        if full_key not in self._store and len(self._store) >= self._max_size:
            if self._access_order:
                lru_key = self._access_order.pop(0)
                self._store.pop(lru_key, None)

        self._store[full_key] = (value, expires_at)
        self._touch(full_key)

    def _touch(self, full_key: str) -> None:
        if full_key in self._access_order:
            self._access_order.remove(full_key)
        self._access_order.append(full_key)

    def delete(self, key: str) -> None:
        """Remove a key from the cache."""
        full_key = self._key(key)
        self._store.pop(full_key, None)
        if full_key in self._access_order:
            self._access_order.remove(full_key)

    def exists(self, key: str) -> bool:
        """Check if key exists and is not expired."""
        full_key = self._key(key)
        if full_key not in self._store:
            return False

        _, expires_at = self._store[full_key]
        if expires_at is not None and time.time() > expires_at:
            self.delete(key)
            return False

        return True

    def clear(self) -> None:
        """Remove all keys."""
        self._store.clear()
        self._access_order.clear()

    def size(self) -> int:
        """Return current number of cached keys."""
        return len(self._store)


# ------------------------------------------------------------------ #
# Redis Cache — Optional
# ------------------------------------------------------------------ #


class RedisCache:
    """Redis-backed shared cache.

    Requires the ``redis`` package (``pip install unfy-data[redis]``).
    Values are stored as JSON.  When no explicit TTL is given, each entry
    gets a random TTL between ``min_ttl_seconds`` and ``max_ttl_seconds``.

    Example:
        cache = RedisCache("redis://localhost:6379/0", prefix="site1_")
        cache.set("tables", ["widget"])

    Raises:
        ImportError: If ``redis`` package is not installed.
    """

    def __init__(
        self,
        url: str = "redis://localhost:6379/0",
        *,
        prefix: str = DEFAULT_PREFIX,
        min_ttl_seconds: int = 15 * 60,
        max_ttl_seconds: int = 60 * 60,
    ):
        try:
            import redis
        except ImportError as exc:
            msg = (
                "Redis backend requires 'redis' package. "
                "Install with: pip install unfy-data[redis]"
            )
            raise ImportError(msg) from exc

        self._client = redis.from_url(url, decode_responses=False)
        self._prefix = prefix
        self._min_ttl = min_ttl_seconds
        self._max_ttl = max_ttl_seconds

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def get(self, key: str) -> Any | None:
        """Retrieve a value by key."""
        raw = self._client.get(self._key(key))
        if raw is None:
            return None
        return json.loads(raw)

    def set(self, key: str, value: Any, *, ttl_seconds: int | None = None) -> None:
        """Store a value with a jittered TTL unless one is given."""
        ttl = ttl_seconds if ttl_seconds is not None else jittered_ttl(self._min_ttl, self._max_ttl)
        self._client.setex(self._key(key), ttl, json.dumps(value))

    def delete(self, key: str) -> None:
        """Remove a key from the cache."""
        self._client.delete(self._key(key))

    def exists(self, key: str) -> bool:
        """Check if key exists."""
        return bool(self._client.exists(self._key(key)))

    def clear(self) -> None:
        """Remove every key carrying this cache's prefix."""
        keys = list(self._client.scan_iter(match=f"{self._prefix}*"))
        if keys:
            self._client.delete(*keys)


def create_cache(settings: Any) -> CacheBackend:
    """Build the cache backend described by ``settings.cache``.

    A disabled cache still gets a process-local ``InMemoryCache`` so the
    catalog is built at most once per process.
    """
    cfg = settings.cache
    if cfg.enabled and cfg.backend == "redis":
        logger.info("cache_backend_selected", backend="redis", prefix=cfg.prefix)
        return RedisCache(
            cfg.redis_url,
            prefix=cfg.prefix,
            min_ttl_seconds=cfg.min_ttl_minutes * 60,
            max_ttl_seconds=cfg.max_ttl_minutes * 60,
        )
    logger.debug("cache_backend_selected", backend="memory", prefix=cfg.prefix)
    return InMemoryCache(max_size=cfg.max_size, prefix=cfg.prefix)


__all__ = [
    "CacheBackend",
    "InMemoryCache",
    "RedisCache",
    "create_cache",
    "jittered_ttl",
]
