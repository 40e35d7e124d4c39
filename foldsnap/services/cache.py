"""Key/value cache for folder aggregates.

Two backends behind one interface:

* ``MemoryCache``  -- per-process dict with TTL; only correct with one worker.
* ``RedisCache``   -- shared by every worker, so an invalidation issued by one
                      process is seen by all of them.

Values must be JSON-serialisable. Backend failures are logged and treated
as a cache miss; they never fail the request.
"""

import json
import logging
import threading
import time
from typing import Any, Dict, Optional, Tuple

import redis

from ..core.config import CacheBackend, Settings
from ..core.logging_config import mask_secrets

logger = logging.getLogger(__name__)


class Cache:
    """Interface shared by the cache backends."""

    def get(self, key: str) -> Optional[Any]:
        raise NotImplementedError

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        raise NotImplementedError

    def delete(self, *keys: str) -> bool:
        raise NotImplementedError


class MemoryCache(Cache):
    """Thread-safe in-process cache."""

    def __init__(self, default_ttl: Optional[int] = None):
        self._default_ttl = default_ttl
        self._entries: Dict[str, Tuple[Any, Optional[float]]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if expires_at is not None and expires_at <= time.monotonic():
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        if ttl is None:
            ttl = self._default_ttl
        expires_at = time.monotonic() + ttl if ttl else None
        with self._lock:
            self._entries[key] = (value, expires_at)
        return True

    def delete(self, *keys: str) -> bool:
        with self._lock:
            for key in keys:
                self._entries.pop(key, None)
        return True

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


class RedisCache(Cache):
    """
    Redis-backed cache.

    Keys are namespaced with ``prefix``; values are stored as JSON.
    """

    def __init__(self, client: redis.Redis, prefix: str = "", default_ttl: Optional[int] = None):
        self._client = client
        self._prefix = prefix
        self._default_ttl = default_ttl

    @classmethod
    def from_url(cls, url: str, prefix: str = "", default_ttl: Optional[int] = None) -> "RedisCache":
        client = redis.Redis.from_url(url, encoding="utf-8", decode_responses=True)
        return cls(client, prefix=prefix, default_ttl=default_ttl)

    def _make_key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def get(self, key: str) -> Optional[Any]:
        try:
            raw = self._client.get(self._make_key(key))
        except redis.RedisError as e:
            logger.warning("Cache get failed", extra={"key": key, "error": str(e)})
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Discarding undecodable cache entry", extra={"key": key})
            return None

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        if ttl is None:
            ttl = self._default_ttl
        try:
            payload = json.dumps(value)
            if ttl:
                self._client.setex(self._make_key(key), ttl, payload)
            else:
                self._client.set(self._make_key(key), payload)
            return True
        except redis.RedisError as e:
            logger.warning("Cache set failed", extra={"key": key, "error": str(e)})
            return False

    def delete(self, *keys: str) -> bool:
        if not keys:
            return True
        try:
            self._client.delete(*(self._make_key(k) for k in keys))
            return True
        except redis.RedisError as e:
            # A failed invalidation leaves stale aggregates behind until the TTL expires.
            logger.error("Cache delete failed", extra={"keys": list(keys), "error": str(e)})
            return False

    def close(self) -> None:
        self._client.close()


def build_cache(settings: Settings) -> Cache:
    """Construct the cache backend selected in settings."""
    if settings.cache_backend == CacheBackend.REDIS:
        logger.info(
            "Using Redis cache",
            extra={"redis_url": mask_secrets(settings.redis_url), "prefix": settings.cache_prefix},
        )
        return RedisCache.from_url(
            settings.redis_url,
            prefix=settings.cache_prefix,
            default_ttl=settings.cache_ttl_seconds,
        )

    if settings.worker_count > 1:
        logger.warning(
            "In-memory cache with %d workers: aggregates may be stale across workers. "
            "Set CACHE_BACKEND=redis.",
            settings.worker_count,
        )
    return MemoryCache(default_ttl=settings.cache_ttl_seconds)
