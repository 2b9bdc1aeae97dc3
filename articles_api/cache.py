import json
import logging

import redis.asyncio as redis

from articles_api.config import settings

logger = logging.getLogger(__name__)


class CacheManager:
    """
    Cache-aside manager backed by Redis.

    ``get`` and ``set`` are safe to call even when Redis is unavailable:
    a read returns None and a write is skipped, so article reads degrade to
    the database.  ``clear_all`` is different: it raises on transport errors
    and leaves it to the invalidation hook to decide what a failure means.
    """

    def __init__(self, prefix: str | None = None) -> None:
        self._redis: redis.Redis | None = None
        self.prefix = prefix or settings.CACHE_KEY_PREFIX

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """Open the connection pool.  Called once at application startup."""
        self._redis = redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
        try:
            await self._redis.ping()
            logger.info("Redis connected: %s", settings.REDIS_URL)
        except Exception as exc:  # pragma: no cover
            logger.warning("Redis ping failed, reads will bypass the cache: %s", exc)

    async def disconnect(self) -> None:
        """Close the connection pool.  Called once at application shutdown."""
        if self._redis:
            await self._redis.aclose()
            self._redis = None

    # ------------------------------------------------------------------
    # Keys
    # ------------------------------------------------------------------

    def key(self, *parts: object) -> str:
        return ":".join([self.prefix, *(str(p) for p in parts)])

    # ------------------------------------------------------------------
    # Core cache operations
    # ------------------------------------------------------------------

    async def get(self, key: str) -> dict | list | None:
        """Return the cached value for *key*, or None on a miss / error."""
        if not self._redis:
            return None
        try:
            data = await self._redis.get(key)
            return json.loads(data) if data is not None else None
        except Exception as exc:
            logger.debug("Cache GET error for key=%r: %s", key, exc)
            return None

    async def set(self, key: str, value: dict | list, ttl: int | None = None) -> None:
        """Persist *value* under *key* with an optional TTL (seconds)."""
        if not self._redis:
            return
        try:
            await self._redis.set(key, json.dumps(value, default=str), ex=ttl)
        except Exception as exc:
            logger.debug("Cache SET error for key=%r: %s", key, exc)

    async def delete(self, key: str) -> None:
        """Remove a single key; errors are logged and ignored."""
        if not self._redis:
            return
        try:
            await self._redis.delete(key)
        except Exception as exc:
            logger.debug("Cache DELETE error for key=%r: %s", key, exc)

    async def clear_all(self) -> None:
        """
        Delete every key under this manager's prefix using SCAN (avoids
        blocking KEYS).  Redis errors propagate.
        """
        if not self._redis:
            return
        keys: list[str] = []
        async for key in self._redis.scan_iter(match=f"{self.prefix}:*"):
            keys.append(key)
        if keys:
            await self._redis.delete(*keys)
        logger.debug("Cache cleared %d key(s) under %r", len(keys), self.prefix)


# Module-level instance; connected in the application lifespan.
cache = CacheManager()
