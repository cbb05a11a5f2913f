"""Read-through cache for progress lookups.

Keys are ``progress:{user_id}:{item_type}:{item_id}``.  Entries expire on a
TTL, and any accepted write for a learner drops every key under
``progress:{user_id}:*``; one leaf write can move that learner's path and
class-instance records too, so per-key invalidation would leave the
aggregates stale.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from progress_service.core.config import SETTINGS
from progress_service.core.metrics import CACHE_OPERATIONS
from progress_service.db.redis import redis_pool

PROGRESS_CACHE_TTL = SETTINGS.progress_cache_ttl


def progress_key(user_id: str, item_type: str, item_id: str) -> str:
    return f"progress:{user_id}:{item_type}:{item_id}"


def learner_pattern(user_id: str) -> str:
    return f"progress:{user_id}:*"


@runtime_checkable
class CacheService(Protocol):
    async def get(self, key: str) -> str | None: ...
    async def set(self, key: str, value: str, ttl_seconds: int) -> None: ...
    async def delete(self, key: str) -> None: ...
    async def delete_pattern(self, pattern: str) -> None: ...


class InMemoryCacheService:
    """Dict-backed cache without TTL; conftest clears it between tests."""

    def __init__(self) -> None:
        self._store: dict[str, str] = {}

    async def get(self, key: str) -> str | None:
        value = self._store.get(key)
        CACHE_OPERATIONS.labels(operation="miss" if value is None else "hit").inc()
        return value

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self._store[key] = value

    async def delete(self, key: str) -> None:
        self._store.pop(key, None)

    async def delete_pattern(self, pattern: str) -> None:
        # Only trailing-* patterns are used
        prefix = pattern.rstrip("*")
        for k in [k for k in self._store if k.startswith(prefix)]:
            del self._store[k]


class RedisCacheService:
    """Redis-backed cache, shared by every API process."""

    _PREFIX = "cache:"

    def __init__(self, redis_client) -> None:
        self._redis = redis_client

    async def get(self, key: str) -> str | None:
        value = await self._redis.get(f"{self._PREFIX}{key}")
        CACHE_OPERATIONS.labels(operation="miss" if value is None else "hit").inc()
        return value

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        await self._redis.setex(f"{self._PREFIX}{key}", ttl_seconds, value)

    async def delete(self, key: str) -> None:
        await self._redis.delete(f"{self._PREFIX}{key}")

    async def delete_pattern(self, pattern: str) -> None:
        # SCAN, not KEYS: KEYS blocks the server for the whole keyspace walk.
        cursor = 0
        while True:
            cursor, keys = await self._redis.scan(
                cursor, match=f"{self._PREFIX}{pattern}", count=100
            )
            if keys:
                await self._redis.delete(*keys)
            if cursor == 0:
                break


if redis_pool is not None:
    cache_service: CacheService = RedisCacheService(redis_pool)
else:
    cache_service = InMemoryCacheService()


async def invalidate_learner(user_id: str) -> None:
    """Drop every cached progress entry for one learner.

    Called after any accepted write, whether it came from the API or the
    recalculation worker.
    """
    await cache_service.delete_pattern(learner_pattern(user_id))
