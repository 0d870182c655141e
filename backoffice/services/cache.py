"""Key-value cache behind the ``user.<id>`` markers.

InMemoryCacheService is a dict, used when REDIS_URL is unset (local
dev, tests); it ignores TTLs.  RedisCacheService is shared by every
API instance: keys live under the "cache:" prefix and always carry a
TTL, so a marker can never outlive its expiry.
"""

from __future__ import annotations

from typing import Protocol

from backoffice.db.redis import redis_pool


class CacheService(Protocol):
    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store ``value`` under ``key`` for ``ttl_seconds``."""
        ...

    async def has(self, key: str) -> bool:
        """True while the key is present and unexpired."""
        ...


class InMemoryCacheService:
    def __init__(self) -> None:
        self._store: dict[str, str] = {}

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self._store[key] = value

    async def has(self, key: str) -> bool:
        return key in self._store


class RedisCacheService:
    _PREFIX = "cache:"

    def __init__(self, redis_client) -> None:
        self._redis = redis_client

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        await self._redis.setex(f"{self._PREFIX}{key}", ttl_seconds, value)

    async def has(self, key: str) -> bool:
        return bool(await self._redis.exists(f"{self._PREFIX}{key}"))


if redis_pool is not None:
    cache_service: CacheService = RedisCacheService(redis_pool)
else:
    cache_service = InMemoryCacheService()
