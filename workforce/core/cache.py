# workforce/core/cache.py
"""
Namespaced key/value cache on top of Redis.

Keys are always `<category>:<id>`; callers outside the auth core must go
through one of the categories below so they never collide with sessions or
cached users. Values are JSON.

Redis failures surface as DependencyUnavailable. A cache miss is just a miss:
it never means the underlying record does not exist.
"""
from __future__ import annotations
import json
from enum import Enum
from typing import Any, Optional
from redis.asyncio import Redis
from redis.exceptions import RedisError
from workforce.core.errors import DependencyUnavailable
from workforce.core.logger import log_incident


class CacheCategory(str, Enum):
    USER = "user"
    COMPANY = "company"
    ATTENDANCE = "attendance"
    SESSION = "session"
    RATELIMIT = "ratelimit"
    GENERAL = "general"


def make_key(category: CacheCategory, key: str) -> str:
    return f"{CacheCategory(category).value}:{key}"


class CacheStore:
    def __init__(self, client: Redis):
        self._client = client

    async def get(self, category: CacheCategory, key: str) -> Optional[Any]:
        try:
            raw = await self._client.get(make_key(category, key))
        except RedisError as exc:
            raise self._unavailable(exc, "get")
        return json.loads(raw) if raw is not None else None

    async def set(self, category: CacheCategory, key: str, value: Any, ttl: Optional[int] = None) -> None:
        payload = json.dumps(value, default=str)
        try:
            if ttl:
                await self._client.set(make_key(category, key), payload, ex=ttl)
            else:
                await self._client.set(make_key(category, key), payload)
        except RedisError as exc:
            raise self._unavailable(exc, "set")

    async def delete(self, category: CacheCategory, key: str) -> int:
        """Remove a key. Deleting a missing key returns 0 and is not an error."""
        try:
            return await self._client.delete(make_key(category, key))
        except RedisError as exc:
            raise self._unavailable(exc, "delete")

    async def increment(self, category: CacheCategory, key: str, ttl: int) -> int:
        """
        Increment a counter, starting its TTL window on the first hit.

        The key is created with its expiry and incremented in one MULTI/EXEC,
        so a counter never exists without a TTL.

        Returns:
            The counter value after incrementing
        """
        full_key = make_key(category, key)
        try:
            pipe = self._client.pipeline(transaction=True)
            pipe.set(full_key, 0, ex=ttl, nx=True)
            pipe.incr(full_key)
            _, count = await pipe.execute()
        except RedisError as exc:
            raise self._unavailable(exc, "increment")
        return int(count)

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except RedisError as exc:
            raise self._unavailable(exc, "ping")

    @staticmethod
    def _unavailable(exc: RedisError, operation: str) -> DependencyUnavailable:
        log_incident("cache", exc, operation=operation)
        return DependencyUnavailable("cache")
