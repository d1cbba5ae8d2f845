# workforce/services/rate_limit.py
from __future__ import annotations
from workforce.core.cache import CacheCategory, CacheStore
from workforce.core.errors import RateLimited
from workforce.core.logger import log_security_event


class RateLimiter:
    """Fixed-window counter in the `ratelimit` namespace."""

    def __init__(self, cache: CacheStore, limit: int, window_sec: int, scope: str):
        self._cache = cache
        self._limit = limit
        self._window = window_sec
        self._scope = scope

    async def hit(self, identifier: str) -> int:
        """
        Count one request for `identifier`.

        Raises:
            RateLimited: more than `limit` requests inside the current window
        """
        count = await self._cache.increment(CacheCategory.RATELIMIT, f"{self._scope}:{identifier}", self._window)
        if count > self._limit:
            log_security_event(
                action=self._scope,
                result="rate_limited",
                meta={"count": count, "limit": self._limit},
                level="warning",
            )
            raise RateLimited(meta={"retry_after": self._window})
        return count
