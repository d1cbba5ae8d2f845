"""
Refresh-token sessions.

One live refresh token per user, stored at `session:refresh:<user_id>`.
Starting a session is a single SET with expiry, so it overwrites whatever was
there: the previous refresh token stops being valid the moment the new one
lands. Two concurrent rotations for the same user both succeed and the last
writer's token is the one that survives.
"""
from __future__ import annotations
import hmac
from workforce.core.cache import CacheCategory, CacheStore

SESSION_TTL_SEC = 86400


def _session_key(user_id: str) -> str:
    return f"refresh:{user_id}"


class SessionStore:
    def __init__(self, cache: CacheStore, ttl: int = SESSION_TTL_SEC):
        self._cache = cache
        self._ttl = ttl

    async def start_session(self, user_id: str, refresh_token: str) -> None:
        await self._cache.set(CacheCategory.SESSION, _session_key(user_id), refresh_token, ttl=self._ttl)

    async def is_valid(self, user_id: str, refresh_token: str) -> bool:
        stored = await self._cache.get(CacheCategory.SESSION, _session_key(user_id))
        if not isinstance(stored, str) or not refresh_token:
            return False
        return hmac.compare_digest(stored.encode(), refresh_token.encode())

    async def end_session(self, user_id: str) -> None:
        await self._cache.delete(CacheCategory.SESSION, _session_key(user_id))
