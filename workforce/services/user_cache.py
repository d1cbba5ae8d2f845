# workforce/services/user_cache.py
from __future__ import annotations
from typing import Awaitable, Callable, Optional
from workforce.core.cache import CacheCategory, CacheStore
from workforce.domain.models import User

USER_CACHE_TTL_SEC = 3600


def _public(user: User) -> User:
    # Drops anything beyond the public fields (e.g. a UserRecord's hash)
    return User.model_validate(user.model_dump(include=set(User.model_fields)))


class UserCache:
    """
    Read-through cache of public user records, keyed `user:<id>`.

    Must be invalidated (not left to expire) whenever a user's password,
    role or active flag changes, and when the user is deleted. A stale
    `is_active=True` entry would let a deactivated account keep working.
    """

    def __init__(self, cache: CacheStore, ttl: int = USER_CACHE_TTL_SEC):
        self._cache = cache
        self._ttl = ttl

    async def get(self, user_id: str) -> Optional[User]:
        data = await self._cache.get(CacheCategory.USER, user_id)
        if data is None:
            return None
        return User.model_validate(data)

    async def set(self, user_id: str, user: User, ttl: Optional[int] = None) -> None:
        await self._cache.set(CacheCategory.USER, user_id, _public(user).model_dump(mode="json"), ttl=ttl or self._ttl)

    async def invalidate(self, user_id: str) -> None:
        await self._cache.delete(CacheCategory.USER, user_id)

    async def get_or_load(
        self,
        user_id: str,
        loader: Callable[[str], Awaitable[Optional[User]]],
    ) -> Optional[User]:
        """
        Cache first; on a miss ask `loader` (persistence) and populate.

        Returns:
            The user, or None only when persistence says it does not exist
        """
        user = await self.get(user_id)
        if user is not None:
            return user
        user = await loader(user_id)
        if user is None:
            return None
        await self.set(user_id, user)
        return _public(user)
