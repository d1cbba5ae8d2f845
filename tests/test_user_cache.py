"""Tests for the read-through user cache."""

import json

import pytest

from workforce.domain.models import UserRole
from workforce.services.user_cache import UserCache


@pytest.fixture
def user_cache(cache):
    return UserCache(cache)


@pytest.fixture
def stored(user_repo):
    return user_repo.add("a@x.com", "secret1", role=UserRole.EMPLOYEE, company_id="C1")


def _loader_for(user_repo):
    async def load(user_id):
        record = await user_repo.get_by_id(user_id)
        return record.public() if record else None
    return load


@pytest.mark.asyncio
async def test_miss_then_populate(user_cache, user_repo, stored, fake_redis):
    load = _loader_for(user_repo)
    assert await user_cache.get(stored.id) is None

    user = await user_cache.get_or_load(stored.id, load)
    assert user.email == "a@x.com"
    assert fake_redis.keys() == [f"user:{stored.id}"]
    assert user_repo.reads_by_id == 1


@pytest.mark.asyncio
async def test_hit_skips_persistence(user_cache, user_repo, stored):
    load = _loader_for(user_repo)
    await user_cache.get_or_load(stored.id, load)
    await user_cache.get_or_load(stored.id, load)
    assert user_repo.reads_by_id == 1


@pytest.mark.asyncio
async def test_cached_value_never_contains_password_hash(user_cache, stored, fake_redis):
    await user_cache.set(stored.id, stored)
    raw = json.loads(await fake_redis.get(f"user:{stored.id}"))
    assert "password_hash" not in raw
    assert raw["email"] == "a@x.com"


@pytest.mark.asyncio
async def test_default_ttl_is_one_hour(user_cache, stored, fake_redis):
    await user_cache.set(stored.id, stored.public())
    assert 3590 < fake_redis.ttl_of(f"user:{stored.id}") <= 3600


@pytest.mark.asyncio
async def test_invalidate_forces_reload(user_cache, user_repo, stored):
    load = _loader_for(user_repo)
    await user_cache.get_or_load(stored.id, load)
    await user_repo.set_active(stored.id, False)

    # Still stale until invalidated
    assert (await user_cache.get(stored.id)).is_active is True

    await user_cache.invalidate(stored.id)
    reloaded = await user_cache.get_or_load(stored.id, load)
    assert reloaded.is_active is False


@pytest.mark.asyncio
async def test_miss_is_not_treated_as_absent(user_cache, user_repo, stored, fake_redis):
    load = _loader_for(user_repo)
    await user_cache.get_or_load(stored.id, load)
    fake_redis.advance(3601)

    user = await user_cache.get_or_load(stored.id, load)
    assert user is not None
    assert user_repo.reads_by_id == 2


@pytest.mark.asyncio
async def test_unknown_user_returns_none_and_caches_nothing(user_cache, user_repo, fake_redis):
    load = _loader_for(user_repo)
    assert await user_cache.get_or_load("ghost", load) is None
    assert fake_redis.keys() == []
