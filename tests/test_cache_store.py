"""Tests for the namespaced cache store."""

import pytest

from workforce.core.cache import CacheCategory, make_key
from workforce.core.errors import DependencyUnavailable


def test_keys_are_namespaced_by_category():
    assert make_key(CacheCategory.USER, "42") == "user:42"
    assert make_key(CacheCategory.SESSION, "refresh:42") == "session:refresh:42"
    assert make_key("ratelimit", "login:1.2.3.4") == "ratelimit:login:1.2.3.4"


def test_unknown_category_rejected():
    with pytest.raises(ValueError):
        make_key("secrets", "1")


@pytest.mark.asyncio
async def test_set_get_round_trip_json(cache, fake_redis):
    await cache.set(CacheCategory.GENERAL, "k", {"a": 1, "b": [1, 2]}, ttl=60)
    assert await cache.get(CacheCategory.GENERAL, "k") == {"a": 1, "b": [1, 2]}
    assert fake_redis.keys() == ["general:k"]


@pytest.mark.asyncio
async def test_same_id_different_categories_do_not_collide(cache):
    await cache.set(CacheCategory.USER, "1", "user-value")
    await cache.set(CacheCategory.COMPANY, "1", "company-value")
    assert await cache.get(CacheCategory.USER, "1") == "user-value"
    assert await cache.get(CacheCategory.COMPANY, "1") == "company-value"


@pytest.mark.asyncio
async def test_entry_expires_after_ttl(cache, fake_redis):
    await cache.set(CacheCategory.GENERAL, "k", "v", ttl=10)
    fake_redis.advance(11)
    assert await cache.get(CacheCategory.GENERAL, "k") is None


@pytest.mark.asyncio
async def test_delete_missing_key_is_not_an_error(cache):
    assert await cache.delete(CacheCategory.GENERAL, "nope") == 0


@pytest.mark.asyncio
async def test_increment_starts_window_once(cache, fake_redis):
    assert await cache.increment(CacheCategory.RATELIMIT, "x", ttl=60) == 1
    assert await cache.increment(CacheCategory.RATELIMIT, "x", ttl=60) == 2
    fake_redis.advance(61)
    assert await cache.increment(CacheCategory.RATELIMIT, "x", ttl=60) == 1


@pytest.mark.asyncio
async def test_counter_always_carries_its_window(cache, fake_redis):
    await cache.increment(CacheCategory.RATELIMIT, "login:1.2.3.4", ttl=60)
    assert 59 < fake_redis.ttl_of("ratelimit:login:1.2.3.4") <= 60

    fake_redis.advance(30)
    assert await cache.increment(CacheCategory.RATELIMIT, "login:1.2.3.4", ttl=60) == 2
    # Later hits do not extend the window
    assert fake_redis.ttl_of("ratelimit:login:1.2.3.4") <= 30


@pytest.mark.asyncio
async def test_failed_increment_leaves_no_counter_behind(cache, fake_redis):
    fake_redis.down = True
    with pytest.raises(DependencyUnavailable):
        await cache.increment(CacheCategory.RATELIMIT, "login:1.2.3.4", ttl=60)
    fake_redis.down = False

    assert fake_redis.keys() == []
    assert await cache.increment(CacheCategory.RATELIMIT, "login:1.2.3.4", ttl=60) == 1
    assert fake_redis.ttl_of("ratelimit:login:1.2.3.4") is not None


@pytest.mark.asyncio
async def test_redis_failure_is_dependency_unavailable(cache, fake_redis):
    fake_redis.down = True
    with pytest.raises(DependencyUnavailable) as exc_info:
        await cache.get(CacheCategory.USER, "1")
    assert exc_info.value.status_code == 503
    assert exc_info.value.component == "cache"
