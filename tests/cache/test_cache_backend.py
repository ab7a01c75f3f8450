import json
import asyncio
import logging
import pytest
from unittest.mock import AsyncMock, MagicMock
from redis.exceptions import ConnectionError as RedisConnectionError

from app.core.cache import (
    CacheManager,
    MemoryCacheBackend,
    NullCacheBackend,
    RedisCacheBackend,
    CacheBackend,
    create_cache_backend,
)

class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

class BrokenBackend(CacheBackend):
    """Every operation fails as if the server were unreachable."""

    async def get(self, key):
        raise RedisConnectionError("unreachable")

    async def set(self, key, value, ttl=None):
        raise RedisConnectionError("unreachable")

    async def delete(self, key):
        raise RedisConnectionError("unreachable")

    async def delete_pattern(self, pattern):
        raise RedisConnectionError("unreachable")

    async def clear(self):
        raise RedisConnectionError("unreachable")

@pytest.mark.asyncio
async def test_set_then_get_returns_same_value():
    manager = CacheManager(MemoryCacheBackend())
    value = {"subjects": [{"code": "DBMS"}], "count": 3}

    await manager.set("subjects:CSE:3:1", value, ttl=60)
    assert await manager.get("subjects:CSE:3:1") == value
    assert await manager.get("subjects:CSE:3:1") == value

@pytest.mark.asyncio
async def test_entry_expires_after_ttl():
    clock = FakeClock(0)
    manager = CacheManager(MemoryCacheBackend(clock=clock))

    await manager.set("static:data", {"branches": []}, ttl=1)
    clock.now = 1
    assert await manager.get("static:data") == {"branches": []}
    clock.now = 2
    assert await manager.get("static:data") is None

@pytest.mark.asyncio
async def test_get_or_set_calls_producer_once_while_fresh():
    manager = CacheManager(MemoryCacheBackend())
    calls = {"n": 0}

    async def producer():
        calls["n"] += 1
        return [1, 2, 3]

    assert await manager.get_or_set("k", 60, producer) == [1, 2, 3]
    assert await manager.get_or_set("k", 60, producer) == [1, 2, 3]
    assert calls["n"] == 1

@pytest.mark.asyncio
async def test_get_or_set_does_not_store_none():
    backend = MemoryCacheBackend()
    manager = CacheManager(backend)

    async def producer():
        return None

    assert await manager.get_or_set("empty", 60, producer) is None
    assert await backend.get("empty") is None

@pytest.mark.asyncio
async def test_producer_errors_propagate_and_are_not_cached():
    backend = MemoryCacheBackend()
    manager = CacheManager(backend)

    async def producer():
        raise ValueError("query failed")

    with pytest.raises(ValueError):
        await manager.get_or_set("boom", 60, producer)
    assert await backend.get("boom") is None

@pytest.mark.asyncio
async def test_unavailable_backend_always_returns_fresh_producer_value():
    manager = CacheManager(BrokenBackend())
    counter = {"n": 0}

    async def producer():
        counter["n"] += 1
        return {"n": counter["n"]}

    for expected in range(1, 4):
        assert await manager.get_or_set("k", 60, producer) == {"n": expected}

@pytest.mark.asyncio
async def test_null_backend_is_a_pass_through():
    manager = CacheManager(NullCacheBackend())

    async def producer():
        return "fresh"

    assert await manager.get_or_set("k", 60, producer) == "fresh"
    assert await manager.get("k") is None

@pytest.mark.asyncio
async def test_malformed_cached_value_counts_as_miss():
    backend = MemoryCacheBackend()
    await backend.set("k", "{not json", 60)
    manager = CacheManager(backend)

    async def producer():
        return {"ok": True}

    assert await manager.get_or_set("k", 60, producer) == {"ok": True}
    assert json.loads(await backend.get("k")) == {"ok": True}

@pytest.mark.asyncio
async def test_delete_pattern_and_invalidate():
    backend = MemoryCacheBackend()
    manager = CacheManager(backend)
    await manager.set("subjects:CSE:3:1", [1], ttl=60)
    await manager.set("subjects:v2:R23:CSE:3:1:all", [2], ttl=60)
    await manager.set("static:data", {}, ttl=60)

    assert await manager.invalidate("subjects_update") == 2
    assert await manager.get("static:data") == {}
    assert await manager.invalidate("no_such_event") == 0

def test_generate_key_sorts_keyword_arguments():
    manager = CacheManager(NullCacheBackend())
    assert manager.generate_key("resources", "CSE", year=3, branch="CSE") == \
        manager.generate_key("resources", "CSE", branch="CSE", year=3)
    assert manager.generate_key("resources", "CSE", branch="CSE", year=3) == "resources:CSE:branch=CSE:year=3"

def _failing_client():
    client = MagicMock()
    client.ping = AsyncMock(side_effect=RedisConnectionError("refused"))
    client.aclose = AsyncMock()
    return client

@pytest.mark.asyncio
async def test_redis_backend_gives_up_after_bounded_attempts(monkeypatch):
    from_url = MagicMock(side_effect=lambda *a, **kw: _failing_client())
    monkeypatch.setattr("app.core.cache.redis.from_url", from_url)
    delays = []

    async def fake_sleep(delay):
        delays.append(delay)

    backend = RedisCacheBackend("redis://localhost:6379/0", max_connect_attempts=3, sleep=fake_sleep)

    assert await backend.get("k") is None
    assert backend.disabled is True
    assert from_url.call_count == 3
    assert delays == [0.05, 0.1]

    await backend.set("k", "v", 60)
    assert await backend.get("k") is None
    assert from_url.call_count == 3

def test_backoff_delay_is_capped():
    assert RedisCacheBackend.backoff_delay(1) == 0.05
    assert RedisCacheBackend.backoff_delay(1000) == 2.0

@pytest.mark.asyncio
async def test_redis_backend_reconnects_after_operation_connection_error(monkeypatch):
    first = MagicMock()
    first.ping = AsyncMock(return_value=True)
    first.get = AsyncMock(side_effect=RedisConnectionError("reset by peer"))
    second = MagicMock()
    second.ping = AsyncMock(return_value=True)
    second.get = AsyncMock(return_value='{"a": 1}')
    from_url = MagicMock(side_effect=[first, second])
    monkeypatch.setattr("app.core.cache.redis.from_url", from_url)

    backend = RedisCacheBackend("redis://localhost:6379/0")
    manager = CacheManager(backend)

    assert await manager.get("k") is None
    assert backend.redis is None
    assert await manager.get("k") == {"a": 1}
    assert from_url.call_count == 2

@pytest.mark.asyncio
async def test_redis_set_uses_expiry(monkeypatch):
    client = MagicMock()
    client.ping = AsyncMock(return_value=True)
    client.set = AsyncMock(return_value=True)
    monkeypatch.setattr("app.core.cache.redis.from_url", MagicMock(return_value=client))

    backend = RedisCacheBackend("redis://localhost:6379/0")
    await backend.set("k", "v", 300)
    client.set.assert_awaited_once_with("k", "v", ex=300)

@pytest.mark.asyncio
async def test_memory_zero_ttl_never_expires():
    clock = FakeClock(0)
    backend = MemoryCacheBackend(clock=clock)

    await backend.set("pinned", "v", 0)
    clock.now = 10 ** 6
    assert await backend.get("pinned") == "v"

@pytest.mark.asyncio
async def test_concurrent_first_gets_share_one_redis_client(monkeypatch):
    async def slow_ping():
        await asyncio.sleep(0.01)
        return True

    client = MagicMock()
    client.ping = AsyncMock(side_effect=slow_ping)
    client.get = AsyncMock(return_value=None)
    from_url = MagicMock(return_value=client)
    monkeypatch.setattr("app.core.cache.redis.from_url", from_url)

    backend = RedisCacheBackend("redis://localhost:6379/0")
    results = await asyncio.gather(*(backend.get("k") for _ in range(4)))

    assert results == [None] * 4
    assert from_url.call_count == 1
    assert client.ping.await_count == 1
    assert client.get.await_count == 4
    assert backend.redis is client

@pytest.mark.asyncio
async def test_concurrent_gets_after_give_up_do_not_reconnect(monkeypatch):
    from_url = MagicMock(side_effect=lambda *a, **kw: _failing_client())
    monkeypatch.setattr("app.core.cache.redis.from_url", from_url)

    async def no_sleep(delay):
        return None

    backend = RedisCacheBackend("redis://localhost:6379/0", max_connect_attempts=2, sleep=no_sleep)
    await asyncio.gather(*(backend.get("k") for _ in range(3)))

    assert backend.disabled is True
    assert from_url.call_count == 2

@pytest.fixture
def cache_log(monkeypatch, caplog):
    # main.py configures app loggers without propagation
    monkeypatch.setattr(logging.getLogger("app.core.cache"), "propagate", True)
    caplog.set_level(logging.INFO, logger="app.core.cache")
    return caplog

def test_disabled_backend_logs_configured_reason(monkeypatch, cache_log):
    monkeypatch.setattr("app.core.cache.settings.CACHE_BACKEND", "none")
    monkeypatch.setattr("app.core.cache.settings.REDIS_URL", "redis://localhost:6379/0")

    assert isinstance(create_cache_backend(), NullCacheBackend)
    assert "REDIS_URL not set" not in cache_log.text
    assert "CACHE_BACKEND is none" in cache_log.text

def test_unknown_backend_name_is_reported(monkeypatch, cache_log):
    monkeypatch.setattr("app.core.cache.settings.CACHE_BACKEND", "memcached")
    monkeypatch.setattr("app.core.cache.settings.REDIS_URL", "redis://localhost:6379/0")

    assert isinstance(create_cache_backend(), NullCacheBackend)
    assert "Unknown CACHE_BACKEND 'memcached'" in cache_log.text
    assert "REDIS_URL not set" not in cache_log.text

def test_redis_without_url_falls_back_to_null(monkeypatch, cache_log):
    monkeypatch.setattr("app.core.cache.settings.CACHE_BACKEND", "redis")
    monkeypatch.setattr("app.core.cache.settings.REDIS_URL", "")

    assert isinstance(create_cache_backend(), NullCacheBackend)
    assert "REDIS_URL not set" in cache_log.text
