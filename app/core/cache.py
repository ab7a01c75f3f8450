import json
import asyncio
import fnmatch
from abc import ABC, abstractmethod
from contextvars import ContextVar
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar
import time
import logging

import redis.asyncio as redis
from redis.exceptions import ConnectionError as RedisConnectionError, TimeoutError as RedisTimeoutError

from app.core.cache_config import INVALIDATION_PATTERNS
from app.core.config import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Per-request list of HIT/MISS outcomes, installed by the request logging middleware
cache_trace: ContextVar[Optional[List[str]]] = ContextVar("cache_trace", default=None)

def summarize_cache_trace(trace: Optional[List[str]]) -> Optional[str]:
    if not trace:
        return None
    if all(outcome == "HIT" for outcome in trace):
        return "HIT"
    if all(outcome == "MISS" for outcome in trace):
        return "MISS"
    return "PARTIAL"

class CacheBackend(ABC):
    """Key/value store holding serialized strings with an expiry.

    Implementations never raise to callers: a failed read is a miss and a
    failed write is dropped.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        pass

    @abstractmethod
    async def delete_pattern(self, pattern: str) -> int:
        pass

    @abstractmethod
    async def clear(self) -> bool:
        pass

class NullCacheBackend(CacheBackend):
    async def get(self, key: str) -> Optional[str]:
        return None

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        return None

    async def delete(self, key: str) -> bool:
        return False

    async def delete_pattern(self, pattern: str) -> int:
        return 0

    async def clear(self) -> bool:
        return True

class MemoryCacheBackend(CacheBackend):
    def __init__(self, clock: Callable[[], float] = time.time):
        self._cache: Dict[str, Dict] = {}
        self._clock = clock

    def _expired(self, item: Dict) -> bool:
        ttl = item.get("ttl")
        return ttl is not None and self._clock() - item["stored_at"] > ttl

    async def get(self, key: str) -> Optional[str]:
        item = self._cache.get(key)
        if item is None:
            return None
        if self._expired(item):
            del self._cache[key]
            return None
        return item["value"]

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        if ttl is None:
            ttl = settings.CACHE_TTL
        self._cache[key] = {
            "value": value,
            # 0 keeps the entry until it is deleted
            "ttl": ttl or None,
            "stored_at": self._clock(),
        }

    async def delete(self, key: str) -> bool:
        return self._cache.pop(key, None) is not None

    async def delete_pattern(self, pattern: str) -> int:
        keys_to_delete = [key for key in self._cache if fnmatch.fnmatch(key, pattern)]
        for key in keys_to_delete:
            del self._cache[key]
        return len(keys_to_delete)

    async def clear(self) -> bool:
        self._cache.clear()
        return True

class RedisCacheBackend(CacheBackend):
    def __init__(
        self,
        redis_url: str,
        max_connect_attempts: int = 3,
        socket_timeout: float = 2.0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.redis_url = redis_url
        self.max_connect_attempts = max_connect_attempts
        self.socket_timeout = socket_timeout
        self.redis: Optional[redis.Redis] = None
        self.disabled = False
        self.failed_attempts = 0
        self._sleep = sleep
        self._lock = asyncio.Lock()

    @staticmethod
    def backoff_delay(attempt: int) -> float:
        return min(attempt * 0.05, 2.0)

    async def _connect(self) -> Optional[redis.Redis]:
        if self.disabled:
            return None
        if self.redis is not None:
            return self.redis

        async with self._lock:
            # Another caller may have connected or given up while we waited
            if self.disabled:
                return None
            if self.redis is not None:
                return self.redis

            while self.failed_attempts < self.max_connect_attempts:
                client = redis.from_url(
                    self.redis_url,
                    decode_responses=True,
                    socket_timeout=self.socket_timeout,
                    socket_connect_timeout=self.socket_timeout,
                )
                try:
                    await client.ping()
                except Exception as e:
                    self.failed_attempts += 1
                    logger.warning(
                        f"Redis connection attempt {self.failed_attempts}/{self.max_connect_attempts} failed: {e}"
                    )
                    await self._close(client)
                    if self.failed_attempts < self.max_connect_attempts:
                        await self._sleep(self.backoff_delay(self.failed_attempts))
                    continue

                self.failed_attempts = 0
                self.redis = client
                logger.info("Connected to Redis cache backend")
                return client

            self.disabled = True
            logger.warning("Redis connection failed, stopping retries. Caching will be disabled.")
            return None

    async def _close(self, client: redis.Redis) -> None:
        try:
            await client.aclose()
        except Exception as e:
            logger.debug(f"Ignoring error while closing Redis client: {e}")

    def _drop_connection(self) -> None:
        self.redis = None

    async def get(self, key: str) -> Optional[str]:
        client = await self._connect()
        if client is None:
            return None
        try:
            return await client.get(key)
        except (RedisConnectionError, RedisTimeoutError) as e:
            logger.error(f"Redis GET connection error for key {key}: {e}")
            self._drop_connection()
        except Exception as e:
            logger.error(f"Redis GET error for key {key}: {e}")
        return None

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        client = await self._connect()
        if client is None:
            return None
        try:
            if ttl is None:
                ttl = settings.CACHE_TTL
            if ttl == 0:
                await client.set(key, value)
            else:
                await client.set(key, value, ex=ttl)
        except (RedisConnectionError, RedisTimeoutError) as e:
            logger.error(f"Redis SET connection error for key {key}: {e}")
            self._drop_connection()
        except Exception as e:
            logger.error(f"Redis SET error for key {key}: {e}")

    async def delete(self, key: str) -> bool:
        client = await self._connect()
        if client is None:
            return False
        try:
            return await client.delete(key) > 0
        except Exception as e:
            logger.error(f"Redis DELETE error for key {key}: {e}")
            return False

    async def delete_pattern(self, pattern: str) -> int:
        client = await self._connect()
        if client is None:
            return 0
        try:
            keys = [key async for key in client.scan_iter(match=pattern)]
            if keys:
                return await client.delete(*keys)
            return 0
        except Exception as e:
            logger.error(f"Redis pattern delete error: {e}")
            return 0

    async def clear(self) -> bool:
        client = await self._connect()
        if client is None:
            return False
        try:
            await client.flushdb()
            return True
        except Exception as e:
            logger.error(f"Redis CLEAR error: {e}")
            return False

def create_cache_backend() -> CacheBackend:
    kind = (settings.CACHE_BACKEND or "").lower()
    if kind == "memory":
        logger.info("Using in-memory cache backend")
        return MemoryCacheBackend()
    if kind == "redis":
        if not settings.REDIS_URL:
            logger.warning("REDIS_URL not set, caching will be disabled")
            return NullCacheBackend()
        logger.info("Initializing Redis cache backend")
        return RedisCacheBackend(
            settings.REDIS_URL,
            max_connect_attempts=settings.REDIS_MAX_CONNECT_ATTEMPTS,
            socket_timeout=settings.REDIS_SOCKET_TIMEOUT,
        )
    if kind == "none":
        logger.info("CACHE_BACKEND is none, caching is disabled")
    else:
        logger.warning(f"Unknown CACHE_BACKEND {settings.CACHE_BACKEND!r}, caching will be disabled")
    return NullCacheBackend()

_cache_backend: Optional[CacheBackend] = None

def get_cache_backend() -> CacheBackend:
    global _cache_backend
    if _cache_backend is None:
        _cache_backend = create_cache_backend()
    return _cache_backend

def set_cache_backend(backend: CacheBackend) -> None:
    global _cache_backend
    _cache_backend = backend

def reset_cache_backend() -> None:
    global _cache_backend
    _cache_backend = None

class CacheManager:
    def __init__(self, backend: Optional[CacheBackend] = None):
        self._backend = backend

    @property
    def backend(self) -> CacheBackend:
        return self._backend or get_cache_backend()

    def generate_key(self, prefix: str, *args, **kwargs) -> str:
        key_data = ":".join([prefix, *map(str, args)])
        if kwargs:
            sorted_kwargs = sorted(kwargs.items())
            key_data += f":{':'.join(f'{k}={v}' for k, v in sorted_kwargs)}"
        return key_data

    async def get(self, key: str) -> Optional[Any]:
        try:
            raw = await self.backend.get(key)
        except Exception as e:
            logger.error(f"Cache get error for key {key}: {e}")
            return None
        if not raw:
            return None
        try:
            return json.loads(raw)
        except (json.JSONDecodeError, TypeError) as e:
            logger.error(f"Failed to parse cache for key {key}: {e}")
            return None

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        try:
            serialized = json.dumps(value, default=str)
        except (TypeError, ValueError) as e:
            logger.error(f"Cannot serialize value for key {key}: {e}")
            return
        try:
            await self.backend.set(key, serialized, ttl)
        except Exception as e:
            logger.error(f"Cache set error for key {key}: {e}")

    async def get_or_set(self, key: str, ttl: int, producer: Callable[[], Awaitable[T]]) -> T:
        cached = await self.get(key)
        trace = cache_trace.get()
        if cached is not None:
            logger.debug(f"Cache HIT for key: {key}")
            if trace is not None:
                trace.append("HIT")
            return cached

        logger.debug(f"Cache MISS for key: {key}")
        if trace is not None:
            trace.append("MISS")
        result = await producer()
        if result is not None:
            await self.set(key, result, ttl=ttl)
        return result

    async def delete(self, key: str) -> bool:
        return await self.backend.delete(key)

    async def delete_pattern(self, pattern: str) -> int:
        return await self.backend.delete_pattern(pattern)

    async def clear(self) -> bool:
        return await self.backend.clear()

    async def invalidate(self, event: str) -> int:
        """Drop every key registered for a data-change event."""
        patterns = INVALIDATION_PATTERNS.get(event)
        if patterns is None:
            logger.warning(f"Unknown cache invalidation event: {event}")
            return 0
        deleted = 0
        for pattern in patterns:
            deleted += await self.delete_pattern(pattern)
        logger.info(f"Invalidated {deleted} cache keys for {event}")
        return deleted

cache = CacheManager()

async def get_or_set_cache(key: str, ttl_seconds: int, producer: Callable[[], Awaitable[T]]) -> T:
    return await cache.get_or_set(key, ttl_seconds, producer)
