"""Key-value cache backends used by the listing service.

Values are opaque strings (the listing service stores serialized JSON).
Both backends share the `CacheBackend` interface:

- ``get(key)`` returns the stored string or None (missing or expired)
- ``set(key, value, ttl)`` stores with a TTL in one step (None = no expiry)
- ``expire(key, ttl)`` resets the TTL; ``ttl <= 0`` removes the key
- ``delete(key)``
- ``incr(key)`` atomically increments an integer counter, starting at 0

Backend failures are raised as `CacheError`; nothing is swallowed.
"""

import time
from abc import ABC, abstractmethod
from typing import Callable, Dict, Optional, Tuple

from redis.asyncio import Redis
from redis.exceptions import RedisError

from bookshelf.config.settings import settings
from bookshelf.core.exceptions.exceptions import CacheError
from bookshelf.utils.log import app_logger


class CacheBackend(ABC):

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        ...

    @abstractmethod
    async def expire(self, key: str, ttl: int) -> None:
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        ...

    @abstractmethod
    async def incr(self, key: str) -> int:
        ...

    async def close(self) -> None:
        return None


class MemoryCache(CacheBackend):
    """Simple in-memory cache with per-key TTL.

    Suitable for local development and tests; a production deployment
    should use `RedisCache` so every worker sees the same entries.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        # key -> (value, expires_at or None)
        self._store: Dict[str, Tuple[str, Optional[float]]] = {}

    def _live(self, key: str) -> Optional[Tuple[str, Optional[float]]]:
        entry = self._store.get(key)
        if entry is None:
            return None
        _, expires_at = entry
        if expires_at is not None and self._clock() >= expires_at:
            # expired
            del self._store[key]
            return None
        return entry

    def _sweep(self) -> None:
        now = self._clock()
        expired = [k for k, (_, expires_at) in self._store.items() if expires_at is not None and now >= expires_at]
        for key in expired:
            del self._store[key]

    async def get(self, key: str) -> Optional[str]:
        entry = self._live(key)
        return entry[0] if entry else None

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        # entries under an old listing version are never read again
        self._sweep()
        expires_at = self._clock() + ttl if ttl else None
        self._store[key] = (value, expires_at)

    async def expire(self, key: str, ttl: int) -> None:
        entry = self._live(key)
        if entry is None:
            return
        if ttl <= 0:
            del self._store[key]
            return
        self._store[key] = (entry[0], self._clock() + ttl)

    async def delete(self, key: str) -> None:
        self._store.pop(key, None)

    async def incr(self, key: str) -> int:
        entry = self._live(key)
        current = int(entry[0]) if entry else 0
        expires_at = entry[1] if entry else None
        self._store[key] = (str(current + 1), expires_at)
        return current + 1

    def __len__(self) -> int:
        self._sweep()
        return len(self._store)


class RedisCache(CacheBackend):
    """Redis backend on the `redis.asyncio` client.

    The client connects lazily on the first command. TTLs use ``SET ... EX``
    so a value and its expiry are written in one round trip.
    """

    def __init__(self, redis_url: str = None, client: Redis = None, socket_timeout: int = 5):
        if client is None:
            if not redis_url:
                raise ValueError("redis_url is required")
            client = Redis.from_url(redis_url, decode_responses=True, socket_timeout=socket_timeout)
        self._client = client

    async def _call(self, operation: str, key: str, coro):
        try:
            return await coro
        except RedisError as e:
            app_logger.error("cache.error", operation=operation, key=key, error=str(e))
            raise CacheError(operation, str(e)) from e

    async def get(self, key: str) -> Optional[str]:
        value = await self._call("get", key, self._client.get(key))
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        await self._call("set", key, self._client.set(key, value, ex=ttl if ttl else None))

    async def expire(self, key: str, ttl: int) -> None:
        # redis deletes the key when the ttl is not positive
        await self._call("expire", key, self._client.expire(key, ttl))

    async def delete(self, key: str) -> None:
        await self._call("delete", key, self._client.delete(key))

    async def incr(self, key: str) -> int:
        return int(await self._call("incr", key, self._client.incr(key)))

    async def close(self) -> None:
        await self._client.aclose()
        app_logger.info("cache.redis.closed")


def create_cache(backend: str = None, redis_url: str = None) -> CacheBackend:
    """Build the cache backend selected by configuration."""
    backend = (backend or settings.CACHE_BACKEND).lower()
    if backend == "memory":
        app_logger.info("cache.backend", backend="memory")
        return MemoryCache()
    if backend == "redis":
        url = redis_url or settings.REDIS_URL
        app_logger.info("cache.backend", backend="redis")
        return RedisCache(redis_url=url)
    raise ValueError(f"unknown cache backend: {backend}")
