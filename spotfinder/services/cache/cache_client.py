"""
Cache Clients

Async key/value cache with an explicit lifecycle. One client is created at
application startup, opened, handed to the components that need it and
closed on shutdown.

Backends:
- RedisCacheClient: redis.asyncio, for deployed instances
- MemoryCacheClient: in-process dict with expiry, for development and tests
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Callable, Dict, Optional, Tuple

import redis.asyncio as redis


logger = logging.getLogger(__name__)


class CacheClient(ABC):
    """Common interface for cache backends. Values are strings."""

    @abstractmethod
    async def open(self) -> None:
        pass

    @abstractmethod
    async def close(self) -> None:
        pass

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        pass

    @abstractmethod
    async def exists(self, key: str) -> bool:
        pass

    async def ping(self) -> bool:
        """Return True if the backend answers a round-trip."""
        try:
            await self.set("health_check", "ok", ttl=5)
            return await self.get("health_check") == "ok"
        except Exception:
            logger.exception("Cache health check failed")
            return False

    async def __aenter__(self):
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


class RedisCacheClient(CacheClient):
    """Cache backed by a Redis server."""

    def __init__(self, url: str):
        """
        Args:
            url: Redis connection URL, e.g. redis://localhost:6379/0
        """
        self.url = url
        self._client: Optional[redis.Redis] = None

    @property
    def client(self) -> redis.Redis:
        if self._client is None:
            raise RuntimeError("RedisCacheClient is not open")
        return self._client

    async def open(self) -> None:
        if self._client is None:
            self._client = redis.from_url(self.url, decode_responses=True)
            logger.info("Redis cache client opened for %s", self.url)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.info("Redis cache client closed")

    async def get(self, key: str) -> Optional[str]:
        return await self.client.get(key)

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        if ttl:
            await self.client.set(key, value, ex=ttl)
        else:
            await self.client.set(key, value)

    async def delete(self, key: str) -> None:
        await self.client.delete(key)

    async def exists(self, key: str) -> bool:
        return await self.client.exists(key) == 1


class MemoryCacheClient(CacheClient):
    """Process-local cache. Entries expire lazily on read."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: Dict[str, Tuple[str, Optional[float]]] = {}
        self.is_open = False

    async def open(self) -> None:
        self.is_open = True

    async def close(self) -> None:
        self._entries.clear()
        self.is_open = False

    def _live_entry(self, key: str) -> Optional[Tuple[str, Optional[float]]]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        _, expires_at = entry
        if expires_at is not None and self._clock() >= expires_at:
            del self._entries[key]
            return None
        return entry

    async def get(self, key: str) -> Optional[str]:
        entry = self._live_entry(key)
        return entry[0] if entry else None

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        expires_at = self._clock() + ttl if ttl else None
        self._entries[key] = (value, expires_at)

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    async def exists(self, key: str) -> bool:
        return self._live_entry(key) is not None


def create_cache_client(url: str) -> CacheClient:
    """
    Pick a cache backend from a URL.

    Args:
        url: 'memory://' for the in-process cache, redis:// or rediss:// for Redis

    Returns:
        An unopened CacheClient
    """
    if url.startswith("memory://"):
        return MemoryCacheClient()
    if url.startswith(("redis://", "rediss://", "unix://")):
        return RedisCacheClient(url)
    raise ValueError(f"Unsupported cache URL: {url}")
