"""
Alias -> original URL cache backends.

The cache only saves record store reads on the redirect path. Backends never
raise on I/O failures: a failed read is a miss and a failed write reports
False, so an outage costs latency and nothing else.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional, Dict

logger = logging.getLogger(__name__)


class CacheStrategy(ABC):
    """Async key/value cache of resolved URLs, keyed by ``url:<alias>``."""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Cached URL, or None on a miss."""
        pass

    @abstractmethod
    async def set(self, key: str, value: str, ttl: int = 0) -> bool:
        """
        Store a URL.

        Args:
            key: Cache key
            value: Original URL
            ttl: Seconds to keep the entry; 0 keeps it until the backend evicts it
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Remove a key. False if it was not cached."""
        pass

    @abstractmethod
    async def exists(self, key: str) -> bool:
        pass

    @abstractmethod
    async def clear(self) -> bool:
        pass


class RedisCache(CacheStrategy):
    """
    Shared cache for every API process, backed by a sync redis-py client.

    Client calls run in the default executor so a slow or unreachable Redis
    never stalls the event loop.
    """

    def __init__(self, redis_client):
        self.redis = redis_client

    async def _call(self, method, *args):
        return await asyncio.to_thread(getattr(self.redis, method), *args)

    async def get(self, key: str) -> Optional[str]:
        try:
            value = await self._call("get", key)
        except Exception as e:
            logger.warning("Cache read failed for %s: %s", key, e)
            return None
        return value.decode('utf-8') if value else None

    async def set(self, key: str, value: str, ttl: int = 0) -> bool:
        try:
            if ttl > 0:
                return bool(await self._call("setex", key, ttl, value))
            return bool(await self._call("set", key, value))
        except Exception as e:
            logger.warning("Cache write failed for %s: %s", key, e)
            return False

    async def delete(self, key: str) -> bool:
        try:
            return bool(await self._call("delete", key))
        except Exception as e:
            logger.warning("Cache delete failed for %s: %s", key, e)
            return False

    async def exists(self, key: str) -> bool:
        try:
            return bool(await self._call("exists", key))
        except Exception as e:
            logger.warning("Cache lookup failed for %s: %s", key, e)
            return False

    async def clear(self) -> bool:
        """Flush the whole Redis database, not only ``url:`` keys."""
        try:
            await self._call("flushdb")
            return True
        except Exception as e:
            logger.warning("Cache flush failed: %s", e)
            return False


class InMemoryCache(CacheStrategy):
    """Per-process dict. TTL is ignored; entries live as long as the process."""

    def __init__(self):
        self._entries: Dict[str, str] = {}

    async def get(self, key: str) -> Optional[str]:
        return self._entries.get(key)

    async def set(self, key: str, value: str, ttl: int = 0) -> bool:
        self._entries[key] = value
        return True

    async def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    async def exists(self, key: str) -> bool:
        return key in self._entries

    async def clear(self) -> bool:
        self._entries.clear()
        return True


class NullCache(CacheStrategy):
    """Caching disabled: every resolve reads the record store."""

    async def get(self, key: str) -> Optional[str]:
        return None

    async def set(self, key: str, value: str, ttl: int = 0) -> bool:
        return True

    async def delete(self, key: str) -> bool:
        return False

    async def exists(self, key: str) -> bool:
        return False

    async def clear(self) -> bool:
        return True
