"""
Factory for the alias -> URL cache.
Creates the configured backend once and reuses it.
"""

import logging
from enum import Enum
from typing import Optional

from .strategies import CacheStrategy, RedisCache, InMemoryCache, NullCache

logger = logging.getLogger(__name__)


class CacheBackend(Enum):
    """Available cache backends"""
    REDIS = "redis"
    MEMORY = "memory"
    NULL = "null"


class CacheFactory:
    """
    Singleton cache per process.

    An unreachable Redis at startup degrades to the in-memory cache, since
    the record store stays authoritative for every alias.
    """

    _instance: Optional[CacheStrategy] = None

    @classmethod
    def create(cls, backend: CacheBackend) -> CacheStrategy:
        if cls._instance is not None:
            return cls._instance

        if backend == CacheBackend.REDIS:
            from linkstats_app.redis_connection import connect_redis

            try:
                cls._instance = RedisCache(connect_redis())
                logger.info("Alias cache: Redis")
            except Exception as e:
                logger.warning("Redis unavailable (%s); alias cache falls back to memory", e)
                cls._instance = InMemoryCache()
        elif backend == CacheBackend.MEMORY:
            cls._instance = InMemoryCache()
            logger.info("Alias cache: in-memory")
        elif backend == CacheBackend.NULL:
            cls._instance = NullCache()
            logger.info("Alias cache disabled")
        else:
            raise ValueError(f"Unknown cache backend: {backend}")

        return cls._instance

    @classmethod
    def clear_instance(cls):
        """Clear cached instance (for testing)"""
        cls._instance = None
