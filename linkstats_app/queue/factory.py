"""
Builds the click queue configured by ``settings.queue_backend``.
"""

import logging
from enum import Enum
from typing import Optional

from .strategies import QueueStrategy, RedisStreamQueue, InMemoryQueue
from linkstats_app.config import settings

logger = logging.getLogger(__name__)


class QueueBackend(Enum):
    REDIS_STREAMS = "redis_streams"
    MEMORY = "memory"


class QueueFactory:
    """Process-wide click queue, created on first use."""

    _instance: Optional[QueueStrategy] = None

    @classmethod
    def create(cls, backend: QueueBackend) -> QueueStrategy:
        if cls._instance is None:
            cls._instance = cls._build(backend)
        return cls._instance

    @staticmethod
    def _build(backend: QueueBackend) -> QueueStrategy:
        if backend == QueueBackend.MEMORY:
            logger.info("Click queue: in-memory")
            return InMemoryQueue()

        if backend == QueueBackend.REDIS_STREAMS:
            from linkstats_app.redis_connection import connect_redis

            try:
                client = connect_redis()
            except Exception as e:
                # Clicks queued in memory are only seen by a worker in this process
                logger.warning("Redis unavailable (%s); click queue falls back to memory", e)
                return InMemoryQueue()

            logger.info("Click queue: Redis stream %s, group %s",
                        settings.queue_name, settings.queue_consumer_group)
            return RedisStreamQueue(client, settings.queue_consumer_group)

        raise ValueError(f"Unknown queue backend: {backend}")

    @classmethod
    def clear_instance(cls):
        """Forget the cached queue (tests)"""
        cls._instance = None
