"""
Redis client construction shared by the cache and the click queue.
"""

import logging
from typing import Optional

import redis

from linkstats_app.config import settings

logger = logging.getLogger(__name__)


def connect_redis(url: Optional[str] = None) -> redis.Redis:
    """
    Build a Redis client and check it is reachable.

    Raw bytes are returned (decode_responses=False); callers decode.

    Raises:
        redis.RedisError: the server cannot be reached
    """
    url = url or settings.redis_url
    client = redis.from_url(
        url,
        decode_responses=False,
        socket_connect_timeout=settings.redis_timeout,
        socket_timeout=settings.redis_timeout,
    )
    client.ping()
    logger.debug("Connected to Redis at %s", url)
    return client
