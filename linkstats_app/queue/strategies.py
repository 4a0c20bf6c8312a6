"""
Click queue strategies.

The redirect route publishes one ClickEvent per resolution; the click worker
reads them in batches and acknowledges a batch once every click in it has
been recorded. Deliveries that are never acknowledged (worker crash, failed
batch) stay pending and are handed out again by ``reclaim``.
"""

import itertools
import logging
import socket
import time
from abc import ABC, abstractmethod
from collections import deque
from typing import Deque, Dict, List, Tuple

from .models import ClickEvent

logger = logging.getLogger(__name__)


class QueueStrategy(ABC):
    """At-least-once delivery of click events."""

    @abstractmethod
    async def publish(self, queue_name: str, message: ClickEvent) -> bool:
        """Append a click. Returns False if it could not be queued."""
        pass

    @abstractmethod
    async def consume(
        self,
        queue_name: str,
        batch_size: int = 1,
        block_time: int = 1000
    ) -> List[ClickEvent]:
        """
        Read up to batch_size clicks never delivered before.

        Every returned event has ``message_id`` set and stays pending until
        acknowledged. block_time is how long to wait for new messages (ms).
        """
        pass

    @abstractmethod
    async def reclaim(
        self,
        queue_name: str,
        min_idle_ms: int,
        batch_size: int = 1
    ) -> List[ClickEvent]:
        """Redeliver pending clicks that have gone unacknowledged for min_idle_ms."""
        pass

    @abstractmethod
    async def ack(self, queue_name: str, message_ids: List[str]) -> bool:
        """Mark deliveries as processed."""
        pass

    @abstractmethod
    async def get_queue_length(self, queue_name: str) -> int:
        """Number of clicks not yet delivered."""
        pass


class RedisStreamQueue(QueueStrategy):
    """
    Redis Streams backend.

    XADD to publish, XREADGROUP within a consumer group to consume,
    XACK to acknowledge and XAUTOCLAIM to take over stale pending entries.
    Several workers can share one group; each entry goes to one of them.
    """

    def __init__(self, redis_client, consumer_group: str = "click_workers"):
        self.redis = redis_client
        self.consumer_group = consumer_group
        self.consumer_name = f"worker-{socket.gethostname()}-{id(self)}"
        self._initialized_streams = set()

    def _ensure_group(self, queue_name: str):
        if queue_name in self._initialized_streams:
            return

        try:
            self.redis.xgroup_create(
                name=queue_name,
                groupname=self.consumer_group,
                id='0',
                mkstream=True
            )
            logger.info("Created consumer group %s on %s", self.consumer_group, queue_name)
        except Exception as e:
            if "BUSYGROUP" not in str(e):
                raise

        self._initialized_streams.add(queue_name)

    @staticmethod
    def _parse_entries(entries) -> List[ClickEvent]:
        events = []
        for message_id, fields in entries:
            if not fields:
                # Entry was trimmed from the stream while pending
                continue
            try:
                event = ClickEvent.model_validate_json(fields[b'data'])
            except Exception as e:
                logger.warning("Dropping unreadable click %s: %s", message_id, e)
                continue
            event.message_id = message_id.decode('utf-8')
            events.append(event)
        return events

    async def publish(self, queue_name: str, message: ClickEvent) -> bool:
        try:
            self._ensure_group(queue_name)
            self.redis.xadd(queue_name, {'data': message.model_dump_json()})
            return True
        except Exception as e:
            logger.error("Failed to publish click for %s: %s", message.short_alias, e)
            return False

    async def consume(
        self,
        queue_name: str,
        batch_size: int = 1,
        block_time: int = 1000
    ) -> List[ClickEvent]:
        self._ensure_group(queue_name)

        # '>' reads only entries never delivered to this group
        response = self.redis.xreadgroup(
            groupname=self.consumer_group,
            consumername=self.consumer_name,
            streams={queue_name: '>'},
            count=batch_size,
            block=block_time
        )
        if not response:
            return []

        events = []
        for _stream, entries in response:
            events.extend(self._parse_entries(entries))
        return events

    async def reclaim(
        self,
        queue_name: str,
        min_idle_ms: int,
        batch_size: int = 1
    ) -> List[ClickEvent]:
        self._ensure_group(queue_name)

        # Reply is [next_start_id, entries] or, on Redis 7+, [next_start_id, entries, deleted_ids]
        response = self.redis.xautoclaim(
            queue_name,
            self.consumer_group,
            self.consumer_name,
            min_idle_time=min_idle_ms,
            start_id='0-0',
            count=batch_size
        )
        return self._parse_entries(response[1]) if response else []

    async def ack(self, queue_name: str, message_ids: List[str]) -> bool:
        if not message_ids:
            return True
        try:
            self.redis.xack(queue_name, self.consumer_group, *message_ids)
            return True
        except Exception as e:
            logger.error("Failed to ack %d clicks: %s", len(message_ids), e)
            return False

    async def get_queue_length(self, queue_name: str) -> int:
        try:
            return self.redis.xlen(queue_name)
        except Exception:
            return 0


class InMemoryQueue(QueueStrategy):
    """
    Single-process queue for development and tests.

    Mirrors the stream semantics: consumed events stay pending under a
    generated id until acked, and can be reclaimed once idle.
    """

    def __init__(self):
        self._queues: Dict[str, Deque[ClickEvent]] = {}
        self._pending: Dict[str, Dict[str, Tuple[ClickEvent, float]]] = {}
        self._ids = itertools.count(1)

    def _queue(self, queue_name: str) -> Deque[ClickEvent]:
        return self._queues.setdefault(queue_name, deque())

    def _pending_for(self, queue_name: str) -> Dict[str, Tuple[ClickEvent, float]]:
        return self._pending.setdefault(queue_name, {})

    def _deliver(self, queue_name: str, event: ClickEvent) -> ClickEvent:
        self._pending_for(queue_name)[event.message_id] = (event, time.monotonic())
        return event

    async def publish(self, queue_name: str, message: ClickEvent) -> bool:
        self._queue(queue_name).append(message)
        return True

    async def consume(
        self,
        queue_name: str,
        batch_size: int = 1,
        block_time: int = 1000
    ) -> List[ClickEvent]:
        """Never blocks; block_time is ignored."""
        queue = self._queue(queue_name)
        events = []
        while queue and len(events) < batch_size:
            event = queue.popleft()
            event.message_id = f"{next(self._ids)}-0"
            events.append(self._deliver(queue_name, event))
        return events

    async def reclaim(
        self,
        queue_name: str,
        min_idle_ms: int,
        batch_size: int = 1
    ) -> List[ClickEvent]:
        cutoff = time.monotonic() - min_idle_ms / 1000
        stale = [
            event for event, delivered_at in self._pending_for(queue_name).values()
            if delivered_at <= cutoff
        ][:batch_size]
        return [self._deliver(queue_name, event) for event in stale]

    async def ack(self, queue_name: str, message_ids: List[str]) -> bool:
        pending = self._pending_for(queue_name)
        for message_id in message_ids:
            pending.pop(message_id, None)
        return True

    async def get_queue_length(self, queue_name: str) -> int:
        return len(self._queue(queue_name))

    def pending_count(self, queue_name: str) -> int:
        return len(self._pending_for(queue_name))
