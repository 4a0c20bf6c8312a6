"""
Click Processor Worker

Consumes click events published by the redirect route and records them into
the analytics documents of the record store.

Architecture:
- Consumes messages from queue in batches
- Records each click through ClickService
- Acknowledges every click that was recorded, also when a later click in
  the batch fails; unacknowledged messages stay pending and are reclaimed
  once idle for queue_claim_idle_ms
"""

import asyncio
import logging
import signal
import sys
from typing import List, Optional

from linkstats_app.config import settings
from linkstats_app.queue.models import ClickEvent
from linkstats_app.queue.strategies import QueueStrategy
from linkstats_app.services.click_service import ClickService

logger = logging.getLogger(__name__)


class ClickWorker:
    """Batch consumer for the click queue."""

    def __init__(
        self,
        queue: QueueStrategy,
        click_service: ClickService,
        queue_name: Optional[str] = None,
        batch_size: Optional[int] = None,
        block_time: Optional[int] = None,
        claim_idle_ms: Optional[int] = None
    ):
        """
        Args:
            queue: Queue strategy for consuming messages
            click_service: Service that records clicks into the store
        """
        self.queue = queue
        self.click_service = click_service
        self.queue_name = queue_name or settings.queue_name
        self.batch_size = batch_size or settings.queue_batch_size
        self.block_time = block_time or settings.queue_block_ms
        self.claim_idle_ms = settings.queue_claim_idle_ms if claim_idle_ms is None else claim_idle_ms
        self.running = False
        self.processed_count = 0

    async def process_batch_once(self) -> int:
        """
        Record one batch: stale pending clicks first, new clicks otherwise.

        Returns:
            Number of messages recorded and acknowledged
        """
        messages = await self.queue.reclaim(
            self.queue_name,
            min_idle_ms=self.claim_idle_ms,
            batch_size=self.batch_size
        )
        if messages:
            logger.warning("Redelivering %d unacknowledged clicks", len(messages))
        else:
            messages = await self.queue.consume(
                self.queue_name,
                batch_size=self.batch_size,
                block_time=self.block_time
            )
        if not messages:
            return 0

        await self._process_batch(messages)

        self.processed_count += len(messages)
        logger.info("Processed %d clicks. Total: %d", len(messages), self.processed_count)
        return len(messages)

    async def _process_batch(self, messages: List[ClickEvent]):
        """
        Record clicks in order and ack the ones recorded.

        When a click fails, the clicks before it are still acked so a
        redelivery cannot count them twice; the failed click and the rest
        stay pending.
        """
        recorded_ids = []
        try:
            for event in messages:
                # Unknown aliases return False and are logged; they are not retried
                await self.click_service.record_event(event)
                if event.message_id:
                    recorded_ids.append(event.message_id)
        finally:
            if recorded_ids:
                await self.queue.ack(self.queue_name, recorded_ids)

    async def start(self):
        """Run until stopped"""
        self.running = True
        logger.info("Click worker started (batch size %d)", self.batch_size)

        while self.running:
            try:
                await self.process_batch_once()
            except asyncio.CancelledError:
                logger.info("Click worker task cancelled")
                break
            except Exception:
                # Messages stay pending for retry
                logger.exception("Batch processing failed")
                await asyncio.sleep(1)

        logger.info("Click worker stopped")

    def _signal_handler(self, signum, frame):
        logger.info("Received signal %s. Shutting down gracefully...", signum)
        self.stop()

    def stop(self):
        """Stop the worker"""
        self.running = False


async def main():
    """
    Main entry point for the click worker.

    Usage:
        python -m linkstats_app.hit_processor.click_worker
    """
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    logger.info(
        "Click worker: environment=%s queue=%s store=%s",
        settings.environment, settings.queue_backend, settings.record_store_backend
    )

    from linkstats_app.database.connection import init_db
    from linkstats_app.dependencies import get_queue, get_record_store

    init_db()
    worker = ClickWorker(queue=get_queue(), click_service=ClickService(get_record_store()))

    signal.signal(signal.SIGINT, worker._signal_handler)
    signal.signal(signal.SIGTERM, worker._signal_handler)

    try:
        await worker.start()
    except Exception:
        logger.exception("Fatal error in click worker")
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
