"""
FastAPI dependencies for dependency injection.

This module provides singleton instances of the record store, cache and
queue, and the services built on top of them.

Tests override ``get_record_store`` / ``get_cache`` / ``get_click_queue`` through
``app.dependency_overrides``; the service dependencies pick the overrides up.
"""

from functools import lru_cache
from typing import Optional

from fastapi import Depends

from linkstats_app.cache.factory import CacheFactory, CacheBackend
from linkstats_app.cache.strategies import CacheStrategy
from linkstats_app.config import settings
from linkstats_app.queue.factory import QueueFactory, QueueBackend
from linkstats_app.queue.strategies import QueueStrategy
from linkstats_app.services.analytics_service import AnalyticsService
from linkstats_app.services.click_service import ClickService
from linkstats_app.services.url_service import URLService
from linkstats_app.storage.factory import RecordStoreFactory, RecordStoreBackend
from linkstats_app.storage.strategies import RecordStoreStrategy


@lru_cache()
def get_record_store() -> RecordStoreStrategy:
    """Record store instance (singleton) for the configured backend."""
    backend = RecordStoreBackend(settings.record_store_backend)
    return RecordStoreFactory.create(backend)


@lru_cache()
def get_cache() -> CacheStrategy:
    """Cache instance (singleton) for the configured backend."""
    backend = CacheBackend(settings.cache_backend)
    return CacheFactory.create(backend)


@lru_cache()
def get_queue() -> QueueStrategy:
    """Queue instance (singleton) for the configured backend."""
    backend = QueueBackend(settings.queue_backend)
    return QueueFactory.create(backend)


def get_url_service(
    store: RecordStoreStrategy = Depends(get_record_store),
    cache: CacheStrategy = Depends(get_cache)
) -> URLService:
    """URLService with store and cache injected."""
    return URLService(store=store, cache=cache)


def get_analytics_service(
    store: RecordStoreStrategy = Depends(get_record_store)
) -> AnalyticsService:
    return AnalyticsService(store)


def get_click_service(
    store: RecordStoreStrategy = Depends(get_record_store)
) -> ClickService:
    return ClickService(store)


def get_click_queue() -> Optional[QueueStrategy]:
    """Queue the redirect publishes clicks to, or None when clicks are recorded inline."""
    if settings.click_tracking == "queue":
        return get_queue()
    return None
