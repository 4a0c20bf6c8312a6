import asyncio
import logging
import re
from datetime import datetime, timezone
from typing import Optional, Set
from urllib.parse import urlparse

from linkstats_app.cache.strategies import CacheStrategy
from linkstats_app.config import settings
from linkstats_app.exceptions import (
    AliasTakenError,
    DuplicateKeyError,
    GenerationExhaustedError,
    InvalidInputError,
    NotFoundError,
)
from linkstats_app.schemas.url import AnalyticsBlock, ShortenResult, UrlRecord
from linkstats_app.services.alias_generator import AliasGenerator
from linkstats_app.storage.strategies import RecordStoreStrategy

logger = logging.getLogger(__name__)

MAX_URL_LENGTH = 2048
CUSTOM_ALIAS_PATTERN = re.compile(r'^[A-Za-z0-9_-]{1,32}$')

# Cache writes run as tasks detached from the request; the loop only keeps
# weak references to tasks, so they are held here until done.
_pending_cache_writes: Set[asyncio.Task] = set()


def cache_key(alias: str) -> str:
    return f"url:{alias}"


def parse_long_url(url: str) -> str:
    """
    Validate a long URL and return its host.

    Only http/https URLs with a host are accepted.

    Raises:
        InvalidInputError: If the URL is malformed
    """
    if not url or not isinstance(url, str):
        raise InvalidInputError(str(url), reason="URL is required")

    if len(url) > MAX_URL_LENGTH:
        raise InvalidInputError(url[:64] + "...", reason="URL is too long")

    try:
        result = urlparse(url)
        host = result.hostname
    except ValueError:
        raise InvalidInputError(url)

    if result.scheme.lower() not in ('http', 'https') or not host:
        raise InvalidInputError(
            url,
            reason="Invalid URL format. URL must use http:// or https:// and have a host"
        )

    return host


async def wait_for_cache_writes() -> None:
    """Wait for every scheduled cache write (shutdown and tests)."""
    if _pending_cache_writes:
        await asyncio.gather(*list(_pending_cache_writes), return_exceptions=True)


def validate_custom_alias(alias: str) -> str:
    """Check a caller-supplied alias is URL-safe. Existence is not checked here."""
    if not CUSTOM_ALIAS_PATTERN.match(alias):
        raise InvalidInputError(
            alias,
            reason="Custom alias must be 1-32 characters of letters, digits, '-' or '_'"
        )
    return alias


class URLService:
    """
    Creates short URLs and resolves aliases back to original URLs.

    The record store is the source of truth; the cache is a best-effort
    performance layer. Any cache failure is logged and ignored so a cache
    outage only costs latency.
    """

    def __init__(
        self,
        store: RecordStoreStrategy,
        cache: Optional[CacheStrategy] = None,
        generator: Optional[AliasGenerator] = None,
        max_attempts: Optional[int] = None
    ):
        """
        Args:
            store: Record store (required)
            cache: Cache strategy (optional, for performance)
            generator: Alias generator, defaults to random 8-character aliases
            max_attempts: Cap on alias generation attempts per creation
        """
        self.store = store
        self.cache = cache
        self.generator = generator or AliasGenerator()
        self.max_attempts = max_attempts or settings.alias_max_attempts

    async def create_short_url(
        self,
        long_url: str,
        custom_alias: Optional[str] = None,
        topic: Optional[str] = None
    ) -> ShortenResult:
        """Create a new short URL.

        A custom alias is used verbatim and is not pre-checked: if it is
        taken, the store's uniqueness constraint rejects it and the caller
        gets AliasTakenError. Generated aliases are checked and regenerated
        on collision, including collisions with a concurrent creation.

        Raises:
            InvalidInputError: malformed URL or custom alias
            AliasTakenError: the custom alias already exists
            GenerationExhaustedError: no free alias within max_attempts
        """
        host = parse_long_url(long_url)
        created_at = datetime.now(timezone.utc)

        if custom_alias:
            alias = validate_custom_alias(custom_alias)
            try:
                record = await self.store.create(
                    self._new_record(long_url, alias, topic, created_at)
                )
            except DuplicateKeyError as e:
                raise AliasTakenError(alias) from e
        else:
            record = await self._create_with_generated_alias(long_url, topic, created_at)

        # Write-through; creation has already succeeded
        self._schedule_cache_put(record.short_alias, record.original_url)

        return ShortenResult(short_alias=record.short_alias, created_at=created_at, host=host)

    async def resolve(self, alias: str) -> str:
        """
        Resolve an alias to its original URL using Cache-Aside pattern.

        Flow:
        1. Check cache first
        2. On miss, query the record store
        3. Populate cache for next time
        4. Return original URL

        Raises:
            NotFoundError: alias absent from both cache and store
        """
        cached_url = await self._cache_get(cache_key(alias))
        if cached_url:
            return cached_url

        record = await self.store.find_by_alias(alias)
        if record is None:
            raise NotFoundError(alias)

        self._schedule_cache_put(alias, record.original_url)
        return record.original_url

    async def _create_with_generated_alias(
        self,
        long_url: str,
        topic: Optional[str],
        created_at: datetime
    ) -> UrlRecord:
        for attempt in range(1, self.max_attempts + 1):
            alias = self.generator.generate()

            if await self.store.find_by_alias(alias) is not None:
                logger.debug("Alias %s already in use (attempt %d)", alias, attempt)
                continue

            try:
                return await self.store.create(
                    self._new_record(long_url, alias, topic, created_at)
                )
            except DuplicateKeyError:
                # Another creation stored the same alias between our check and write
                logger.warning("Alias %s taken concurrently (attempt %d), regenerating", alias, attempt)

        logger.error("Alias generation exhausted after %d attempts", self.max_attempts)
        raise GenerationExhaustedError(self.max_attempts)

    @staticmethod
    def _new_record(
        long_url: str,
        alias: str,
        topic: Optional[str],
        created_at: datetime
    ) -> UrlRecord:
        return UrlRecord(
            original_url=long_url,
            short_alias=alias,
            topic=topic,
            analytics=AnalyticsBlock(),
            created_at=created_at,
        )

    async def _cache_get(self, key: str) -> Optional[str]:
        if not self.cache:
            return None
        try:
            return await self.cache.get(key)
        except Exception as e:
            logger.warning("Cache read failed for %s, treating as miss: %s", key, e)
            return None

    def _schedule_cache_put(self, alias: str, original_url: str) -> None:
        if not self.cache:
            return
        task = asyncio.create_task(self._cache_put(alias, original_url))
        _pending_cache_writes.add(task)
        task.add_done_callback(_pending_cache_writes.discard)

    async def _cache_put(self, alias: str, original_url: str) -> None:
        try:
            await self.cache.set(cache_key(alias), original_url, ttl=settings.cache_ttl)
        except Exception as e:
            logger.warning("Cache write failed for %s: %s", alias, e)
