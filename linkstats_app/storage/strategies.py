"""
Record store strategies using Strategy Pattern.

The record store is the source of truth for URL records and the analytics
document embedded in each of them:
- SQLAlchemy: any SQLAlchemy database (SQLite by default)
- In-memory: development/testing
"""

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Dict, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm.attributes import flag_modified

from linkstats_app.database.connection import SessionLocal
from linkstats_app.exceptions import DuplicateKeyError, DependencyUnavailableError
from linkstats_app.models.url import URLRecord
from linkstats_app.schemas.url import AnalyticsBlock, UrlRecord

logger = logging.getLogger(__name__)


class RecordStoreStrategy(ABC):
    """
    Abstract base class for record stores.

    This is the narrow interface the services depend on. Every backend must
    reject a second record with an existing alias with DuplicateKeyError;
    that rejection is what keeps aliases unique under concurrent creation.
    """

    @abstractmethod
    async def find_by_alias(self, alias: str) -> Optional[UrlRecord]:
        """Get the record with this alias, or None"""
        pass

    @abstractmethod
    async def find_by_topic(self, topic: str) -> List[UrlRecord]:
        """Get all records in a topic, in creation order"""
        pass

    @abstractmethod
    async def find_all_by_alias(self, alias: str) -> List[UrlRecord]:
        """
        Get every record matching the alias.

        Zero or one in practice; more only if the uniqueness
        invariant were ever violated.
        """
        pass

    @abstractmethod
    async def create(self, record: UrlRecord) -> UrlRecord:
        """
        Persist a new record.

        Raises:
            DuplicateKeyError: the alias is already taken
        """
        pass

    @abstractmethod
    async def record_click(
        self,
        alias: str,
        date: str,
        user: str,
        os_name: str,
        device_name: str
    ) -> bool:
        """
        Apply one click to the record's analytics.

        Returns:
            True if the record exists and was updated, False otherwise
        """
        pass


class SQLAlchemyRecordStore(RecordStoreStrategy):
    """
    Record store backed by the relational database.

    Uses short-lived sessions from a session factory, so the store can be
    shared by requests and by the click worker.
    """

    def __init__(self, session_factory=SessionLocal):
        """
        Args:
            session_factory: Factory for creating database sessions
        """
        self.session_factory = session_factory

    @contextmanager
    def _session(self):
        db = self.session_factory()
        try:
            yield db
        except IntegrityError:
            db.rollback()
            raise
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Record store error: %s", e)
            raise DependencyUnavailableError("record_store", original_error=e) from e
        finally:
            db.close()

    async def find_by_alias(self, alias: str) -> Optional[UrlRecord]:
        with self._session() as db:
            row = db.query(URLRecord).filter(URLRecord.short_alias == alias).first()
            return UrlRecord.model_validate(row) if row else None

    async def find_by_topic(self, topic: str) -> List[UrlRecord]:
        with self._session() as db:
            rows = (
                db.query(URLRecord)
                .filter(URLRecord.topic == topic)
                .order_by(URLRecord.id)
                .all()
            )
            return [UrlRecord.model_validate(row) for row in rows]

    async def find_all_by_alias(self, alias: str) -> List[UrlRecord]:
        with self._session() as db:
            rows = (
                db.query(URLRecord)
                .filter(URLRecord.short_alias == alias)
                .order_by(URLRecord.id)
                .all()
            )
            return [UrlRecord.model_validate(row) for row in rows]

    async def create(self, record: UrlRecord) -> UrlRecord:
        with self._session() as db:
            row = URLRecord(
                original_url=record.original_url,
                short_alias=record.short_alias,
                topic=record.topic,
                analytics=record.analytics.model_dump(),
                created_at=record.created_at,
            )
            db.add(row)
            try:
                db.commit()
            except IntegrityError as e:
                db.rollback()
                raise DuplicateKeyError(record.short_alias) from e

            db.refresh(row)
            return UrlRecord.model_validate(row)

    async def record_click(
        self,
        alias: str,
        date: str,
        user: str,
        os_name: str,
        device_name: str
    ) -> bool:
        with self._session() as db:
            # Row lock where the dialect supports it; SQLite serializes writers anyway
            row = (
                db.query(URLRecord)
                .filter(URLRecord.short_alias == alias)
                .with_for_update()
                .first()
            )
            if row is None:
                return False

            analytics = AnalyticsBlock.model_validate(row.analytics)
            analytics.record_click(date, user, os_name, device_name)
            row.analytics = analytics.model_dump()
            flag_modified(row, "analytics")
            db.commit()
            return True


class InMemoryRecordStore(RecordStoreStrategy):
    """
    In-memory record store keyed by alias.

    Per-process and lost on restart. Returns copies so callers can never
    mutate stored records behind the store's back.
    """

    def __init__(self):
        self._records: Dict[str, UrlRecord] = {}

    async def find_by_alias(self, alias: str) -> Optional[UrlRecord]:
        record = self._records.get(alias)
        return record.model_copy(deep=True) if record else None

    async def find_by_topic(self, topic: str) -> List[UrlRecord]:
        return [
            record.model_copy(deep=True)
            for record in self._records.values()
            if record.topic == topic
        ]

    async def find_all_by_alias(self, alias: str) -> List[UrlRecord]:
        record = await self.find_by_alias(alias)
        return [record] if record else []

    async def create(self, record: UrlRecord) -> UrlRecord:
        if record.short_alias in self._records:
            raise DuplicateKeyError(record.short_alias)
        self._records[record.short_alias] = record.model_copy(deep=True)
        return record.model_copy(deep=True)

    async def record_click(
        self,
        alias: str,
        date: str,
        user: str,
        os_name: str,
        device_name: str
    ) -> bool:
        record = self._records.get(alias)
        if record is None:
            return False
        record.analytics.record_click(date, user, os_name, device_name)
        return True
