"""
Tests for record store backends.
"""
import asyncio
from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from linkstats_app.exceptions import DependencyUnavailableError, DuplicateKeyError
from linkstats_app.schemas.url import UrlRecord
from linkstats_app.storage.factory import RecordStoreBackend, RecordStoreFactory
from linkstats_app.storage.strategies import InMemoryRecordStore, SQLAlchemyRecordStore


def new_record(alias, url="https://www.example.com/", topic=None):
    return UrlRecord(
        original_url=url,
        short_alias=alias,
        topic=topic,
        created_at=datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc),
    )


@pytest.fixture(params=["sql", "memory"])
def store(request, session_factory):
    if request.param == "sql":
        return SQLAlchemyRecordStore(session_factory=session_factory)
    return InMemoryRecordStore()


class TestRecordStore:
    """Behaviour shared by every backend"""

    def test_create_and_find(self, store):
        created = asyncio.run(store.create(new_record("abc12345", topic="Tech")))

        found = asyncio.run(store.find_by_alias("abc12345"))

        assert created.short_alias == "abc12345"
        assert found.original_url == "https://www.example.com/"
        assert found.topic == "Tech"
        assert found.analytics.total_clicks == 0

    def test_find_missing(self, store):
        assert asyncio.run(store.find_by_alias("missing1")) is None
        assert asyncio.run(store.find_all_by_alias("missing1")) == []

    def test_duplicate_alias_rejected(self, store):
        asyncio.run(store.create(new_record("dup00001", url="https://a.example.com/")))

        with pytest.raises(DuplicateKeyError):
            asyncio.run(store.create(new_record("dup00001", url="https://b.example.com/")))

        assert asyncio.run(store.find_by_alias("dup00001")).original_url == "https://a.example.com/"

    def test_find_by_topic_in_creation_order(self, store):
        asyncio.run(store.create(new_record("t1", topic="Tech")))
        asyncio.run(store.create(new_record("s1", topic="Sports")))
        asyncio.run(store.create(new_record("t2", topic="Tech")))

        records = asyncio.run(store.find_by_topic("Tech"))

        assert [r.short_alias for r in records] == ["t1", "t2"]

    def test_find_all_by_alias(self, store):
        asyncio.run(store.create(new_record("one00001")))

        records = asyncio.run(store.find_all_by_alias("one00001"))

        assert [r.short_alias for r in records] == ["one00001"]

    def test_record_click_persists(self, store):
        asyncio.run(store.create(new_record("clk00001")))

        assert asyncio.run(store.record_click("clk00001", "2025-01-01", "u1", "Linux", "desktop"))
        assert asyncio.run(store.record_click("clk00001", "2025-01-01", "u2", "iOS", "mobile"))

        analytics = asyncio.run(store.find_by_alias("clk00001")).analytics
        assert analytics.total_clicks == 2
        assert analytics.unique_users == ["u1", "u2"]
        assert [(e.date, e.count) for e in analytics.clicks_by_date] == [("2025-01-01", 2)]
        assert [o.os_name for o in analytics.os_type] == ["Linux", "iOS"]

    def test_record_click_unknown_alias(self, store):
        assert asyncio.run(store.record_click("missing1", "2025-01-01", "u1", "Linux", "desktop")) is False


class TestSQLAlchemyRecordStoreFailures:
    """Database errors surface as DependencyUnavailable"""

    def test_unreachable_database(self, tmp_path):
        engine = create_engine(f"sqlite:///{tmp_path / 'missing' / 'linkstats.db'}")
        store = SQLAlchemyRecordStore(session_factory=sessionmaker(bind=engine))

        with pytest.raises(DependencyUnavailableError) as exc_info:
            asyncio.run(store.find_by_alias("abc12345"))

        assert exc_info.value.kind == "DependencyUnavailable"
        assert exc_info.value.status_code == 503

    def test_missing_table_on_write(self):
        engine = create_engine("sqlite://")
        store = SQLAlchemyRecordStore(session_factory=sessionmaker(bind=engine))

        with pytest.raises(DependencyUnavailableError):
            asyncio.run(store.create(new_record("abc12345")))


class TestInMemoryRecordStore:

    def test_returned_records_are_copies(self):
        store = InMemoryRecordStore()
        asyncio.run(store.create(new_record("copy0001")))

        found = asyncio.run(store.find_by_alias("copy0001"))
        found.analytics.total_clicks = 42

        assert asyncio.run(store.find_by_alias("copy0001")).analytics.total_clicks == 0


class TestRecordStoreFactory:

    def test_creates_memory_store(self):
        RecordStoreFactory.clear_instance()
        try:
            store = RecordStoreFactory.create(RecordStoreBackend.MEMORY)
            assert isinstance(store, InMemoryRecordStore)
            assert RecordStoreFactory.create(RecordStoreBackend.SQLALCHEMY) is store
        finally:
            RecordStoreFactory.clear_instance()

    def test_creates_sqlalchemy_store(self):
        RecordStoreFactory.clear_instance()
        try:
            assert isinstance(RecordStoreFactory.create(RecordStoreBackend.SQLALCHEMY), SQLAlchemyRecordStore)
        finally:
            RecordStoreFactory.clear_instance()
