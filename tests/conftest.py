"""
Test configuration and fixtures for the URL shortener.
This centralizes all test setup, making individual tests clean.
"""

import os

# Must be set before the app and its settings are imported
os.environ["DATABASE_URL"] = "sqlite:///./test.db"
os.environ["RECORD_STORE_BACKEND"] = "sqlalchemy"
os.environ["CACHE_BACKEND"] = "memory"
os.environ["QUEUE_BACKEND"] = "memory"
os.environ["CLICK_TRACKING"] = "inline"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from main import app
from linkstats_app.cache.strategies import InMemoryCache
from linkstats_app.database.connection import Base
from linkstats_app.dependencies import get_cache, get_click_queue, get_record_store
from linkstats_app.models import URLRecord  # noqa: F401  registers the table
from linkstats_app.storage.strategies import InMemoryRecordStore, SQLAlchemyRecordStore

# Test database configuration
SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def session_factory():
    """
    Fresh tables for each test.
    This ensures tests are isolated and don't affect each other.
    """
    Base.metadata.create_all(bind=engine)
    try:
        yield TestingSessionLocal
    finally:
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def sql_store(session_factory):
    return SQLAlchemyRecordStore(session_factory=session_factory)


@pytest.fixture(scope="function")
def memory_store():
    return InMemoryRecordStore()


@pytest.fixture(scope="function")
def cache():
    return InMemoryCache()


@pytest.fixture(scope="function")
def client(sql_store, cache):
    """
    Test client with store and cache dependencies overridden.
    Clicks are recorded inline by background tasks, which TestClient
    runs before returning the response.
    """
    app.dependency_overrides[get_record_store] = lambda: sql_store
    app.dependency_overrides[get_cache] = lambda: cache
    app.dependency_overrides[get_click_queue] = lambda: None

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
