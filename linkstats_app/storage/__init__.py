"""
Record store module: durable storage of URL records and their analytics.

This module implements the Strategy Pattern for pluggable storage backends.
"""

from .strategies import RecordStoreStrategy, SQLAlchemyRecordStore, InMemoryRecordStore
from .factory import RecordStoreFactory, RecordStoreBackend

__all__ = [
    "RecordStoreStrategy",
    "SQLAlchemyRecordStore",
    "InMemoryRecordStore",
    "RecordStoreFactory",
    "RecordStoreBackend",
]
