"""
Factory for creating record store instances.
Creates the configured backend once and reuses it.
"""

import logging
from enum import Enum
from typing import Optional

from .strategies import RecordStoreStrategy, SQLAlchemyRecordStore, InMemoryRecordStore

logger = logging.getLogger(__name__)


class RecordStoreBackend(Enum):
    """Available record store backends"""
    SQLALCHEMY = "sqlalchemy"
    MEMORY = "memory"


class RecordStoreFactory:
    """
    Factory for creating record store instances.

    Singleton per process, like the cache and queue factories.
    """

    _instance: Optional[RecordStoreStrategy] = None

    @classmethod
    def create(cls, backend: RecordStoreBackend) -> RecordStoreStrategy:
        """
        Create or return cached record store instance.

        Args:
            backend: Type of store backend (from enum)

        Returns:
            Singleton record store instance
        """
        if cls._instance is not None:
            return cls._instance

        if backend == RecordStoreBackend.SQLALCHEMY:
            cls._instance = SQLAlchemyRecordStore()
            logger.info("SQLAlchemy record store initialized")

        elif backend == RecordStoreBackend.MEMORY:
            cls._instance = InMemoryRecordStore()
            logger.info("In-memory record store initialized")

        else:
            raise ValueError(f"Unknown record store backend: {backend}")

        return cls._instance

    @classmethod
    def clear_instance(cls):
        """Clear cached instance (for testing)"""
        cls._instance = None
