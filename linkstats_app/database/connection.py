"""
Database connection and session management.

Provides the SQLAlchemy engine and the session factory used by the
record store.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from linkstats_app.config import settings


def _connect_args(database_url: str) -> dict:
    # SQLite connections are shared across the threadpool FastAPI runs sync code in
    if database_url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(
    settings.database_url,
    connect_args=_connect_args(settings.database_url),
    pool_pre_ping=True,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def init_db():
    """Create tables for all registered models"""
    import linkstats_app.models  # noqa: F401  registers models with Base

    Base.metadata.create_all(bind=engine)

