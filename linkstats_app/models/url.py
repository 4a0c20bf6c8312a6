from sqlalchemy import Column, Integer, String, DateTime, JSON, Text
from sqlalchemy.sql import func
from linkstats_app.database.connection import Base


def empty_analytics() -> dict:
    """Fresh analytics document for a newly created record."""
    return {
        "total_clicks": 0,
        "unique_users": [],
        "clicks_by_date": [],
        "os_type": [],
        "device_type": [],
    }


class URLRecord(Base):
    """
    URL record with its analytics document.

    The analytics block is owned by exactly one record, so it is stored
    inline as a JSON document instead of in separate tables. Click recording
    rewrites the whole document.
    """
    __tablename__ = "url_records"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    original_url = Column(Text, nullable=False)
    # unique=True is the final arbiter for concurrent creations of one alias
    short_alias = Column(String(32), unique=True, nullable=False, index=True)
    topic = Column(String(255), nullable=True, index=True)
    analytics = Column(JSON, nullable=False, default=empty_analytics)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
