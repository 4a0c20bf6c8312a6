"""
Data models for queue messages.
"""

from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ClickEvent(BaseModel):
    """
    Event model for click tracking.

    Produced by the redirect route for every successful resolution.
    Contains the request metadata the analytics document is derived from.
    """

    short_alias: str = Field(..., description="The alias that was accessed")
    timestamp: datetime = Field(default_factory=utc_now, description="When the click occurred")

    # Request metadata
    ip_address: Optional[str] = Field(None, description="Client IP address")
    user_agent: Optional[str] = Field(None, description="User agent string")
    referer: Optional[str] = Field(None, description="HTTP referer")

    # Set by the queue on consume, used for acknowledgment
    message_id: Optional[str] = Field(None, exclude=True)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "short_alias": "aB3dE9xZ",
                "timestamp": "2025-01-02T10:30:00Z",
                "ip_address": "192.168.1.1",
                "user_agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) Chrome/120.0",
                "referer": "https://twitter.com",
            }
        }
    )
