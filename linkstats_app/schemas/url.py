from pydantic import BaseModel, Field, ConfigDict
from pydantic.alias_generators import to_camel
from typing import List, Optional
from datetime import datetime


class CamelModel(BaseModel):
    """Base schema: snake_case in Python, camelCase on the wire"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class DateCount(CamelModel):
    date: Optional[str] = None
    count: int = 0


class OsBreakdown(CamelModel):
    os_name: str
    unique_clicks: int = 0
    unique_users: List[str] = Field(default_factory=list)


class DeviceBreakdown(CamelModel):
    device_name: str
    unique_clicks: int = 0
    unique_users: List[str] = Field(default_factory=list)


class AnalyticsBlock(CamelModel):
    """Click counters embedded in a single URL record.

    ``unique_users`` and the per-OS/per-device user lists behave as sets:
    they never hold the same fingerprint twice and keep first-seen order.
    """
    total_clicks: int = 0
    unique_users: List[str] = Field(default_factory=list)
    clicks_by_date: List[DateCount] = Field(default_factory=list)
    os_type: List[OsBreakdown] = Field(default_factory=list)
    device_type: List[DeviceBreakdown] = Field(default_factory=list)

    def record_click(self, date: str, user: str, os_name: str, device_name: str) -> None:
        """Apply one click: increment-or-append per date, set-insert users, upsert OS/device."""
        self.total_clicks += 1

        day = next((entry for entry in self.clicks_by_date if entry.date == date), None)
        if day is None:
            self.clicks_by_date.append(DateCount(date=date, count=1))
        else:
            day.count += 1

        if user not in self.unique_users:
            self.unique_users.append(user)

        os_entry = next((entry for entry in self.os_type if entry.os_name == os_name), None)
        if os_entry is None:
            os_entry = OsBreakdown(os_name=os_name)
            self.os_type.append(os_entry)
        if user not in os_entry.unique_users:
            os_entry.unique_users.append(user)
            os_entry.unique_clicks += 1

        device_entry = next(
            (entry for entry in self.device_type if entry.device_name == device_name), None
        )
        if device_entry is None:
            device_entry = DeviceBreakdown(device_name=device_name)
            self.device_type.append(device_entry)
        if user not in device_entry.unique_users:
            device_entry.unique_users.append(user)
            device_entry.unique_clicks += 1


class UrlRecord(CamelModel):
    """A stored short URL. Validates straight from the ORM row (from_attributes)."""
    original_url: str
    short_alias: str
    topic: Optional[str] = None
    analytics: AnalyticsBlock = Field(default_factory=AnalyticsBlock)
    created_at: datetime


class ShortenRequest(CamelModel):
    long_url: str = Field(..., min_length=1, description="The original URL to be shortened")
    custom_alias: Optional[str] = Field(None, description="Alias to use instead of a generated one")
    topic: Optional[str] = Field(None, description="Category used for grouped analytics")


class ShortenResult(BaseModel):
    """What the service returns; composing the public short URL is up to the caller"""
    short_alias: str
    created_at: datetime
    host: str


class ShortenResponse(CamelModel):
    short_url: str
    created_at: datetime
