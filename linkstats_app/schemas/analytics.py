from typing import List

from linkstats_app.schemas.url import CamelModel, DateCount


class AliasAnalyticsReport(CamelModel):
    total_clicks: int
    unique_users_count: int
    recent_activity: List[DateCount]
    most_active_day: DateCount
    percentage_growth: str


class TopicUrlSummary(CamelModel):
    short_url: str
    total_clicks: int
    unique_users: int


class TopicAnalyticsReport(CamelModel):
    total_clicks: int
    unique_users: int
    clicks_by_date: List[DateCount]
    urls: List[TopicUrlSummary]


class OsSummary(CamelModel):
    os_name: str
    unique_clicks: int
    unique_users: int


class DeviceSummary(CamelModel):
    device_name: str
    unique_clicks: int
    unique_users: int


class OverallAnalyticsReport(CamelModel):
    total_urls: int
    total_clicks: int
    unique_users: int
    clicks_by_date: List[DateCount]
    os_type: List[OsSummary]
    device_type: List[DeviceSummary]
