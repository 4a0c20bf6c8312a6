"""
Analytics aggregation over the counters stored in each URL record.

No live event stream is involved: every report is computed from the
analytics documents as they are persisted, so reports may lag clicks that
are still being recorded.

Per-alias totals are recomputed from ``clicks_by_date``; topic and overall
totals sum the stored ``total_clicks`` counters instead.
"""

from typing import Dict, Iterable, List

from linkstats_app.exceptions import NoUrlsFoundError, NotFoundError
from linkstats_app.schemas.analytics import (
    AliasAnalyticsReport,
    DeviceSummary,
    OsSummary,
    OverallAnalyticsReport,
    TopicAnalyticsReport,
    TopicUrlSummary,
)
from linkstats_app.schemas.url import AnalyticsBlock, DateCount, UrlRecord
from linkstats_app.storage.strategies import RecordStoreStrategy

RECENT_ACTIVITY_DAYS = 7


def most_active_day(clicks_by_date: List[DateCount]) -> DateCount:
    """First entry with the highest count; ``{date: None, count: 0}`` if nothing beats zero."""
    best = DateCount(date=None, count=0)
    for entry in clicks_by_date:
        if entry.count > best.count:
            best = entry
    return DateCount(date=best.date, count=best.count)


def percentage_growth(clicks_by_date: List[DateCount]) -> str:
    """Growth from the second-to-last to the last stored entry, as a 2-decimal string."""
    growth = 0.0
    if len(clicks_by_date) >= 2:
        earlier, later = clicks_by_date[-2], clicks_by_date[-1]
        if earlier.count > 0:
            growth = (later.count - earlier.count) / earlier.count * 100
    return f"{growth:.2f}"


def merge_clicks_by_date(blocks: Iterable[AnalyticsBlock]) -> List[DateCount]:
    """Sum counts per date across blocks, keeping first-encountered date order."""
    merged: Dict[str, DateCount] = {}
    for block in blocks:
        for entry in block.clicks_by_date:
            if entry.date in merged:
                merged[entry.date].count += entry.count
            else:
                merged[entry.date] = DateCount(date=entry.date, count=entry.count)
    return list(merged.values())


def count_unique_users(blocks: Iterable[AnalyticsBlock]) -> int:
    users = set()
    for block in blocks:
        users.update(block.unique_users)
    return len(users)


def merge_os_types(blocks: Iterable[AnalyticsBlock]) -> List[OsSummary]:
    clicks: Dict[str, int] = {}
    users: Dict[str, set] = {}
    for block in blocks:
        for entry in block.os_type:
            clicks[entry.os_name] = clicks.get(entry.os_name, 0) + entry.unique_clicks
            users.setdefault(entry.os_name, set()).update(entry.unique_users)
    return [
        OsSummary(os_name=name, unique_clicks=clicks[name], unique_users=len(users[name]))
        for name in clicks
    ]


def merge_device_types(blocks: Iterable[AnalyticsBlock]) -> List[DeviceSummary]:
    clicks: Dict[str, int] = {}
    users: Dict[str, set] = {}
    for block in blocks:
        for entry in block.device_type:
            clicks[entry.device_name] = clicks.get(entry.device_name, 0) + entry.unique_clicks
            users.setdefault(entry.device_name, set()).update(entry.unique_users)
    return [
        DeviceSummary(device_name=name, unique_clicks=clicks[name], unique_users=len(users[name]))
        for name in clicks
    ]


def build_alias_report(record: UrlRecord) -> AliasAnalyticsReport:
    clicks_by_date = record.analytics.clicks_by_date
    return AliasAnalyticsReport(
        total_clicks=sum(entry.count for entry in clicks_by_date),
        unique_users_count=len(record.analytics.unique_users),
        recent_activity=[
            DateCount(date=entry.date, count=entry.count)
            for entry in clicks_by_date[-RECENT_ACTIVITY_DAYS:]
        ],
        most_active_day=most_active_day(clicks_by_date),
        percentage_growth=percentage_growth(clicks_by_date),
    )


def build_topic_report(records: List[UrlRecord]) -> TopicAnalyticsReport:
    blocks = [record.analytics for record in records]
    return TopicAnalyticsReport(
        total_clicks=sum(block.total_clicks for block in blocks),
        unique_users=count_unique_users(blocks),
        clicks_by_date=merge_clicks_by_date(blocks),
        urls=[
            TopicUrlSummary(
                short_url=record.short_alias,
                total_clicks=record.analytics.total_clicks,
                unique_users=len(record.analytics.unique_users),
            )
            for record in records
        ],
    )


def build_overall_report(records: List[UrlRecord]) -> OverallAnalyticsReport:
    blocks = [record.analytics for record in records]
    return OverallAnalyticsReport(
        total_urls=len(records),
        total_clicks=sum(block.total_clicks for block in blocks),
        unique_users=count_unique_users(blocks),
        clicks_by_date=merge_clicks_by_date(blocks),
        os_type=merge_os_types(blocks),
        device_type=merge_device_types(blocks),
    )


class AnalyticsService:
    """Read-only analytics queries. Loads records from the store and aggregates them."""

    def __init__(self, store: RecordStoreStrategy):
        self.store = store

    async def get_alias_analytics(self, alias: str) -> AliasAnalyticsReport:
        record = await self.store.find_by_alias(alias)
        if record is None:
            raise NotFoundError(alias)
        return build_alias_report(record)

    async def get_topic_analytics(self, topic: str) -> TopicAnalyticsReport:
        records = await self.store.find_by_topic(topic)
        if not records:
            raise NoUrlsFoundError(f"No URLs found for topic '{topic}'")
        return build_topic_report(records)

    async def get_overall_analytics(self, short_alias: str) -> OverallAnalyticsReport:
        records = await self.store.find_all_by_alias(short_alias)
        if not records:
            raise NoUrlsFoundError(f"No URLs found for alias '{short_alias}'")
        return build_overall_report(records)
