from fastapi import APIRouter, Depends, status
from linkstats_app.config import settings
from linkstats_app.dependencies import get_url_service, get_analytics_service
from linkstats_app.schemas.analytics import (
    AliasAnalyticsReport,
    OverallAnalyticsReport,
    TopicAnalyticsReport,
)
from linkstats_app.schemas.url import ShortenRequest, ShortenResponse
from linkstats_app.services.analytics_service import AnalyticsService
from linkstats_app.services.url_service import URLService

router = APIRouter(prefix="/shorten", tags=["urls"])


@router.post("", response_model=ShortenResponse, status_code=status.HTTP_201_CREATED)
async def create_short_url(
    body: ShortenRequest,
    url_service: URLService = Depends(get_url_service)
):
    """Create a new short URL"""
    result = await url_service.create_short_url(
        body.long_url,
        custom_alias=body.custom_alias,
        topic=body.topic
    )
    return ShortenResponse(
        short_url=f"{settings.base_url}/api/shorten/{result.short_alias}",
        created_at=result.created_at
    )


@router.get("/analytics/{alias}", response_model=AliasAnalyticsReport)
async def get_url_analytics(
    alias: str,
    analytics_service: AnalyticsService = Depends(get_analytics_service)
):
    """Click analytics for one alias"""
    return await analytics_service.get_alias_analytics(alias)


@router.get("/topic/{topic}", response_model=TopicAnalyticsReport)
async def get_topic_analytics(
    topic: str,
    analytics_service: AnalyticsService = Depends(get_analytics_service)
):
    """Click analytics aggregated over every URL in a topic"""
    return await analytics_service.get_topic_analytics(topic)


@router.get("/overall/{alias}", response_model=OverallAnalyticsReport)
async def get_overall_analytics(
    alias: str,
    analytics_service: AnalyticsService = Depends(get_analytics_service)
):
    """Click analytics with OS and device breakdowns"""
    return await analytics_service.get_overall_analytics(alias)
