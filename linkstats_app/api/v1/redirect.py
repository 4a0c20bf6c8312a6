import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Request, status
from fastapi.responses import RedirectResponse

from linkstats_app.config import settings
from linkstats_app.dependencies import get_click_queue, get_click_service, get_url_service
from linkstats_app.queue.models import ClickEvent
from linkstats_app.queue.strategies import QueueStrategy
from linkstats_app.services.click_service import ClickService, record_click_background
from linkstats_app.services.url_service import URLService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/shorten", tags=["redirect"])


def get_client_ip(request: Request) -> Optional[str]:
    """Client IP, honouring the first X-Forwarded-For hop set by a proxy"""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return request.client.host if request.client else None


@router.get("/{alias}")
async def redirect_to_original_url(
    alias: str,
    request: Request,
    background_tasks: BackgroundTasks,
    url_service: URLService = Depends(get_url_service),
    click_service: ClickService = Depends(get_click_service),
    queue: Optional[QueueStrategy] = Depends(get_click_queue)
):
    """
    Redirect to the original URL.

    Flow:
    1. Resolve the alias (cache first, record store on miss)
    2. Hand the click to the queue or to a background task
    3. Redirect immediately; click recording never delays or fails it
    """
    original_url = await url_service.resolve(alias)

    click = ClickEvent(
        short_alias=alias,
        ip_address=get_client_ip(request),
        user_agent=request.headers.get("user-agent"),
        referer=request.headers.get("referer"),
    )

    if queue is not None:
        if not await queue.publish(settings.queue_name, click):
            logger.warning("Click for %s could not be queued", alias)
    else:
        background_tasks.add_task(record_click_background, click_service, click)

    return RedirectResponse(url=original_url, status_code=status.HTTP_302_FOUND)
