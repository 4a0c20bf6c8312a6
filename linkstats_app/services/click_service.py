"""
Click recording.

Turns a redirect into an update of the alias's analytics document:
the click is counted for its UTC date, the visitor fingerprint is added to
the unique users, and the OS/device breakdowns are upserted.

Called either inline (FastAPI background task after the redirect response)
or by the click worker consuming the click queue.
"""

import hashlib
import logging
import re
from datetime import timezone
from typing import Optional, Tuple

from linkstats_app.queue.models import ClickEvent
from linkstats_app.storage.strategies import RecordStoreStrategy

logger = logging.getLogger(__name__)

BOT_PATTERN = re.compile(r'bot|crawler|spider|slurp|curl|wget|python-requests|httpx', re.I)
TABLET_PATTERN = re.compile(r'ipad|tablet|kindle|silk', re.I)
MOBILE_PATTERN = re.compile(r'mobi|iphone|ipod|windows phone', re.I)


def classify_user_agent(user_agent: Optional[str]) -> Tuple[str, str]:
    """
    Map a user agent string to an (os_name, device_name) pair.

    A keyword classifier: good enough for coarse breakdowns, not a full
    UA parser.
    """
    if not user_agent:
        return "Other", "unknown"

    ua = user_agent.lower()

    # iOS UAs also contain "Mac OS X", Android UAs also contain "Linux"
    if "windows" in ua:
        os_name = "Windows"
    elif "iphone" in ua or "ipad" in ua or "ipod" in ua:
        os_name = "iOS"
    elif "android" in ua:
        os_name = "Android"
    elif "mac os x" in ua or "macintosh" in ua:
        os_name = "macOS"
    elif "linux" in ua or "x11" in ua:
        os_name = "Linux"
    else:
        os_name = "Other"

    if BOT_PATTERN.search(ua):
        device_name = "bot"
    elif TABLET_PATTERN.search(ua) or (os_name == "Android" and "mobile" not in ua):
        device_name = "tablet"
    elif MOBILE_PATTERN.search(ua):
        device_name = "mobile"
    else:
        device_name = "desktop"

    return os_name, device_name


def user_fingerprint(ip_address: Optional[str], user_agent: Optional[str]) -> str:
    """Stable, non-reversible visitor id derived from IP and user agent"""
    raw = f"{ip_address or ''}|{user_agent or ''}"
    return hashlib.sha256(raw.encode('utf-8')).hexdigest()[:16]


class ClickService:
    """Records clicks into the record store's analytics documents."""

    def __init__(self, store: RecordStoreStrategy):
        self.store = store

    async def record_click(
        self,
        alias: str,
        date: str,
        user: str,
        os_name: str,
        device_name: str
    ) -> bool:
        """
        Record one click.

        Args:
            alias: The alias that was resolved
            date: Click date as YYYY-MM-DD
            user: Visitor fingerprint
            os_name: Operating system name
            device_name: Device type name

        Returns:
            False if no record exists for the alias
        """
        recorded = await self.store.record_click(alias, date, user, os_name, device_name)
        if not recorded:
            logger.warning("Click for unknown alias %s dropped", alias)
        return recorded

    async def record_event(self, event: ClickEvent) -> bool:
        """Derive date, fingerprint, OS and device from a click event and record it"""
        timestamp = event.timestamp
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=timezone.utc)
        os_name, device_name = classify_user_agent(event.user_agent)

        return await self.record_click(
            alias=event.short_alias,
            date=timestamp.astimezone(timezone.utc).strftime("%Y-%m-%d"),
            user=user_fingerprint(event.ip_address, event.user_agent),
            os_name=os_name,
            device_name=device_name,
        )


async def record_click_background(click_service: ClickService, event: ClickEvent) -> None:
    """
    Background task to record a click after the redirect was sent.

    Failures are logged; the visitor has already been redirected.
    """
    try:
        await click_service.record_event(event)
    except Exception:
        logger.exception("Failed to record click for %s", event.short_alias)
