"""
Trends Service (v1.0.0)
Fetches current trend tags from an external feed with a static fallback.
"""
import logging
from typing import Any, List

import httpx

from stylist_ai.config.settings import get_settings
from stylist_ai.cache.cache_manager import cache_manager, get_cache_key
from stylist_ai.core.tags import normalize_tags

logger = logging.getLogger(__name__)

DEFAULT_TREND_TAGS = [
    "quiet luxury",
    "relaxed tailoring",
    "earth tones",
    "wide-leg trousers",
    "suede",
    "oversized blazer",
    "loafers",
    "utility jacket",
]


def _extract_names(payload: Any) -> List[str]:
    """Accept a list of strings, {"trends": [...]} or a list of objects."""
    if isinstance(payload, dict):
        payload = payload.get("trends") or payload.get("tags") or []

    if not isinstance(payload, list):
        return []

    names = []
    for entry in payload:
        if isinstance(entry, str):
            names.append(entry)
        elif isinstance(entry, dict):
            value = entry.get("name") or entry.get("tag") or entry.get("title")
            if isinstance(value, str):
                names.append(value)
    return names


async def fetch_trend_tags(limit: int = 5) -> List[str]:
    """
    Get normalized trend tags.

    Returns:
        Up to `limit` tags; DEFAULT_TREND_TAGS when the feed is unavailable
    """
    settings = get_settings()
    fallback = normalize_tags(DEFAULT_TREND_TAGS)[:limit]

    if not settings.trends_feed_url:
        return fallback

    cache_key = get_cache_key("trends", url=settings.trends_feed_url)
    cached = cache_manager.get(cache_key)
    if cached is not None:
        return cached[:limit]

    try:
        async with httpx.AsyncClient(timeout=float(settings.http_timeout_seconds)) as client:
            response = await client.get(settings.trends_feed_url)
            response.raise_for_status()
            payload = response.json()
    except httpx.TimeoutException:
        logger.warning("Trends feed timeout - using defaults")
        return fallback
    except Exception as e:
        logger.warning(f"Trends feed failed ({e}) - using defaults")
        return fallback

    tags = normalize_tags(_extract_names(payload))
    if not tags:
        logger.warning("Trends feed returned no usable tags - using defaults")
        return fallback

    cache_manager.set(cache_key, tags, ttl_minutes=settings.trends_cache_ttl_minutes)
    logger.info(f"Trends feed: {len(tags)} tags")
    return tags[:limit]
