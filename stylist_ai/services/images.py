"""
Image Service (v1.0.0)
Unsplash image search and static fallback product images.
"""
import logging
from typing import List, Optional

import httpx

from stylist_ai.config.settings import get_settings
from stylist_ai.cache.cache_manager import cache_manager, get_cache_key

logger = logging.getLogger(__name__)

UNSPLASH_SEARCH_URL = "https://api.unsplash.com/search/photos"


# ==================== FALLBACK IMAGES ====================

_UNSPLASH = "https://images.unsplash.com/photo-{}?w=600&q=80"

# (category family, presentation) -> image
FALLBACK_IMAGES = {
    ("top", "masculine"): _UNSPLASH.format("1602810318383-e386cc2a3ccf"),
    ("top", "feminine"): _UNSPLASH.format("1564257631407-4deb1f99d992"),
    ("top", "mixed"): _UNSPLASH.format("1521572163474-6864f9cf17ab"),
    ("bottom", "masculine"): _UNSPLASH.format("1473966968600-fa801b869a1a"),
    ("bottom", "feminine"): _UNSPLASH.format("1583496661160-fb5886a0aaaa"),
    ("bottom", "mixed"): _UNSPLASH.format("1542272604-787c3835535d"),
    ("outerwear", "masculine"): _UNSPLASH.format("1591047139829-d91aecb6caea"),
    ("outerwear", "feminine"): _UNSPLASH.format("1539533018447-63fcce2678e3"),
    ("outerwear", "mixed"): _UNSPLASH.format("1551028719-00167b16eac5"),
    ("shoes", "masculine"): _UNSPLASH.format("1614252235316-8c857d38b5f4"),
    ("shoes", "feminine"): _UNSPLASH.format("1543163521-1bf539c55dd2"),
    ("shoes", "mixed"): _UNSPLASH.format("1549298916-b41d501d3772"),
    ("dress", "feminine"): _UNSPLASH.format("1595777457583-95e059d581b8"),
    ("dress", "mixed"): _UNSPLASH.format("1595777457583-95e059d581b8"),
    ("accessory", "masculine"): _UNSPLASH.format("1524592094714-0f0654e20314"),
    ("accessory", "feminine"): _UNSPLASH.format("1584917865442-de89df76afd3"),
    ("accessory", "mixed"): _UNSPLASH.format("1511499767150-a48a237f0083"),
}

DEFAULT_FALLBACK_IMAGE = _UNSPLASH.format("1445205170230-053b83016050")

CATEGORY_FAMILIES = {
    "top": ("top", "shirt", "tee", "t-shirt", "blouse", "sweater", "knit", "polo", "hoodie", "cardigan", "tank"),
    "bottom": ("bottom", "pant", "trouser", "jean", "chino", "short", "skirt", "legging", "cargo"),
    "outerwear": ("outerwear", "jacket", "coat", "blazer", "parka", "trench", "overcoat", "vest"),
    "shoes": ("shoe", "sneaker", "boot", "loafer", "heel", "sandal", "footwear", "trainer"),
    "dress": ("dress", "gown", "jumpsuit"),
    "accessory": ("accessor", "bag", "belt", "hat", "watch", "scarf", "jewel", "sunglass"),
}


def category_family(category: Optional[str]) -> Optional[str]:
    """Map a free-text category or garment name to a fallback family."""
    text = (category or "").lower()
    if not text:
        return None
    # Order matters: "short sleeve shirt" is a top, "baggy jeans" a bottom
    for family in ("outerwear", "dress", "shoes", "top", "bottom", "accessory"):
        if any(word in text for word in CATEGORY_FAMILIES[family]):
            return family
    return None


def pick_fallback_image(category: Optional[str], gender: Optional[str] = None) -> str:
    """
    Pick a static image for a category and presentation.

    Args:
        category: Category or item name
        gender: masculine, feminine or mixed (anything else is mixed)

    Returns:
        Image URL, never empty
    """
    family = category_family(category)
    presentation = gender if gender in ("masculine", "feminine") else "mixed"
    if family is None:
        return DEFAULT_FALLBACK_IMAGE
    return (
        FALLBACK_IMAGES.get((family, presentation))
        or FALLBACK_IMAGES.get((family, "mixed"))
        or DEFAULT_FALLBACK_IMAGE
    )


# ==================== UNSPLASH ====================

async def search_images(query: str, count: int = 1) -> List[str]:
    """
    Search Unsplash for images matching a query.

    Returns:
        List of image URLs (empty on any failure)
    """
    settings = get_settings()
    if not settings.unsplash_access_key:
        logger.warning("UNSPLASH_ACCESS_KEY not set - image search disabled")
        return []
    if not query or not query.strip():
        return []

    cache_key = get_cache_key("images", query=query.strip().lower(), count=count)
    cached = cache_manager.get(cache_key)
    if cached is not None:
        return cached

    try:
        async with httpx.AsyncClient(timeout=float(settings.http_timeout_seconds)) as client:
            response = await client.get(
                UNSPLASH_SEARCH_URL,
                params={"query": query, "per_page": count, "orientation": "portrait"},
                headers={"Authorization": f"Client-ID {settings.unsplash_access_key}"}
            )
            response.raise_for_status()
            data = response.json()
    except httpx.TimeoutException:
        logger.warning(f"Unsplash timeout for '{query}'")
        return []
    except Exception as e:
        logger.warning(f"Unsplash search failed for '{query}': {e}")
        return []

    urls = []
    results = data.get("results") if isinstance(data, dict) else None
    for result in (results if isinstance(results, list) else [])[:count]:
        if not isinstance(result, dict):
            continue
        url = (result.get("urls") or {}).get("regular") or (result.get("urls") or {}).get("small")
        if url:
            urls.append(url)

    cache_manager.set(cache_key, urls, ttl_minutes=get_settings().product_cache_ttl_minutes)
    return urls


async def search_image(query: str) -> Optional[dict]:
    """Single Unsplash image for a query as {"term", "image"}, or None."""
    urls = await search_images(query, count=1)
    if not urls:
        return None
    return {"term": query, "image": urls[0]}
