"""
Product Search Service (v1.0.0)
Retailer search chain: Farfetch (SerpAPI) -> ASOS (RapidAPI) -> Google Shopping (SerpAPI).

Also hosts visual similar-look search through SerpAPI Google Lens.
"""
import re
import time
import logging
from dataclasses import dataclass, asdict
from typing import List, Optional, Dict, Any

import httpx

from stylist_ai.config.settings import get_settings
from stylist_ai.cache.cache_manager import cache_manager, get_cache_key
from stylist_ai.core.validation import unwrap_image_url

logger = logging.getLogger(__name__)

SERPAPI_URL = "https://serpapi.com/search.json"
ASOS_HOST = "asos2.p.rapidapi.com"
ASOS_URL = f"https://{ASOS_HOST}/products/v2/list"

# SerpAPI rate limits are long-lived; back off for 12 hours after a 429
SERP_COOLDOWN_SECONDS = 12 * 3600
_serp_cooldown_until = 0.0

SIMPLIFY_PATTERN = re.compile(
    r"\b(men'?s?|women'?s?|unisex|luxury|designer|casual|streetwear|smart|modern|formal|neutral)\b",
    re.IGNORECASE
)


@dataclass
class ProductResult:
    name: str
    brand: Optional[str] = None
    price: Optional[str] = None
    image: Optional[str] = None
    shop_url: Optional[str] = None
    source: str = "SerpAPI"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def simplify_query(query: str) -> str:
    """Drop gender/mood qualifiers that over-constrain retailer search."""
    return re.sub(r"\s+", " ", SIMPLIFY_PATTERN.sub(" ", query or "")).strip()


def _serp_available() -> bool:
    return bool(get_settings().serpapi_key) and time.time() >= _serp_cooldown_until


def _start_serp_cooldown():
    global _serp_cooldown_until
    _serp_cooldown_until = time.time() + SERP_COOLDOWN_SECONDS
    logger.warning("SerpAPI rate-limited (429) - cooling down")


def reset_serp_cooldown():
    """Clear the SerpAPI cooldown (tests)."""
    global _serp_cooldown_until
    _serp_cooldown_until = 0.0


async def _serp_get(params: Dict[str, Any]) -> Optional[dict]:
    """GET serpapi.com/search.json. None on failure or rate limit."""
    settings = get_settings()
    params = dict(params, api_key=settings.serpapi_key, hl="en", gl="us")
    async with httpx.AsyncClient(timeout=float(settings.http_timeout_seconds)) as client:
        response = await client.get(SERPAPI_URL, params=params)
    if response.status_code == 429:
        _start_serp_cooldown()
        return None
    response.raise_for_status()
    return response.json()


# ==================== RETAILERS ====================

async def search_farfetch(query: str, limit: int = 6) -> List[ProductResult]:
    """Designer / formal items via SerpAPI shopping restricted to farfetch.com."""
    if not _serp_available():
        return []
    try:
        data = await _serp_get({"engine": "google_shopping", "q": f"{query} site:farfetch.com"})
    except Exception as e:
        logger.warning(f"Farfetch search failed: {e}")
        return []
    if not data:
        return []

    results = []
    for item in (data.get("shopping_results") or [])[:limit]:
        if not item.get("title"):
            continue
        price = item.get("price")
        if not price and item.get("extracted_price") is not None:
            price = f"${item['extracted_price']}"
        results.append(ProductResult(
            name=item["title"],
            brand=item.get("source") or "Farfetch",
            price=price,
            image=item.get("thumbnail") or item.get("serpapi_thumbnail"),
            shop_url=item.get("product_link") or item.get("link"),
            source="Farfetch",
        ))
    return results


def _asos_brand(product: Dict[str, Any]) -> str:
    brand = product.get("brand")
    if isinstance(brand, dict) and brand.get("name"):
        return brand["name"]
    return product.get("brandName") or "ASOS"


async def search_asos(query: str, limit: int = 8) -> List[ProductResult]:
    """Casual / streetwear items via the ASOS RapidAPI listing."""
    settings = get_settings()
    if not settings.rapidapi_key:
        return []

    try:
        async with httpx.AsyncClient(timeout=float(settings.http_timeout_seconds)) as client:
            response = await client.get(
                ASOS_URL,
                params={"store": "US", "q": query, "offset": 0, "limit": limit},
                headers={"X-RapidAPI-Key": settings.rapidapi_key, "X-RapidAPI-Host": ASOS_HOST}
            )
            response.raise_for_status()
            data = response.json()
    except Exception as e:
        logger.warning(f"ASOS search failed: {e}")
        return []

    items = data.get("products") or []
    # Shirt queries otherwise drift into jackets
    if re.search(r"shirt|flannel|plaid", query, re.IGNORECASE):
        items = [
            p for p in items
            if re.search(r"shirt|flannel|check|overshirt", p.get("name", ""), re.IGNORECASE)
            and not re.search(r"jacket|coat|blazer", p.get("name", ""), re.IGNORECASE)
        ]

    results = []
    for p in items[:limit]:
        if not p.get("name"):
            continue
        image = p.get("imageUrl") or ""
        url = p.get("url") or ""
        results.append(ProductResult(
            name=p["name"],
            brand=_asos_brand(p),
            price=((p.get("price") or {}).get("current") or {}).get("text"),
            image=image if image.startswith("http") else (f"https://{image}" if image else None),
            shop_url=url if url.startswith("http") else f"https://www.asos.com/{url}",
            source="ASOS",
        ))
    return results


async def search_google_shopping(query: str, limit: int = 6) -> List[ProductResult]:
    """General fallback via SerpAPI Google Shopping."""
    if not _serp_available():
        return []
    try:
        data = await _serp_get({"engine": "google_shopping", "q": query})
    except Exception as e:
        logger.warning(f"Google Shopping search failed: {e}")
        return []
    if not data:
        return []

    results = []
    for item in data.get("shopping_results") or []:
        if not (item.get("title") and item.get("thumbnail") and (item.get("link") or item.get("product_link"))):
            continue
        price = f"${item['extracted_price']}" if item.get("extracted_price") is not None else item.get("price")
        results.append(ProductResult(
            name=item["title"],
            brand=item.get("source") or "Google Shopping",
            price=price,
            image=item["thumbnail"],
            shop_url=item.get("link") or item.get("product_link"),
            source="SerpAPI",
        ))
        if len(results) >= limit:
            break
    return results


# ==================== SEARCH CHAIN ====================

async def _run_chain(query: str, limit: int) -> List[ProductResult]:
    for retailer in (search_farfetch, search_asos, search_google_shopping):
        results = await retailer(query)
        if results:
            logger.info(f"Products: {len(results)} from {results[0].source} for '{query}'")
            return results[:limit]
    return []


def _gendered(query: str, gender: Optional[str]) -> str:
    if gender not in ("masculine", "feminine"):
        return query
    if re.search(r"\b(men|women)'?s?\b", query, re.IGNORECASE):
        return query
    prefix = "men's" if gender == "masculine" else "women's"
    return f"{prefix} {query}"


async def search_products(query: str, gender: Optional[str] = None, limit: int = 6) -> List[ProductResult]:
    """
    Search retailers for a product query.

    Results are cached per (query, gender); when the full query finds
    nothing, a simplified query is tried once.

    Returns:
        List of ProductResult (empty if nothing found)
    """
    query = re.sub(r"\s+", " ", query or "").strip()
    if not query:
        return []

    full_query = _gendered(query, gender)
    cache_key = get_cache_key("products", query=full_query.lower(), limit=limit)
    cached = cache_manager.get(cache_key)
    if cached is not None:
        return [ProductResult(**p) for p in cached]

    results = await _run_chain(full_query, limit)

    if not results:
        simplified = simplify_query(full_query)
        if simplified and simplified.lower() != full_query.lower():
            logger.info(f"No products for '{full_query}', retrying as '{simplified}'")
            results = await _run_chain(_gendered(simplified, gender), limit)

    # Empty results are not cached
    if results:
        cache_manager.set(
            cache_key,
            [p.to_dict() for p in results],
            ttl_minutes=get_settings().product_cache_ttl_minutes
        )
    return results


# ==================== SIMILAR LOOKS ====================

async def find_similar_looks(image_url: str, limit: int = 10) -> List[Dict[str, Optional[str]]]:
    """
    Visually similar looks via SerpAPI Google Lens.

    Returns:
        Up to `limit` {"title", "image", "link"} dicts; [] on any failure
    """
    url = unwrap_image_url(image_url)
    if not url or not _serp_available():
        return []

    try:
        data = await _serp_get({"engine": "google_lens", "url": url})
    except Exception as e:
        logger.error(f"Similar looks search failed: {e}")
        return []
    if not data:
        return []

    matches = data.get("visual_matches") or data.get("inline_images") or data.get("image_results") or []
    return [
        {
            "title": m.get("title") or m.get("source") or "Similar look",
            "image": m.get("thumbnail") or m.get("original") or m.get("image"),
            "link": m.get("link") or m.get("source"),
        }
        for m in matches[:limit]
    ]
