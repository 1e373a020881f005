"""
Barcode Service (v1.0.0)
Reads barcodes from photos and looks products up by UPC/EAN.

Lookup cascade: UPCItemDB -> RapidAPI barcode lookup -> model guess.
"""
import re
import time
import logging
from typing import Dict, Any, List, Optional

import httpx

from stylist_ai.config import LLMRole, get_settings
from stylist_ai.core.errors import LLMUnavailableError
from stylist_ai.core.prompts import BARCODE_PROMPT, BARCODE_GUESS_PROMPT
from stylist_ai.core.validation import validate_image_upload, validate_upc
from stylist_ai.llm.router import complete_json, complete_vision_json
from stylist_ai.observability import record_operation

logger = logging.getLogger(__name__)

UPCITEMDB_URL = "https://api.upcitemdb.com/prod/trial/lookup"
RAPIDAPI_BARCODE_HOST = "barcode-lookup.p.rapidapi.com"
RAPIDAPI_BARCODE_URL = f"https://{RAPIDAPI_BARCODE_HOST}/v3/products"

DIGIT_RUN = re.compile(r"\d{8,14}")


# ==================== DECODE ====================

def has_valid_check_digit(code: str) -> bool:
    """GTIN-8/12/13/14 mod-10 check digit."""
    if not code.isdigit() or len(code) not in (8, 12, 13, 14):
        return False
    body, check = code[:-1], int(code[-1])
    total = sum(int(d) * (3 if i % 2 == 0 else 1) for i, d in enumerate(reversed(body)))
    return (10 - total % 10) % 10 == check


def extract_barcode_candidates(text: str) -> List[str]:
    """8-14 digit runs, with spaces and dashes between digits removed."""
    compact = re.sub(r"(?<=\d)[\s-](?=\d)", "", text or "")
    return DIGIT_RUN.findall(compact)


def pick_barcode(candidates: List[str]) -> Optional[str]:
    """Prefer the first candidate with a valid check digit."""
    for code in candidates:
        if has_valid_check_digit(code):
            return code
    return candidates[0] if candidates else None


async def decode_barcode(image_bytes: bytes, mime_type: Optional[str]) -> Dict[str, Optional[str]]:
    """
    Read a barcode from an uploaded photo.

    Returns:
        {"barcode": digits or None}

    Raises:
        ValidationError: Bad upload (size, type or undecodable image)
        LLMUnavailableError: No LLM provider configured
    """
    content, mime = validate_image_upload(image_bytes, mime_type)
    started = time.monotonic()

    try:
        result = await complete_vision_json(
            BARCODE_PROMPT,
            role=LLMRole.VISION,
            image_bytes=content,
            mime_type=mime,
            prefer_vertex=False
        )
    except LLMUnavailableError:
        raise
    except Exception as e:
        logger.warning(f"Barcode decode failed: {e}")
        record_operation("decode_barcode", started, None, status="fail", error=str(e))
        return {"barcode": None}

    data = result.data
    raw = data.get("barcode") if isinstance(data, dict) else data
    barcode = pick_barcode(extract_barcode_candidates(str(raw) if raw is not None else ""))

    logger.info(f"Barcode decoded: {barcode}")
    record_operation("decode_barcode", started, result.provider, fallback_used=result.fallback_used)
    return {"barcode": barcode}


# ==================== LOOKUP ====================

def _first_image(images: Any) -> Optional[str]:
    if isinstance(images, list):
        for image in images:
            if isinstance(image, str) and image.startswith("http"):
                return image
    return None


async def lookup_upcitemdb(upc: str) -> Optional[Dict[str, Any]]:
    """Free-tier UPCItemDB lookup."""
    try:
        async with httpx.AsyncClient(timeout=float(get_settings().http_timeout_seconds)) as client:
            response = await client.get(UPCITEMDB_URL, params={"upc": upc})
            if response.status_code == 404:
                return None
            response.raise_for_status()
            data = response.json()
    except Exception as e:
        logger.warning(f"UPCItemDB lookup failed for {upc}: {e}")
        return None

    items = (data.get("items") if isinstance(data, dict) else None) or []
    if not isinstance(items, list) or not items or not isinstance(items[0], dict):
        return None
    if not items[0].get("title"):
        return None

    item = items[0]
    return {
        "name": item.get("title"),
        "brand": item.get("brand") or None,
        "category": item.get("category") or None,
        "image": _first_image(item.get("images")),
        "source": "upcitemdb",
    }


async def lookup_rapidapi(upc: str) -> Optional[Dict[str, Any]]:
    """RapidAPI barcode lookup (needs RAPIDAPI_KEY)."""
    settings = get_settings()
    if not settings.rapidapi_key:
        return None

    try:
        async with httpx.AsyncClient(timeout=float(settings.http_timeout_seconds)) as client:
            response = await client.get(
                RAPIDAPI_BARCODE_URL,
                params={"barcode": upc},
                headers={"X-RapidAPI-Key": settings.rapidapi_key, "X-RapidAPI-Host": RAPIDAPI_BARCODE_HOST}
            )
            if response.status_code == 404:
                return None
            response.raise_for_status()
            data = response.json()
    except Exception as e:
        logger.warning(f"RapidAPI barcode lookup failed for {upc}: {e}")
        return None

    products = (data.get("products") if isinstance(data, dict) else None) or []
    if not isinstance(products, list) or not products or not isinstance(products[0], dict):
        return None
    if not (products[0].get("title") or products[0].get("product_name")):
        return None

    product = products[0]
    return {
        "name": product.get("title") or product.get("product_name"),
        "brand": product.get("brand") or None,
        "category": product.get("category") or None,
        "image": _first_image(product.get("images")),
        "source": "rapidapi",
    }


async def lookup_ai_guess(upc: str) -> Optional[Dict[str, Any]]:
    """Ask the model to identify the product; last resort."""
    try:
        result = await complete_json(
            "You identify retail products from barcodes.",
            BARCODE_GUESS_PROMPT.replace("{upc}", upc),
            role=LLMRole.STYLIST,
            prefer_vertex=False
        )
    except Exception as e:
        logger.warning(f"AI barcode guess failed for {upc}: {e}")
        return None

    data = result.data if isinstance(result.data, dict) else {}
    if not data.get("name"):
        return None
    return {
        "name": data.get("name"),
        "brand": data.get("brand"),
        "category": data.get("category"),
        "image": None,
        "confidence": data.get("confidence") or "low",
        "source": "ai",
    }


async def lookup_barcode(upc: Optional[str]) -> Dict[str, Any]:
    """
    Look a product up by UPC/EAN.

    Returns:
        {"upc", "found": True, "source", "name", ...} for the first hit,
        or {"upc", "found": False}

    Raises:
        ValidationError: 400 for a missing or malformed UPC
    """
    code = validate_upc(upc)
    started = time.monotonic()

    for lookup in (lookup_upcitemdb, lookup_rapidapi, lookup_ai_guess):
        hit = await lookup(code)
        if hit:
            logger.info(f"Barcode {code} found via {hit['source']}")
            record_operation("lookup_barcode", started, hit["source"], fallback_used=hit["source"] != "upcitemdb")
            return {"upc": code, "found": True, **hit}

    logger.info(f"Barcode {code} not found")
    record_operation("lookup_barcode", started, None, status="fallback", fallback_used=True)
    return {"upc": code, "found": False}
