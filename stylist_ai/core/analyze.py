"""
Analyze Flow (v1.0.0)
Outfit photo -> normalized style tags, with a static fallback.
"""
import time
import logging
from typing import Dict, Any, Optional

from stylist_ai.config import LLMRole, get_settings
from stylist_ai.core.errors import StylistError
from stylist_ai.core.prompts import ANALYZE_PROMPT
from stylist_ai.core.tags import normalize_tags
from stylist_ai.core.validation import unwrap_image_url
from stylist_ai.llm.json_parsing import extract_tag_list
from stylist_ai.llm.router import complete_vision_json
from stylist_ai.observability import record_operation

logger = logging.getLogger(__name__)

FALLBACK_TAGS = ["casual", "minimalist", "neutral tones", "denim", "sneakers", "layered"]


async def analyze_image(image_url: Optional[str]) -> Dict[str, Any]:
    """
    Tag an outfit photo.

    Args:
        image_url: Public image URL (Next.js proxy URLs are unwrapped)

    Returns:
        {"tags": [...], "provider": str|None, "fallback": bool}

    Raises:
        StylistError: 400 if image_url is empty
    """
    url = unwrap_image_url(image_url or "")
    if not url:
        raise StylistError("Missing imageUrl", status_code=400)

    started = time.monotonic()
    settings = get_settings()

    try:
        result = await complete_vision_json(
            ANALYZE_PROMPT,
            role=LLMRole.VISION,
            image_url=url,
            prefer_vertex=settings.vertex_enabled
        )
        tags = normalize_tags(extract_tag_list(result.data))
        if not tags:
            raise ValueError("Model returned no usable tags")
    except Exception as e:
        logger.warning(f"Analyze failed, using fallback tags: {e}")
        record_operation("analyze", started, None, status="fallback", error=str(e), fallback_used=True)
        return {"tags": list(FALLBACK_TAGS), "provider": None, "fallback": True}

    logger.info(f"Analyze: {len(tags)} tags via {result.provider}")
    record_operation("analyze", started, result.provider, fallback_used=result.fallback_used)
    return {"tags": tags, "provider": result.provider, "fallback": False}
