"""
Recreate Flow (v1.0.0)
Style tags + user profile -> personalized outfit with shoppable products.
"""
import time
import asyncio
import logging
from typing import Dict, Any, List, Optional

from stylist_ai.config import LLMRole
from stylist_ai.core.errors import StylistError
from stylist_ai.core.personalization import (
    PersonalizationRules,
    apply_personalization,
    build_rules,
    filter_products,
    guard_image_gender,
)
from stylist_ai.core.prompts import RECREATE_SYSTEM_PROMPT, build_recreate_prompt
from stylist_ai.core.tags import enrich_tags, normalize_tags
from stylist_ai.db.context import format_style_profile, load_style_profile, load_user_gender, resolve_presentation
from stylist_ai.llm.router import complete_json
from stylist_ai.observability import record_operation
from stylist_ai.services.images import pick_fallback_image
from stylist_ai.services.product_search import search_products
from stylist_ai.services.trends import fetch_trend_tags

logger = logging.getLogger(__name__)


async def attach_product(item: dict, rules: PersonalizationRules) -> dict:
    """
    Attach the first rule-compliant product to an item, else a fallback image.
    """
    result = dict(item)
    try:
        candidates = await search_products(result.get("search_query") or "", gender=rules.gender)
    except Exception as e:
        logger.warning(f"Product search failed for '{result.get('search_query')}': {e}")
        candidates = []

    allowed = filter_products(candidates, rules)
    if allowed:
        product = allowed[0]
        result["product"] = product.to_dict()
        result["image"] = product.image or pick_fallback_image(result.get("category") or result.get("item"), rules.gender)
    else:
        result["product"] = None
        result["image"] = pick_fallback_image(result.get("category") or result.get("item"), rules.gender)

    return guard_image_gender(result, rules.gender)


async def attach_products(items: List[dict], rules: PersonalizationRules) -> List[dict]:
    """Enrich every item concurrently, keeping order."""
    return list(await asyncio.gather(*[attach_product(item, rules) for item in items]))


def parse_outfit(data: Any) -> Dict[str, Any]:
    """
    Validate the model's {"outfit": [...], "style_note": str} payload.

    Raises:
        StylistError: 502 if no outfit list is present
    """
    if isinstance(data, list):
        data = {"outfit": data}
    if not isinstance(data, dict):
        raise StylistError("Stylist returned an unreadable outfit", status_code=502)

    outfit = data.get("outfit") or data.get("items")
    if not isinstance(outfit, list):
        raise StylistError("Stylist returned an unreadable outfit", status_code=502)

    items = [i for i in outfit if isinstance(i, dict) and (i.get("item") or i.get("name"))]
    if not items:
        raise StylistError("Stylist returned an empty outfit", status_code=502)

    note = data.get("style_note")
    return {"outfit": items, "style_note": note if isinstance(note, str) else ""}


async def recreate_look(
    user_id: Optional[str],
    tags: Optional[List[str]],
    image_url: Optional[str] = None,
    user_gender: Optional[str] = None
) -> Dict[str, Any]:
    """
    Recreate a look for a user.

    Args:
        user_id: Requesting user (profile is skipped when None)
        tags: Style tags of the look
        image_url: Optional reference image
        user_gender: Explicit presentation; overrides the stored one

    Returns:
        {"outfit", "style_note", "tags", "provider", "rules"}

    Raises:
        StylistError: 400 without tags, 502 on unusable model output
        LLMUnavailableError: No LLM provider configured
    """
    if not normalize_tags(tags):
        raise StylistError("At least one tag is required", status_code=400)

    started = time.monotonic()

    trend_tags = await fetch_trend_tags()
    weighted = enrich_tags(tags, trend_tags)

    profile = await asyncio.to_thread(load_style_profile, user_id) if user_id else None
    if user_gender:
        gender = resolve_presentation(user_gender)
    elif user_id:
        gender = await asyncio.to_thread(load_user_gender, user_id)
    else:
        gender = "mixed"

    rules = build_rules(profile, gender)
    prompt = build_recreate_prompt(weighted, gender, format_style_profile(profile), image_url)

    try:
        result = await complete_json(RECREATE_SYSTEM_PROMPT, prompt, role=LLMRole.STYLIST, prefer_vertex=True)
        parsed = parse_outfit(result.data)
    except ValueError as e:
        record_operation("recreate", started, None, status="fail", user_id=user_id, error=str(e))
        raise StylistError(f"Stylist returned invalid JSON: {e}", status_code=502)
    except Exception as e:
        record_operation("recreate", started, None, status="fail", user_id=user_id, error=str(e))
        raise

    items = apply_personalization(parsed["outfit"], rules)
    items = await attach_products(items, rules)

    record_operation("recreate", started, result.provider, user_id=user_id, fallback_used=result.fallback_used)
    return {
        "outfit": items,
        "style_note": parsed["style_note"],
        "tags": [t.tag for t in weighted],
        "provider": result.provider,
        "rules": rules.summary(),
    }
