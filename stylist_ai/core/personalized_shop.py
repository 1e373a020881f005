"""
Personalized Shop Flow (v1.0.0)
Outfit photo + every stored preference -> recreated outfit and a rule-checked shopping list.
"""
import time
import asyncio
import logging
from collections import OrderedDict
from typing import Dict, Any, List, Optional

from stylist_ai.config import LLMRole
from stylist_ai.core.errors import StylistError
from stylist_ai.core.personalization import apply_personalization, build_rules, guard_image_gender
from stylist_ai.core.prompts import SHOP_SYSTEM_PROMPT, build_shop_prompt
from stylist_ai.core.recreate import attach_products
from stylist_ai.core.validation import validate_image_url, ValidationError
from stylist_ai.db import context as user_context
from stylist_ai.llm.router import complete_vision_json
from stylist_ai.observability import record_operation
from stylist_ai.services.images import pick_fallback_image

logger = logging.getLogger(__name__)


def _load_shop_context(user_id: str) -> Dict[str, Any]:
    """Sequentially load every preference source the shop prompt uses."""
    profile = user_context.load_style_profile(user_id)
    gender = user_context.load_user_gender(user_id)
    wardrobe = user_context.load_wardrobe(user_id)
    feedback = user_context.load_recent_feedback(user_id)
    look_memories = user_context.load_look_memories(user_id)
    saved_looks = user_context.load_saved_looks(user_id)

    blocks: "OrderedDict[str, str]" = OrderedDict()
    rendered = [
        ("Style profile", user_context.format_style_profile(profile)),
        ("Wardrobe", user_context.format_wardrobe(wardrobe)),
        ("Recent feedback", user_context.format_rows(feedback, ["rating", "notes"])),
        ("Look memories", user_context.format_rows(look_memories, ["ai_tags", "query_used"])),
        ("Saved looks", user_context.format_rows(saved_looks, ["name", "tags"])),
    ]
    for title, text in rendered:
        if text:
            blocks[title] = text

    feedback_notes = [row.get("notes") for row in feedback if isinstance(row.get("notes"), str)]
    return {"profile": profile, "gender": gender, "blocks": blocks, "feedback_notes": feedback_notes}


def _item_list(data: Dict[str, Any], key: str) -> List[dict]:
    value = data.get(key)
    if not isinstance(value, list):
        return []
    return [i for i in value if isinstance(i, dict) and (i.get("item") or i.get("name"))]


async def personalized_shop(
    user_id: str,
    image_url: Optional[str],
    gender: Optional[str] = None
) -> Dict[str, Any]:
    """
    Build a personalized shopping plan from an outfit photo.

    Args:
        user_id: Requesting user
        image_url: Outfit photo URL
        gender: Explicit presentation; overrides the stored one

    Returns:
        {"recreated_outfit", "suggested_purchases", "style_note", "rules", "provider"}

    Raises:
        StylistError: 400 on missing input, 502 on unusable model output
        LLMUnavailableError: No LLM provider configured
    """
    if not user_id:
        raise StylistError("user_id is required", status_code=400)
    try:
        url = validate_image_url(image_url)
    except ValidationError as e:
        raise StylistError(e.message, status_code=e.status_code)

    started = time.monotonic()

    ctx = await asyncio.to_thread(_load_shop_context, user_id)
    presentation = user_context.resolve_presentation(gender) if gender else ctx["gender"]
    rules = build_rules(ctx["profile"], presentation, extra_texts=ctx["feedback_notes"])
    prompt = build_shop_prompt(presentation, rules.summary(), ctx["blocks"])

    try:
        result = await complete_vision_json(
            f"{SHOP_SYSTEM_PROMPT}\n\n{prompt}",
            role=LLMRole.STYLIST,
            image_url=url,
            prefer_vertex=False
        )
    except ValueError as e:
        record_operation("personalized_shop", started, None, status="fail", user_id=user_id, error=str(e))
        raise StylistError(f"Stylist returned invalid JSON: {e}", status_code=502)
    except Exception as e:
        record_operation("personalized_shop", started, None, status="fail", user_id=user_id, error=str(e))
        raise

    data = result.data if isinstance(result.data, dict) else {}
    recreated = _item_list(data, "recreated_outfit")
    purchases = _item_list(data, "suggested_purchases")
    if not recreated and not purchases:
        record_operation("personalized_shop", started, result.provider, status="fail", user_id=user_id,
                         error="empty plan")
        raise StylistError("Stylist returned an empty shopping plan", status_code=502)

    recreated = apply_personalization(recreated, rules)
    purchases = apply_personalization(purchases, rules)

    # Owned pieces are not shopped for; they only get a representative image
    recreated = [
        guard_image_gender(
            dict(item, image=item.get("image") or pick_fallback_image(item.get("category") or item.get("item"), rules.gender)),
            rules.gender
        )
        for item in recreated
    ]
    purchases = await attach_products(purchases, rules)

    note = data.get("style_note")
    logger.info(f"Shop plan for {user_id}: {len(recreated)} recreated, {len(purchases)} purchases")
    record_operation("personalized_shop", started, result.provider, user_id=user_id,
                     fallback_used=result.fallback_used)
    return {
        "recreated_outfit": recreated,
        "suggested_purchases": purchases,
        "style_note": note if isinstance(note, str) else "",
        "rules": rules.summary(),
        "provider": result.provider,
    }
