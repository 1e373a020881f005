"""
Suggest Flow (v1.0.0)
Daily style brief with a capsule-based heuristic fallback.
"""
import time
import asyncio
import logging
from datetime import date
from typing import Dict, Any, List, Optional

from stylist_ai.config import LLMRole
from stylist_ai.core.capsule import current_season, find_missing_items, get_template, get_wardrobe_gaps
from stylist_ai.core.prompts import SUGGEST_SYSTEM_PROMPT, build_suggest_prompt
from stylist_ai.db.context import format_wardrobe, load_wardrobe
from stylist_ai.llm.router import complete_json
from stylist_ai.observability import record_operation

logger = logging.getLogger(__name__)

BRIEF_FIELDS = ("suggestion", "insight", "tomorrow", "seasonal_note")


def heuristic_brief(season: str, wardrobe: List[dict], capsule_report: str) -> Dict[str, Any]:
    """Brief assembled from the capsule template alone."""
    template = get_template(season)
    missing = find_missing_items(season, wardrobe)

    if missing:
        top = missing[0]
        insight = f"Your biggest {season} gap is {top['subcategory'].lower()} ({top['needed']} needed)."
    else:
        insight = f"Your {season} capsule covers every core piece."

    core = [item.subcategory.lower() for item in template.core]
    return {
        "suggestion": f"Build today's look around your {core[0]} and {core[2]}.",
        "insight": insight,
        "tomorrow": f"Try pairing {core[1]} with {core[-1]}.",
        "seasonal_note": template.notes[0] if template.notes else capsule_report,
        "capsule": capsule_report,
        "fallback": True,
    }


async def suggest(payload: Optional[Dict[str, Any]] = None, today: Optional[date] = None) -> Dict[str, Any]:
    """
    Produce a daily style brief.

    Args:
        payload: Optional user_id, weather, location, occasion, wardrobe
        today: Date used for the season (defaults to today)

    Returns:
        {"suggestion", "insight", "tomorrow", "seasonal_note", "capsule"}
        plus "fallback": True when the heuristic brief was used
    """
    payload = payload or {}
    user_id = payload.get("user_id")
    started = time.monotonic()

    wardrobe = payload.get("wardrobe")
    if not isinstance(wardrobe, list):
        wardrobe = await asyncio.to_thread(load_wardrobe, user_id) if user_id else []
    wardrobe = [w for w in wardrobe if isinstance(w, dict)]

    season = current_season(today)
    capsule_report = get_wardrobe_gaps(season, wardrobe)

    prompt = build_suggest_prompt(
        season,
        capsule_report,
        weather=payload.get("weather"),
        location=payload.get("location"),
        occasion=payload.get("occasion"),
        wardrobe_text=format_wardrobe(wardrobe),
    )

    try:
        result = await complete_json(SUGGEST_SYSTEM_PROMPT, prompt, role=LLMRole.STYLIST, prefer_vertex=False)
        data = result.data if isinstance(result.data, dict) else {}
        brief = {key: str(data.get(key) or "").strip() for key in BRIEF_FIELDS}
        if not brief["suggestion"]:
            raise ValueError("Brief has no suggestion")
    except Exception as e:
        logger.warning(f"Suggest falling back to capsule heuristic: {e}")
        record_operation("suggest", started, None, status="fallback", user_id=user_id, error=str(e),
                         fallback_used=True)
        return heuristic_brief(season, wardrobe, capsule_report)

    brief["seasonal_note"] = brief["seasonal_note"] or get_template(season).notes[0]
    brief["capsule"] = capsule_report
    record_operation("suggest", started, result.provider, user_id=user_id, fallback_used=result.fallback_used)
    return brief
