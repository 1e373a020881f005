"""
Prompt Templates (v1.0.0)
System prompts and prompt builders for every stylist flow.
"""
import json
from typing import Dict, List, Optional, Iterable

from stylist_ai.core.tags import WeightedTag


STYLIST_SYSTEM_PROMPT = (
    "You are a world-class personal fashion stylist. Give sleek, modern, practical "
    "outfit advice with attention to silhouette, color harmony, occasion, climate, "
    "and user comfort. Keep responses concise and actionable."
)

ANALYZE_PROMPT = """Look at this outfit photo and describe it as style tags.

Return JSON: {"tags": ["tag", ...]}
- 6 to 12 short lowercase tags
- Include garments, colors, materials, fits and overall style
- No sentences, no brand guesses"""

RECREATE_SYSTEM_PROMPT = STYLIST_SYSTEM_PROMPT + """

Recreate the described look as a shoppable outfit.

OUTPUT FORMAT (JSON only):
{
  "outfit": [
    {"category": "Tops|Bottoms|Outerwear|Shoes|Accessories",
     "item": "short garment name",
     "color": "main color",
     "fit": "fit or null",
     "material": "material or null",
     "search_query": "retailer search query"}
  ],
  "style_note": "one or two sentences on why this works"
}"""

SHOP_SYSTEM_PROMPT = STYLIST_SYSTEM_PROMPT + """

You build a personalized shopping plan from an outfit photo.
Constraints listed under USER RULES are hard rules: never break them.

OUTPUT FORMAT (JSON only):
{
  "recreated_outfit": [
    {"category": "...", "item": "...", "color": "...", "fit": "...",
     "material": "...", "search_query": "...", "owned": true|false}
  ],
  "suggested_purchases": [
    {"category": "...", "item": "...", "color": "...", "fit": "...",
     "material": "...", "search_query": "...", "reason": "..."}
  ],
  "style_note": "..."
}"""

CHAT_SYSTEM_PROMPT = STYLIST_SYSTEM_PROMPT + """

You know this user. Use the memory and context below when it is relevant,
never invent wardrobe items they do not own, and name concrete garments,
colors and materials when you recommend something."""

SUMMARIZER_SYSTEM_PROMPT = """You maintain a long-term memory of a fashion client.
Merge the previous summary with the new conversation into a compact profile:
stated preferences, dislikes, sizes and fits, occasions coming up, purchases,
and open requests. Plain text, at most 12 short bullet lines. Drop small talk."""

SUGGEST_SYSTEM_PROMPT = STYLIST_SYSTEM_PROMPT + """

Write a daily style brief.

OUTPUT FORMAT (JSON only):
{
  "suggestion": "today's outfit in one or two sentences",
  "insight": "one observation about their wardrobe or habits",
  "tomorrow": "a short plan for tomorrow",
  "seasonal_note": "one seasonal tip"
}"""

BARCODE_PROMPT = """Read the barcode in this image.
Return JSON: {"barcode": "digits only"} or {"barcode": null} if none is legible."""

BARCODE_GUESS_PROMPT = """Identify the retail product for barcode {upc}.
Return JSON: {"name": "...", "brand": "...", "category": "...", "confidence": "low|medium|high"}
Use null fields when you do not know."""


def format_tags(tags: Iterable[WeightedTag]) -> str:
    return ", ".join(f"{t.tag} ({t.weight:.1f})" for t in tags)


def build_recreate_prompt(
    tags: List[WeightedTag],
    gender: str,
    profile_text: str = "",
    image_url: Optional[str] = None
) -> str:
    parts = [f"LOOK TAGS (weighted): {format_tags(tags)}"]
    if gender in ("masculine", "feminine"):
        parts.append(f"PRESENTATION: {gender}. Every item must be {'menswear' if gender == 'masculine' else 'womenswear'}.")
    if image_url:
        parts.append(f"REFERENCE IMAGE: {image_url}")
    if profile_text:
        parts.append(f"STYLE PROFILE:\n{profile_text}")
    parts.append("Return 4 to 6 items covering a complete outfit.")
    return "\n\n".join(parts)


def build_shop_prompt(
    gender: str,
    rules_summary: Dict[str, object],
    context_blocks: Dict[str, str]
) -> str:
    rule_lines = []
    if gender in ("masculine", "feminine"):
        rule_lines.append(f"- Only {'menswear' if gender == 'masculine' else 'womenswear'}")
    if rules_summary.get("only_colors"):
        rule_lines.append(f"- Use ONLY these colors: {', '.join(rules_summary['only_colors'])}")
    if rules_summary.get("excluded_colors"):
        rule_lines.append(f"- Never use: {', '.join(rules_summary['excluded_colors'])}")
    if rules_summary.get("banned_fits"):
        rule_lines.append(f"- Banned fits: {', '.join(rules_summary['banned_fits'])}")
    if rules_summary.get("banned_materials"):
        rule_lines.append(f"- Climate is {rules_summary['climate']}; avoid {', '.join(rules_summary['banned_materials'])}")

    parts = ["Recreate the outfit in the photo for this user, then list what they should buy."]
    if rule_lines:
        parts.append("USER RULES:\n" + "\n".join(rule_lines))
    for title, text in context_blocks.items():
        parts.append(f"{title.upper()}:\n{text}")
    parts.append("Mark recreated items the user already owns with owned=true.")
    return "\n\n".join(parts)


def build_chat_system_prompt(memory: Optional[str], context_text: str) -> str:
    prompt = CHAT_SYSTEM_PROMPT
    if memory:
        prompt += f"\n\nLONG-TERM MEMORY:\n{memory}"
    if context_text:
        prompt += f"\n\nUSER CONTEXT:\n{context_text}"
    return prompt


def build_summary_prompt(previous: Optional[str], messages: List[Dict[str, str]]) -> str:
    transcript = "\n".join(f"{m['role']}: {m['content']}" for m in messages)
    return f"PREVIOUS SUMMARY:\n{previous or '(none)'}\n\nNEW CONVERSATION:\n{transcript}"


def build_suggest_prompt(
    season: str,
    capsule_report: str,
    weather: Optional[object] = None,
    location: Optional[str] = None,
    occasion: Optional[str] = None,
    wardrobe_text: str = ""
) -> str:
    parts = [f"SEASON: {season}", f"CAPSULE: {capsule_report}"]
    if weather:
        parts.append(f"WEATHER: {weather if isinstance(weather, str) else json.dumps(weather, default=str)}")
    if location:
        parts.append(f"LOCATION: {location}")
    if occasion:
        parts.append(f"OCCASION: {occasion}")
    if wardrobe_text:
        parts.append(f"WARDROBE:\n{wardrobe_text}")
    return "\n".join(parts)
