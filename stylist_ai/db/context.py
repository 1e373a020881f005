"""
User Context Loader (v1.0.0)
Reads style profile, wardrobe and activity tables and renders prompt context blocks.

Every loader fails open: a failed query yields an empty value, never an error.
"""
import logging
from collections import OrderedDict
from dataclasses import dataclass, field, asdict
from decimal import Decimal
from typing import Optional, List, Dict, Any

from stylist_ai.db import postgres
from stylist_ai.core.capsule import current_season, get_wardrobe_gaps

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 10


# ==================== STYLE PROFILE ====================

@dataclass
class StyleProfile:
    fit_preferences: List[str] = field(default_factory=list)
    fabric_preferences: List[str] = field(default_factory=list)
    favorite_colors: List[str] = field(default_factory=list)
    disliked_styles: List[str] = field(default_factory=list)
    style_preferences: List[str] = field(default_factory=list)
    preferred_brands: List[str] = field(default_factory=list)
    budget_min: Optional[float] = None
    budget_max: Optional[float] = None
    body_type: Optional[str] = None
    climate: Optional[str] = None
    skin_tone: Optional[str] = None
    goals: Optional[str] = None
    style_notes: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)

    def free_text(self) -> List[str]:
        """Free-text fields that may carry preference rules."""
        return [t for t in (self.goals, self.style_notes) if t]


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, (list, tuple)):
        return []
    return [v for v in value if isinstance(v, str)]


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        return float(value)
    return None


def _text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value.strip() else None


def parse_style_profile_row(row: Dict[str, Any]) -> StyleProfile:
    """Coerce a style_profiles row into a StyleProfile, dropping malformed values."""
    return StyleProfile(
        fit_preferences=_string_list(row.get("fit_preferences")),
        fabric_preferences=_string_list(row.get("fabric_preferences")),
        favorite_colors=_string_list(row.get("favorite_colors")),
        disliked_styles=_string_list(row.get("disliked_styles")),
        style_preferences=_string_list(row.get("style_preferences")),
        preferred_brands=_string_list(row.get("preferred_brands")),
        budget_min=_number(row.get("budget_min")),
        budget_max=_number(row.get("budget_max")),
        body_type=_text(row.get("body_type")),
        climate=_text(row.get("climate")),
        skin_tone=_text(row.get("skin_tone")),
        goals=_text(row.get("goals")),
        style_notes=_text(row.get("style_notes")),
    )


def resolve_presentation(raw: Optional[str]) -> str:
    """
    Normalize a gender/presentation value to masculine, feminine or mixed.

    Feminine is checked first because "female" contains "male".
    """
    gp = "".join(ch for ch in (raw or "").lower() if ch not in " _-'")
    if "female" in gp or "feminin" in gp or gp in ("woman", "women", "womens", "f"):
        return "feminine"
    if "male" in gp or "masculin" in gp or gp in ("man", "men", "mens", "m"):
        return "masculine"
    return "mixed"


# ==================== LOADERS ====================

def load_user_gender(user_id: str) -> str:
    row = postgres.fetch_one(
        "SELECT gender_presentation FROM users WHERE id = %s LIMIT 1",
        (user_id,)
    )
    return resolve_presentation(row.get("gender_presentation") if row else None)


def load_style_profile(user_id: str) -> Optional[StyleProfile]:
    row = postgres.fetch_one(
        """SELECT fit_preferences, fabric_preferences, favorite_colors,
                  disliked_styles, style_preferences, preferred_brands,
                  budget_min, budget_max, body_type, climate,
                  skin_tone, goals, style_notes
           FROM style_profiles WHERE user_id = %s""",
        (user_id,)
    )
    return parse_style_profile_row(row) if row else None


def load_wardrobe(user_id: str, limit: int = 200) -> List[dict]:
    return postgres.fetch_all(
        """SELECT id, name, main_category, subcategory, color, material, fit
           FROM wardrobe_items WHERE user_id = %s
           ORDER BY created_at DESC LIMIT %s""",
        (user_id, limit)
    )


def load_recent_feedback(user_id: str, limit: int = DEFAULT_LIMIT) -> List[dict]:
    return postgres.fetch_all(
        """SELECT rating, notes, created_at FROM outfit_feedback
           WHERE user_id = %s ORDER BY created_at DESC LIMIT %s""",
        (user_id, limit)
    )


def load_upcoming_events(user_id: str, limit: int = DEFAULT_LIMIT) -> List[dict]:
    return postgres.fetch_all(
        """SELECT title, start_date, location, notes FROM user_calendar_events
           WHERE user_id = %s AND start_date >= NOW()
           ORDER BY start_date ASC LIMIT %s""",
        (user_id, limit)
    )


def load_wear_history(user_id: str, limit: int = DEFAULT_LIMIT) -> List[dict]:
    return postgres.fetch_all(
        """SELECT w.name, w.main_category, e.worn_at
           FROM wear_events e JOIN wardrobe_items w ON w.id = e.item_id
           WHERE e.user_id = %s ORDER BY e.worn_at DESC LIMIT %s""",
        (user_id, limit)
    )


def load_saved_looks(user_id: str, limit: int = DEFAULT_LIMIT) -> List[dict]:
    return postgres.fetch_all(
        """SELECT name, tags, created_at FROM saved_looks
           WHERE user_id = %s ORDER BY created_at DESC LIMIT %s""",
        (user_id, limit)
    )


def load_look_memories(user_id: str, limit: int = DEFAULT_LIMIT) -> List[dict]:
    return postgres.fetch_all(
        """SELECT ai_tags, query_used, created_at FROM look_memories
           WHERE user_id = %s ORDER BY created_at DESC LIMIT %s""",
        (user_id, limit)
    )


def load_favorites(user_id: str, limit: int = DEFAULT_LIMIT) -> List[dict]:
    return postgres.fetch_all(
        """SELECT name, created_at FROM outfit_favorites
           WHERE user_id = %s ORDER BY created_at DESC LIMIT %s""",
        (user_id, limit)
    )


def load_scheduled_outfits(user_id: str, limit: int = DEFAULT_LIMIT) -> List[dict]:
    return postgres.fetch_all(
        """SELECT scheduled_for, name FROM scheduled_outfits
           WHERE user_id = %s AND scheduled_for >= NOW()
           ORDER BY scheduled_for ASC LIMIT %s""",
        (user_id, limit)
    )


# ==================== RENDERING ====================

def _join(values: Any) -> str:
    if isinstance(values, (list, tuple)):
        return ", ".join(str(v) for v in values if v)
    return str(values) if values else ""


def format_style_profile(profile: Optional[StyleProfile]) -> str:
    if profile is None:
        return ""

    lines = []
    labels = [
        ("Preferred fits", profile.fit_preferences),
        ("Preferred fabrics", profile.fabric_preferences),
        ("Favorite colors", profile.favorite_colors),
        ("Disliked styles", profile.disliked_styles),
        ("Style preferences", profile.style_preferences),
        ("Preferred brands", profile.preferred_brands),
        ("Body type", profile.body_type),
        ("Climate", profile.climate),
        ("Skin tone", profile.skin_tone),
        ("Goals", profile.goals),
        ("Notes", profile.style_notes),
    ]
    for label, value in labels:
        text = _join(value)
        if text:
            lines.append(f"- {label}: {text}")

    if profile.budget_min is not None or profile.budget_max is not None:
        low = f"${profile.budget_min:.0f}" if profile.budget_min is not None else "any"
        high = f"${profile.budget_max:.0f}" if profile.budget_max is not None else "any"
        lines.append(f"- Budget: {low} to {high}")

    return "\n".join(lines)


def format_wardrobe(items: List[dict], limit: int = 40) -> str:
    lines = []
    for item in items[:limit]:
        desc = " ".join(
            str(item.get(k)) for k in ("color", "material", "fit", "name") if item.get(k)
        )
        category = item.get("main_category") or item.get("category") or "Item"
        lines.append(f"- {category}: {desc or item.get('subcategory') or 'unnamed'}")
    if len(items) > limit:
        lines.append(f"- ...and {len(items) - limit} more")
    return "\n".join(lines)


def format_rows(rows: List[dict], fields: List[str]) -> str:
    lines = []
    for row in rows:
        parts = [_join(row.get(f)) for f in fields]
        parts = [p for p in parts if p]
        if parts:
            lines.append("- " + " | ".join(parts))
    return "\n".join(lines)


def build_context_blocks(user_id: str) -> "OrderedDict[str, str]":
    """
    Query every context source in turn and render non-empty text blocks.

    Args:
        user_id: User to load

    Returns:
        Ordered mapping of block title to text
    """
    blocks: "OrderedDict[str, str]" = OrderedDict()
    wardrobe = load_wardrobe(user_id)

    sources = [
        ("Style profile", lambda: format_style_profile(load_style_profile(user_id))),
        ("Wardrobe", lambda: format_wardrobe(wardrobe)),
        ("Upcoming calendar", lambda: format_rows(load_upcoming_events(user_id), ["start_date", "title", "location", "notes"])),
        ("Recent outfit feedback", lambda: format_rows(load_recent_feedback(user_id), ["rating", "notes"])),
        ("Wear history", lambda: format_rows(load_wear_history(user_id), ["worn_at", "name", "main_category"])),
        ("Saved looks", lambda: format_rows(load_saved_looks(user_id), ["name", "tags"])),
        ("Look memories", lambda: format_rows(load_look_memories(user_id), ["ai_tags", "query_used"])),
        ("Favorite outfits", lambda: format_rows(load_favorites(user_id), ["name"])),
        ("Scheduled outfits", lambda: format_rows(load_scheduled_outfits(user_id), ["scheduled_for", "name"])),
        ("Capsule gaps", lambda: get_wardrobe_gaps(current_season(), wardrobe) if wardrobe else ""),
    ]

    for title, render in sources:
        try:
            text = render()
        except Exception as e:
            logger.warning(f"Context block '{title}' failed for {user_id}: {e}")
            continue
        if text:
            blocks[title] = text

    logger.info(f"Context for {user_id}: {list(blocks.keys())}")
    return blocks


def render_context(blocks: Dict[str, str]) -> str:
    """Join context blocks into one prompt section."""
    return "\n\n".join(f"## {title}\n{text}" for title, text in blocks.items())
