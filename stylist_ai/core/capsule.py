"""
Seasonal Capsule Heuristic (v1.0.0)
Maps months to seasons and reports wardrobe gaps against fixed capsule templates.
"""
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Iterable


@dataclass(frozen=True)
class CapsuleItem:
    category: str
    subcategory: str
    recommended: int


@dataclass(frozen=True)
class CapsuleTemplate:
    season: str
    core: List[CapsuleItem]
    notes: List[str] = field(default_factory=list)


SEASONS = ("Spring", "Summer", "Fall", "Winter")

TEMPLATES: Dict[str, CapsuleTemplate] = {
    "Spring": CapsuleTemplate(
        season="Spring",
        core=[
            CapsuleItem("Outerwear", "Light Jacket", 2),
            CapsuleItem("Tops", "Oxford Shirt", 3),
            CapsuleItem("Bottoms", "Chinos", 2),
            CapsuleItem("Shoes", "Loafers", 1),
            CapsuleItem("Shoes", "Sneakers", 1),
        ],
        notes=[
            "Layering versatility is key as temperatures fluctuate.",
            "Lightweight fabrics like cotton and linen excel in this season.",
        ],
    ),
    "Summer": CapsuleTemplate(
        season="Summer",
        core=[
            CapsuleItem("Tops", "Short Sleeve Shirt", 4),
            CapsuleItem("Tops", "Polo Shirt", 2),
            CapsuleItem("Bottoms", "Linen Trousers", 2),
            CapsuleItem("Shoes", "Loafers", 1),
            CapsuleItem("Shoes", "Sandals", 1),
        ],
        notes=[
            "Breathable materials like linen and cotton are essential.",
            "Aim for relaxed fits and ventilation.",
        ],
    ),
    "Fall": CapsuleTemplate(
        season="Fall",
        core=[
            CapsuleItem("Outerwear", "Field Jacket", 1),
            CapsuleItem("Outerwear", "Blazer", 1),
            CapsuleItem("Tops", "Knit Sweater", 2),
            CapsuleItem("Bottoms", "Wool Trousers", 2),
            CapsuleItem("Shoes", "Chelsea Boots", 1),
        ],
        notes=[
            "Focus on transitional fabrics like brushed cotton and merino.",
            "Earth tones and textured layers add depth.",
        ],
    ),
    "Winter": CapsuleTemplate(
        season="Winter",
        core=[
            CapsuleItem("Outerwear", "Overcoat", 1),
            CapsuleItem("Outerwear", "Heavy Parka", 1),
            CapsuleItem("Tops", "Heavy Knit Sweater", 2),
            CapsuleItem("Bottoms", "Wool Trousers", 2),
            CapsuleItem("Shoes", "Boots", 2),
        ],
        notes=[
            "Insulation and weather resistance matter most.",
            "Layer strategically with thermal underlayers.",
        ],
    ),
}


def season_for_month(month: int) -> str:
    """
    Map a calendar month (1-12) to a northern-hemisphere season.

    Raises:
        ValueError: If month is outside 1-12
    """
    if not isinstance(month, int) or month < 1 or month > 12:
        raise ValueError(f"Invalid month: {month}")
    if month in (12, 1, 2):
        return "Winter"
    if month <= 5:
        return "Spring"
    if month <= 8:
        return "Summer"
    return "Fall"


def current_season(today: Optional[date] = None) -> str:
    return season_for_month((today or date.today()).month)


def get_template(season: str) -> CapsuleTemplate:
    """
    Get the capsule template for a season (case-insensitive).

    Raises:
        ValueError: If the season is unknown
    """
    key = (season or "").strip().capitalize()
    if key == "Autumn":
        key = "Fall"
    template = TEMPLATES.get(key)
    if template is None:
        raise ValueError(f"No capsule template found for {season}")
    return template


def _field(item: dict, *names: str) -> str:
    for name in names:
        value = item.get(name)
        if isinstance(value, str) and value:
            return value.strip().lower()
    return ""


def find_missing_items(season: str, wardrobe: Iterable[dict]) -> List[Dict[str, object]]:
    """
    Diff a wardrobe against the season's template.

    Returns:
        [{"category", "subcategory", "needed"}] for each short template line
    """
    template = get_template(season)
    owned = [
        (_field(w, "category", "main_category"), _field(w, "subcategory"))
        for w in wardrobe
        if isinstance(w, dict)
    ]

    missing = []
    for item in template.core:
        key = (item.category.lower(), item.subcategory.lower())
        count = sum(1 for pair in owned if pair == key)
        if count < item.recommended:
            missing.append({
                "category": item.category,
                "subcategory": item.subcategory,
                "needed": item.recommended - count,
            })
    return missing


def get_wardrobe_gaps(season: str, wardrobe: Iterable[dict]) -> str:
    """
    Textual gap report for a season.

    Example:
        "For Winter, you're missing: 1 × Overcoat, 2 × Boots."
    """
    template = get_template(season)
    missing = find_missing_items(template.season, wardrobe)

    if not missing:
        return f"Your {template.season} capsule is complete."

    parts = [f"{m['needed']} × {m['subcategory']}" for m in missing]
    return f"For {template.season}, you're missing: {', '.join(parts)}."
