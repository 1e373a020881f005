"""
Tag Enrichment (v1.0.0)
Normalizes free-text style tags, weights them and merges in trend tags.
"""
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional


@dataclass(frozen=True)
class WeightedTag:
    tag: str
    weight: float
    source: str = "user"


STOPWORDS = {
    "outfit", "outfits", "look", "looks", "style", "styles", "fashion",
    "clothing", "clothes", "garment", "person", "people", "photo", "image",
    "picture", "wear", "wearing", "vibe", "modern", "everyday", "tone", "tones",
}

# Garment and material words carry more signal than mood words
TAG_WEIGHTS = {
    # garments
    "blazer": 2.0, "suit": 2.0, "overcoat": 2.0, "trench coat": 2.0,
    "leather jacket": 2.0, "denim jacket": 1.8, "bomber jacket": 1.8,
    "sweater": 1.8, "cardigan": 1.8, "hoodie": 1.8, "shirt": 1.6,
    "oxford shirt": 1.8, "t-shirt": 1.5, "polo": 1.6, "dress": 2.0,
    "skirt": 1.8, "jeans": 1.8, "chinos": 1.8, "trousers": 1.7,
    "cargo pants": 1.7, "shorts": 1.5, "sneakers": 1.6, "loafers": 1.7,
    "boots": 1.7, "chelsea boots": 1.8, "heels": 1.7, "sandals": 1.5,
    # materials
    "leather": 1.5, "denim": 1.5, "wool": 1.4, "cashmere": 1.5,
    "linen": 1.4, "silk": 1.4, "suede": 1.4, "cotton": 1.2, "knit": 1.3,
    # styles
    "streetwear": 1.3, "minimalist": 1.3, "minimal": 1.2, "tailored": 1.3,
    "formal": 1.2, "business casual": 1.3, "smart casual": 1.3,
    "vintage": 1.2, "retro": 1.2, "preppy": 1.2, "bohemian": 1.2,
    "athleisure": 1.2, "workwear": 1.2, "casual": 1.0,
    # colors are useful but secondary
    "black": 1.1, "white": 1.1, "navy": 1.1, "beige": 1.1, "camel": 1.1,
    "olive": 1.1, "charcoal": 1.1, "cream": 1.1, "grey": 1.1, "brown": 1.1,
}

DEFAULT_WEIGHT = 1.0
TREND_WEIGHT = 0.8

_PUNCT = re.compile(r"[^\w\s&-]")
_SPACES = re.compile(r"\s+")


def normalize_tag(tag: str) -> str:
    """Lowercase, strip punctuation except '-' and '&', collapse whitespace."""
    if not isinstance(tag, str):
        return ""
    text = _PUNCT.sub(" ", tag.lower().replace("_", " "))
    text = _SPACES.sub(" ", text).strip(" -")
    return "" if text in STOPWORDS else text


def normalize_tags(tags: Optional[Iterable[str]]) -> List[str]:
    """Normalize a tag list, dropping stopwords and duplicates (first wins)."""
    seen = set()
    result = []
    for tag in tags or []:
        norm = normalize_tag(tag)
        if norm and norm not in seen:
            seen.add(norm)
            result.append(norm)
    return result


def weight_tags(tags: Iterable[str]) -> List[WeightedTag]:
    """Weight normalized tags; sorted by weight descending, stable for ties."""
    weighted = [
        WeightedTag(tag, TAG_WEIGHTS.get(tag, DEFAULT_WEIGHT), "user")
        for tag in normalize_tags(tags)
    ]
    return sorted(weighted, key=lambda w: -w.weight)


def enrich_tags(
    tags: Iterable[str],
    trend_tags: Optional[Iterable[str]] = None,
    max_tags: int = 8,
    max_trend_tags: int = 3
) -> List[WeightedTag]:
    """
    Weighted user tags followed by a few trend tags not already present.

    User tags always come first, so trends only fill free slots.
    """
    enriched = weight_tags(tags)
    present = {w.tag for w in enriched}

    added = 0
    for trend in normalize_tags(trend_tags):
        if added >= max_trend_tags:
            break
        if trend in present:
            continue
        enriched.append(WeightedTag(trend, TREND_WEIGHT, "trend"))
        present.add(trend)
        added += 1

    return enriched[:max_tags]


def compress_tags(tags: Iterable[str], limit: int = 6) -> str:
    """Space-joined query fragment from the first `limit` normalized tags."""
    return " ".join(normalize_tags(tags)[:limit])
