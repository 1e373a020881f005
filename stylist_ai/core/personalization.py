"""
Personalization Enforcement (v1.0.0)
Regex rule engine applied to model-suggested items and product candidates.

Rules come from the user's style profile and free text:
  - color rules: "only navy and grey", "no brown", "never wear pink"
  - fit bans: explicit ("no skinny jeans") and implied by preferred fits
  - climate: hot climates ban heavy materials, cold climates ban light ones
  - gender presentation: search queries are locked to men's / women's

Enforcement runs in a fixed order: gender -> colors -> fit -> climate.
Every rewrite returns a copy, and running it twice changes nothing.
"""
import re
import copy
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple, Any

from stylist_ai.db.context import StyleProfile, resolve_presentation
from stylist_ai.services.images import pick_fallback_image

logger = logging.getLogger(__name__)

TEXT_FIELDS = ("item", "name", "search_query")


def _word(pattern: str) -> str:
    # Hyphenated compounds ("off-white", "button-down") are not split
    return rf"(?<![\w-])(?:{pattern})(?![\w-])"


# ==================== VOCABULARY ====================

COLOR_SYNONYMS = {
    "navy blue": "navy",
    "navy-blue": "navy",
    "gray": "grey",
    "charcoal grey": "charcoal",
    "charcoal gray": "charcoal",
    "off-white": "cream",
    "off white": "cream",
    "ecru": "cream",
    "maroon": "burgundy",
    "wine": "burgundy",
    "sand": "beige",
    "stone": "beige",
    "taupe": "beige",
    "khaki": "khaki",
}

COLORS = (
    "black", "white", "grey", "charcoal", "navy", "blue", "red", "green",
    "olive", "brown", "beige", "tan", "camel", "cream", "ivory", "burgundy",
    "pink", "purple", "yellow", "orange", "khaki", "teal", "gold", "silver",
)

NEUTRALS = ("black", "navy", "grey", "white", "beige", "charcoal", "cream", "camel", "brown", "olive")

_COLOR_TERMS = sorted(set(COLORS) | set(COLOR_SYNONYMS), key=len, reverse=True)
COLOR_RE = re.compile(_word("|".join(re.escape(t) for t in _COLOR_TERMS)), re.IGNORECASE)

FIT_SYNONYMS = {
    "wide leg": "wide-leg",
    "skinny": "skinny",
    "slim": "slim",
    "fitted": "fitted",
    "tailored": "tailored",
    "regular": "regular",
    "straight": "straight",
    "relaxed": "relaxed",
    "loose": "loose",
    "baggy": "baggy",
    "oversized": "oversized",
    "boxy": "boxy",
    "cropped": "cropped",
}

FITS = tuple(sorted(set(FIT_SYNONYMS.values())))

FIT_OPPOSITES = {
    "slim": ("oversized", "baggy", "loose", "boxy"),
    "skinny": ("oversized", "baggy", "loose", "wide-leg"),
    "fitted": ("oversized", "baggy", "boxy"),
    "tailored": ("oversized", "baggy", "boxy"),
    "straight": ("skinny",),
    "relaxed": ("skinny",),
    "loose": ("skinny", "slim"),
    "baggy": ("skinny", "slim"),
    "oversized": ("skinny", "slim"),
    "wide-leg": ("skinny",),
}

_FIT_TERMS = sorted(set(FIT_SYNONYMS) | {"wide-leg"}, key=len, reverse=True)
# "slim fit", "slim-fit" and "slim" are the same fit word
FIT_RE = re.compile(
    _word(rf"(?:{'|'.join(re.escape(t) for t in _FIT_TERMS)})(?:[- ]fit)?"),
    re.IGNORECASE
)

HEAVY_MATERIALS = {
    "wool": "lightweight cotton",
    "cashmere": "cotton",
    "fleece": "cotton jersey",
    "down": "lightweight nylon",
    "shearling": "cotton twill",
    "flannel": "chambray",
    "tweed": "linen",
    "corduroy": "cotton twill",
    "velvet": "silk",
}

LIGHT_MATERIALS = {
    "linen": "wool",
    "seersucker": "flannel",
    "mesh": "knit",
    "chiffon": "crepe",
}

MATERIAL_PATTERNS = {
    # "button down" is a collar style, not insulation
    "down": _word(r"(?<!button )down"),
}

HOT_WORDS = ("hot", "tropical", "humid", "desert", "arid", "warm", "equatorial")
COLD_WORDS = ("cold", "snow", "snowy", "freezing", "arctic", "chilly", "nordic", "subarctic", "frigid")
TEMPERATE_WORDS = ("temperate", "mild", "moderate", "mediterranean", "oceanic", "four seasons")

ONLY_RE = re.compile(r"\b(?:only|just|exclusively|nothing but)\b", re.IGNORECASE)
NEGATIVE_RE = re.compile(
    r"\b(?:no|not|never|except|avoid|without|hate|dislike|don'?t like|don'?t wear|do not like|do not wear)\b",
    re.IGNORECASE
)
SENTENCE_SPLIT = re.compile(r"[.;!?\n]+")
# A positive verb or a contrast ends the reach of the preceding keyword;
# commas do not, so "only navy, grey and white" stays one list
CLAUSE_BREAK_RE = re.compile(
    r"\b(?:but|however|though|although|whereas|and i|love|loves|adore|prefer|prefers|enjoy|want|favou?r)\b"
    r"|(?<!n't )(?<!dont )(?<!not )\blikes?\b",
    re.IGNORECASE
)

FEMININE_SIGNAL = re.compile(r"(?<![a-z])(?:women'?s?|womens|woman|female|ladies|lady|girls?|femme|womenswear)(?![a-z])")
MASCULINE_SIGNAL = re.compile(r"(?<![a-z])(?:men'?s?|mens|man|male|boys?|homme|menswear)(?![a-z])")

GENDER_TOKEN_RE = re.compile(
    _word(
        r"for (?:men|women)|men'?s|mens|man'?s|women'?s|womens|woman'?s|"
        r"male|female|ladies'?|lady'?s|unisex|men|women|man|woman|boys'?|girls'?|guys'?"
    ),
    re.IGNORECASE
)


# ==================== RULE TYPES ====================

@dataclass(frozen=True)
class ColorRule:
    only: Tuple[str, ...] = ()
    excluded: Tuple[str, ...] = ()

    def is_allowed(self, color: str) -> bool:
        if color in self.excluded:
            return False
        if self.only and color not in self.only:
            return False
        return True

    def replacement(self) -> Optional[str]:
        """Color used in place of a disallowed one."""
        if self.only:
            return self.only[0]
        for neutral in NEUTRALS:
            if neutral not in self.excluded:
                return neutral
        return None

    @property
    def active(self) -> bool:
        return bool(self.only or self.excluded)


@dataclass(frozen=True)
class PersonalizationRules:
    gender: str = "mixed"
    colors: ColorRule = field(default_factory=ColorRule)
    banned_fits: Tuple[str, ...] = ()
    preferred_fit: Optional[str] = None
    climate: Optional[str] = None

    @property
    def banned_materials(self) -> Dict[str, str]:
        if self.climate == "hot":
            return HEAVY_MATERIALS
        if self.climate == "cold":
            return LIGHT_MATERIALS
        return {}

    def summary(self) -> Dict[str, Any]:
        return {
            "gender": self.gender,
            "only_colors": list(self.colors.only),
            "excluded_colors": list(self.colors.excluded),
            "banned_fits": list(self.banned_fits),
            "preferred_fit": self.preferred_fit,
            "climate": self.climate,
            "banned_materials": sorted(self.banned_materials),
        }


# ==================== PARSING ====================

def canonical_color(term: str) -> str:
    term = term.lower()
    return COLOR_SYNONYMS.get(term, term)


def canonical_fit(term: str) -> str:
    term = re.sub(r"[- ]fit$", "", term.lower().strip())
    return FIT_SYNONYMS.get(term, term)


def _clause_terms(texts: Iterable[Optional[str]], term_re, canonical) -> Tuple[List[str], List[str]]:
    """
    Collect (only, negated) terms.

    Each term is governed by the nearest preceding "only" or negative
    keyword in the same sentence. A contrast word or a positive verb
    ("but", "love", "prefer") ends that keyword's reach, and terms with no
    keyword in reach are ignored.
    """
    only: List[str] = []
    negated: List[str] = []

    for text in texts:
        if not text:
            continue
        for sentence in SENTENCE_SPLIT.split(text):
            keywords = [(m.start(), m.end(), "only") for m in ONLY_RE.finditer(sentence)]
            keywords += [(m.start(), m.end(), "neg") for m in NEGATIVE_RE.finditer(sentence)]
            if not keywords:
                continue

            markers = [(start, kind) for start, _, kind in keywords]
            for m in CLAUSE_BREAK_RE.finditer(sentence):
                # "nothing but" is itself a keyword
                if not any(start <= m.start() < end for start, end, _ in keywords):
                    markers.append((m.start(), None))
            markers.sort(key=lambda marker: marker[0])

            for match in term_re.finditer(sentence):
                governing = None
                for pos, kind in markers:
                    if pos < match.start():
                        governing = kind
                    else:
                        break
                if governing is None:
                    continue
                value = canonical(match.group(0))
                target = only if governing == "only" else negated
                if value not in target:
                    target.append(value)

    return only, negated


def parse_color_rules(*texts: Optional[str]) -> ColorRule:
    """
    Extract "only" and excluded colors from free text.

    A color that is both only-listed and excluded is excluded.
    """
    only, excluded = _clause_terms(texts, COLOR_RE, canonical_color)
    only = [c for c in only if c not in excluded]
    return ColorRule(only=tuple(only), excluded=tuple(excluded))


def parse_fit_bans(fit_preferences: Optional[Iterable[str]], *texts: Optional[str]) -> Tuple[str, ...]:
    """
    Fits the user should not be shown.

    Explicit bans come from negative clauses in the texts; each preferred
    fit also bans its opposites unless the opposite is itself preferred.
    """
    preferred = []
    for pref in fit_preferences or []:
        for match in FIT_RE.finditer(pref or ""):
            fit = canonical_fit(match.group(0))
            if fit not in preferred:
                preferred.append(fit)

    _, explicit = _clause_terms(texts, FIT_RE, canonical_fit)

    banned = list(explicit)
    for fit in preferred:
        for opposite in FIT_OPPOSITES.get(fit, ()):
            if opposite not in preferred and opposite not in banned:
                banned.append(opposite)
    return tuple(banned)


def _mentions_any(words: Iterable[str], text: str) -> bool:
    return any(re.search(rf"(?<!not )(?<!never )(?<!rarely )\b{w}\b", text) for w in words)


def classify_climate(climate: Optional[str]) -> Optional[str]:
    """
    Map free-text climate to "hot", "cold", "temperate" or None.

    Negated words ("not hot") are ignored; a climate with both hot and cold
    seasons is temperate.
    """
    text = (climate or "").lower()
    if not text.strip():
        return None
    hot = _mentions_any(HOT_WORDS, text)
    cold = _mentions_any(COLD_WORDS, text)
    if hot and cold:
        return "temperate"
    if hot:
        return "hot"
    if cold:
        return "cold"
    if _mentions_any(TEMPERATE_WORDS, text):
        return "temperate"
    return None


def build_rules(
    profile: Optional[StyleProfile],
    gender: Optional[str],
    extra_texts: Iterable[Optional[str]] = ()
) -> PersonalizationRules:
    """Assemble the rule set for one user."""
    profile = profile or StyleProfile()
    texts = list(profile.free_text())
    texts += [f"avoid {style}" for style in profile.disliked_styles]
    texts += [t for t in extra_texts if t]

    banned_fits = parse_fit_bans(profile.fit_preferences, *texts)
    preferred_fit = None
    for pref in profile.fit_preferences:
        match = FIT_RE.search(pref or "")
        if match and canonical_fit(match.group(0)) not in banned_fits:
            preferred_fit = canonical_fit(match.group(0))
            break

    return PersonalizationRules(
        gender=resolve_presentation(gender) if gender else "mixed",
        colors=parse_color_rules(*texts),
        banned_fits=banned_fits,
        preferred_fit=preferred_fit,
        climate=classify_climate(profile.climate),
    )


# ==================== ITEM REWRITES ====================

def _tidy(text: str) -> str:
    text = re.sub(r"\s+", " ", text).strip()
    return re.sub(r"\s+([,.])", r"\1", text)


def _mark(item: dict, rule: str):
    enforced = item.setdefault("enforced", [])
    if rule not in enforced:
        enforced.append(rule)


def lock_gender(query: Optional[str], gender: Optional[str]) -> str:
    """
    Strip gendered words from a search query and prefix exactly one of
    men's / women's. Mixed or unknown presentation leaves the query as is.
    """
    text = _tidy(query or "")
    presentation = resolve_presentation(gender) if gender else "mixed"
    if presentation == "mixed":
        return text

    stripped = _tidy(GENDER_TOKEN_RE.sub(" ", text))
    prefix = "men's" if presentation == "masculine" else "women's"
    return f"{prefix} {stripped}".strip()


def _rewrite_colors(text: str, rule: ColorRule) -> str:
    replacement = rule.replacement()

    def swap(match):
        if rule.is_allowed(canonical_color(match.group(0))):
            return match.group(0)
        return replacement or ""

    return _tidy(COLOR_RE.sub(swap, text))


def enforce_colors(item: dict, rule: ColorRule) -> dict:
    """Replace colors the rule disallows in the color field and item text."""
    result = copy.deepcopy(item)
    if not rule.active:
        return result

    changed = False
    for key in ("color",) + TEXT_FIELDS:
        value = result.get(key)
        if isinstance(value, str) and value:
            new_value = _rewrite_colors(value, rule)
            if new_value != _tidy(value):
                result[key] = new_value
                changed = True

    if changed:
        _mark(result, "color")
    return result


def enforce_fit(item: dict, rules: PersonalizationRules) -> dict:
    """Remove banned fit words from text; replace a banned fit field."""
    result = copy.deepcopy(item)
    if not rules.banned_fits:
        return result

    changed = False

    def drop(match):
        return "" if canonical_fit(match.group(0)) in rules.banned_fits else match.group(0)

    for key in TEXT_FIELDS:
        value = result.get(key)
        if isinstance(value, str) and value:
            new_value = _tidy(FIT_RE.sub(drop, value))
            if new_value != _tidy(value):
                result[key] = new_value
                changed = True

    fit = result.get("fit")
    if isinstance(fit, str) and fit:
        match = FIT_RE.search(fit)
        if match and canonical_fit(match.group(0)) in rules.banned_fits:
            result["fit"] = rules.preferred_fit or "regular"
            changed = True

    if changed:
        _mark(result, "fit")
    return result


def _material_re(material: str):
    return re.compile(MATERIAL_PATTERNS.get(material, _word(re.escape(material))), re.IGNORECASE)


def patch_climate(item: dict, rules: PersonalizationRules) -> dict:
    """Swap materials that do not suit the user's climate."""
    result = copy.deepcopy(item)
    banned = rules.banned_materials
    if not banned:
        return result

    changed = False
    for key in ("material",) + TEXT_FIELDS:
        value = result.get(key)
        if not isinstance(value, str) or not value:
            continue
        new_value = value
        for material, replacement in banned.items():
            new_value = _material_re(material).sub(replacement, new_value)
        new_value = _tidy(new_value)
        if new_value != _tidy(value):
            result[key] = new_value
            changed = True

    if changed:
        _mark(result, "climate")
    return result


def _opposite_signal(text: str, gender: str) -> bool:
    text = (text or "").lower()
    if gender == "masculine":
        return bool(FEMININE_SIGNAL.search(text))
    if gender == "feminine":
        return bool(MASCULINE_SIGNAL.search(text))
    return False


def _product_text(product: Any) -> str:
    if product is None:
        return ""
    if not isinstance(product, dict):
        product = getattr(product, "to_dict", lambda: {})()
    return " ".join(
        str(product.get(k) or "") for k in ("name", "title", "shop_url", "link", "image")
    )


def guard_image_gender(item: dict, gender: Optional[str]) -> dict:
    """Replace an item image whose product or URL signals the opposite gender."""
    result = copy.deepcopy(item)
    presentation = resolve_presentation(gender) if gender else "mixed"
    if presentation == "mixed":
        return result

    signal_text = f"{_product_text(result.get('product'))} {result.get('image') or ''}"
    if _opposite_signal(signal_text, presentation):
        category = result.get("category") or result.get("item") or result.get("name")
        result["image"] = pick_fallback_image(category, presentation)
        result["image_replaced"] = True
        _mark(result, "image_gender")
    return result


def _mentions_banned(text: str, rules: PersonalizationRules) -> Optional[str]:
    for match in COLOR_RE.finditer(text):
        if canonical_color(match.group(0)) in rules.colors.excluded:
            return f"color:{canonical_color(match.group(0))}"
    for match in FIT_RE.finditer(text):
        if canonical_fit(match.group(0)) in rules.banned_fits:
            return f"fit:{canonical_fit(match.group(0))}"
    for material in rules.banned_materials:
        if _material_re(material).search(text):
            return f"material:{material}"
    if _opposite_signal(text, rules.gender):
        return "gender"
    return None


def filter_products(products: Iterable[Any], rules: PersonalizationRules) -> List[Any]:
    """Drop product candidates that break any rule. Order is preserved."""
    kept = []
    for product in products or []:
        reason = _mentions_banned(_product_text(product), rules)
        if reason:
            logger.debug(f"Filtered product ({reason}): {_product_text(product)[:60]}")
            continue
        kept.append(product)
    return kept


def ensure_search_query(item: dict) -> dict:
    """Fill a missing search_query from the item's color, fit and name."""
    result = copy.deepcopy(item)
    if not (isinstance(result.get("search_query"), str) and result["search_query"].strip()):
        base = result.get("item") or result.get("name") or result.get("category") or ""
        base = base if isinstance(base, str) else ""
        parts = []
        for key in ("color", "fit", "material"):
            value = result.get(key)
            # "navy blazer" with color "navy" stays "navy blazer"
            if isinstance(value, str) and value.strip() and not re.search(
                    _word(re.escape(value.strip())), base, re.IGNORECASE):
                parts.append(value)
        parts.append(base)
        result["search_query"] = _tidy(" ".join(p for p in parts if p))
    return result


def apply_personalization(items: Iterable[dict], rules: PersonalizationRules) -> List[dict]:
    """
    Run the full enforcement sequence over a list of items.

    Order: gender lock -> colors -> fit -> climate. The input list and its
    dicts are left untouched.
    """
    output = []
    for original in items or []:
        if not isinstance(original, dict):
            continue
        item = ensure_search_query(original)

        locked = lock_gender(item.get("search_query"), rules.gender)
        if locked != _tidy(item.get("search_query") or ""):
            item["search_query"] = locked
            _mark(item, "gender")

        item = enforce_colors(item, rules.colors)
        item = enforce_fit(item, rules)
        item = patch_climate(item, rules)
        output.append(item)
    return output
