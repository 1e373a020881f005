"""
JSON Parsing Helpers (v1.0.0)
Tolerant parsing of model output that should be JSON.
"""
import json
import logging
from typing import Any, List

logger = logging.getLogger(__name__)


def _strip_fences(text: str) -> str:
    """Remove markdown code fences around a JSON payload."""
    if "```json" in text:
        return text.split("```json", 1)[1].split("```", 1)[0]
    if text.count("```") >= 2:
        return text.split("```", 2)[1]
    return text


def _outermost_slice(text: str) -> str:
    """Return the widest {...} or [...] span in the text, or ''."""
    candidates = []
    for open_ch, close_ch in (("{", "}"), ("[", "]")):
        start = text.find(open_ch)
        end = text.rfind(close_ch)
        if start != -1 and end > start:
            candidates.append((start, text[start:end + 1]))
    if not candidates:
        return ""
    # Whichever opens first is the outer structure
    candidates.sort(key=lambda c: c[0])
    return candidates[0][1]


def parse_json_response(text: str) -> Any:
    """
    Parse JSON from raw model text.

    Handles markdown code blocks and leading/trailing chatter.

    Raises:
        ValueError: If no JSON value can be recovered
    """
    if text is None:
        raise ValueError("Empty model response")

    cleaned = _strip_fences(text.strip()).strip()
    if not cleaned:
        raise ValueError("Empty model response")

    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        pass

    sliced = _outermost_slice(cleaned)
    if sliced:
        try:
            return json.loads(sliced)
        except json.JSONDecodeError as e:
            logger.debug(f"Outer JSON slice failed to parse: {e}")

    raise ValueError(f"Could not parse JSON from model response: {cleaned[:120]!r}")


def extract_tag_list(data: Any) -> List[str]:
    """
    Pull a list of tag strings out of a parsed model response.

    Accepts {"tags": [...]}, a bare list, or comma-separated strings
    anywhere in those shapes.
    """
    if isinstance(data, dict):
        for key in ("tags", "keywords", "labels"):
            if key in data:
                data = data[key]
                break
        else:
            return []

    if isinstance(data, str):
        data = [data]

    if not isinstance(data, list):
        return []

    tags: List[str] = []
    for entry in data:
        if isinstance(entry, str):
            tags.extend(part.strip() for part in entry.split(",") if part.strip())
        elif isinstance(entry, dict):
            value = entry.get("tag") or entry.get("name")
            if isinstance(value, str) and value.strip():
                tags.append(value.strip())
    return tags
