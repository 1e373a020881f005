"""
Chat Flow (v1.0.0)
Context-aware stylist chat with persistent history and long-term memory.
"""
import re
import time
import asyncio
import logging
from typing import Dict, Any, List, Optional, Set

from stylist_ai.config import get_settings
from stylist_ai.core.errors import StylistError
from stylist_ai.core.memory import load_memory, refresh_memory
from stylist_ai.core.prompts import build_chat_system_prompt
from stylist_ai.db import chat_store
from stylist_ai.db.context import build_context_blocks, render_context
from stylist_ai.llm.router import complete_chat
from stylist_ai.observability import record_operation
from stylist_ai.services.images import search_image

logger = logging.getLogger(__name__)

EMPTY_REPLY = "Styled response unavailable."
MAX_SEARCH_TERMS = 3

_COLOR_WORDS = (
    "black|white|grey|gray|charcoal|navy|blue|red|green|olive|brown|beige|tan|camel|"
    "cream|ivory|burgundy|pink|purple|yellow|orange|khaki"
)
_MATERIAL_WORDS = "wool|cashmere|linen|cotton|denim|leather|suede|silk|corduroy|tweed|knit|velvet|flannel"
_GARMENT_WORDS = (
    "blazer|suit|shirt|t-shirt|tee|polo|sweater|cardigan|hoodie|jacket|coat|overcoat|trench coat|parka|"
    "jeans|chinos|trousers|pants|shorts|skirt|dress|sneakers|loafers|boots|chelsea boots|heels|sandals|"
    "scarf|belt|bag|tote|watch"
)

# Optional color, optional material, then a garment
SEARCH_TERM_RE = re.compile(
    rf"\b(?:(?:{_COLOR_WORDS})\s+)?(?:(?:{_MATERIAL_WORDS})\s+)?(?:{_GARMENT_WORDS})s?\b",
    re.IGNORECASE
)

# Background memory refreshes; references are held until each task finishes
_background_tasks: Set[asyncio.Task] = set()


def extract_search_terms(reply: str, limit: int = MAX_SEARCH_TERMS) -> List[str]:
    """
    Pull shoppable phrases ("navy wool overcoat") out of a reply.

    Phrases with a color or material come first; bare garments fill the rest.
    """
    qualified, bare = [], []
    seen = set()
    for match in SEARCH_TERM_RE.finditer(reply or ""):
        term = re.sub(r"\s+", " ", match.group(0).lower()).strip()
        if term in seen:
            continue
        seen.add(term)
        (qualified if " " in term else bare).append(term)
    return (qualified + bare)[:limit]


def _last_user_message(messages: List[Dict[str, str]]) -> Optional[str]:
    for message in reversed(messages or []):
        if message.get("role") == "user" and (message.get("content") or "").strip():
            return message["content"].strip()
    return None


def schedule_memory_refresh(user_id: str) -> asyncio.Task:
    task = asyncio.create_task(refresh_memory(user_id))
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)
    return task


async def chat(user_id: Optional[str], messages: List[Dict[str, str]]) -> Dict[str, Any]:
    """
    Answer the latest user message.

    Args:
        user_id: Requesting user (history, memory and context need it)
        messages: Conversation so far, [{"role", "content"}]

    Returns:
        {"reply", "search_terms", "images", "provider"}

    Raises:
        StylistError: 400 without a user message
        LLMUnavailableError: No LLM provider configured
    """
    last_message = _last_user_message(messages)
    if not last_message:
        raise StylistError("No user message provided", status_code=400)

    started = time.monotonic()
    settings = get_settings()

    memory = None
    context_text = ""
    history = [
        {"role": m["role"], "content": m["content"]}
        for m in messages
        if m.get("role") in ("user", "assistant") and m.get("content")
    ]

    if user_id:
        await asyncio.to_thread(chat_store.save_message, user_id, "user", last_message)
        memory = await load_memory(user_id)
        blocks = await asyncio.to_thread(build_context_blocks, user_id)
        context_text = render_context(blocks)

        stored = await asyncio.to_thread(chat_store.get_recent_messages, user_id, settings.chat_history_limit)
        # History must end with the message being answered
        if stored and stored[-1]["role"] == "user" and stored[-1]["content"] == last_message:
            history = stored

    try:
        result = await complete_chat(build_chat_system_prompt(memory, context_text), history)
    except Exception as e:
        record_operation("chat", started, None, status="fail", user_id=user_id, error=str(e))
        raise

    reply = (result.text or "").strip() or EMPTY_REPLY

    if user_id:
        await asyncio.to_thread(chat_store.save_message, user_id, "assistant", reply)

    terms = extract_search_terms(reply) if reply != EMPTY_REPLY else []
    found = await asyncio.gather(*[search_image(term) for term in terms])
    images = [image for image in found if image]

    if user_id:
        schedule_memory_refresh(user_id)

    record_operation("chat", started, result.provider, user_id=user_id, fallback_used=result.fallback_used)
    return {
        "reply": reply,
        "search_terms": terms,
        "images": images,
        "provider": result.provider,
    }
