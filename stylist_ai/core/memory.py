"""
Long-term Memory (v1.0.0)
Per-user conversation digest: Redis first, PostgreSQL as the durable copy.
"""
import asyncio
import logging
from typing import Optional

from stylist_ai.cache.memory_store import get_memory_store
from stylist_ai.config import LLMRole, get_settings
from stylist_ai.core.prompts import SUMMARIZER_SYSTEM_PROMPT, build_summary_prompt
from stylist_ai.db import chat_store
from stylist_ai.llm.router import complete_text

logger = logging.getLogger(__name__)


async def load_memory(user_id: str) -> Optional[str]:
    """
    Get a user's memory summary.

    Redis is checked first; a Postgres hit is written back to Redis.
    """
    store = get_memory_store()
    cached = await asyncio.to_thread(store.get, user_id)
    if cached:
        return cached

    summary = await asyncio.to_thread(chat_store.get_memory_summary, user_id)
    if summary:
        await asyncio.to_thread(store.set, user_id, summary)
        logger.info(f"Memory back-filled to Redis for {user_id}")
    return summary


async def refresh_memory(user_id: str) -> Optional[str]:
    """
    Re-summarize recent messages into the long-term memory.

    Never raises; failures are logged and None is returned.
    """
    try:
        limit = get_settings().chat_history_limit
        messages = await asyncio.to_thread(chat_store.get_recent_messages, user_id, limit)
        if not messages:
            return None

        previous = await load_memory(user_id)
        result = await complete_text(
            SUMMARIZER_SYSTEM_PROMPT,
            build_summary_prompt(previous, messages),
            role=LLMRole.SUMMARIZER
        )
        summary = (result.text or "").strip()
        if not summary:
            logger.warning(f"Summarizer returned nothing for {user_id}")
            return None

        await asyncio.to_thread(chat_store.upsert_memory_summary, user_id, summary)
        await asyncio.to_thread(get_memory_store().set, user_id, summary)
        logger.info(f"Memory refreshed for {user_id} ({len(summary)} chars)")
        return summary
    except Exception as e:
        logger.error(f"Memory refresh failed for {user_id}: {e}")
        return None


async def forget_memory(user_id: str) -> bool:
    """Delete a user's memory from Redis and PostgreSQL."""
    cache_removed = await asyncio.to_thread(get_memory_store().delete, user_id)
    db_removed = await asyncio.to_thread(chat_store.delete_memory_summary, user_id)
    return cache_removed or db_removed
