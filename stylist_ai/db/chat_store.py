"""
Chat Store (v1.0.0)
Persists chat messages and long-term memory summaries in PostgreSQL.
"""
import logging
from typing import Optional, List, Dict

from stylist_ai.db import postgres

logger = logging.getLogger(__name__)

VALID_ROLES = ("user", "assistant", "system")


def save_message(user_id: str, role: str, content: str) -> bool:
    """Insert one chat message. Returns True on success."""
    if role not in VALID_ROLES:
        logger.warning(f"Refusing to save message with role {role!r}")
        return False
    return postgres.execute(
        "INSERT INTO chat_messages (user_id, role, content, created_at) VALUES (%s, %s, %s, NOW())",
        (user_id, role, content)
    )


def get_recent_messages(user_id: str, limit: int = 20) -> List[Dict[str, str]]:
    """
    Get a user's latest messages in chronological order.

    Returns:
        [{"role", "content"}], oldest first
    """
    rows = postgres.fetch_all(
        """SELECT role, content FROM chat_messages
           WHERE user_id = %s ORDER BY created_at DESC LIMIT %s""",
        (user_id, limit)
    )
    return [
        {"role": row["role"], "content": row["content"]}
        for row in reversed(rows)
        if row.get("role") in VALID_ROLES and row.get("content")
    ]


def get_memory_summary(user_id: str) -> Optional[str]:
    row = postgres.fetch_one(
        "SELECT summary FROM chat_memory WHERE user_id = %s",
        (user_id,)
    )
    return row.get("summary") if row else None


def upsert_memory_summary(user_id: str, summary: str) -> bool:
    return postgres.execute(
        """INSERT INTO chat_memory (user_id, summary, updated_at)
           VALUES (%s, %s, NOW())
           ON CONFLICT (user_id)
           DO UPDATE SET summary = EXCLUDED.summary, updated_at = NOW()""",
        (user_id, summary)
    )


def delete_memory_summary(user_id: str) -> bool:
    return postgres.execute(
        "DELETE FROM chat_memory WHERE user_id = %s",
        (user_id,)
    )
