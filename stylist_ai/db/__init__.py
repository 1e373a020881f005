# Database module
from stylist_ai.db.postgres import (
    connect,
    fetch_all,
    fetch_one,
    execute,
    health_check,
    close,
)
from stylist_ai.db.context import (
    StyleProfile,
    parse_style_profile_row,
    resolve_presentation,
    load_user_gender,
    load_style_profile,
    load_wardrobe,
    build_context_blocks,
    render_context,
)
from stylist_ai.db.chat_store import (
    save_message,
    get_recent_messages,
    get_memory_summary,
    upsert_memory_summary,
)
