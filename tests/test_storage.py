"""
Tests for the Redis memory store, context loaders, chat store and memory flow.
"""
import asyncio
from decimal import Decimal
from unittest.mock import patch, MagicMock, AsyncMock

import redis

from stylist_ai.cache import MemoryStore, cache_manager, get_cache_key, memory_key
from stylist_ai.cache.cache_store import CacheStore
from stylist_ai.core.memory import forget_memory, load_memory, refresh_memory
from stylist_ai.db import chat_store, context
from stylist_ai.llm.router import LLMResult


class TestMemoryStore:

    def test_get_and_set(self):
        client = MagicMock()
        client.get.return_value = b"Prefers navy"
        store = MemoryStore(client=client, ttl_seconds=120)

        assert store.get("u1") == "Prefers navy"
        client.get.assert_called_once_with("stylist:memory:u1")

        assert store.set("u1", "Likes loafers") is True
        client.setex.assert_called_once_with(memory_key("u1"), 120, "Likes loafers")

    def test_redis_errors_fail_open(self):
        client = MagicMock()
        client.get.side_effect = redis.ConnectionError("refused")
        client.setex.side_effect = redis.ConnectionError("refused")
        client.delete.side_effect = redis.ConnectionError("refused")
        client.ping.side_effect = redis.ConnectionError("refused")
        store = MemoryStore(client=client)

        assert store.get("u1") is None
        assert store.set("u1", "x") is False
        assert store.delete("u1") is False
        assert store.ping() is False


class TestCache:

    def test_cache_key_is_order_independent(self):
        assert get_cache_key("products", q="jeans", limit=6) == get_cache_key("products", limit=6, q="jeans")
        assert get_cache_key("products", q="jeans").startswith("products:")

    def test_manager_roundtrip(self):
        cache_manager.set("k", [1, 2])
        assert cache_manager.get("k") == [1, 2]
        cache_manager.clear()
        assert cache_manager.get("k") is None

    def test_store_expiry_and_capacity(self):
        store = CacheStore(ttl_minutes=1, max_entries=2)
        with patch("stylist_ai.cache.cache_store.time.monotonic", return_value=1000.0):
            store.set("a", 1)
            store.set("b", 2)
            store.set("c", 3)
        with patch("stylist_ai.cache.cache_store.time.monotonic", return_value=1030.0):
            assert store.get("a") is None
            assert store.get("c") == 3
        with patch("stylist_ai.cache.cache_store.time.monotonic", return_value=1100.0):
            assert store.get("c") is None
            assert store.clear_expired() == 1
        assert store.get_stats()["entries"] == 0


class TestContextLoaders:

    def test_parse_profile_row_drops_bad_values(self):
        profile = context.parse_style_profile_row({
            "fit_preferences": ["slim", 3, None],
            "favorite_colors": "navy",
            "budget_min": Decimal("50"),
            "budget_max": True,
            "climate": "  ",
            "goals": "Look sharp",
        })
        assert profile.fit_preferences == ["slim"]
        assert profile.favorite_colors == []
        assert profile.budget_min == 50.0
        assert profile.budget_max is None
        assert profile.climate is None
        assert profile.free_text() == ["Look sharp"]

    def test_resolve_presentation(self):
        assert context.resolve_presentation("Female") == "feminine"
        assert context.resolve_presentation("male") == "masculine"
        assert context.resolve_presentation("M") == "masculine"
        assert context.resolve_presentation("womens") == "feminine"
        assert context.resolve_presentation("non-binary") == "mixed"
        assert context.resolve_presentation(None) == "mixed"

    def test_load_user_gender(self):
        with patch("stylist_ai.db.postgres.fetch_one", return_value={"gender_presentation": "woman"}) as fetch:
            assert context.load_user_gender("u1") == "feminine"
        assert fetch.call_args.args[1] == ("u1",)

    def test_missing_database_fails_open(self):
        assert context.load_style_profile("u1") is None
        assert context.load_wardrobe("u1") == []

    def test_context_blocks_order_and_isolation(self):
        wardrobe = [{"main_category": "Shoes", "subcategory": "Boots", "name": "Chelsea boots", "color": "black"}]
        profile = context.StyleProfile(favorite_colors=["navy"], climate="cold")

        with patch.object(context, "load_wardrobe", return_value=wardrobe), \
                patch.object(context, "load_style_profile", return_value=profile), \
                patch.object(context, "load_upcoming_events", side_effect=RuntimeError("boom")), \
                patch.object(context, "load_recent_feedback", return_value=[{"rating": 5, "notes": "loved it"}]), \
                patch.object(context, "load_wear_history", return_value=[]), \
                patch.object(context, "load_saved_looks", return_value=[]), \
                patch.object(context, "load_look_memories", return_value=[]), \
                patch.object(context, "load_favorites", return_value=[{"name": "Date night"}]), \
                patch.object(context, "load_scheduled_outfits", return_value=[]):
            blocks = context.build_context_blocks("u1")

        assert list(blocks) == ["Style profile", "Wardrobe", "Recent outfit feedback", "Favorite outfits", "Capsule gaps"]
        assert "- Favorite colors: navy" in blocks["Style profile"]
        assert blocks["Wardrobe"] == "- Shoes: black Chelsea boots"
        assert blocks["Recent outfit feedback"] == "- 5 | loved it"

        rendered = context.render_context(blocks)
        assert rendered.startswith("## Style profile\n")


class TestChatStore:

    def test_recent_messages_chronological(self):
        rows = [
            {"role": "assistant", "content": "Second"},
            {"role": "user", "content": "First"},
            {"role": "tool", "content": "ignored"},
        ]
        with patch("stylist_ai.db.postgres.fetch_all", return_value=rows):
            messages = chat_store.get_recent_messages("u1", limit=3)
        assert messages == [{"role": "user", "content": "First"}, {"role": "assistant", "content": "Second"}]

    def test_invalid_role_not_saved(self):
        with patch("stylist_ai.db.postgres.execute") as execute:
            assert chat_store.save_message("u1", "robot", "hi") is False
        execute.assert_not_called()

    def test_upsert_uses_conflict_clause(self):
        with patch("stylist_ai.db.postgres.execute", return_value=True) as execute:
            assert chat_store.upsert_memory_summary("u1", "Likes navy") is True
        assert "ON CONFLICT (user_id)" in execute.call_args.args[0]
        assert execute.call_args.args[1] == ("u1", "Likes navy")


class TestMemoryFlow:

    def test_load_prefers_redis(self, fake_redis):
        fake_redis.get.return_value = "cached summary"
        with patch.object(chat_store, "get_memory_summary") as from_db:
            assert asyncio.run(load_memory("u1")) == "cached summary"
        from_db.assert_not_called()

    def test_load_backfills_redis_from_postgres(self, fake_redis):
        with patch.object(chat_store, "get_memory_summary", return_value="db summary"):
            assert asyncio.run(load_memory("u1")) == "db summary"
        fake_redis.setex.assert_called_once_with(memory_key("u1"), 60, "db summary")

    def test_refresh_writes_both_stores(self, fake_redis):
        messages = [{"role": "user", "content": "I only wear navy"}]
        with patch.object(chat_store, "get_recent_messages", return_value=messages), \
                patch.object(chat_store, "get_memory_summary", return_value=None), \
                patch.object(chat_store, "upsert_memory_summary", return_value=True) as upsert, \
                patch("stylist_ai.core.memory.complete_text",
                      AsyncMock(return_value=LLMResult(provider="openai", text=" Wears only navy. "))):
            summary = asyncio.run(refresh_memory("u1"))

        assert summary == "Wears only navy."
        upsert.assert_called_once_with("u1", "Wears only navy.")
        fake_redis.setex.assert_called_with(memory_key("u1"), 60, "Wears only navy.")

    def test_refresh_never_raises(self, fake_redis):
        with patch.object(chat_store, "get_recent_messages", return_value=[{"role": "user", "content": "hi"}]), \
                patch.object(chat_store, "get_memory_summary", return_value=None), \
                patch("stylist_ai.core.memory.complete_text", AsyncMock(side_effect=RuntimeError("down"))):
            assert asyncio.run(refresh_memory("u1")) is None

    def test_forget(self, fake_redis):
        fake_redis.delete.return_value = 1
        with patch.object(chat_store, "delete_memory_summary", return_value=False):
            assert asyncio.run(forget_memory("u1")) is True
