"""
Shared fixtures: isolated settings, empty caches and a fake Redis.
"""
import io
import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from stylist_ai.config import reload_settings, reset_secret_cache
from stylist_ai.config.llm_config import reset_llm_config
from stylist_ai.cache import cache_manager, MemoryStore, set_memory_store
from stylist_ai.llm import reset_llm_clients
from stylist_ai.observability import reset_metrics
from stylist_ai.services.product_search import reset_serp_cooldown

ENV_KEYS = (
    "OPENAI_API_KEY", "GEMINI_API_KEY", "SERPAPI_KEY", "RAPIDAPI_KEY",
    "UNSPLASH_ACCESS_KEY", "DATABASE_URL", "REDIS_URL", "STYLIST_TRENDS_FEED_URL",
    "STYLIST_LLM_ENABLED", "STYLIST_VERTEX_ENABLED", "STYLIST_LOGGING_ENABLED",
)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Every test starts with no keys, no secrets dir and empty caches."""
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("STYLIST_SECRETS_DIR", str(tmp_path / "secrets"))
    monkeypatch.setenv("STYLIST_LOGGING_ENABLED", "false")

    reset_secret_cache()
    reload_settings()
    reset_llm_config()
    reset_llm_clients()
    reset_metrics()
    reset_serp_cooldown()
    cache_manager.clear()

    yield

    set_memory_store(None)
    reset_secret_cache()
    reload_settings()


@pytest.fixture
def configure(monkeypatch):
    """Set environment values and reload settings."""
    def _configure(**values):
        for key, value in values.items():
            monkeypatch.setenv(key, value)
        reset_secret_cache()
        reset_llm_config()
        reset_llm_clients()
        return reload_settings()
    return _configure


@pytest.fixture
def fake_redis():
    """MemoryStore backed by a MagicMock Redis client."""
    client = MagicMock()
    client.get.return_value = None
    client.ping.return_value = True
    store = MemoryStore(client=client, ttl_seconds=60)
    set_memory_store(store)
    return client


@pytest.fixture
def test_image():
    """A small valid JPEG."""
    from PIL import Image

    img = Image.new("RGB", (64, 64), color="white")
    buffer = io.BytesIO()
    img.save(buffer, format="JPEG")
    return buffer.getvalue()
