"""
Settings Module (v1.2.0)
Centralized configuration resolved through the secrets loader.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from stylist_ai.config.secrets import get_secret, reset_secret_cache

logger = logging.getLogger(__name__)


def _flag(name: str, default: str) -> bool:
    return (get_secret(name, default) or default).lower() == "true"


def _int(name: str, default: int) -> int:
    raw = get_secret(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Invalid integer for {name}, using default {default}")
        return default


@dataclass
class Settings:
    """Application settings from secrets and environment variables."""

    # API Keys
    openai_api_key: Optional[str] = None
    gemini_api_key: Optional[str] = None
    serpapi_key: Optional[str] = None
    rapidapi_key: Optional[str] = None
    unsplash_access_key: Optional[str] = None

    # LLM Configuration
    llm_enabled: bool = True
    vertex_enabled: bool = False

    # Infrastructure
    database_url: Optional[str] = None
    redis_url: str = "redis://localhost:6379/0"
    trends_feed_url: Optional[str] = None

    # Tuning
    memory_ttl_seconds: int = 7 * 24 * 3600
    product_cache_ttl_minutes: int = 30
    trends_cache_ttl_minutes: int = 720
    chat_history_limit: int = 20
    http_timeout_seconds: int = 15

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from secret files and environment variables."""
        return cls(
            # API Keys
            openai_api_key=get_secret("OPENAI_API_KEY"),
            gemini_api_key=get_secret("GEMINI_API_KEY"),
            serpapi_key=get_secret("SERPAPI_KEY"),
            rapidapi_key=get_secret("RAPIDAPI_KEY"),
            unsplash_access_key=get_secret("UNSPLASH_ACCESS_KEY"),

            # LLM Configuration
            llm_enabled=_flag("STYLIST_LLM_ENABLED", "true"),
            vertex_enabled=_flag("STYLIST_VERTEX_ENABLED", "false"),

            # Infrastructure
            database_url=get_secret("DATABASE_URL"),
            redis_url=get_secret("REDIS_URL", "redis://localhost:6379/0"),
            trends_feed_url=get_secret("STYLIST_TRENDS_FEED_URL"),

            # Tuning
            memory_ttl_seconds=_int("STYLIST_MEMORY_TTL_SECONDS", 7 * 24 * 3600),
            product_cache_ttl_minutes=_int("STYLIST_PRODUCT_CACHE_TTL_MINUTES", 30),
            trends_cache_ttl_minutes=_int("STYLIST_TRENDS_CACHE_TTL_MINUTES", 720),
            chat_history_limit=_int("STYLIST_CHAT_HISTORY_LIMIT", 20),
            http_timeout_seconds=_int("STYLIST_HTTP_TIMEOUT", 15),
        )

    def has_openai(self) -> bool:
        """Check if OpenAI API key is configured."""
        return bool(self.openai_api_key)

    def has_gemini(self) -> bool:
        """Check if the Gemini backend is enabled and keyed."""
        return self.vertex_enabled and bool(self.gemini_api_key)

    def to_dict(self) -> dict:
        """Export settings as dict (without sensitive keys)."""
        return {
            "llm_enabled": self.llm_enabled,
            "vertex_enabled": self.vertex_enabled,
            "openai_configured": self.has_openai(),
            "gemini_configured": self.has_gemini(),
            "database_configured": bool(self.database_url),
            "serpapi_configured": bool(self.serpapi_key),
            "rapidapi_configured": bool(self.rapidapi_key),
            "unsplash_configured": bool(self.unsplash_access_key),
            "trends_feed_configured": bool(self.trends_feed_url),
            "chat_history_limit": self.chat_history_limit,
        }


def get_settings() -> Settings:
    """Get application settings (cached singleton)."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
        logger.info(f"Settings loaded: {_settings.to_dict()}")
    return _settings


def reload_settings() -> Settings:
    """Force reload settings from environment."""
    global _settings
    reset_secret_cache()
    _settings = Settings.from_env()
    logger.info(f"Settings reloaded: {_settings.to_dict()}")
    return _settings


# Singleton instance
_settings: Optional[Settings] = None
