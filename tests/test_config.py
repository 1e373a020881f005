"""
Tests for secrets, settings and provider selection.
"""
import pytest

from stylist_ai.config import (
    SecretError,
    get_active_provider,
    get_fallback_provider,
    get_provider_status,
    get_secret,
    get_secret_json,
    get_settings,
    reset_secret_cache,
    validate_provider_config,
    verify_required_secrets,
)
from stylist_ai.config.llm_config import LLMProvider, LLMRole, get_llm_config


class TestSecrets:
    """Secret files win over the environment."""

    def test_env_fallback(self, monkeypatch):
        monkeypatch.setenv("SERPAPI_KEY", "from-env")
        assert get_secret("SERPAPI_KEY") == "from-env"

    def test_missing_returns_default(self):
        assert get_secret("NOPE_NOT_SET") is None
        assert get_secret("NOPE_NOT_SET", "dflt") == "dflt"

    def test_plain_file_beats_env(self, monkeypatch, tmp_path):
        secrets_dir = tmp_path / "secrets"
        secrets_dir.mkdir()
        (secrets_dir / "OPENAI_API_KEY").write_text("sk-file\n")
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
        reset_secret_cache()

        assert get_secret("OPENAI_API_KEY") == "sk-file"

    def test_directory_mount(self, tmp_path):
        mount = tmp_path / "secrets" / "RAPIDAPI_KEY"
        mount.mkdir(parents=True)
        (mount / "latest").write_text("rapid-123")
        reset_secret_cache()

        assert get_secret("RAPIDAPI_KEY") == "rapid-123"

    def test_json_secret(self, monkeypatch):
        monkeypatch.setenv("SERVICE_JSON", '{"project": "stylist"}')
        assert get_secret_json("SERVICE_JSON") == {"project": "stylist"}

        monkeypatch.setenv("BAD_JSON", "{oops")
        with pytest.raises(SecretError):
            get_secret_json("BAD_JSON")

    def test_verify_required_lists_missing(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql://localhost/stylist")
        with pytest.raises(SecretError) as exc:
            verify_required_secrets(["DATABASE_URL", "OPENAI_API_KEY", "REDIS_URL"])
        assert "OPENAI_API_KEY" in exc.value.message
        assert "REDIS_URL" in exc.value.message
        assert "DATABASE_URL" not in exc.value.message


class TestSettings:

    def test_defaults(self):
        settings = get_settings()
        assert settings.llm_enabled is True
        assert settings.vertex_enabled is False
        assert settings.redis_url == "redis://localhost:6379/0"
        assert settings.chat_history_limit == 20

    def test_invalid_int_uses_default(self, configure):
        settings = configure(STYLIST_CHAT_HISTORY_LIMIT="lots")
        assert settings.chat_history_limit == 20

    def test_to_dict_hides_keys(self, configure):
        data = configure(OPENAI_API_KEY="sk-secret").to_dict()
        assert data["openai_configured"] is True
        assert "sk-secret" not in str(data)

    def test_gemini_needs_vertex_flag(self, configure):
        assert configure(GEMINI_API_KEY="g-key").has_gemini() is False
        assert configure(STYLIST_VERTEX_ENABLED="true").has_gemini() is True


class TestProviders:

    def test_no_providers(self):
        assert get_active_provider() is None
        assert get_fallback_provider(None) is None
        assert validate_provider_config()

    def test_openai_only(self, configure):
        configure(OPENAI_API_KEY="sk")
        assert get_active_provider() == "openai"
        assert get_fallback_provider("openai") is None

    def test_vertex_preferred_when_enabled(self, configure):
        configure(OPENAI_API_KEY="sk", GEMINI_API_KEY="g", STYLIST_VERTEX_ENABLED="true")
        assert get_active_provider(prefer_vertex=True) == "gemini"
        assert get_active_provider(prefer_vertex=False) == "openai"
        assert get_fallback_provider("gemini") == "openai"
        assert get_fallback_provider("openai") == "gemini"

    def test_llm_disabled(self, configure):
        configure(OPENAI_API_KEY="sk", STYLIST_LLM_ENABLED="false")
        assert get_active_provider() is None
        assert get_provider_status()["enabled"] is False


class TestLLMConfig:

    def test_role_defaults(self):
        assert get_llm_config(LLMProvider.OPENAI, LLMRole.SUMMARIZER).model == "gpt-4o-mini"
        assert get_llm_config(LLMProvider.GEMINI, LLMRole.VISION).model == "gemini-2.5-flash"

    def test_env_override(self, configure):
        configure(STYLIST_CHAT_MODEL="gpt-4.1")
        config = get_llm_config(LLMProvider.OPENAI, LLMRole.CHAT)
        assert config.model == "gpt-4.1"
        assert config.resolve_model(use_fallback=True) == "gpt-4o-mini"
