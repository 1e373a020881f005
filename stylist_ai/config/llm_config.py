"""
LLM Configuration Layer (v1.1.0)
Role-based model config for both backends.

Environment Variables (per role, ROLE in STYLIST/VISION/CHAT/SUMMARIZER):
  - STYLIST_<ROLE>_MODEL: Override OpenAI model
  - STYLIST_<ROLE>_GEMINI_MODEL: Override Gemini model
  - STYLIST_LLM_TEMPERATURE / STYLIST_LLM_MAX_TOKENS: Global overrides
"""
import os
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

logger = logging.getLogger(__name__)


# ==================== ENUMS ====================

class LLMProvider(Enum):
    """Supported LLM providers."""
    OPENAI = "openai"
    GEMINI = "gemini"


class LLMRole(Enum):
    """LLM usage role."""
    STYLIST = "stylist"        # Recreate / shop / suggest JSON
    VISION = "vision"          # Image tagging, barcode reading
    CHAT = "chat"              # Conversational replies
    SUMMARIZER = "summarizer"  # Long-term memory digest


# ==================== PROVIDER DEFAULTS ====================

@dataclass
class OpenAIConfig:
    """OpenAI model defaults."""
    default_model: str = "gpt-4o"
    fallback_model: str = "gpt-4o-mini"
    available_models: tuple = field(default_factory=lambda: (
        "gpt-4o-mini", "gpt-4o", "gpt-4.1", "gpt-4.1-mini",
    ))


@dataclass
class GeminiConfig:
    """Gemini model defaults."""
    default_model: str = "gemini-2.5-flash"
    fallback_model: str = "gemini-2.5-pro"
    available_models: tuple = field(default_factory=lambda: (
        "gemini-2.5-flash", "gemini-2.5-pro", "gemini-2.0-flash",
    ))


# Per-role temperature and token budget
ROLE_DEFAULTS: Dict[LLMRole, Tuple[float, int]] = {
    LLMRole.STYLIST: (0.7, 2500),
    LLMRole.VISION: (0.2, 800),
    LLMRole.CHAT: (0.8, 1200),
    LLMRole.SUMMARIZER: (0.3, 600),
}

# Summaries are cheap background work
ROLE_OPENAI_MODELS: Dict[LLMRole, str] = {
    LLMRole.SUMMARIZER: "gpt-4o-mini",
}


# ==================== ACTIVE CONFIG ====================

@dataclass
class ActiveLLMConfig:
    """Resolved LLM configuration for a role on one provider."""
    role: LLMRole
    provider: LLMProvider
    model: str
    fallback_model: str
    temperature: float
    max_tokens: int

    @classmethod
    def resolve(cls, provider: LLMProvider, role: LLMRole) -> "ActiveLLMConfig":
        """Resolve configuration from environment variables."""
        temperature, max_tokens = ROLE_DEFAULTS[role]
        prefix = f"STYLIST_{role.value.upper()}"

        if provider == LLMProvider.GEMINI:
            defaults = GeminiConfig()
            model = os.getenv(f"{prefix}_GEMINI_MODEL", defaults.default_model)
        else:
            defaults = OpenAIConfig()
            model = os.getenv(f"{prefix}_MODEL", ROLE_OPENAI_MODELS.get(role, defaults.default_model))

        config = cls(
            role=role,
            provider=provider,
            model=model,
            fallback_model=defaults.fallback_model,
            temperature=float(os.getenv("STYLIST_LLM_TEMPERATURE", str(temperature))),
            max_tokens=int(os.getenv("STYLIST_LLM_MAX_TOKENS", str(max_tokens))),
        )

        logger.info(f"LLM Config [{role.value}]: provider={provider.value}, model={model}")
        return config

    def resolve_model(self, use_fallback: bool = False) -> str:
        return self.fallback_model if use_fallback else self.model

    def is_openai(self) -> bool:
        return self.provider == LLMProvider.OPENAI

    def is_gemini(self) -> bool:
        return self.provider == LLMProvider.GEMINI

    def to_dict(self) -> dict:
        return {
            "role": self.role.value,
            "provider": self.provider.value,
            "model": self.model,
            "fallback_model": self.fallback_model,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens
        }


# ==================== CACHED INSTANCES ====================

_configs: Dict[Tuple[LLMProvider, LLMRole], ActiveLLMConfig] = {}


def get_llm_config(provider: LLMProvider, role: LLMRole = LLMRole.STYLIST) -> ActiveLLMConfig:
    """Get active LLM configuration for a provider/role pair."""
    key = (provider, role)
    config: Optional[ActiveLLMConfig] = _configs.get(key)
    if config is None:
        config = ActiveLLMConfig.resolve(provider, role)
        _configs[key] = config
    return config


def reset_llm_config():
    """Reset all configs (for testing)."""
    _configs.clear()


def get_all_configs_dict() -> dict:
    """Get OpenAI configs for every role, for the /health endpoint."""
    return {
        role.value: get_llm_config(LLMProvider.OPENAI, role).to_dict()
        for role in LLMRole
    }
