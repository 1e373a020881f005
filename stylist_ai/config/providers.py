"""
Providers Module (v1.2.0)
LLM backend availability and priority management.

Two backends are supported:
  - openai: chat completions + vision (always the default)
  - gemini: Gemini models, only used when STYLIST_VERTEX_ENABLED=true
"""
import logging
from typing import Optional, List, Dict, Any

from stylist_ai.config.settings import get_settings

logger = logging.getLogger(__name__)


SUPPORTED_PROVIDERS = ["openai", "gemini"]


def get_provider_availability() -> Dict[str, bool]:
    """Get availability status for each provider."""
    settings = get_settings()
    return {
        "openai": settings.has_openai(),
        "gemini": settings.has_gemini(),
    }


def get_active_provider(prefer_vertex: bool = True) -> Optional[str]:
    """
    Get the provider a request should try first.

    Args:
        prefer_vertex: Use Gemini first when it is enabled and keyed

    Returns:
        Provider name or None if no provider available
    """
    settings = get_settings()

    if not settings.llm_enabled:
        logger.warning("LLM is disabled via STYLIST_LLM_ENABLED")
        return None

    availability = get_provider_availability()

    if prefer_vertex and availability["gemini"]:
        return "gemini"

    if availability["openai"]:
        return "openai"

    if availability["gemini"]:
        logger.info("OpenAI not configured, using gemini")
        return "gemini"

    logger.error("No LLM provider available")
    return None


def get_fallback_provider(active: Optional[str]) -> Optional[str]:
    """
    Get the provider to try after the active one fails.

    Returns:
        Provider name or None if no fallback available
    """
    settings = get_settings()
    if not settings.llm_enabled or active is None:
        return None

    availability = get_provider_availability()
    for provider in SUPPORTED_PROVIDERS:
        if provider != active and availability.get(provider):
            return provider

    return None


def get_provider_status() -> Dict[str, Any]:
    """
    Get complete provider status for health endpoint.

    Returns:
        Dict with enabled, vertex_enabled, availability, active and fallback
    """
    settings = get_settings()
    active = get_active_provider()

    return {
        "enabled": settings.llm_enabled,
        "vertex_enabled": settings.vertex_enabled,
        "availability": get_provider_availability(),
        "active_provider": active,
        "fallback_provider": get_fallback_provider(active),
    }


def validate_provider_config() -> List[str]:
    """
    Validate provider configuration and return warnings.

    Returns:
        List of warning messages
    """
    settings = get_settings()
    availability = get_provider_availability()
    warnings = []

    if not settings.llm_enabled:
        warnings.append("LLM is disabled - stylist flows will use fallbacks")

    if not any(availability.values()):
        warnings.append("No LLM provider configured - set OPENAI_API_KEY")

    if settings.vertex_enabled and not settings.gemini_api_key:
        warnings.append("STYLIST_VERTEX_ENABLED is set but GEMINI_API_KEY is missing")

    return warnings
