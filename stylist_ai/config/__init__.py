# Config module
from stylist_ai.config.secrets import (
    SecretError,
    get_secret,
    get_secret_json,
    secret_exists,
    verify_required_secrets,
    reset_secret_cache,
)
from stylist_ai.config.settings import get_settings, reload_settings, Settings
from stylist_ai.config.providers import (
    get_provider_status,
    get_active_provider,
    get_fallback_provider,
    get_provider_availability,
    validate_provider_config,
)
from stylist_ai.config.llm_config import (
    LLMProvider,
    LLMRole,
    OpenAIConfig,
    GeminiConfig,
    ActiveLLMConfig,
    get_llm_config,
    get_all_configs_dict,
)
