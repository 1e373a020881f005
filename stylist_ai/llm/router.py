"""
LLM Router (v3.0.0)
Runs a request on the active provider, then on the fallback provider.
"""
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

from stylist_ai.config import (
    LLMProvider,
    LLMRole,
    get_active_provider,
    get_fallback_provider,
)
from stylist_ai.core.errors import LLMUnavailableError
from stylist_ai.llm.llm_adapter import LLMClient, get_llm_client

logger = logging.getLogger(__name__)


@dataclass
class LLMResult:
    """Outcome of a routed LLM call."""
    provider: str
    fallback_used: bool = False
    data: Any = None
    text: Optional[str] = None


async def _route(
    role: LLMRole,
    prefer_vertex: bool,
    call: Callable[[LLMClient], Awaitable[Any]]
) -> LLMResult:
    """
    Try the active provider, then the fallback provider.

    Raises:
        LLMUnavailableError: If no provider is configured
        Exception: The last provider error when every provider fails
    """
    active = get_active_provider(prefer_vertex=prefer_vertex)
    if not active:
        raise LLMUnavailableError("No LLM provider available - check API keys")

    providers = [active]
    fallback = get_fallback_provider(active)
    if fallback:
        providers.append(fallback)

    last_error: Optional[Exception] = None
    for index, name in enumerate(providers):
        client = get_llm_client(LLMProvider(name), role)
        try:
            output = await call(client)
            if index > 0:
                logger.info(f"Fallback provider {name} served {role.value} request")
            return LLMResult(provider=name, fallback_used=index > 0, data=output)
        except Exception as e:
            logger.error(f"Provider {name} failed for {role.value}: {e}")
            last_error = e

    raise last_error


async def complete_json(
    system_prompt: str,
    user_prompt: str,
    role: LLMRole = LLMRole.STYLIST,
    prefer_vertex: bool = True
) -> LLMResult:
    """Generate parsed JSON; result in LLMResult.data."""
    return await _route(role, prefer_vertex, lambda c: c.generate_json(system_prompt, user_prompt))


async def complete_vision_json(
    prompt: str,
    role: LLMRole = LLMRole.VISION,
    image_url: Optional[str] = None,
    image_bytes: Optional[bytes] = None,
    mime_type: Optional[str] = None,
    prefer_vertex: bool = True
) -> LLMResult:
    """Generate parsed JSON from a prompt plus image; result in LLMResult.data."""
    return await _route(
        role,
        prefer_vertex,
        lambda c: c.generate_vision(
            prompt,
            image_url=image_url,
            image_bytes=image_bytes,
            mime_type=mime_type,
            json_mode=True
        )
    )


async def complete_chat(
    system_prompt: str,
    messages: List[Dict[str, str]],
    prefer_vertex: bool = False
) -> LLMResult:
    """Generate a chat reply; result in LLMResult.text."""
    result = await _route(LLMRole.CHAT, prefer_vertex, lambda c: c.generate_chat(system_prompt, messages))
    result.text = result.data
    result.data = None
    return result


async def complete_text(
    system_prompt: str,
    user_prompt: str,
    role: LLMRole = LLMRole.SUMMARIZER,
    prefer_vertex: bool = False
) -> LLMResult:
    """Generate plain text; result in LLMResult.text."""
    result = await _route(role, prefer_vertex, lambda c: c.generate_text(system_prompt, user_prompt))
    result.text = result.data
    result.data = None
    return result
