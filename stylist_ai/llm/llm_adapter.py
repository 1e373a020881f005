"""
LLM Initialization Adapter (v3.0.0)
Unified LLM client for OpenAI and Gemini with per-role configuration.

Usage:
    client = LLMClient(LLMProvider.OPENAI, LLMRole.CHAT)
    reply = await client.generate_chat(system, messages)
"""
import base64
import logging
from typing import Optional, Any, Dict, List

import httpx

from stylist_ai.config.settings import get_settings
from stylist_ai.config.llm_config import get_llm_config, LLMProvider, LLMRole
from stylist_ai.llm.json_parsing import parse_json_response

logger = logging.getLogger(__name__)

JSON_INSTRUCTION = "\n\nRespond with valid JSON only, no markdown code blocks."


class LLMClient:
    """Unified LLM client interface for one provider/role pair."""

    def __init__(self, provider: LLMProvider, role: LLMRole = LLMRole.STYLIST):
        self.provider = provider
        self.role = role
        self.config = get_llm_config(provider, role)
        self._openai_client = None
        self._gemini_models: Dict[str, Any] = {}
        self._current_model = None
        self._fallback_used = False
        self._initialized = False

    def initialize(self):
        """Initialize the underlying SDK client."""
        if self.config.is_openai():
            self._init_openai()
        elif self.config.is_gemini():
            self._init_gemini()

        self._initialized = True

    def _init_openai(self):
        """Initialize OpenAI client."""
        from openai import AsyncOpenAI

        api_key = get_settings().openai_api_key
        if not api_key:
            raise ValueError("OPENAI_API_KEY not set")

        if self._openai_client is None:
            self._openai_client = AsyncOpenAI(api_key=api_key)
        logger.info(f"OpenAI [{self.role.value}]: model={self.config.model}")

    def _init_gemini(self):
        """Configure the Gemini SDK."""
        import google.generativeai as genai

        api_key = get_settings().gemini_api_key
        if not api_key:
            raise ValueError("GEMINI_API_KEY not set")

        genai.configure(api_key=api_key)
        logger.info(f"Gemini [{self.role.value}]: model={self.config.model}")

    def _gemini_model(self, model: str):
        """One GenerativeModel per model name."""
        import google.generativeai as genai

        if model not in self._gemini_models:
            self._gemini_models[model] = genai.GenerativeModel(model)
        return self._gemini_models[model]

    async def _with_model_fallback(self, call, *args):
        """
        Run call on the primary model, retrying once on the fallback model.

        Every call starts on the primary model; the fallback is per call.
        """
        if not self._initialized:
            self.initialize()

        primary = self.config.resolve_model()
        self._current_model, self._fallback_used = primary, False
        try:
            return await call(primary, *args)
        except Exception as e:
            fallback = self.config.resolve_model(use_fallback=True)
            if not fallback or fallback == primary:
                raise
            logger.warning(f"Primary model {primary} failed ({e}), trying {fallback}...")
            self._current_model, self._fallback_used = fallback, True
            return await call(fallback, *args)

    # ==================== PUBLIC API ====================

    async def generate_text(self, system_prompt: str, user_prompt: str) -> str:
        """Generate a text response."""
        messages = [{"role": "user", "content": user_prompt}]
        return await self._with_model_fallback(self._generate_impl, system_prompt, messages, False)

    async def generate_json(self, system_prompt: str, user_prompt: str) -> Any:
        """Generate a JSON response with tolerant parsing."""
        messages = [{"role": "user", "content": user_prompt}]
        text = await self._with_model_fallback(self._generate_impl, system_prompt, messages, True)
        return parse_json_response(text)

    async def generate_chat(self, system_prompt: str, messages: List[Dict[str, str]]) -> str:
        """Generate a conversational reply from a message history."""
        return await self._with_model_fallback(self._generate_impl, system_prompt, messages, False)

    async def generate_vision(
        self,
        prompt: str,
        image_url: Optional[str] = None,
        image_bytes: Optional[bytes] = None,
        mime_type: Optional[str] = None,
        json_mode: bool = False
    ) -> Any:
        """
        Generate from a prompt plus one image.

        Args:
            prompt: Instruction text
            image_url: Public image URL
            image_bytes: Raw image bytes (used when no URL is given)
            mime_type: MIME type of image_bytes
            json_mode: Parse the response as JSON

        Returns:
            Parsed JSON when json_mode, else text
        """
        if not image_url and not image_bytes:
            raise ValueError("generate_vision needs image_url or image_bytes")

        text = await self._with_model_fallback(
            self._generate_vision_impl, prompt, image_url, image_bytes, mime_type or "image/jpeg", json_mode
        )
        return parse_json_response(text) if json_mode else text

    # ==================== PROVIDER IMPLEMENTATIONS ====================

    async def _generate_impl(self, model: str, system_prompt: str, messages: List[Dict[str, str]], json_mode: bool) -> str:
        """Internal generation implementation."""
        if self.config.is_openai():
            return await self._generate_openai(model, system_prompt, messages, json_mode)
        elif self.config.is_gemini():
            return await self._generate_gemini(model, system_prompt, messages, json_mode)
        else:
            raise ValueError(f"Unsupported provider: {self.config.provider}")

    async def _generate_openai(self, model: str, system_prompt: str, messages: List[Dict[str, str]], json_mode: bool) -> str:
        """Generate using OpenAI chat completions."""
        kwargs = {
            "model": model,
            "messages": [{"role": "system", "content": system_prompt}] + list(messages),
            "temperature": self.config.temperature,
            "max_tokens": self.config.max_tokens
        }

        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        response = await self._openai_client.chat.completions.create(**kwargs)
        return response.choices[0].message.content or ""

    async def _generate_gemini(self, model: str, system_prompt: str, messages: List[Dict[str, str]], json_mode: bool) -> str:
        """Generate using Gemini with the conversation flattened into one prompt."""
        lines = [system_prompt, ""]
        for message in messages:
            speaker = "Stylist" if message.get("role") == "assistant" else "User"
            lines.append(f"{speaker}: {message.get('content', '')}")
        combined = "\n".join(lines)

        if json_mode:
            combined += JSON_INSTRUCTION

        response = await self._gemini_model(model).generate_content_async(
            combined,
            generation_config={
                "temperature": self.config.temperature,
                "max_output_tokens": self.config.max_tokens,
            }
        )
        return response.text

    async def _generate_vision_impl(
        self,
        model: str,
        prompt: str,
        image_url: Optional[str],
        image_bytes: Optional[bytes],
        mime_type: str,
        json_mode: bool
    ) -> str:
        if json_mode:
            prompt += JSON_INSTRUCTION

        if self.config.is_openai():
            if image_url:
                image_ref = image_url
            else:
                encoded = base64.b64encode(image_bytes).decode("ascii")
                image_ref = f"data:{mime_type};base64,{encoded}"

            kwargs = {
                "model": model,
                "messages": [{
                    "role": "user",
                    "content": [
                        {"type": "text", "text": prompt},
                        {"type": "image_url", "image_url": {"url": image_ref}},
                    ],
                }],
                "temperature": self.config.temperature,
                "max_tokens": self.config.max_tokens
            }
            if json_mode:
                kwargs["response_format"] = {"type": "json_object"}

            response = await self._openai_client.chat.completions.create(**kwargs)
            return response.choices[0].message.content or ""

        # Gemini takes inline bytes, so remote images are downloaded first
        if image_url:
            image_bytes, mime_type = await _download_image(image_url)

        response = await self._gemini_model(model).generate_content_async(
            [prompt, {"mime_type": mime_type, "data": image_bytes}]
        )
        return response.text

    def get_status(self) -> dict:
        """Get current client status."""
        return {
            "role": self.role.value,
            "provider": self.provider.value,
            "model": self._current_model or self.config.model,
            "fallback_used": self._fallback_used,
            "initialized": self._initialized
        }


async def _download_image(url: str):
    """Fetch image bytes and MIME type for inline vision input."""
    timeout = float(get_settings().http_timeout_seconds)
    async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
        response = await client.get(url)
        response.raise_for_status()
        mime = response.headers.get("content-type", "image/jpeg").split(";")[0].strip()
        return response.content, mime


# ==================== CLIENT CACHE ====================

_clients: Dict[tuple, LLMClient] = {}


def get_llm_client(provider: LLMProvider, role: LLMRole = LLMRole.STYLIST) -> LLMClient:
    """Get a cached LLM client for a provider/role pair."""
    key = (provider, role)
    client = _clients.get(key)
    if client is None:
        client = LLMClient(provider, role)
        _clients[key] = client
    return client


def reset_llm_clients():
    """Reset all clients (for testing)."""
    _clients.clear()


def get_all_clients_status() -> dict:
    """Get status of every client created so far, for /health."""
    return {
        f"{provider.value}:{role.value}": client.get_status()
        for (provider, role), client in _clients.items()
    }
