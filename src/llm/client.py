"""
Text-completion backends for the LLM fallback tier.

The core only needs ``complete(prompt) -> str``. Provider errors and
timeouts are wrapped in CompletionError so callers can catch one type
and degrade to a local reply.
"""

import asyncio
import logging
from typing import Optional, Protocol

from src.config import ModelConfig, settings

logger = logging.getLogger(__name__)


class CompletionError(RuntimeError):
    """The completion backend failed, timed out or returned nothing."""


class CompletionService(Protocol):
    """Prompt in, text out."""

    name: str

    async def complete(self, prompt: str) -> str: ...


class OpenAICompletionService:
    """Chat-completions backend using the official async OpenAI client."""

    name = "openai"

    def __init__(self, config: ModelConfig) -> None:
        from openai import AsyncOpenAI

        self._config = config
        self._client = AsyncOpenAI(api_key=config.openai_api_key)

    async def complete(self, prompt: str) -> str:
        response = await self._client.chat.completions.create(
            model=self._config.model_name,
            messages=[{"role": "user", "content": prompt}],
            temperature=self._config.llm_temperature,
            max_tokens=self._config.llm_max_tokens,
        )
        return response.choices[0].message.content or ""


class GeminiCompletionService:
    """Gemini backend using the google-genai async client."""

    name = "gemini"

    def __init__(self, config: ModelConfig) -> None:
        from google import genai

        self._config = config
        self._client = genai.Client(api_key=config.gemini_api_key)

    async def complete(self, prompt: str) -> str:
        response = await self._client.aio.models.generate_content(
            model=self._config.model_name,
            contents=prompt,
            config={
                "temperature": self._config.llm_temperature,
                "max_output_tokens": self._config.llm_max_tokens,
            },
        )
        return getattr(response, "text", None) or ""


def build_completion_service(
    config: Optional[ModelConfig] = None,
) -> Optional[CompletionService]:
    """Create the configured backend, or None when no LLM is configured."""
    config = config or settings.model
    if not config.llm_enabled:
        logger.info("No LLM backend configured; fallback stays local")
        return None
    if config.llm_provider == "gemini":
        return GeminiCompletionService(config)
    return OpenAICompletionService(config)


async def complete_with_timeout(
    service: CompletionService, prompt: str, timeout_sec: float
) -> str:
    """
    Run one completion with a timeout.

    Args:
        service: Backend to call.
        prompt: Full prompt text.
        timeout_sec: Seconds before the call is abandoned.

    Returns:
        The stripped completion text.

    Raises:
        CompletionError: On timeout, provider error or an empty reply.
    """
    try:
        text = await asyncio.wait_for(service.complete(prompt), timeout=timeout_sec)
    except asyncio.TimeoutError:
        raise CompletionError(
            f"{service.name} completion timed out after {timeout_sec}s"
        ) from None
    except Exception as exc:
        raise CompletionError(f"{service.name} completion failed: {exc}") from exc

    text = (text or "").strip()
    if not text:
        raise CompletionError(f"{service.name} returned an empty completion")
    return text
