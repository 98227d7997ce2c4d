"""
LLM provider router / factory.

Returns the LLMProvider implementation selected by application settings.
Provider instances are cached per (provider_name, model, base_url) to reuse connections.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sourcegate.llm.provider import LLMProvider

if TYPE_CHECKING:
    from sourcegate.config import Settings

logger = logging.getLogger(__name__)

# Module-level cache: "provider_name:model:base_url" -> instance
_provider_cache: dict[str, LLMProvider] = {}


def get_llm_provider(settings: Settings | None = None) -> LLMProvider:
    """Return an LLMProvider instance for the configured provider.

    Args:
        settings: Application settings. If *None*, loads from ``get_settings()``.

    Returns:
        A cached LLMProvider instance.

    Raises:
        ValueError: If the provider is not supported, or the OpenAI provider has
            neither an API key nor a custom base URL.
    """
    if settings is None:
        from sourcegate.config import get_settings

        settings = get_settings()

    provider_name = settings.llm_provider.lower()
    cache_key = f"{provider_name}:{settings.llm_model}:{settings.llm_base_url or ''}"

    if cache_key in _provider_cache:
        return _provider_cache[cache_key]

    if provider_name == "openai":
        # A custom base URL (Ollama, vLLM, ...) may run without a key
        if not settings.llm_api_key and not settings.llm_base_url:
            raise ValueError(
                "LLM_API_KEY is required for the OpenAI provider unless LLM_BASE_URL "
                "points at a local OpenAI-compatible server. "
                "Set it in your environment or .env file."
            )

        from sourcegate.llm.openai_provider import OpenAIProvider

        provider = OpenAIProvider(
            api_key=settings.llm_api_key,
            model=settings.llm_model,
            base_url=settings.llm_base_url,
            timeout=settings.llm_timeout,
            max_retries=settings.llm_max_retries,
        )
    else:
        raise ValueError(
            f"Unknown LLM provider: '{provider_name}'. "
            f"Supported providers: openai"
        )

    _provider_cache[cache_key] = provider
    logger.info(
        "Created LLM provider: %s model=%s base_url=%s",
        provider_name,
        settings.llm_model,
        settings.llm_base_url,
    )
    return provider


def clear_provider_cache() -> None:
    """Clear the provider cache. Useful for testing."""
    _provider_cache.clear()
