"""LLM provider abstraction. The model generates text only; guardrails judge it."""

from sourcegate.llm.openai_provider import OpenAIProvider
from sourcegate.llm.provider import LLMProvider
from sourcegate.llm.router import clear_provider_cache, get_llm_provider

__all__ = ["LLMProvider", "OpenAIProvider", "clear_provider_cache", "get_llm_provider"]
