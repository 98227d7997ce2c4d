"""
OpenAI-compatible LLM provider.

Uses the openai Python SDK (>=1.0.0) with a synchronous client. ``base_url`` points
it at any OpenAI-compatible endpoint; the default is a local Ollama server.
Retries with exponential backoff on rate-limit, timeout and connection errors, and
surfaces every SDK failure as TransportError.
"""

from __future__ import annotations

import logging
import time
from typing import Any

from openai import APIConnectionError, APIError, APITimeoutError, OpenAI, RateLimitError

from sourcegate.errors import TransportError
from sourcegate.llm.provider import LLMProvider

logger = logging.getLogger(__name__)

# Retry configuration
INITIAL_BACKOFF = 1.0  # seconds
BACKOFF_MULTIPLIER = 2.0

# Local servers such as Ollama ignore the key but the SDK requires one
PLACEHOLDER_API_KEY = "not-needed"

# Errors that trigger retry
_RETRYABLE_ERRORS = (RateLimitError, APITimeoutError, APIConnectionError)


class OpenAIProvider(LLMProvider):
    """Concrete LLM provider backed by an OpenAI-compatible chat completions API."""

    def __init__(
        self,
        api_key: str | None,
        model: str = "llama2",
        base_url: str | None = None,
        timeout: float = 60.0,
        max_retries: int = 1,
    ) -> None:
        self.model = model
        self.base_url = base_url
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self._client = OpenAI(
            api_key=api_key or PLACEHOLDER_API_KEY,
            base_url=base_url,
            timeout=timeout,
            # Backoff is handled here, not inside the SDK
            max_retries=0,
        )

    # ------------------------------------------------------------------
    # LLMProvider interface
    # ------------------------------------------------------------------

    def complete(
        self,
        prompt: str,
        system_prompt: str | None = None,
        **kwargs: Any,
    ) -> str:
        """Send prompt and return the completion text.

        Supported kwargs:
            temperature (float): Sampling temperature (default 0.0).
            max_tokens (int): Maximum tokens in the response.
            timeout (float): Per-request timeout, overriding the client default.
            max_retries (int): Attempts for this call, overriding the provider default.
        """
        messages: list[dict[str, str]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        create_kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": kwargs.get("temperature", 0.0),
        }
        if "max_tokens" in kwargs:
            create_kwargs["max_tokens"] = kwargs["max_tokens"]
        if kwargs.get("timeout") is not None:
            create_kwargs["timeout"] = kwargs["timeout"]
        attempts = max(1, kwargs.get("max_retries", self.max_retries))

        return self._call_with_retry(create_kwargs, prompt, attempts)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _call_with_retry(
        self, create_kwargs: dict[str, Any], prompt: str, max_retries: int
    ) -> str:
        """Call the API with exponential-backoff retry on rate limit/timeout/connection."""
        backoff = INITIAL_BACKOFF
        for attempt in range(1, max_retries + 1):
            try:
                start = time.monotonic()
                response = self._client.chat.completions.create(**create_kwargs)
                elapsed = time.monotonic() - start
            except _RETRYABLE_ERRORS as exc:
                if attempt == max_retries:
                    logger.error(
                        "LLM retryable error: giving up after %d attempts: %s",
                        max_retries,
                        exc,
                    )
                    raise TransportError(f"{type(exc).__name__}: {exc}") from exc
                logger.warning(
                    "LLM %s: retry %d/%d in %.1fs",
                    type(exc).__name__,
                    attempt,
                    max_retries,
                    backoff,
                )
                time.sleep(backoff)
                backoff *= BACKOFF_MULTIPLIER
                continue
            except APIError as exc:
                logger.error("LLM API error: %s", exc)
                raise TransportError(f"{type(exc).__name__}: {exc}") from exc

            if not response.choices:
                raise TransportError("LLM response contained no choices")
            text = response.choices[0].message.content or ""

            usage = response.usage
            prompt_tokens = usage.prompt_tokens if usage else 0
            completion_tokens = usage.completion_tokens if usage else 0
            prompt_preview = (prompt[:100] + "...") if len(prompt) > 100 else prompt
            logger.info(
                "LLM call: model=%s prompt_preview=%r tokens_in=%d tokens_out=%d latency=%.2fs",
                create_kwargs["model"],
                prompt_preview,
                prompt_tokens,
                completion_tokens,
                elapsed,
            )
            logger.debug("LLM prompt (full): %s", prompt)
            return text

        raise TransportError("LLM call made no attempts")
