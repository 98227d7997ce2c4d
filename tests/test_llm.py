"""
Tests for the LLM provider layer: OpenAIProvider and router.

All OpenAI API calls are mocked; no real network requests.
"""

from __future__ import annotations

import asyncio
import threading
import time
from pathlib import Path
from types import SimpleNamespace
from typing import Any
from unittest.mock import MagicMock, patch

import httpx
import pytest
from openai import APIConnectionError, APITimeoutError, BadRequestError

from sourcegate.errors import TransportError
from sourcegate.llm import LLMProvider
from sourcegate.llm.openai_provider import PLACEHOLDER_API_KEY, OpenAIProvider
from sourcegate.llm.router import get_llm_provider
from tests.helpers import make_settings

_REQUEST = httpx.Request("POST", "http://localhost:11434/v1/chat/completions")


def _make_mock_response(content: str | None = "[]", prompt_tokens: int = 10, completion_tokens: int = 5):
    """Build a fake ChatCompletion response object."""
    message = SimpleNamespace(content=content)
    choice = SimpleNamespace(message=message)
    usage = SimpleNamespace(prompt_tokens=prompt_tokens, completion_tokens=completion_tokens)
    return SimpleNamespace(choices=[choice], usage=usage)


# ---------------------------------------------------------------------------
# OpenAIProvider: initialisation
# ---------------------------------------------------------------------------


class TestOpenAIProviderInit:
    def test_defaults(self):
        with patch("sourcegate.llm.openai_provider.OpenAI") as MockOpenAI:
            provider = OpenAIProvider(api_key="k")
        assert provider.model == "llama2"
        assert provider.timeout == 60.0
        assert provider.max_retries == 1
        assert MockOpenAI.call_args.kwargs["max_retries"] == 0

    def test_placeholder_key_for_local_servers(self):
        with patch("sourcegate.llm.openai_provider.OpenAI") as MockOpenAI:
            OpenAIProvider(api_key=None, base_url="http://localhost:11434/v1")
        kwargs = MockOpenAI.call_args.kwargs
        assert kwargs["api_key"] == PLACEHOLDER_API_KEY
        assert kwargs["base_url"] == "http://localhost:11434/v1"


# ---------------------------------------------------------------------------
# OpenAIProvider.complete()
# ---------------------------------------------------------------------------


class TestOpenAIProviderComplete:
    def test_messages_and_sampling(self):
        with patch("sourcegate.llm.openai_provider.OpenAI") as MockOpenAI:
            mock_client = MagicMock()
            MockOpenAI.return_value = mock_client
            mock_client.chat.completions.create.return_value = _make_mock_response("ok")

            provider = OpenAIProvider(api_key="k", model="gpt-4o-mini")
            result = provider.complete("hi", system_prompt="be neutral", max_tokens=600)

        assert result == "ok"
        call_kwargs = mock_client.chat.completions.create.call_args.kwargs
        assert call_kwargs["model"] == "gpt-4o-mini"
        assert call_kwargs["messages"] == [
            {"role": "system", "content": "be neutral"},
            {"role": "user", "content": "hi"},
        ]
        assert call_kwargs["temperature"] == 0.0
        assert call_kwargs["max_tokens"] == 600

    def test_none_content_is_empty_string(self):
        with patch("sourcegate.llm.openai_provider.OpenAI") as MockOpenAI:
            MockOpenAI.return_value.chat.completions.create.return_value = _make_mock_response(None)
            assert OpenAIProvider(api_key="k").complete("hi") == ""

    def test_no_choices_is_transport_error(self):
        with patch("sourcegate.llm.openai_provider.OpenAI") as MockOpenAI:
            MockOpenAI.return_value.chat.completions.create.return_value = SimpleNamespace(
                choices=[], usage=None
            )
            with pytest.raises(TransportError):
                OpenAIProvider(api_key="k").complete("hi")


class TestOpenAIProviderRetry:
    @patch("sourcegate.llm.openai_provider.time.sleep")
    def test_retries_then_succeeds(self, mock_sleep):
        with patch("sourcegate.llm.openai_provider.OpenAI") as MockOpenAI:
            create = MockOpenAI.return_value.chat.completions.create
            create.side_effect = [APITimeoutError(request=_REQUEST), _make_mock_response("ok")]
            provider = OpenAIProvider(api_key="k", max_retries=3)
            assert provider.complete("hi") == "ok"
        assert create.call_count == 2
        mock_sleep.assert_called_once_with(1.0)

    @patch("sourcegate.llm.openai_provider.time.sleep")
    def test_gives_up_with_transport_error(self, mock_sleep):
        with patch("sourcegate.llm.openai_provider.OpenAI") as MockOpenAI:
            create = MockOpenAI.return_value.chat.completions.create
            create.side_effect = APIConnectionError(request=_REQUEST)
            provider = OpenAIProvider(api_key="k", max_retries=2)
            with pytest.raises(TransportError, match="APIConnectionError"):
                provider.complete("hi")
        assert create.call_count == 2
        assert mock_sleep.call_count == 1

    def test_api_error_not_retried(self):
        with patch("sourcegate.llm.openai_provider.OpenAI") as MockOpenAI:
            create = MockOpenAI.return_value.chat.completions.create
            create.side_effect = BadRequestError(
                "bad model",
                response=httpx.Response(400, request=_REQUEST),
                body=None,
            )
            provider = OpenAIProvider(api_key="k", max_retries=3)
            with pytest.raises(TransportError, match="BadRequestError"):
                provider.complete("hi")
        assert create.call_count == 1

    @patch("sourcegate.llm.openai_provider.time.sleep")
    def test_per_call_timeout_and_single_attempt(self, mock_sleep):
        with patch("sourcegate.llm.openai_provider.OpenAI") as MockOpenAI:
            create = MockOpenAI.return_value.chat.completions.create
            create.side_effect = APITimeoutError(request=_REQUEST)
            provider = OpenAIProvider(api_key="k", timeout=60.0, max_retries=3)
            with pytest.raises(TransportError, match="APITimeoutError"):
                provider.complete("hi", timeout=2.5, max_retries=1)
        assert create.call_count == 1
        assert create.call_args.kwargs["timeout"] == 2.5
        mock_sleep.assert_not_called()


# ---------------------------------------------------------------------------
# LLMProvider.acomplete()
# ---------------------------------------------------------------------------


class _SleepyProvider(LLMProvider):
    def __init__(self, delay: float) -> None:
        self.delay = delay
        self.finished = threading.Event()

    def complete(self, prompt: str, system_prompt: str | None = None, **kwargs: Any) -> str:
        time.sleep(self.delay)
        self.finished.set()
        return f"{system_prompt}:{prompt}"


class TestAcomplete:
    @pytest.mark.asyncio
    async def test_returns_completion(self):
        assert await _SleepyProvider(0).acomplete("hi", system_prompt="sys") == "sys:hi"

    @pytest.mark.asyncio
    async def test_timeout_waits_for_worker_thread(self):
        provider = _SleepyProvider(0.2)
        with pytest.raises(TimeoutError):
            await asyncio.wait_for(provider.acomplete("hi"), timeout=0.01)
        assert provider.finished.is_set()


# ---------------------------------------------------------------------------
# Router
# ---------------------------------------------------------------------------


class TestRouter:
    def test_returns_cached_instance(self, tmp_path: Path):
        settings = make_settings(tmp_path)
        with patch("sourcegate.llm.openai_provider.OpenAI"):
            first = get_llm_provider(settings)
            second = get_llm_provider(settings)
        assert isinstance(first, OpenAIProvider)
        assert first is second

    def test_distinct_models_not_shared(self, tmp_path: Path):
        with patch("sourcegate.llm.openai_provider.OpenAI"):
            a = get_llm_provider(make_settings(tmp_path, llm_model="a"))
            b = get_llm_provider(make_settings(tmp_path, llm_model="b"))
        assert a is not b

    def test_base_url_without_key(self, tmp_path: Path):
        settings = make_settings(
            tmp_path, llm_api_key=None, llm_base_url="http://localhost:11434/v1"
        )
        with patch("sourcegate.llm.openai_provider.OpenAI"):
            provider = get_llm_provider(settings)
        assert provider.base_url == "http://localhost:11434/v1"

    def test_missing_key_and_base_url(self, tmp_path: Path):
        with pytest.raises(ValueError, match="LLM_API_KEY is required"):
            get_llm_provider(make_settings(tmp_path, llm_api_key=None, llm_base_url=None))

    def test_unknown_provider(self, tmp_path: Path):
        with pytest.raises(ValueError, match="Unknown LLM provider"):
            get_llm_provider(make_settings(tmp_path, llm_provider="anthropic"))
