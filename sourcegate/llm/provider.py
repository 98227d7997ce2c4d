"""
LLM provider abstraction.

The generation capability is an opaque collaborator: it receives a system
instruction and a user prompt and returns free text. It never reads the registry
and never decides whether its own output is acceptable; the guardrails do.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any

logger = logging.getLogger(__name__)


class LLMProvider(ABC):
    """Abstract base for LLM providers."""

    @abstractmethod
    def complete(
        self,
        prompt: str,
        system_prompt: str | None = None,
        **kwargs: Any,
    ) -> str:
        """Send prompt and return completion text.

        Supported kwargs (providers may ignore ones they cannot honour):
            timeout (float): Bound on this single request, in seconds.
            max_retries (int): Attempts for this request; 1 disables backoff.

        Raises:
            TransportError: If the backend cannot be reached or returns an error.
        """
        ...

    async def acomplete(
        self,
        prompt: str,
        system_prompt: str | None = None,
        **kwargs: Any,
    ) -> str:
        """Run complete() in a worker thread.

        A worker thread cannot be interrupted, so when the awaiting task is
        cancelled this waits for the thread to return before re-raising. Callers
        therefore never have two requests in flight for one logical call; pass
        ``timeout`` to bound how long that wait can be.
        """
        call = asyncio.ensure_future(
            asyncio.to_thread(self.complete, prompt, system_prompt=system_prompt, **kwargs)
        )
        try:
            return await asyncio.shield(call)
        except asyncio.CancelledError:
            await asyncio.wait({call})
            if not call.cancelled() and call.exception() is not None:
                logger.debug("Abandoned LLM call ended with: %s", call.exception())
            raise
