"""
Bounded retry loop between the generation capability and the guardrails.

One query is a small state machine with a recorded history:

    Idle -> Calling
    Calling -> Validating   (response received)
    Calling -> Retrying     (transport failure, attempts left)
    Validating -> Succeeded (guardrails pass)
    Validating -> Retrying  (guardrails fail, attempts left)
    Retrying -> Calling     (attempt counter incremented)
    Calling | Validating -> Failed  (attempts exhausted, cancelled, or unexpected error)

Calls are strictly sequential and each is bounded by ``call_timeout``, which is
also handed to the provider as its per-request timeout with provider-side backoff
disabled. A timed-out or cancelled call is waited out before the run moves on, so
two calls are never in flight at once. Cancelling the awaiting task stops retrying.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from sourcegate.errors import (
    ClaimValidationError,
    ConfigurationError,
    RetryExhaustedError,
    TransportError,
)
from sourcegate.guardrails import GuardrailsValidator
from sourcegate.prompts import (
    CORRECTIVE_RETRY_PROMPT,
    NEUTRAL_SYSTEM_PROMPT,
    load_prompt,
    render_prompt,
)
from sourcegate.schemas.audit import utc_now_iso

if TYPE_CHECKING:
    from sourcegate.audit import AuditLogger
    from sourcegate.llm.provider import LLMProvider

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_CALL_TIMEOUT = 60.0
DEFAULT_TEMPERATURE = 0.0
DEFAULT_MAX_TOKENS = 600

CANCELLED_REASON = "cancelled"


class QueryState(str, Enum):
    IDLE = "idle"
    CALLING = "calling"
    VALIDATING = "validating"
    RETRYING = "retrying"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


TERMINAL_STATES = frozenset({QueryState.SUCCEEDED, QueryState.FAILED})

_ALLOWED_TRANSITIONS: dict[QueryState, frozenset[QueryState]] = {
    QueryState.IDLE: frozenset({QueryState.CALLING}),
    QueryState.CALLING: frozenset(
        {QueryState.VALIDATING, QueryState.RETRYING, QueryState.FAILED}
    ),
    QueryState.VALIDATING: frozenset(
        {QueryState.SUCCEEDED, QueryState.RETRYING, QueryState.FAILED}
    ),
    QueryState.RETRYING: frozenset({QueryState.CALLING}),
    QueryState.SUCCEEDED: frozenset(),
    QueryState.FAILED: frozenset(),
}


class InvalidTransitionError(RuntimeError):
    """A QueryRun was asked to move along an edge the state machine does not have."""


@dataclass(frozen=True)
class Transition:
    """One recorded state change."""

    source: QueryState
    target: QueryState
    attempt: int
    reason: str = ""
    time: str = field(default_factory=utc_now_iso)


@dataclass
class QueryRun:
    """State and history of one query_with_retries invocation."""

    prompt: str
    max_attempts: int
    state: QueryState = QueryState.IDLE
    attempt: int = 0
    transitions: list[Transition] = field(default_factory=list)
    responses: list[str] = field(default_factory=list)
    last_error: Exception | None = None
    content: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    @property
    def states(self) -> list[QueryState]:
        """Every state visited, starting with Idle."""
        return [QueryState.IDLE] + [t.target for t in self.transitions]

    def transition(self, target: QueryState, reason: str = "") -> None:
        if target not in _ALLOWED_TRANSITIONS[self.state]:
            raise InvalidTransitionError(f"{self.state.value} -> {target.value}")
        if target is QueryState.CALLING:
            self.attempt += 1
        self.transitions.append(
            Transition(source=self.state, target=target, attempt=self.attempt, reason=reason)
        )
        self.state = target


class QueryOrchestrator:
    """Runs prompts through the provider until the guardrails accept the output."""

    def __init__(
        self,
        provider: LLMProvider,
        validator: Callable[[str], None] | None = None,
        instruction_builder: Callable[[], str] | None = None,
        audit_logger: AuditLogger | None = None,
        system_prompt: str | None = None,
        call_timeout: float = DEFAULT_CALL_TIMEOUT,
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: int = DEFAULT_MAX_TOKENS,
    ) -> None:
        self.provider = provider
        self.validator = validator or GuardrailsValidator()
        self.instruction_builder = instruction_builder
        self.audit_logger = audit_logger
        self.system_prompt = (
            system_prompt if system_prompt is not None else load_prompt(NEUTRAL_SYSTEM_PROMPT)
        )
        self.call_timeout = call_timeout
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def query_with_retries(
        self, prompt: str, max_attempts: int = DEFAULT_MAX_ATTEMPTS
    ) -> str:
        """Return the first generated content that passes the guardrails.

        Raises:
            RetryExhaustedError: If every attempt failed; ``__cause__`` is the last failure.
            asyncio.CancelledError: If the calling task is cancelled.
        """
        run = await self.run(prompt, max_attempts)
        return run.content or ""

    async def run(self, prompt: str, max_attempts: int = DEFAULT_MAX_ATTEMPTS) -> QueryRun:
        """Drive one query to a terminal state and return the succeeded run."""
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        prefix = await self._build_prefix()
        base_prompt = f"{prefix}\n{prompt}" if prefix else prompt
        outbound = base_prompt
        run = QueryRun(prompt=prompt, max_attempts=max_attempts)

        try:
            run.transition(QueryState.CALLING)
            while True:
                try:
                    content = await self._call(outbound)
                except TransportError as exc:
                    run.last_error = exc
                    if self._fail_if_exhausted(run, f"transport: {exc}"):
                        break
                    logger.warning(
                        "LLM call failed (attempt %d/%d): %s", run.attempt, max_attempts, exc
                    )
                    run.transition(QueryState.RETRYING, f"transport: {exc}")
                    run.transition(QueryState.CALLING)
                    continue

                run.responses.append(content)
                run.transition(QueryState.VALIDATING)
                try:
                    self.validator(content)
                except ClaimValidationError as exc:
                    run.last_error = exc
                    if self._fail_if_exhausted(run, f"validation: {exc}"):
                        break
                    logger.info(
                        "Guardrails rejected response (attempt %d/%d): %s",
                        run.attempt,
                        max_attempts,
                        exc,
                    )
                    outbound = self._corrective_prompt(exc, base_prompt)
                    run.transition(QueryState.RETRYING, f"validation: {exc}")
                    run.transition(QueryState.CALLING)
                    continue

                run.content = content
                run.transition(QueryState.SUCCEEDED)
                logger.info("Query succeeded after %d attempt(s)", run.attempt)
                return run
        except asyncio.CancelledError:
            if not run.is_terminal:
                run.transition(QueryState.FAILED, CANCELLED_REASON)
            logger.info("Query cancelled during attempt %d", run.attempt)
            raise
        except Exception as exc:
            if not run.is_terminal:
                run.last_error = exc
                run.transition(QueryState.FAILED, f"error: {type(exc).__name__}: {exc}")
            raise

        logger.warning("Query failed after %d attempts: %s", run.attempt, run.last_error)
        raise RetryExhaustedError(run.attempt, run.last_error, run=run) from run.last_error

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _build_prefix(self) -> str:
        if self.instruction_builder is None:
            return ""
        try:
            # The builder reads the registry from disk
            return await asyncio.to_thread(self.instruction_builder)
        except ConfigurationError as exc:
            logger.warning("Evidence instruction unavailable, continuing without it: %s", exc)
            return ""

    @staticmethod
    def _fail_if_exhausted(run: QueryRun, reason: str) -> bool:
        if run.attempt < run.max_attempts:
            return False
        run.transition(QueryState.FAILED, reason)
        return True

    @staticmethod
    def _corrective_prompt(error: Exception, base_prompt: str) -> str:
        # Built from the original prompt every time so retries do not grow the prompt
        corrective = render_prompt(CORRECTIVE_RETRY_PROMPT, VALIDATION_ERROR=str(error)).strip()
        return f"{corrective}\n{base_prompt}"

    async def _call(self, outbound: str) -> str:
        if self.audit_logger is not None:
            self.audit_logger.record_llm_request(outbound)
        start = time.monotonic()
        try:
            content = await asyncio.wait_for(
                self.provider.acomplete(
                    outbound,
                    system_prompt=self.system_prompt,
                    temperature=self.temperature,
                    max_tokens=self.max_tokens,
                    timeout=self.call_timeout,
                    max_retries=1,
                ),
                timeout=self.call_timeout,
            )
        except TimeoutError as exc:
            self._record_response("", "timeout", start)
            raise TransportError(f"LLM call timed out after {self.call_timeout:.1f}s") from exc
        except TransportError:
            self._record_response("", "request_error", start)
            raise
        self._record_response(content, "ok", start)
        return content

    def _record_response(self, content: str, status: str, start: float) -> None:
        if self.audit_logger is None:
            return
        latency_ms = int((time.monotonic() - start) * 1000)
        self.audit_logger.record_llm_response(content, status=status, latency_ms=latency_ms)
