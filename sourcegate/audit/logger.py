"""
Fire-and-forget audit logger.

Records are handed to a single background worker, so callers never wait on disk
and entries from one logger land in submission order. A failed write is logged on
the ``sourcegate.audit.diagnostics`` logger, kept in ``AuditLogger.failures`` and
passed to the optional ``on_error`` callback. It is never raised to the caller.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from pydantic import BaseModel

from sourcegate.audit.sinks import JsonlFileSink
from sourcegate.schemas.audit import (
    FundingRunRecord,
    LLMRequestRecord,
    LLMResponseRecord,
    PolicyDecisionRecord,
    utc_now_iso,
)

if TYPE_CHECKING:
    from sourcegate.config import Settings

diagnostics = logging.getLogger("sourcegate.audit.diagnostics")

MAX_FAILURES_KEPT = 100


@dataclass
class AuditFailure:
    """One audit record that could not be written."""

    kind: str
    error: str
    time: str = field(default_factory=utc_now_iso)


class AuditLogger:
    """Append-only trail for policy decisions, LLM traffic and funding runs."""

    def __init__(
        self,
        policy_sink: JsonlFileSink,
        request_sink: JsonlFileSink,
        response_sink: JsonlFileSink,
        funding_sink: JsonlFileSink,
        on_error: Callable[[AuditFailure], None] | None = None,
    ) -> None:
        self._sinks = {
            "policy_decision": policy_sink,
            "llm_request": request_sink,
            "llm_response": response_sink,
            "funding_run": funding_sink,
        }
        self.on_error = on_error
        self.failures: deque[AuditFailure] = deque(maxlen=MAX_FAILURES_KEPT)
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="audit")

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        on_error: Callable[[AuditFailure], None] | None = None,
    ) -> AuditLogger:
        return cls(
            policy_sink=JsonlFileSink(settings.policy_audit_log_path),
            request_sink=JsonlFileSink(settings.llm_requests_log_path),
            response_sink=JsonlFileSink(settings.llm_responses_log_path),
            funding_sink=JsonlFileSink(settings.funding_runs_log_path),
            on_error=on_error,
        )

    # ------------------------------------------------------------------
    # Record kinds
    # ------------------------------------------------------------------

    def record_policy_decision(self, included: Iterable[str], excluded: Iterable[str]) -> None:
        """Evidence selection: included source ids and the blacklisted ids."""
        self._submit(
            "policy_decision",
            PolicyDecisionRecord(included=list(included), excluded=list(excluded)),
        )

    def record_llm_request(self, prompt: str) -> None:
        self._submit("llm_request", LLMRequestRecord.for_prompt(prompt))

    def record_llm_response(self, content: str, status: str = "ok", latency_ms: int = 0) -> None:
        self._submit(
            "llm_response",
            LLMResponseRecord(content=content, status=status, latency_ms=max(0, latency_ms)),
        )

    def record_funding_run(self, record: FundingRunRecord) -> None:
        self._submit("funding_run", record)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def flush(self, timeout: float | None = None) -> None:
        """Block until every record submitted so far has been handled."""
        try:
            self._executor.submit(lambda: None).result(timeout=timeout)
        except RuntimeError:
            # Already shut down: nothing pending
            return

    def close(self) -> None:
        self._executor.shutdown(wait=True)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _submit(self, kind: str, record: BaseModel) -> None:
        try:
            self._executor.submit(self._write, kind, record)
        except RuntimeError as exc:
            self._report(kind, exc)

    def _write(self, kind: str, record: BaseModel) -> None:
        try:
            self._sinks[kind].append(record)
        except (OSError, TypeError, ValueError) as exc:
            self._report(kind, exc)

    def _report(self, kind: str, exc: Exception) -> None:
        failure = AuditFailure(kind=kind, error=f"{type(exc).__name__}: {exc}")
        self.failures.append(failure)
        diagnostics.warning("Audit write failed: kind=%s error=%s", kind, failure.error)
        if self.on_error is not None:
            try:
                self.on_error(failure)
            except Exception:
                diagnostics.exception("Audit on_error callback raised")
