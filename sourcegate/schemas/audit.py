"""Audit trail records written as newline-delimited JSON."""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field

POLICY_DECISION_REASON = "Selected evidence sources for LLM prompt"
MAX_LOGGED_PROMPT_CHARS = 2000


def utc_now_iso() -> str:
    """Current UTC time as RFC 3339 with second precision (e.g. 2026-01-01T00:00:00Z)."""
    return datetime.now(UTC).replace(microsecond=0).isoformat().replace("+00:00", "Z")


class PolicyDecisionRecord(BaseModel):
    """One evidence-selection decision: included ids and the blacklisted ids."""

    model_config = ConfigDict(extra="forbid")

    time: str = Field(default_factory=utc_now_iso)
    included: list[str] = Field(default_factory=list)
    excluded: list[str] = Field(default_factory=list)
    reason: str = POLICY_DECISION_REASON


class LLMRequestRecord(BaseModel):
    """Outbound prompt (truncated) sent to the generation capability."""

    model_config = ConfigDict(extra="forbid")

    time: str = Field(default_factory=utc_now_iso)
    prompt: str

    @classmethod
    def for_prompt(cls, prompt: str) -> LLMRequestRecord:
        if len(prompt) > MAX_LOGGED_PROMPT_CHARS:
            prompt = prompt[:MAX_LOGGED_PROMPT_CHARS] + "..."
        return cls(prompt=prompt)


class LLMResponseRecord(BaseModel):
    """Raw model response (or failure) with status and latency."""

    model_config = ConfigDict(extra="forbid")

    time: str = Field(default_factory=utc_now_iso)
    content: str = ""
    status: str = "ok"  # ok | request_error | timeout
    latency_ms: int = Field(0, ge=0)


class FundingRunRecord(BaseModel):
    """Summary of one funding-provider run."""

    model_config = ConfigDict(extra="forbid")

    time: str = Field(default_factory=utc_now_iso)
    sources_processed: int = Field(0, ge=0)
    providers_requested: list[str] = Field(default_factory=list)
    providers_used: list[str] = Field(default_factory=list)
    providers_stubbed: list[str] = Field(default_factory=list)
    proposals_path: str = ""
