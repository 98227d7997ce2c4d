"""Claim schema for generated output validated by the guardrails."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class Claim(BaseModel):
    """One atomic factual or interpretive statement with its sources.

    Structural parsing only: semantic rules (non-empty sources, URL shape,
    attribution for normative language, timestamp format) are enforced by
    ``sourcegate.guardrails.validator``.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    text: str = Field("", alias="claim")
    sources: list[str] = Field(default_factory=list)
    timestamp: str = ""
    attribution: str = ""
