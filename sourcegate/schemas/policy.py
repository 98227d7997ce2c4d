"""Evidence policy schema (policy.json)."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class Policy(BaseModel):
    """Objective thresholds and explicit id lists for selecting evidence sources.

    There is deliberately no political-leaning filter: any such exclusion must be
    explicit and provable through the whitelist/blacklist. Blacklist membership
    overrides the whitelist and the thresholds.
    """

    model_config = ConfigDict(extra="ignore")

    min_trust_score: float = Field(0.0, ge=0.0, le=1.0)
    min_concordance_score: float = Field(0.0, ge=0.0, le=1.0)
    min_primary_links: int = Field(0, ge=0)
    whitelist: list[str] = Field(default_factory=list)
    blacklist: list[str] = Field(default_factory=list)
