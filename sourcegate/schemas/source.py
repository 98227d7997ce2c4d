"""Source registry and proposal schemas.

Field names match the persisted JSON documents (registry.json, proposals.json).
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Seven-point political leaning scale, left to right
LEANING_CATEGORIES = (
    "far-left",
    "left",
    "center-left",
    "center",
    "center-right",
    "right",
    "far-right",
)


class Indicators(BaseModel):
    """Sourcing indicators the trust score is derived from."""

    model_config = ConfigDict(extra="ignore", validate_assignment=True)

    primary_links: int = Field(0, ge=0)
    correction_rate: float = Field(0.0, ge=0.0, le=1.0)
    concordance_score: float = Field(0.0, ge=0.0, le=1.0)


class FundingSignals(BaseModel):
    """Owner donations by party label (e.g. {"D": 1200.0, "R": 300.0})."""

    model_config = ConfigDict(extra="ignore")

    owner_donations: dict[str, float] | None = None


class ExternalRating(BaseModel):
    """A third-party bias rating, e.g. ("allsides", "lean left")."""

    model_config = ConfigDict(extra="ignore")

    source: str
    rating: str


class EvidenceLink(BaseModel):
    """Pointer to supporting material; ``type`` names the provider or kind."""

    model_config = ConfigDict(extra="ignore")

    url: str = ""
    type: str = ""
    excerpt: str = ""


class AuditEntry(BaseModel):
    """One append-only entry in a source's audit trail."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    time: str
    actor: str
    action: str
    notes: str = ""


class Source(BaseModel):
    """A registered evidence source.

    ``editorial_notes`` hold reviewer guidance only. They are never used as evidence
    and never rendered into prompts; use indicators and evidence_links instead.
    """

    model_config = ConfigDict(extra="ignore", validate_assignment=True)

    id: str = Field(..., min_length=1)
    name: str = ""
    url: str = ""
    trust_score: float = Field(0.0, ge=0.0, le=1.0)
    political_leaning: str = "center"
    leaning_score: float = Field(0.0, ge=-1.0, le=1.0)
    indicators: Indicators = Field(default_factory=Indicators)
    funding_signals: FundingSignals = Field(default_factory=FundingSignals)
    external_ratings: list[ExternalRating] = Field(default_factory=list)
    evidence_links: list[EvidenceLink] = Field(default_factory=list)
    audit_log: list[AuditEntry] = Field(default_factory=list)
    last_reviewed: str = ""
    reviewers: list[str] = Field(default_factory=list)
    editorial_notes: list[str] = Field(default_factory=list)

    @field_validator("political_leaning")
    @classmethod
    def _known_leaning(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in LEANING_CATEGORIES:
            raise ValueError(f"political_leaning must be one of {', '.join(LEANING_CATEGORIES)}")
        return normalized


class Proposal(BaseModel):
    """A pending, reviewer-gated change to a source.

    ``id`` is the target source id. Approval flips ``approved`` exactly once and
    sets ``reviewer``; proposals are never deleted.
    """

    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., min_length=1)
    new_score: float | None = Field(None, ge=0.0, le=1.0)
    rationale: str = ""
    proposer: str = ""
    time: str = ""
    approved: bool = False
    reviewer: str | None = None
    funding: FundingSignals | None = None
    evidence_links: list[EvidenceLink] = Field(default_factory=list)
    providers_used: list[str] = Field(default_factory=list)
    provider_stubs: list[str] = Field(default_factory=list)


class ProposalCreate(BaseModel):
    """Request body for POST /sources/propose. Server sets time and approved."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    id: str = Field(..., min_length=1, max_length=128)
    new_score: float | None = Field(None, ge=0.0, le=1.0)
    rationale: str = Field("", max_length=4000)
    proposer: str = Field("", max_length=255)
    funding: FundingSignals | None = None
    evidence_links: list[EvidenceLink] = Field(default_factory=list, max_length=50)
