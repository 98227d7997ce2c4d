"""Pydantic schemas for documents, request bodies and audit records."""

from sourcegate.schemas.audit import (
    FundingRunRecord,
    LLMRequestRecord,
    LLMResponseRecord,
    PolicyDecisionRecord,
)
from sourcegate.schemas.claim import Claim
from sourcegate.schemas.policy import Policy
from sourcegate.schemas.source import (
    LEANING_CATEGORIES,
    AuditEntry,
    EvidenceLink,
    ExternalRating,
    FundingSignals,
    Indicators,
    Proposal,
    ProposalCreate,
    Source,
)

__all__ = [
    # Registry
    "LEANING_CATEGORIES",
    "AuditEntry",
    "EvidenceLink",
    "ExternalRating",
    "FundingSignals",
    "Indicators",
    "Source",
    # Proposals
    "Proposal",
    "ProposalCreate",
    # Policy
    "Policy",
    # Guardrails
    "Claim",
    # Audit trail
    "FundingRunRecord",
    "LLMRequestRecord",
    "LLMResponseRecord",
    "PolicyDecisionRecord",
]
