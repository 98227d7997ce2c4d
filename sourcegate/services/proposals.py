"""Reviewer-gated proposal workflow.

Anyone may submit a proposal; it is stored unapproved. Approval needs a reviewer
identity, flips the first matching unapproved proposal exactly once and applies it
to the source. Proposals are never deleted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sourcegate.errors import AuthorizationError, NotFoundError, RegistryWriteError
from sourcegate.schemas import AuditEntry, Proposal, ProposalCreate, Source
from sourcegate.schemas.audit import utc_now_iso

if TYPE_CHECKING:
    from sourcegate.registry import Repository

logger = logging.getLogger(__name__)

APPROVE_ACTION = "approve_proposal"


@dataclass
class ApprovalResult:
    proposal: Proposal
    source: Source


def submit_proposal(repository: Repository, body: ProposalCreate) -> Proposal:
    """Append an unapproved proposal. The server sets ``time`` and ``approved``."""
    proposal = Proposal(
        id=body.id,
        new_score=body.new_score,
        rationale=body.rationale,
        proposer=body.proposer,
        time=utc_now_iso(),
        approved=False,
        funding=body.funding,
        evidence_links=body.evidence_links,
    )
    repository.proposals.append(proposal)
    logger.info("Proposal received for source %s from %r", proposal.id, proposal.proposer)
    return proposal


def approve_proposal(repository: Repository, source_id: str, reviewer: str) -> ApprovalResult:
    """Approve the first unapproved proposal for ``source_id`` and apply it.

    The proposed score (when one was proposed) is copied into the source, which
    also gets today's ``last_reviewed``, the reviewer and an audit entry. Both
    documents are updated under the shared writer lock: the proposal is marked
    approved first and the registry written second, and the proposal is put back
    if the registry write fails, so a retried approval applies it exactly once.

    Raises:
        AuthorizationError: If ``reviewer`` is blank.
        NotFoundError: If there is no matching proposal or no such source.
        RegistryWriteError: If either document cannot be written.
    """
    reviewer = reviewer.strip()
    if not reviewer:
        raise AuthorizationError("missing reviewer header")

    with repository.lock:
        proposals, proposals_version = repository.proposals.snapshot()
        proposal = next((p for p in proposals if p.id == source_id and not p.approved), None)
        if proposal is None:
            raise NotFoundError("proposal not found")

        sources, sources_version = repository.sources.snapshot()
        source = next((s for s in sources if s.id == source_id), None)
        if source is None:
            raise NotFoundError("source not found in registry")

        now = datetime.now(UTC)
        if proposal.new_score is not None:
            source.trust_score = proposal.new_score
        source.last_reviewed = now.strftime("%Y-%m-%d")
        source.reviewers.append(reviewer)
        source.audit_log.append(
            AuditEntry(
                time=utc_now_iso(),
                actor=reviewer,
                action=APPROVE_ACTION,
                notes=_approval_note(proposal),
            )
        )
        previous_reviewer = proposal.reviewer
        proposal.approved = True
        proposal.reviewer = reviewer

        approved_version = repository.proposals.compare_and_swap(proposals_version, proposals)
        try:
            repository.sources.compare_and_swap(sources_version, sources)
        except RegistryWriteError:
            proposal.approved = False
            proposal.reviewer = previous_reviewer
            _restore_proposals(repository, approved_version, proposals, source_id)
            raise

    logger.info(
        "Proposal approved: source=%s reviewer=%s new_score=%s",
        source_id,
        reviewer,
        proposal.new_score,
    )
    return ApprovalResult(proposal=proposal, source=source)


def _restore_proposals(
    repository: Repository, version: str, proposals: list[Proposal], source_id: str
) -> None:
    try:
        repository.proposals.compare_and_swap(version, proposals)
    except RegistryWriteError:
        # Left approved but unapplied; it will not be applied twice
        logger.exception("Could not restore proposal for %s after failed registry write", source_id)


def _approval_note(proposal: Proposal) -> str:
    if proposal.new_score is None:
        note = "Approved proposal without a score change"
    else:
        note = f"Approved trust_score={proposal.new_score:.2f}"
    if proposal.proposer:
        note += f" proposed by {proposal.proposer}"
    return note
