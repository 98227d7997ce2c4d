"""Evidence-source policy: which registry sources a prompt may cite.

Selection is a stable filter in registry order:
- blacklisted ids are always excluded (this overrides the whitelist),
- whitelisted ids are always included,
- anything else must meet every numeric threshold in the Policy.

Only ``id`` and ``url`` of a selected source are ever rendered into a prompt.
Editorial notes stay in the registry.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sourcegate.errors import ConfigurationError
from sourcegate.schemas import Policy, Source

if TYPE_CHECKING:
    from sourcegate.audit import AuditLogger
    from sourcegate.registry import Repository

logger = logging.getLogger(__name__)

INSTRUCTION_HEADER = "Only use the following approved sources for evidence (ID:url):"
BLACKLIST_LINE = "Do NOT use these blacklisted sources: [{ids}]"


@dataclass(frozen=True)
class EvidenceSelection:
    """Result of one selection: admitted sources and the policy blacklist."""

    included: list[Source]
    blacklist: list[str]

    @property
    def included_ids(self) -> list[str]:
        return [s.id for s in self.included]


def select_evidence_sources(sources: list[Source], policy: Policy) -> list[Source]:
    """Return the admissible subset of ``sources``, preserving order."""
    blacklist = set(policy.blacklist)
    whitelist = set(policy.whitelist)
    selected: list[Source] = []
    for source in sources:
        if source.id in blacklist:
            continue
        if source.id in whitelist:
            selected.append(source)
            continue
        if (
            source.trust_score >= policy.min_trust_score
            and source.indicators.concordance_score >= policy.min_concordance_score
            and source.indicators.primary_links >= policy.min_primary_links
        ):
            selected.append(source)
    return selected


def load_evidence_selection(repository: Repository) -> EvidenceSelection:
    """Select from the current registry under the current policy.

    Raises:
        ConfigurationError: If the policy or registry is missing or invalid.
    """
    policy = repository.policy.load()
    sources = repository.sources.load()
    return EvidenceSelection(
        included=select_evidence_sources(sources, policy),
        blacklist=list(policy.blacklist),
    )


def render_evidence_instruction(selection: EvidenceSelection) -> str:
    """Render the prompt prefix. Empty when nothing was selected."""
    if not selection.included:
        return ""
    lines = [INSTRUCTION_HEADER]
    lines.extend(f"- {s.id}:{s.url}" for s in selection.included)
    if selection.blacklist:
        lines.append(BLACKLIST_LINE.format(ids=" ".join(selection.blacklist)))
    return "\n".join(lines) + "\n"


def build_evidence_instruction(
    repository: Repository,
    audit_logger: AuditLogger | None = None,
) -> str:
    """Build the evidence prefix for an outbound prompt.

    A missing or invalid policy/registry yields "" (no restriction is added).
    Each successful selection is recorded on the audit trail, best effort.
    """
    try:
        selection = load_evidence_selection(repository)
    except ConfigurationError as exc:
        logger.warning("Evidence instruction skipped: %s", exc)
        return ""
    if audit_logger is not None:
        audit_logger.record_policy_decision(selection.included_ids, selection.blacklist)
    logger.debug(
        "Selected %d evidence sources",
        len(selection.included),
        extra={"included": selection.included_ids, "excluded": selection.blacklist},
    )
    return render_evidence_instruction(selection)
