"""
Funding-signal runs over the whole registry.

run_funding_fetchers: query each configured provider per source, write one
unapproved proposal per source to funding_proposals.json and note the run in
every source's audit log. Proposals still need reviewer approval.

seed_funding_signals: make sure every source carries owner_donations and note the
seed run in its audit log.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import httpx

from sourcegate.funding.adapters import (
    FECProvider,
    FollowTheMoneyProvider,
    Form990Provider,
    GoogleAdsProvider,
    MetaAdsProvider,
    OpenCorporatesProvider,
)
from sourcegate.funding.base import HTTP_TIMEOUT, FundingFetchResult, FundingProvider
from sourcegate.schemas import AuditEntry, EvidenceLink, FundingSignals, Proposal, Source
from sourcegate.schemas.audit import FundingRunRecord, utc_now_iso

if TYPE_CHECKING:
    from sourcegate.audit import AuditLogger
    from sourcegate.config import Settings
    from sourcegate.registry import Repository

logger = logging.getLogger(__name__)

SYSTEM_ACTOR = "system"
PROPOSE_FUNDING_ACTION = "propose_funding_update"
SEED_FUNDING_ACTION = "seed_funding_signals"

PROVIDER_CLASSES: dict[str, type[FundingProvider]] = {
    cls.name: cls
    for cls in (
        FECProvider,
        OpenCorporatesProvider,
        Form990Provider,
        MetaAdsProvider,
        GoogleAdsProvider,
        FollowTheMoneyProvider,
    )
}


def get_providers(
    settings: Settings,
    names: list[str] | None = None,
    client: httpx.Client | None = None,
) -> list[FundingProvider]:
    """Instantiate providers by name (default: settings.available_providers).

    Unknown names are logged and skipped.
    """
    providers: list[FundingProvider] = []
    for raw in names if names is not None else settings.available_providers:
        name = raw.strip().lower()
        cls = PROVIDER_CLASSES.get(name)
        if cls is None:
            logger.warning("Unknown funding provider %r - skipping", raw)
            continue
        providers.append(cls(settings, client=client))
    return providers


def _evidence_for(result: FundingFetchResult) -> EvidenceLink | None:
    evidence = result.evidence
    if result.ad_spend is None:
        return evidence
    label = getattr(PROVIDER_CLASSES.get(result.provider), "spend_label", "") or "estimated_ad_spend"
    excerpt = f"{label}={result.ad_spend:.2f}"
    if evidence is not None and evidence.excerpt:
        excerpt = f"{excerpt}; {evidence.excerpt}"
    return EvidenceLink(url=evidence.url if evidence else "", type=result.provider, excerpt=excerpt)


def build_funding_proposal(source_id: str, results: list[FundingFetchResult], now: str) -> Proposal:
    """Aggregate provider results for one source into an unapproved proposal."""
    totals = {"D": 0.0, "R": 0.0}
    evidence: list[EvidenceLink] = []
    used: list[str] = []
    stubbed: list[str] = []
    for result in results:
        for party, amount in result.donations.items():
            totals[party] = totals.get(party, 0.0) + amount
        (stubbed if result.is_stub else used).append(result.provider)
        link = _evidence_for(result)
        if link is not None:
            evidence.append(link)
    return Proposal(
        id=source_id,
        rationale=(
            f"Automated funding proposal for {source_id}: aggregated from available providers"
        ),
        proposer=SYSTEM_ACTOR,
        time=now,
        approved=False,
        funding=FundingSignals(owner_donations=totals),
        evidence_links=evidence,
        providers_used=used,
        provider_stubs=stubbed,
    )


def run_funding_fetchers(
    repository: Repository,
    settings: Settings,
    audit_logger: AuditLogger | None = None,
    providers: list[FundingProvider] | None = None,
) -> list[Proposal]:
    """Fetch funding signals for every source and write the funding proposals.

    Raises:
        ConfigurationError: If the registry cannot be read.
        RegistryWriteError: If the proposals or registry cannot be written.
    """
    sources = repository.sources.load()
    now = utc_now_iso()
    with httpx.Client(timeout=HTTP_TIMEOUT) as client:
        active = providers if providers is not None else get_providers(settings, client=client)
        proposals = [
            build_funding_proposal(source.id, [p.fetch(source.id) for p in active], now)
            for source in sources
        ]

    repository.funding_proposals.replace(proposals)

    def _note_run(all_sources: list[Source]) -> None:
        for source in all_sources:
            source.audit_log.append(
                AuditEntry(
                    time=utc_now_iso(),
                    actor=SYSTEM_ACTOR,
                    action=PROPOSE_FUNDING_ACTION,
                    notes="Automated funding proposal generated; requires reviewer approval",
                )
            )

    repository.sources.update_all(_note_run)

    used = sorted({name for p in proposals for name in p.providers_used})
    stubbed = sorted({name for p in proposals for name in p.provider_stubs})
    if audit_logger is not None:
        audit_logger.record_funding_run(
            FundingRunRecord(
                sources_processed=len(proposals),
                providers_requested=[p.name for p in active],
                providers_used=used,
                providers_stubbed=stubbed,
                proposals_path=str(repository.funding_proposals.document.path),
            )
        )
    logger.info(
        "Funding run complete: sources=%d used=%s stubbed=%s",
        len(proposals),
        used,
        stubbed,
    )
    return proposals


def providers_configured(settings: Settings) -> bool:
    return bool(
        settings.fec_api_key
        or settings.opencorporates_api_key
        or settings.form990_data_path
        or settings.dev_stubs
    )


def seed_funding_signals(repository: Repository, settings: Settings) -> list[Source]:
    """Default missing owner_donations to {"D": 0, "R": 0} and note the seed run."""
    if providers_configured(settings):
        note = (
            "seed_funding_signals: automated lookup executed or DEV_STUBS used "
            "(providers configured or dev stubs enabled)"
        )
    else:
        note = "seed_funding_signals: pending automated lookup; no API keys configured"

    def _seed(all_sources: list[Source]) -> None:
        now = utc_now_iso()
        for source in all_sources:
            if source.funding_signals.owner_donations is None:
                source.funding_signals = FundingSignals(owner_donations={"D": 0.0, "R": 0.0})
            source.audit_log.append(
                AuditEntry(time=now, actor=SYSTEM_ACTOR, action=SEED_FUNDING_ACTION, notes=note)
            )

    sources = repository.sources.update_all(_seed)
    logger.info("Seeded funding signals for %d sources", len(sources))
    return sources
