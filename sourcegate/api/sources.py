"""Source registry API routes: list, propose, approve, compute scores."""

from __future__ import annotations

import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from sourcegate.api.deps import get_repository, require_reviewer
from sourcegate.errors import ConfigurationError, NotFoundError, RegistryWriteError
from sourcegate.registry import Repository
from sourcegate.schemas import ProposalCreate, Source
from sourcegate.services.proposals import approve_proposal, submit_proposal
from sourcegate.services.scoring import compute_leaning_score, compute_trust_score

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
def api_list_sources(repository: Repository = Depends(get_repository)) -> list[dict]:
    """Return the full registry."""
    try:
        sources = repository.sources.load()
    except ConfigurationError as exc:
        logger.error("Registry unavailable: %s", exc)
        raise HTTPException(status_code=500, detail="failed to load registry") from exc
    return [s.model_dump(mode="json") for s in sources]


@router.post("/propose", status_code=202)
async def api_propose(
    request: Request,
    repository: Repository = Depends(get_repository),
) -> dict:
    """Store an unapproved proposal. The server sets time and approved=false."""
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise HTTPException(status_code=400, detail="invalid request body") from exc
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="invalid request body")
    try:
        body = ProposalCreate.model_validate(payload)
    except ValidationError as exc:
        raise HTTPException(
            status_code=400,
            detail={"message": "invalid request body", "errors": exc.errors(include_url=False)},
        ) from exc

    try:
        await run_in_threadpool(submit_proposal, repository, body)
    except (RegistryWriteError, ConfigurationError) as exc:
        logger.error("Failed to store proposal for %s: %s", body.id, exc)
        raise HTTPException(status_code=500, detail="failed to store proposal") from exc
    return {"status": "proposal received"}


@router.post("/{source_id}/approve")
def api_approve(
    source_id: str,
    reviewer: str = Depends(require_reviewer),
    repository: Repository = Depends(get_repository),
) -> dict:
    """Approve the first unapproved proposal for a source. Requires X-Reviewer."""
    try:
        approve_proposal(repository, source_id, reviewer)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except (RegistryWriteError, ConfigurationError) as exc:
        logger.error("Approval for %s failed: %s", source_id, exc)
        raise HTTPException(status_code=500, detail="failed to update registry") from exc
    return {"status": "approved"}


@router.get("/{source_id}/compute")
def api_compute_trust(
    source_id: str,
    repository: Repository = Depends(get_repository),
) -> dict:
    """Recompute the trust score from indicators. Not persisted."""
    source = _get_source_or_404(repository, source_id)
    return {"id": source.id, "computed_score": compute_trust_score(source.indicators)}


@router.get("/{source_id}/compute-leaning")
def api_compute_leaning(
    source_id: str,
    repository: Repository = Depends(get_repository),
) -> dict:
    """Recompute the leaning score and persist it under the writer lock."""

    def _store(source: Source) -> None:
        source.leaning_score = compute_leaning_score(source)

    try:
        source = repository.sources.update_source(source_id, _store)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail="source not found") from exc
    except (RegistryWriteError, ConfigurationError) as exc:
        logger.error("Leaning recompute for %s failed: %s", source_id, exc)
        raise HTTPException(status_code=500, detail="failed to update registry") from exc
    return {"id": source.id, "computed_leaning": source.leaning_score}


def _get_source_or_404(repository: Repository, source_id: str) -> Source:
    try:
        return repository.sources.get(source_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail="source not found") from exc
    except ConfigurationError as exc:
        raise HTTPException(status_code=500, detail="failed to load registry") from exc
