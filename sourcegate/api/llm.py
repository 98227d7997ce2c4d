"""Guardrailed generation endpoint."""

from __future__ import annotations

import logging
import time

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from sourcegate.api.deps import get_orchestrator, get_settings
from sourcegate.config import Settings
from sourcegate.errors import RetryExhaustedError
from sourcegate.services.query_orchestrator import QueryOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter()

LATENCY_HEADER = "X-LLM-Latency-Ms"


@router.get("/llm")
async def api_llm(
    response: Response,
    q: str | None = Query(None),
    settings: Settings = Depends(get_settings),
    orchestrator: QueryOrchestrator | None = Depends(get_orchestrator),
) -> dict:
    """Answer ``q`` with claims that passed the guardrails."""
    if q is None or not q.strip():
        raise HTTPException(status_code=400, detail="missing query parameter q")

    start = time.monotonic()
    if orchestrator is None:
        content = f'Simulated LLM response for "{q}"'
    else:
        try:
            content = await orchestrator.query_with_retries(
                q, max_attempts=settings.query_max_attempts
            )
        except RetryExhaustedError as exc:
            logger.warning("LLM query exhausted retries: %s", exc)
            raise HTTPException(status_code=502, detail=str(exc)) from exc
    response.headers[LATENCY_HEADER] = str(int((time.monotonic() - start) * 1000))
    return {"response": content}
