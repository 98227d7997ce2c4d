"""Shared FastAPI dependencies for API routes."""

from __future__ import annotations

from fastapi import Depends, Header, HTTPException, Request, status

from sourcegate.audit import AuditLogger
from sourcegate.config import Settings, get_settings
from sourcegate.llm import LLMProvider, get_llm_provider
from sourcegate.registry import Repository
from sourcegate.services.evidence_policy import build_evidence_instruction
from sourcegate.services.query_orchestrator import QueryOrchestrator

__all__ = [
    "get_audit_logger",
    "get_llm",
    "get_orchestrator",
    "get_repository",
    "get_settings",
    "require_reviewer",
]

REVIEWER_HEADER = "X-Reviewer"


def get_repository(settings: Settings = Depends(get_settings)) -> Repository:
    """Repository over settings.data_dir. Cheap to build; all instances share the writer lock."""
    return Repository.from_settings(settings)


def get_audit_logger(request: Request, settings: Settings = Depends(get_settings)) -> AuditLogger:
    """The app-wide AuditLogger (created at startup, or on first use without lifespan)."""
    audit_logger = getattr(request.app.state, "audit_logger", None)
    if audit_logger is None:
        audit_logger = AuditLogger.from_settings(settings)
        request.app.state.audit_logger = audit_logger
    return audit_logger


def get_llm(settings: Settings = Depends(get_settings)) -> LLMProvider | None:
    """Configured LLM provider (None in FAKE_LLM mode); 503 when it cannot be built."""
    if settings.fake_llm:
        return None
    try:
        return get_llm_provider(settings)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc


def get_orchestrator(
    settings: Settings = Depends(get_settings),
    provider: LLMProvider | None = Depends(get_llm),
    repository: Repository = Depends(get_repository),
    audit_logger: AuditLogger = Depends(get_audit_logger),
) -> QueryOrchestrator | None:
    """QueryOrchestrator wired to the evidence policy. None in FAKE_LLM mode."""
    if provider is None:
        return None
    return QueryOrchestrator(
        provider=provider,
        instruction_builder=lambda: build_evidence_instruction(repository, audit_logger),
        audit_logger=audit_logger,
        call_timeout=settings.llm_timeout,
    )


def require_reviewer(x_reviewer: str | None = Header(None)) -> str:
    """Reviewer identity from the X-Reviewer header; 401 when missing or blank."""
    if not x_reviewer or not x_reviewer.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="missing reviewer header",
        )
    return x_reviewer.strip()
