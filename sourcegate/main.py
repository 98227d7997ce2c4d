"""
SourceGate FastAPI application entry point.

Registry → evidence policy → generation → guardrails → audit trail
"""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse

from sourcegate import __version__
from sourcegate.audit import AuditLogger
from sourcegate.config import Settings, get_settings
from sourcegate.errors import ConfigurationError
from sourcegate.registry import Repository

logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown."""
    settings = get_settings()
    logger.info("SourceGate starting (data_dir=%s)", settings.data_dir)
    app.state.audit_logger = AuditLogger.from_settings(settings)
    try:
        try:
            sources = Repository.from_settings(settings).sources.load()
            logger.info("Registry loaded: %d sources", len(sources))
        except ConfigurationError as e:
            # Served as 500 on /sources and "unavailable" on /health until fixed
            logger.error("Registry unavailable at startup: %s", e)
        yield
    finally:
        logger.info("SourceGate shutting down")
        app.state.audit_logger.close()
        logger.info("Audit logger flushed")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    from sourcegate.api.llm import router as llm_router
    from sourcegate.api.sources import router as sources_router

    app.include_router(sources_router, prefix="/sources", tags=["sources"])
    app.include_router(llm_router, tags=["llm"])

    @app.get("/health")
    def health(settings: Settings = Depends(get_settings)) -> dict:
        """Health check endpoint. Confirms the registry is readable."""
        try:
            Repository.from_settings(settings).sources.load()
        except ConfigurationError:
            return JSONResponse(
                status_code=503,
                content={
                    "status": "unhealthy",
                    "version": __version__,
                    "registry": "unavailable",
                },
            )
        return {
            "status": "ok",
            "version": __version__,
            "registry": "available",
        }

    return app


app = create_app()
