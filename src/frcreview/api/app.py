"""FastAPI application factory with lifespan management."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import RedirectResponse

from frcreview.api.dependencies import (
    create_fast_llm_provider,
    create_github_client,
    create_llm_provider,
)
from frcreview.api.middleware import setup_exception_handlers, setup_middleware
from frcreview.api.routers import health, reviews, webhooks
from frcreview.core.config import Settings
from frcreview.core.logging import get_logger, setup_logging

logger = get_logger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Without settings the routes are mounted but the review pipeline reports
    503 until configured.  Factory used by uvicorn::

        uvicorn frcreview.api.app:create_app --factory --reload
    """
    setup_logging(settings.log_level if settings else "INFO")

    clients = []
    if settings is not None:
        github = create_github_client(settings)
        llm = create_llm_provider(settings)
        fast_llm = create_fast_llm_provider(settings)
        reviews.configure_review_router(settings, github, llm, fast_llm)
        webhooks.configure_webhook_router(settings)
        clients = [c for c in (github, llm, fast_llm) if c is not None]

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        for client in clients:
            await client.close()
        logger.info("app_shutdown", closed_clients=len(clients))

    app = FastAPI(
        title="FRC Review",
        description="Skill-driven LLM pull request review for FRC robot code",
        version=health.VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    setup_middleware(app)
    setup_exception_handlers(app)

    app.include_router(health.router, prefix="/api/v1")
    app.include_router(reviews.router, prefix="/api/v1")
    app.include_router(webhooks.router, prefix="/api/v1")

    @app.get("/", include_in_schema=False)
    async def root():
        """Root redirect to docs."""
        return RedirectResponse(url="/docs")

    logger.info("app_created", version=health.VERSION, configured=settings is not None)
    return app
