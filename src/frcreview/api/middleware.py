"""Middleware — CORS, request logging, error handling."""

from __future__ import annotations

import time
import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from frcreview.core.exceptions import (
    ConfigurationError,
    FRCReviewError,
    GitHubAuthError,
    GitHubRateLimitError,
    InvalidPRURLError,
    LLMError,
    MissingPRNumberError,
    PRNotFoundError,
    ValidationError,
)
from frcreview.core.logging import get_logger

logger = get_logger(__name__)


def setup_middleware(app: FastAPI) -> None:
    """Attach all middleware to the FastAPI app."""

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_logging(request: Request, call_next):
        """Log every request with timing and a correlation ID."""
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:8]
        start = time.perf_counter_ns()

        response = await call_next(request)

        logger.info(
            "http_request",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=(time.perf_counter_ns() - start) // 1_000_000,
            request_id=request_id,
        )
        response.headers["X-Request-ID"] = request_id
        return response


def _error(status_code: int, error: str, exc: FRCReviewError) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": error, "detail": exc.detail})


def setup_exception_handlers(app: FastAPI) -> None:
    """Register domain exception → HTTP response mappings."""

    @app.exception_handler(InvalidPRURLError)
    async def handle_invalid_pr_url(request: Request, exc: InvalidPRURLError):
        return _error(400, "Invalid PR URL", exc)

    @app.exception_handler(MissingPRNumberError)
    async def handle_missing_pr_number(request: Request, exc: MissingPRNumberError):
        return _error(400, "Missing PR Number", exc)

    @app.exception_handler(ValidationError)
    async def handle_validation(request: Request, exc: ValidationError):
        return _error(422, "Validation Error", exc)

    @app.exception_handler(GitHubAuthError)
    async def handle_auth(request: Request, exc: GitHubAuthError):
        return _error(401, "GitHub Auth Error", exc)

    @app.exception_handler(PRNotFoundError)
    async def handle_not_found(request: Request, exc: PRNotFoundError):
        return _error(404, "PR Not Found", exc)

    @app.exception_handler(GitHubRateLimitError)
    async def handle_rate_limit(request: Request, exc: GitHubRateLimitError):
        return _error(429, "Rate Limited", exc)

    @app.exception_handler(LLMError)
    async def handle_llm(request: Request, exc: LLMError):
        return _error(502, "LLM Error", exc)

    @app.exception_handler(ConfigurationError)
    async def handle_configuration(request: Request, exc: ConfigurationError):
        logger.error("configuration_error", error=str(exc))
        return _error(500, "Configuration Error", exc)

    @app.exception_handler(FRCReviewError)
    async def handle_frcreview(request: Request, exc: FRCReviewError):
        return _error(500, "Internal Error", exc)
