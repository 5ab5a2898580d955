"""Review endpoints — run the skill-driven review pipeline on a PR."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException

from frcreview.api.schemas import CreateReviewRequest, ReviewResponse
from frcreview.core.config import Settings
from frcreview.core.logging import get_logger
from frcreview.core.models import PipelineResult, PullRequestRef
from frcreview.github.client import GitHubClient, parse_pr_url
from frcreview.llm.base import LLMProvider
from frcreview.orchestrator.pipeline import run_pipeline

logger = get_logger(__name__)

router = APIRouter(prefix="/reviews", tags=["Reviews"])

# These will be injected at app startup
_settings: Settings | None = None
_github_client: GitHubClient | None = None
_llm_provider: LLMProvider | None = None
_fast_llm_provider: LLMProvider | None = None


def configure_review_router(
    settings: Settings,
    github_client: GitHubClient,
    llm_provider: LLMProvider,
    fast_llm_provider: LLMProvider | None = None,
) -> None:
    """Inject dependencies into the review router."""
    global _settings, _github_client, _llm_provider, _fast_llm_provider
    _settings = settings
    _github_client = github_client
    _llm_provider = llm_provider
    _fast_llm_provider = fast_llm_provider


def is_configured() -> bool:
    return _settings is not None and _github_client is not None and _llm_provider is not None


async def review_pull_request(pr: PullRequestRef) -> PipelineResult:
    """Run the pipeline with the injected services."""
    if not is_configured():
        raise HTTPException(status_code=503, detail="Service not configured")

    return await run_pipeline(
        pr,
        github=_github_client,
        llm=_llm_provider,
        settings=_settings,
        fast_llm=_fast_llm_provider,
    )


@router.post("/", response_model=ReviewResponse, status_code=200)
async def create_review(request: CreateReviewRequest) -> ReviewResponse:
    """Review a GitHub PR and post the results back to it.

    Only files changed since the last reviewed commit are considered when
    the PR already carries a review from this service.
    """
    if not is_configured():
        raise HTTPException(status_code=503, detail="Service not configured")

    owner, repo, pr_number = parse_pr_url(request.pr_url)
    result = await review_pull_request(PullRequestRef(owner=owner, repo=repo, pr_number=pr_number))

    return ReviewResponse.from_result(result, pr_url=request.pr_url)
