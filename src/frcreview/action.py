"""CI entry point — review the PR that triggered a GitHub Actions workflow.

Reads the triggering event from ``GITHUB_EVENT_PATH`` and the repository
from ``GITHUB_REPOSITORY``; everything else comes from ``Settings``.  Exits
non-zero when the review fails or, with ``fail_on_critical``, when a
critical issue is confirmed.
"""

from __future__ import annotations

import asyncio
import json
import os
import sys
from pathlib import Path
from typing import Any

from frcreview.api.dependencies import create_fast_llm_provider, create_github_client, create_llm_provider
from frcreview.core.config import Settings, get_settings
from frcreview.core.exceptions import ConfigurationError, FRCReviewError
from frcreview.core.logging import get_logger, setup_logging
from frcreview.core.models import PipelineResult, PullRequestRef
from frcreview.github.webhook import resolve_pr_number
from frcreview.orchestrator.pipeline import run_pipeline

logger = get_logger(__name__)


def load_event(event_path: str | None = None) -> dict[str, Any]:
    path = event_path or os.environ.get("GITHUB_EVENT_PATH")
    if not path:
        raise ConfigurationError("GITHUB_EVENT_PATH is not set")
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Could not read event payload: {path}", detail=str(e)) from e


def resolve_pull_request(payload: dict[str, Any], repository: str | None = None) -> PullRequestRef:
    """Build the PR reference from the event payload and ``owner/repo``.

    Raises:
        MissingPRNumberError: If the event carries no PR number.
        ConfigurationError: If the repository cannot be determined.
    """
    pr_number = resolve_pr_number(payload)

    full_name = repository or os.environ.get("GITHUB_REPOSITORY") or (payload.get("repository") or {}).get("full_name", "")
    owner, _, repo = full_name.partition("/")
    if not owner or not repo:
        raise ConfigurationError(f"Could not determine repository: {full_name!r}")

    return PullRequestRef(owner=owner, repo=repo, pr_number=pr_number)


async def run_action(
    settings: Settings,
    *,
    event_path: str | None = None,
    repository: str | None = None,
) -> PipelineResult:
    # The PR number is resolved before any client is created or called
    pr = resolve_pull_request(load_event(event_path), repository)

    github = create_github_client(settings)
    llm = create_llm_provider(settings)
    fast_llm = create_fast_llm_provider(settings)

    try:
        return await run_pipeline(pr, github=github, llm=llm, settings=settings, fast_llm=fast_llm)
    finally:
        await github.close()
        await llm.close()
        if fast_llm is not None:
            await fast_llm.close()


def main() -> int:
    try:
        settings = get_settings()
        setup_logging(settings.log_level)
        result = asyncio.run(run_action(settings))
    except FRCReviewError as e:
        logger.error("action_failed", error=str(e), error_type=type(e).__name__, detail=e.detail)
        return 1

    if result.failed:
        logger.error("critical_issues_found", **result.stats)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
