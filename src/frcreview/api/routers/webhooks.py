"""Webhook endpoint — receives GitHub events and schedules reviews."""

from __future__ import annotations

import json

from fastapi import APIRouter, BackgroundTasks, HTTPException, Request

from frcreview.api.routers import reviews
from frcreview.core.config import Settings
from frcreview.core.exceptions import FRCReviewError
from frcreview.core.logging import get_logger
from frcreview.core.models import PullRequestRef
from frcreview.github.webhook import parse_webhook_event, verify_signature

logger = get_logger(__name__)

router = APIRouter(prefix="/webhooks", tags=["Webhooks"])

_settings: Settings | None = None


def configure_webhook_router(settings: Settings) -> None:
    """Inject settings dependency."""
    global _settings
    _settings = settings


async def run_background_review(pr: PullRequestRef) -> None:
    """Background entry point; failures are logged since no caller is waiting."""
    try:
        result = await reviews.review_pull_request(pr)
    except FRCReviewError as e:
        logger.error(
            "background_review_failed",
            repo=f"{pr.owner}/{pr.repo}",
            pr=pr.pr_number,
            error=str(e),
            error_type=type(e).__name__,
        )
        return

    logger.info(
        "background_review_complete",
        repo=f"{pr.owner}/{pr.repo}",
        pr=pr.pr_number,
        skipped=result.skipped,
        failed=result.failed,
    )


@router.post("/github", status_code=202)
async def github_webhook(request: Request, background_tasks: BackgroundTasks):
    """Receive GitHub webhook events.

    Handles ``pull_request`` (opened, synchronize, reopened) and
    ``issue_comment`` (created, on a PR).  Actionable events schedule a
    review in the background and return 202 Accepted.
    """
    body = await request.body()

    if _settings and _settings.github_webhook_secret:
        signature = request.headers.get("X-Hub-Signature-256", "")
        secret = _settings.github_webhook_secret.get_secret_value()

        if not verify_signature(body, signature, secret):
            logger.warning("webhook_signature_invalid")
            raise HTTPException(status_code=401, detail="Invalid webhook signature")

    event_type = request.headers.get("X-GitHub-Event", "")

    try:
        payload = json.loads(body)
    except json.JSONDecodeError:
        raise HTTPException(status_code=400, detail="Invalid JSON payload")

    event = parse_webhook_event(event_type, payload)

    if event is None:
        logger.info("webhook_ignored", event_type=event_type)
        return {"status": "ignored", "message": "Event type not actionable"}

    if not reviews.is_configured():
        raise HTTPException(status_code=503, detail="Service not configured")

    pr = PullRequestRef(owner=event.repo_owner, repo=event.repo_name, pr_number=event.pr_number)
    background_tasks.add_task(run_background_review, pr)

    logger.info(
        "webhook_review_scheduled",
        event_type=event.event_type,
        action=event.action,
        repo=f"{event.repo_owner}/{event.repo_name}",
        pr=event.pr_number,
        sender=event.sender,
    )

    return {
        "status": "accepted",
        "pr": f"{event.repo_owner}/{event.repo_name}#{event.pr_number}",
        "action": event.action,
    }
