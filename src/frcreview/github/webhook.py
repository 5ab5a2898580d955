"""GitHub webhook payloads — signature check and review-trigger detection.

A review is triggered when a PR is opened, reopened or pushed to, and when
someone comments on the PR conversation (a re-review request).
"""

from __future__ import annotations

import hashlib
import hmac
from typing import Any

from frcreview.core.constants import STATE_MARKER
from frcreview.core.exceptions import MissingPRNumberError
from frcreview.core.logging import get_logger
from frcreview.github.schemas import WebhookEvent

logger = get_logger(__name__)

_SIGNATURE_PREFIX = "sha256="

# (X-GitHub-Event, action) pairs that trigger a review
ACTIONABLE_EVENTS = {
    ("pull_request", "opened"),
    ("pull_request", "synchronize"),
    ("pull_request", "reopened"),
    ("issue_comment", "created"),
}


def verify_signature(payload: bytes, signature: str, secret: str) -> bool:
    """Check ``X-Hub-Signature-256`` against the body using the webhook secret."""
    if not signature.startswith(_SIGNATURE_PREFIX):
        return False
    digest = hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()
    return hmac.compare_digest(_SIGNATURE_PREFIX + digest, signature)


def resolve_pr_number(payload: dict[str, Any]) -> int:
    """Find the PR number in a pull_request or issue_comment payload.

    Raises:
        MissingPRNumberError: If neither event shape carries a number.
    """
    number = (payload.get("pull_request") or {}).get("number")
    if not number:
        number = (payload.get("issue") or {}).get("number")
    if not isinstance(number, int) or number <= 0:
        raise MissingPRNumberError("Could not determine PR number from event payload")
    return number


def is_bot(user: dict[str, Any]) -> bool:
    login = user.get("login") or ""
    return user.get("type") == "Bot" or login.endswith("[bot]")


def is_review_request_comment(payload: dict[str, Any]) -> bool:
    """True for a human comment on a PR conversation.

    Comments on plain issues share the event type, and the service's own
    summary comments (and other bots') must not trigger another run.
    """
    issue = payload.get("issue") or {}
    if issue.get("pull_request") is None:
        logger.debug("ignoring_issue_comment", reason="not_a_pull_request")
        return False

    comment = payload.get("comment") or {}
    author = comment.get("user") or payload.get("sender") or {}
    if is_bot(author):
        logger.info("ignoring_issue_comment", reason="bot_author", author=author.get("login", ""))
        return False

    if STATE_MARKER in (comment.get("body") or ""):
        logger.info("ignoring_issue_comment", reason="review_summary")
        return False

    return True


def parse_webhook_event(event_type: str, payload: dict[str, Any]) -> WebhookEvent | None:
    """Parse a webhook payload into a WebhookEvent if actionable.

    Args:
        event_type: Value of X-GitHub-Event header.
        payload: Parsed JSON body.

    Returns:
        WebhookEvent if this is an actionable PR event, None otherwise.

    Raises:
        MissingPRNumberError: For an actionable event without a PR number.
    """
    action = payload.get("action", "")

    if (event_type, action) not in ACTIONABLE_EVENTS:
        logger.debug("ignoring_webhook", event_type=event_type, action=action)
        return None

    if event_type == "issue_comment" and not is_review_request_comment(payload):
        return None

    full_name = (payload.get("repository") or {}).get("full_name", "")
    owner, _, repo_name = full_name.partition("/")

    event = WebhookEvent(
        event_type=event_type,
        action=action,
        sender=(payload.get("sender") or {}).get("login", ""),
        repo_owner=owner,
        repo_name=repo_name,
        pr_number=resolve_pr_number(payload),
    )
    logger.info("review_trigger", event_type=event_type, action=action, repo=full_name, pr=event.pr_number)
    return event
