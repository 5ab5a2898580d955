"""Tests for frcreview.api — endpoints, schemas, middleware."""

from __future__ import annotations

import hashlib
import hmac
import json

import pytest
from fastapi.testclient import TestClient
from pydantic import SecretStr

from frcreview.api.app import create_app
from frcreview.api.routers import reviews, webhooks
from frcreview.api.schemas import ReviewResponse
from frcreview.core.exceptions import LLMResponseParseError, PRNotFoundError, SkillsPathError
from frcreview.core.models import InlineComment, Issue, PipelineResult, PullRequestRef, Severity

PR_URL = "https://github.com/frc1234/robot-2025/pull/7"


def _result(pr: PullRequestRef, **overrides) -> PipelineResult:
    issue = Issue(file="Arm.java", line=11, severity=Severity.WARNING, skill="wpilib", message="Clamp volts.")
    data = {
        "pr": pr,
        "head_sha": "b" * 40,
        "scope": ["Arm.java"],
        "skills": ["wpilib"],
        "candidates": [issue],
        "confirmed": [issue],
        "inline_comments": [InlineComment(path="Arm.java", position=5, body="x")],
    }
    data.update(overrides)
    return PipelineResult(**data)


class PipelineSpy:
    """Replaces run_pipeline; records the PRs it was asked to review."""

    def __init__(self, error: Exception | None = None, **overrides):
        self.error = error
        self.overrides = overrides
        self.calls: list[PullRequestRef] = []

    async def __call__(self, pr, *, github, llm, settings, fast_llm=None):
        self.calls.append(pr)
        if self.error:
            raise self.error
        return _result(pr, **self.overrides)


@pytest.fixture
def client():
    return TestClient(create_app())


@pytest.fixture
def configured(settings, monkeypatch):
    """Configure the routers with placeholder services and a spy pipeline."""

    def _configure(spy: PipelineSpy | None = None, *, webhook_secret: str | None = None) -> PipelineSpy:
        spy = spy or PipelineSpy()
        s = settings.model_copy(update={"github_webhook_secret": SecretStr(webhook_secret)}) if webhook_secret else settings
        reviews.configure_review_router(s, object(), object())
        webhooks.configure_webhook_router(s)
        monkeypatch.setattr(reviews, "run_pipeline", spy)
        return spy

    return _configure


# ── Health ──────────────────────────────────────────────────────────────────


class TestHealthEndpoints:
    def test_health(self, client):
        resp = client.get("/api/v1/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "healthy"

    def test_readiness_unconfigured(self, client):
        data = client.get("/api/v1/readiness").json()
        assert data["status"] == "not_configured"
        assert data["services"]["pipeline"] == "not_configured"

    def test_readiness_configured(self, client, configured):
        configured()
        assert client.get("/api/v1/readiness").json()["status"] == "ready"

    def test_root_redirects_to_docs(self, client):
        resp = client.get("/", follow_redirects=False)
        assert resp.status_code in (302, 307)
        assert resp.headers["location"] == "/docs"


class TestMiddleware:
    def test_request_id_generated(self, client):
        assert client.get("/api/v1/health").headers["X-Request-ID"]

    def test_request_id_propagated(self, client):
        resp = client.get("/api/v1/health", headers={"X-Request-ID": "ci-run-17"})
        assert resp.headers["X-Request-ID"] == "ci-run-17"


# ── Reviews ─────────────────────────────────────────────────────────────────


class TestReviewEndpoint:
    def test_unconfigured(self, client):
        resp = client.post("/api/v1/reviews/", json={"pr_url": PR_URL})
        assert resp.status_code == 503

    def test_runs_pipeline(self, client, configured):
        spy = configured()
        resp = client.post("/api/v1/reviews/", json={"pr_url": PR_URL})

        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "completed"
        assert data["pr_url"] == PR_URL
        assert data["warnings"] == 1
        assert data["critical"] == 0
        assert data["inline_comments"] == 1
        assert data["issues"][0]["line"] == 11
        assert data["failed"] is False
        assert spy.calls == [PullRequestRef(owner="frc1234", repo="robot-2025", pr_number=7)]

    def test_skipped(self, client, configured):
        configured(PipelineSpy(skipped=True, scope=[], confirmed=[], candidates=[], inline_comments=[]))
        data = client.post("/api/v1/reviews/", json={"pr_url": PR_URL}).json()
        assert data["status"] == "skipped"
        assert data["files_reviewed"] == []

    def test_invalid_url(self, client, configured):
        configured()
        resp = client.post("/api/v1/reviews/", json={"pr_url": "https://example.com/nope"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "Invalid PR URL"

    def test_missing_body(self, client, configured):
        configured()
        assert client.post("/api/v1/reviews/", json={}).status_code == 422

    @pytest.mark.parametrize(
        ("error", "status", "label"),
        [
            (PRNotFoundError("GET /repos — HTTP 404"), 404, "PR Not Found"),
            (LLMResponseParseError("bad JSON"), 502, "LLM Error"),
            (SkillsPathError("outside workspace"), 500, "Configuration Error"),
        ],
    )
    def test_domain_errors_mapped(self, client, configured, error, status, label):
        configured(PipelineSpy(error=error))
        resp = client.post("/api/v1/reviews/", json={"pr_url": PR_URL})
        assert resp.status_code == status
        assert resp.json()["error"] == label


class TestReviewResponse:
    def test_from_result_counts(self):
        pr = PullRequestRef(owner="o", repo="r", pr_number=1)
        response = ReviewResponse.from_result(_result(pr, failed=True), pr_url="u")
        assert response.warnings == 1
        assert response.suggestions == 0
        assert response.failed is True
        assert response.skills == ["wpilib"]


# ── Webhooks ────────────────────────────────────────────────────────────────


def _pr_event(action: str = "synchronize", number: int | None = 7) -> dict:
    pull_request = {"number": number} if number else {}
    return {
        "action": action,
        "pull_request": pull_request,
        "repository": {"full_name": "frc1234/robot-2025"},
        "sender": {"login": "programmer"},
    }


def _post_event(client, payload, event="pull_request", secret=None, signature=None):
    body = json.dumps(payload).encode()
    headers = {"X-GitHub-Event": event, "Content-Type": "application/json"}
    if secret:
        headers["X-Hub-Signature-256"] = "sha256=" + hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()
    if signature:
        headers["X-Hub-Signature-256"] = signature
    return client.post("/api/v1/webhooks/github", content=body, headers=headers)


class TestWebhookEndpoint:
    def test_schedules_review(self, client, configured):
        spy = configured()
        resp = _post_event(client, _pr_event())

        assert resp.status_code == 202
        assert resp.json() == {"status": "accepted", "pr": "frc1234/robot-2025#7", "action": "synchronize"}
        assert spy.calls == [PullRequestRef(owner="frc1234", repo="robot-2025", pr_number=7)]

    def test_ignored_event(self, client, configured):
        spy = configured()
        resp = _post_event(client, _pr_event("closed"))
        assert resp.json()["status"] == "ignored"
        assert spy.calls == []

    def test_pr_comment_schedules_review(self, client, configured):
        spy = configured()
        payload = {
            "action": "created",
            "issue": {"number": 9, "pull_request": {}},
            "repository": {"full_name": "frc1234/robot-2025"},
            "sender": {"login": "mentor"},
        }
        assert _post_event(client, payload, event="issue_comment").status_code == 202
        assert spy.calls[0].pr_number == 9

    def test_own_summary_comment_ignored(self, client, configured):
        spy = configured()
        payload = {
            "action": "created",
            "issue": {"number": 9, "pull_request": {}},
            "comment": {"body": "## FRC Code Review\n<!-- frcreview:state {} -->", "user": {"login": "frcreview[bot]", "type": "Bot"}},
            "repository": {"full_name": "frc1234/robot-2025"},
            "sender": {"login": "frcreview[bot]", "type": "Bot"},
        }
        resp = _post_event(client, payload, event="issue_comment")
        assert resp.json()["status"] == "ignored"
        assert spy.calls == []

    def test_missing_pr_number(self, client, configured):
        spy = configured()
        resp = _post_event(client, _pr_event(number=None))
        assert resp.status_code == 400
        assert resp.json()["error"] == "Missing PR Number"
        assert spy.calls == []

    def test_invalid_json(self, client, configured):
        configured()
        resp = client.post(
            "/api/v1/webhooks/github",
            content=b"{not json",
            headers={"X-GitHub-Event": "pull_request"},
        )
        assert resp.status_code == 400

    def test_unconfigured_actionable_event(self, client):
        assert _post_event(client, _pr_event()).status_code == 503

    def test_valid_signature(self, client, configured):
        configured(webhook_secret="s3cret")
        assert _post_event(client, _pr_event(), secret="s3cret").status_code == 202

    def test_invalid_signature(self, client, configured):
        spy = configured(webhook_secret="s3cret")
        resp = _post_event(client, _pr_event(), signature="sha256=deadbeef")
        assert resp.status_code == 401
        assert spy.calls == []

    def test_background_failure_is_contained(self, client, configured):
        spy = configured(PipelineSpy(error=LLMResponseParseError("bad JSON")))
        assert _post_event(client, _pr_event()).status_code == 202
        assert len(spy.calls) == 1


class TestCreateAppConfigured:
    def test_settings_configure_routers(self, settings):
        app = create_app(settings)
        with TestClient(app) as client:
            assert client.get("/api/v1/readiness").json()["status"] == "ready"
