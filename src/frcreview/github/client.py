"""Async GitHub API client for reading PRs and posting reviews."""

from __future__ import annotations

import base64
import binascii
import re
from typing import Any
from urllib.parse import quote

import httpx

from frcreview.core.config import Settings
from frcreview.core.constants import GITHUB_PAGE_SIZE
from frcreview.core.exceptions import (
    GitHubAuthError,
    GitHubError,
    GitHubRateLimitError,
    InvalidPRURLError,
    PRNotFoundError,
)
from frcreview.core.logging import get_logger
from frcreview.core.models import ChangedFile, InlineComment
from frcreview.github.diff_parser import parse_pr_files
from frcreview.github.schemas import (
    GitHubCompareResponse,
    GitHubContent,
    GitHubIssueComment,
    GitHubPullRequest,
    GitHubReviewComment,
    GitHubReviewRequest,
)

logger = get_logger(__name__)

# Pattern: https://github.com/{owner}/{repo}/pull/{number}
_PR_URL_RE = re.compile(
    r"https?://github\.com/(?P<owner>[^/]+)/(?P<repo>[^/]+)/pull/(?P<number>\d+)"
)


def parse_pr_url(url: str) -> tuple[str, str, int]:
    """Extract owner, repo, and PR number from a GitHub PR URL.

    Raises:
        InvalidPRURLError: If the URL doesn't match expected format.
    """
    match = _PR_URL_RE.match(url.strip())
    if not match:
        raise InvalidPRURLError(f"Cannot parse PR URL: {url}")
    return match.group("owner"), match.group("repo"), int(match.group("number"))


class GitHubClient:
    """Async client for the GitHub REST API.

    Uses httpx with connection pooling for efficient async I/O.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._base_url = settings.github_api_base.rstrip("/")
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                headers={
                    "Authorization": f"Bearer {self._settings.github_token.get_secret_value()}",
                    "Accept": "application/vnd.github.v3+json",
                    "X-GitHub-Api-Version": "2022-11-28",
                },
                timeout=30.0,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    def _handle_error(self, response: httpx.Response, context: str = "") -> None:
        """Map HTTP status codes to domain exceptions."""
        if response.is_success:
            return

        status = response.status_code
        detail = f"{context} — HTTP {status}"

        try:
            message = response.json().get("message", "")
            detail = f"{detail}: {message}"
        except (ValueError, AttributeError):
            pass

        if status == 401:
            raise GitHubAuthError(detail)
        if status == 403 and "rate limit" in detail.lower():
            reset_at = response.headers.get("X-RateLimit-Reset")
            raise GitHubRateLimitError(reset_at=int(reset_at) if reset_at else None)
        if status == 404:
            raise PRNotFoundError(detail)
        raise GitHubError(detail)

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        """Make an authenticated request; transport failures become GitHubError."""
        client = await self._get_client()
        try:
            response = await client.request(method, path, params=params, json=json)
        except httpx.HTTPError as e:
            raise GitHubError(f"{method} {path} failed: {e}") from e
        self._handle_error(response, context=f"{method} {path}")
        return response.json()

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return await self._request("GET", path, params=params)

    async def _post(self, path: str, json: dict[str, Any]) -> Any:
        return await self._request("POST", path, json=json)

    async def _get_all_pages(self, path: str) -> list[Any]:
        """Fetch a paginated listing page by page, in order, until a short page."""
        items: list[Any] = []
        page = 1

        while True:
            data = await self._get(path, params={"per_page": GITHUB_PAGE_SIZE, "page": page})
            if not data:
                break

            items.extend(data)

            if len(data) < GITHUB_PAGE_SIZE:
                break
            page += 1

        return items

    # ── Reads ───────────────────────────────────────────────────────────────

    async def get_pull_request(self, owner: str, repo: str, pr_number: int) -> GitHubPullRequest:
        """Fetch PR metadata."""
        data = await self._get(f"/repos/{owner}/{repo}/pulls/{pr_number}")
        return GitHubPullRequest.model_validate(data)

    async def list_changed_files(self, owner: str, repo: str, pr_number: int) -> list[ChangedFile]:
        """Fetch all files changed in a PR (handles pagination)."""
        data = await self._get_all_pages(f"/repos/{owner}/{repo}/pulls/{pr_number}/files")
        return parse_pr_files(data)

    async def list_issue_comments(
        self, owner: str, repo: str, issue_number: int
    ) -> list[GitHubIssueComment]:
        """Fetch every comment on the PR's conversation thread, oldest first."""
        data = await self._get_all_pages(f"/repos/{owner}/{repo}/issues/{issue_number}/comments")
        return [GitHubIssueComment.model_validate(c) for c in data]

    async def get_file_content(self, owner: str, repo: str, ref: str, path: str) -> str | None:
        """Fetch a file's text at ``ref``.

        Returns None for directories, symlinks, undecodable content, or any
        API failure; callers treat missing content as "review without it".
        """
        try:
            data = await self._get(
                f"/repos/{owner}/{repo}/contents/{quote(path)}",
                params={"ref": ref},
            )
        except GitHubError as e:
            logger.warning("file_content_unavailable", path=path, ref=ref, error=str(e))
            return None

        if isinstance(data, list):
            return None

        content = GitHubContent.model_validate(data)
        if content.type != "file" or content.content is None:
            return None

        try:
            return base64.b64decode(content.content).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as e:
            logger.warning("file_content_undecodable", path=path, error=str(e))
            return None

    async def compare_commits(self, owner: str, repo: str, base: str, head: str) -> list[str]:
        """List filenames changed between two commits.

        Raises:
            GitHubError: If the comparison cannot be computed (e.g. force-pushed base).
        """
        data = await self._get(f"/repos/{owner}/{repo}/compare/{base}...{head}")
        compare = GitHubCompareResponse.model_validate(data)
        return [f.filename for f in compare.files]

    # ── Writes ──────────────────────────────────────────────────────────────

    async def post_comment(self, owner: str, repo: str, issue_number: int, body: str) -> dict[str, Any]:
        """Post a comment on the PR's conversation thread."""
        logger.info("posting_comment", owner=owner, repo=repo, issue_number=issue_number)
        return await self._post(
            f"/repos/{owner}/{repo}/issues/{issue_number}/comments",
            json={"body": body},
        )

    async def post_inline_review(
        self,
        owner: str,
        repo: str,
        pr_number: int,
        comments: list[InlineComment],
    ) -> dict[str, Any] | None:
        """Submit a single COMMENT review carrying all inline comments."""
        if not comments:
            return None

        review = GitHubReviewRequest(
            event="COMMENT",
            comments=[
                GitHubReviewComment(path=c.path, position=c.position, body=c.body)
                for c in comments
            ],
        )

        logger.info(
            "posting_review",
            owner=owner,
            repo=repo,
            pr_number=pr_number,
            comment_count=len(review.comments),
        )

        return await self._post(
            f"/repos/{owner}/{repo}/pulls/{pr_number}/reviews",
            json=review.model_dump(exclude_none=True),
        )
