"""Tests for frcreview.github.client — URL parsing and REST calls over a mock transport."""

from __future__ import annotations

import base64
import json

import httpx
import pytest

from frcreview.core.exceptions import (
    GitHubAuthError,
    GitHubError,
    GitHubRateLimitError,
    InvalidPRURLError,
    PRNotFoundError,
)
from frcreview.core.models import FileStatus, InlineComment
from frcreview.github.client import GitHubClient, parse_pr_url


class TestParsePRUrl:
    def test_standard_url(self):
        assert parse_pr_url("https://github.com/frc1234/robot-2025/pull/42") == ("frc1234", "robot-2025", 42)

    def test_trailing_whitespace(self):
        assert parse_pr_url("https://github.com/org/repo/pull/1  ") == ("org", "repo", 1)

    @pytest.mark.parametrize(
        "url",
        [
            "https://github.com/org/repo/issues/1",
            "https://gitlab.com/org/repo/pull/1",
            "https://github.com/org/repo/pull/",
            "",
        ],
    )
    def test_invalid(self, url):
        with pytest.raises(InvalidPRURLError):
            parse_pr_url(url)


# ── Mock transport ──────────────────────────────────────────────────────────


class Router:
    """Maps (method, path) to a handler and records requests."""

    def __init__(self):
        self.routes = {}
        self.requests: list[httpx.Request] = []

    def add(self, method: str, path: str, handler):
        self.routes[(method, path)] = handler

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(404, json={"message": "Not Found"})
        return handler(request)


@pytest.fixture
def router() -> Router:
    return Router()


@pytest.fixture
def client(settings, router) -> GitHubClient:
    return GitHubClient(settings, transport=httpx.MockTransport(router))


def _file(n: int) -> dict:
    return {"filename": f"src/F{n}.java", "status": "modified", "patch": "@@ -1 +1 @@\n-a\n+b", "additions": 1, "deletions": 1}


class TestReads:
    @pytest.mark.asyncio
    async def test_get_pull_request(self, client, router):
        router.add(
            "GET",
            "/repos/o/r/pulls/7",
            lambda _: httpx.Response(
                200,
                json={
                    "number": 7,
                    "title": "Arm voltage",
                    "head": {"ref": "arm", "sha": "b" * 40},
                    "base": {"ref": "main", "sha": "c" * 40},
                },
            ),
        )
        pr = await client.get_pull_request("o", "r", 7)
        assert pr.head.sha == "b" * 40
        assert router.requests[0].headers["Authorization"] == "Bearer ghp_test"

    @pytest.mark.asyncio
    async def test_list_changed_files_paginates_in_order(self, client, router):
        pages = {1: [_file(n) for n in range(100)], 2: [_file(n) for n in range(100, 130)]}
        router.add(
            "GET",
            "/repos/o/r/pulls/7/files",
            lambda req: httpx.Response(200, json=pages[int(req.url.params["page"])]),
        )

        files = await client.list_changed_files("o", "r", 7)

        assert len(files) == 130
        assert files[0].filename == "src/F0.java"
        assert files[-1].filename == "src/F129.java"
        assert [r.url.params["page"] for r in router.requests] == ["1", "2"]
        assert all(r.url.params["per_page"] == "100" for r in router.requests)

    @pytest.mark.asyncio
    async def test_full_page_then_empty_page(self, client, router):
        pages = {1: [_file(n) for n in range(100)], 2: []}
        router.add("GET", "/repos/o/r/pulls/7/files", lambda req: httpx.Response(200, json=pages[int(req.url.params["page"])]))
        assert len(await client.list_changed_files("o", "r", 7)) == 100

    @pytest.mark.asyncio
    async def test_removed_status_normalised(self, client, router):
        router.add(
            "GET",
            "/repos/o/r/pulls/7/files",
            lambda _: httpx.Response(200, json=[{"filename": "Old.java", "status": "removed"}]),
        )
        [f] = await client.list_changed_files("o", "r", 7)
        assert f.status == FileStatus.DELETED
        assert f.patch is None

    @pytest.mark.asyncio
    async def test_list_issue_comments(self, client, router):
        router.add(
            "GET",
            "/repos/o/r/issues/7/comments",
            lambda _: httpx.Response(200, json=[{"id": 1, "body": "hi", "user": {"login": "a"}}, {"id": 2, "body": None}]),
        )
        comments = await client.list_issue_comments("o", "r", 7)
        assert [c.id for c in comments] == [1, 2]
        assert comments[1].body is None

    @pytest.mark.asyncio
    async def test_get_file_content(self, client, router):
        encoded = base64.b64encode("public class Arm {}\n".encode()).decode()
        router.add(
            "GET",
            "/repos/o/r/contents/src/Arm.java",
            lambda req: httpx.Response(
                200,
                json={"type": "file", "path": "src/Arm.java", "encoding": "base64", "content": encoded},
            ),
        )
        assert await client.get_file_content("o", "r", "b" * 40, "src/Arm.java") == "public class Arm {}\n"
        assert router.requests[0].url.params["ref"] == "b" * 40

    @pytest.mark.asyncio
    async def test_get_file_content_missing_returns_none(self, client):
        assert await client.get_file_content("o", "r", "main", "nope.java") is None

    @pytest.mark.asyncio
    async def test_get_file_content_directory_returns_none(self, client, router):
        router.add("GET", "/repos/o/r/contents/src", lambda _: httpx.Response(200, json=[{"type": "file"}]))
        assert await client.get_file_content("o", "r", "main", "src") is None

    @pytest.mark.asyncio
    async def test_get_file_content_undecodable_returns_none(self, client, router):
        encoded = base64.b64encode(b"\xff\xfe\x00binary").decode()
        router.add(
            "GET",
            "/repos/o/r/contents/logo.png",
            lambda _: httpx.Response(200, json={"type": "file", "path": "logo.png", "content": encoded}),
        )
        assert await client.get_file_content("o", "r", "main", "logo.png") is None

    @pytest.mark.asyncio
    async def test_get_file_content_transport_error_returns_none(self, settings):
        def boom(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = GitHubClient(settings, transport=httpx.MockTransport(boom))
        assert await client.get_file_content("o", "r", "main", "Arm.java") is None

    @pytest.mark.asyncio
    async def test_compare_commits(self, client, router):
        base, head = "a" * 40, "b" * 40
        router.add(
            "GET",
            f"/repos/o/r/compare/{base}...{head}",
            lambda _: httpx.Response(200, json={"status": "ahead", "files": [{"filename": "Util.java", "status": "modified"}]}),
        )
        assert await client.compare_commits("o", "r", base, head) == ["Util.java"]

    @pytest.mark.asyncio
    async def test_compare_commits_failure_raises(self, client):
        with pytest.raises(GitHubError):
            await client.compare_commits("o", "r", "a" * 40, "b" * 40)


class TestErrors:
    @pytest.mark.asyncio
    async def test_auth(self, client, router):
        router.add("GET", "/repos/o/r/pulls/1", lambda _: httpx.Response(401, json={"message": "Bad credentials"}))
        with pytest.raises(GitHubAuthError, match="Bad credentials"):
            await client.get_pull_request("o", "r", 1)

    @pytest.mark.asyncio
    async def test_not_found(self, client):
        with pytest.raises(PRNotFoundError):
            await client.get_pull_request("o", "r", 1)

    @pytest.mark.asyncio
    async def test_rate_limit(self, client, router):
        router.add(
            "GET",
            "/repos/o/r/pulls/1",
            lambda _: httpx.Response(
                403,
                json={"message": "API rate limit exceeded"},
                headers={"X-RateLimit-Reset": "1700000000"},
            ),
        )
        with pytest.raises(GitHubRateLimitError) as exc_info:
            await client.get_pull_request("o", "r", 1)
        assert exc_info.value.reset_at == 1700000000

    @pytest.mark.asyncio
    async def test_server_error(self, client, router):
        router.add("GET", "/repos/o/r/pulls/1", lambda _: httpx.Response(502, text="bad gateway"))
        with pytest.raises(GitHubError, match="HTTP 502"):
            await client.get_pull_request("o", "r", 1)


class TestWrites:
    @pytest.mark.asyncio
    async def test_post_comment(self, client, router):
        router.add("POST", "/repos/o/r/issues/7/comments", lambda _: httpx.Response(201, json={"id": 99}))
        assert await client.post_comment("o", "r", 7, "## FRC Code Review") == {"id": 99}
        assert json.loads(router.requests[0].content) == {"body": "## FRC Code Review"}

    @pytest.mark.asyncio
    async def test_post_inline_review(self, client, router):
        router.add("POST", "/repos/o/r/pulls/7/reviews", lambda _: httpx.Response(200, json={"id": 5}))
        await client.post_inline_review("o", "r", 7, [InlineComment(path="Arm.java", position=5, body="Clamp.")])

        sent = json.loads(router.requests[0].content)
        assert sent["event"] == "COMMENT"
        assert sent["comments"] == [{"path": "Arm.java", "position": 5, "body": "Clamp."}]
        assert "body" not in sent

    @pytest.mark.asyncio
    async def test_post_inline_review_empty_is_noop(self, client, router):
        assert await client.post_inline_review("o", "r", 7, []) is None
        assert router.requests == []

    @pytest.mark.asyncio
    async def test_close(self, client, router):
        router.add("POST", "/repos/o/r/issues/7/comments", lambda _: httpx.Response(201, json={}))
        await client.post_comment("o", "r", 7, "x")
        await client.close()
        await client.close()
