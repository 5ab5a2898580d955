"""Pydantic models for GitHub API payloads."""

from __future__ import annotations

from pydantic import BaseModel, Field


class GitHubUser(BaseModel):
    login: str
    type: str = "User"


class GitHubPRHead(BaseModel):
    ref: str
    sha: str


class GitHubPRBase(BaseModel):
    ref: str
    sha: str


class GitHubPullRequest(BaseModel):
    """Subset of GitHub's PR response we actually need."""

    number: int
    title: str
    body: str | None = None
    state: str = "open"
    head: GitHubPRHead
    base: GitHubPRBase
    user: GitHubUser | None = None
    html_url: str = ""


class GitHubFile(BaseModel):
    """A file entry from GET /pulls/{number}/files or GET /compare/{basehead}."""

    filename: str
    status: str  # "added", "modified", "removed", "renamed"
    additions: int = 0
    deletions: int = 0
    changes: int = 0
    patch: str | None = None
    previous_filename: str | None = None
    sha: str | None = None


class GitHubIssueComment(BaseModel):
    """An entry from GET /issues/{number}/comments."""

    id: int
    body: str | None = None
    user: GitHubUser | None = None


class GitHubCompareResponse(BaseModel):
    """Subset of GET /repos/{owner}/{repo}/compare/{basehead}."""

    status: str = ""
    ahead_by: int = 0
    behind_by: int = 0
    files: list[GitHubFile] = Field(default_factory=list)


class GitHubContent(BaseModel):
    """Entry from GET /repos/{owner}/{repo}/contents/{path}."""

    type: str
    path: str = ""
    encoding: str | None = None
    content: str | None = None


class GitHubReviewComment(BaseModel):
    """Payload for an inline PR review comment addressed by diff position."""

    path: str
    position: int
    body: str


class GitHubReviewRequest(BaseModel):
    """Payload for submitting a full PR review."""

    event: str = "COMMENT"  # APPROVE, REQUEST_CHANGES, COMMENT
    body: str | None = None
    comments: list[GitHubReviewComment] = Field(default_factory=list)


class WebhookEvent(BaseModel):
    """Parsed GitHub webhook event."""

    event_type: str
    action: str
    sender: str = ""
    repo_owner: str = ""
    repo_name: str = ""
    pr_number: int = 0
