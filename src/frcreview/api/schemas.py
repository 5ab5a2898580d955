"""API request/response schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field

from frcreview.core.models import PipelineResult, Severity


class CreateReviewRequest(BaseModel):
    """Request to review a Pull Request."""

    pr_url: str = Field(
        ...,
        description="Full GitHub PR URL (e.g. https://github.com/owner/repo/pull/42)",
        examples=["https://github.com/frc1234/robot-2025/pull/7"],
    )


class IssueResponse(BaseModel):
    """API-facing confirmed issue."""

    file: str
    line: int
    severity: str
    skill: str
    message: str


class ReviewResponse(BaseModel):
    """Outcome of one pipeline run."""

    status: str = "completed"
    pr_url: str | None = None
    head_sha: str = ""
    incremental_base: str | None = None
    files_reviewed: list[str] = []
    skills: list[str] = []
    critical: int = 0
    warnings: int = 0
    suggestions: int = 0
    inline_comments: int = 0
    issues: list[IssueResponse] = []
    failed: bool = False
    duration_ms: int = 0

    @classmethod
    def from_result(cls, result: PipelineResult, pr_url: str | None = None) -> ReviewResponse:
        by_severity = result.stats["by_severity"]
        return cls(
            status="skipped" if result.skipped else "completed",
            pr_url=pr_url,
            head_sha=result.head_sha,
            incremental_base=result.incremental_base,
            files_reviewed=result.scope,
            skills=result.skills,
            critical=by_severity[Severity.CRITICAL.value],
            warnings=by_severity[Severity.WARNING.value],
            suggestions=by_severity[Severity.SUGGESTION.value],
            inline_comments=len(result.inline_comments),
            issues=[
                IssueResponse(
                    file=i.file,
                    line=i.line,
                    severity=i.severity.value,
                    skill=i.skill,
                    message=i.message,
                )
                for i in result.confirmed
            ],
            failed=result.failed,
            duration_ms=result.total_duration_ms,
        )


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "healthy"
    version: str = "0.1.0"
    services: dict[str, str] = {}


class ErrorResponse(BaseModel):
    """Error response."""

    error: str
    detail: str = ""
