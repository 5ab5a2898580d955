"""Domain models shared across all frcreview modules.

These Pydantic models define the contract between services.  Every module
communicates through these types — never raw dicts.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from frcreview.core.constants import (
    DEFAULT_SEVERITY,
    GLOBAL_PATTERN,
    MAX_STATE_TIMESTAMP_LENGTH,
    SEVERITY_ALIASES,
)


# ── Enums ────────────────────────────────────────────────────────────────────


class FileStatus(StrEnum):
    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"
    COPIED = "copied"
    CHANGED = "changed"
    UNCHANGED = "unchanged"


class Severity(StrEnum):
    CRITICAL = "critical"
    WARNING = "warning"
    SUGGESTION = "suggestion"

    @classmethod
    def normalize(cls, value: Any) -> Severity:
        """Map free-form model output onto the closed severity set.

        Unknown values fall back to ``warning`` rather than failing the run.
        """
        if isinstance(value, cls):
            return value
        key = str(value or "").strip().lower()
        return cls(SEVERITY_ALIASES.get(key, DEFAULT_SEVERITY))


# ── PR / Diff Models ────────────────────────────────────────────────────────


class ChangedFile(BaseModel):
    """A single file touched by the PR."""

    model_config = ConfigDict(frozen=True)

    filename: str
    status: FileStatus = FileStatus.MODIFIED
    patch: str | None = None
    additions: int = 0
    deletions: int = 0


# ── Skills ──────────────────────────────────────────────────────────────────


class SkillReference(BaseModel):
    """Supplementary document shipped in a skill's ``references/`` directory."""

    filename: str
    content: str


class Skill(BaseModel):
    """A named rule document used as review guidance."""

    stem: str
    name: str
    description: str | None = None
    applies_to: list[str] = Field(default_factory=list)
    version: str | None = None
    content: str = ""
    references: list[SkillReference] = Field(default_factory=list)

    @property
    def is_global(self) -> bool:
        return not self.applies_to or GLOBAL_PATTERN in self.applies_to


# ── Pass Outputs ─────────────────────────────────────────────────────────────


class FileSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    filename: str
    summary: str = Field(description="One sentence summary of what changed in this file")
    architecturally_significant: bool = Field(
        default=False,
        alias="architecturallySignificant",
        description=(
            "True if this file contains significant logic changes that warrant deep review "
            "(not just config, build files, or minor tweaks)"
        ),
    )


class PRSummary(BaseModel):
    """Output of the summarize pass."""

    model_config = ConfigDict(populate_by_name=True)

    pr_goal: str = Field(
        alias="prGoal",
        description="One or two sentence description of what this PR is trying to accomplish",
    )
    files: list[FileSummary] = Field(default_factory=list)

    @property
    def significant_files(self) -> list[str]:
        return [f.filename for f in self.files if f.architecturally_significant]


class Issue(BaseModel):
    """A single finding, either a review candidate or a verified issue."""

    file: str = Field(description="Relative path to the file containing the issue")
    line: int = Field(gt=0, description="Line number in the new file where the issue occurs")
    severity: Severity
    skill: str = Field(description="Name of the skill/rule this issue relates to")
    reasoning: str = Field(
        default="",
        description="Chain-of-thought explanation before stating the message",
    )
    message: str = Field(description="Human-readable comment to post as a GitHub review comment")

    @field_validator("severity", mode="before")
    @classmethod
    def _normalize_severity(cls, value: Any) -> Severity:
        return Severity.normalize(value)


class ReviewOutput(BaseModel):
    """Output of the review pass."""

    issues: list[Issue] = Field(default_factory=list)


class VerifyOutput(BaseModel):
    """Output of a single verify call."""

    confirmed: bool = Field(description="True if the issue is real and present in the code")
    reason: str = Field(
        default="",
        description="Brief explanation of why this issue is confirmed or rejected",
    )


class VerificationResult(BaseModel):
    issue: Issue
    confirmed: bool
    reason: str = ""


class SkillSelection(BaseModel):
    selected: list[str] = Field(
        default_factory=list,
        description="Stems of the skills that are relevant to this pull request",
    )


class ReferenceSelection(BaseModel):
    filenames: list[str] = Field(
        default_factory=list,
        description='Filenames of the reference files needed for this PR (e.g. "command-based.md")',
    )


# ── Review State ─────────────────────────────────────────────────────────────


class ReviewState(BaseModel):
    """Incremental-review marker embedded in every summary comment."""

    sha: str = Field(pattern=r"^[0-9a-f]{40}$")
    timestamp: str = Field(min_length=1, max_length=MAX_STATE_TIMESTAMP_LENGTH)

    @classmethod
    def now(cls, sha: str) -> ReviewState:
        stamp = datetime.now(timezone.utc).isoformat(timespec="milliseconds")
        return cls(sha=sha, timestamp=stamp.replace("+00:00", "Z"))


# ── Publishing ───────────────────────────────────────────────────────────────


class InlineComment(BaseModel):
    """An issue resolved to a diff position, ready for the review API."""

    path: str
    position: int = Field(gt=0)
    body: str


class PullRequestRef(BaseModel):
    """Identifies the PR a pipeline run reviews."""

    owner: str
    repo: str
    pr_number: int = Field(gt=0)


class PipelineResult(BaseModel):
    """Everything a pipeline run produced and posted."""

    pr: PullRequestRef
    head_sha: str = ""
    incremental_base: str | None = None
    scope: list[str] = Field(default_factory=list)
    summary: PRSummary | None = None
    skills: list[str] = Field(default_factory=list)
    candidates: list[Issue] = Field(default_factory=list)
    confirmed: list[Issue] = Field(default_factory=list)
    inline_comments: list[InlineComment] = Field(default_factory=list)
    summary_body: str = ""
    skipped: bool = False
    failed: bool = False
    total_duration_ms: int = 0
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def stats(self) -> dict[str, Any]:
        """Quick stats for logging / API response."""
        return {
            "files_reviewed": len(self.scope),
            "candidates": len(self.candidates),
            "confirmed": len(self.confirmed),
            "inline_comments": len(self.inline_comments),
            "by_severity": {s.value: sum(1 for i in self.confirmed if i.severity == s) for s in Severity},
        }
