"""Pipeline orchestrator — scope, summarize, review, verify, publish.

One run moves through::

    ScopeResolution → Summarize → Review → ContentBackfill → Verify → Publish

Paginated GitHub reads are sequential; content fetches and verification
calls fan out in parallel.  Content fetches are best-effort, model failures
abort the run.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Iterable

from frcreview.core.config import Settings
from frcreview.core.exceptions import GitHubError
from frcreview.core.logging import bind_pr_context, clear_pr_context, get_logger
from frcreview.core.models import (
    ChangedFile,
    Issue,
    PipelineResult,
    PRSummary,
    PullRequestRef,
    ReviewState,
    Skill,
)
from frcreview.github.client import GitHubClient
from frcreview.github.comment_poster import build_summary_body
from frcreview.github.diff_parser import build_position_maps
from frcreview.github.review_state import append_state, find_last_state
from frcreview.llm.base import LLMProvider
from frcreview.orchestrator.aggregator import aggregate_issues, has_critical, resolve_inline_comments
from frcreview.passes.review import review_pr
from frcreview.passes.summarize import summarize_pr
from frcreview.passes.verify import verify_issues
from frcreview.skills.loader import load_skills
from frcreview.skills.matcher import match_skills
from frcreview.skills.selector import resolve_references, select_skills

logger = get_logger(__name__)


async def find_last_review_state(github: GitHubClient, pr: PullRequestRef) -> ReviewState | None:
    """Scan the PR conversation for the most recent state marker."""
    comments = await github.list_issue_comments(pr.owner, pr.repo, pr.pr_number)
    return find_last_state(c.body for c in comments)


async def resolve_scope(
    github: GitHubClient,
    pr: PullRequestRef,
    files: list[ChangedFile],
    last_state: ReviewState | None,
    head_sha: str,
) -> list[ChangedFile]:
    """Narrow the PR's files to those changed since the last reviewed commit.

    Without a prior state every file is in scope.  If the comparison fails
    the full list is reviewed again.
    """
    if last_state is None:
        return files

    if last_state.sha == head_sha:
        logger.info("incremental_no_new_commits", sha=head_sha)
        return []

    try:
        changed = set(await github.compare_commits(pr.owner, pr.repo, last_state.sha, head_sha))
    except GitHubError as e:
        logger.warning(
            "incremental_compare_failed",
            base=last_state.sha,
            head=head_sha,
            error=str(e),
        )
        return files

    scope = [f for f in files if f.filename in changed]
    logger.info(
        "incremental_scope",
        base=last_state.sha,
        head=head_sha,
        pr_files=len(files),
        in_scope=len(scope),
    )
    return scope


async def fetch_contents(
    github: GitHubClient,
    pr: PullRequestRef,
    ref: str,
    paths: Iterable[str],
    cache: dict[str, str],
) -> None:
    """Fetch full file contents in parallel into ``cache``, skipping cached paths.

    A failure for one path leaves that path out of the cache; the others
    still land.
    """
    missing = [p for p in dict.fromkeys(paths) if p not in cache]
    if not missing:
        return

    results = await asyncio.gather(
        *(github.get_file_content(pr.owner, pr.repo, ref, path) for path in missing),
        return_exceptions=True,
    )

    for path, result in zip(missing, results):
        if isinstance(result, Exception):
            logger.warning("content_fetch_failed", path=path, error=str(result))
            continue
        if result is not None:
            cache[path] = result

    logger.info("contents_fetched", requested=len(missing), fetched=sum(1 for p in missing if p in cache))


async def prepare_skills(
    llm: LLMProvider,
    summary: PRSummary,
    skills: list[Skill],
    filenames: list[str],
) -> list[Skill]:
    """Match by filename, then let the model narrow and pick references."""
    matched = match_skills(skills, filenames)
    selected = await select_skills(llm, summary, matched)
    return await resolve_references(llm, summary, selected)


async def run_pipeline(
    pr: PullRequestRef,
    *,
    github: GitHubClient,
    llm: LLMProvider,
    settings: Settings,
    fast_llm: LLMProvider | None = None,
) -> PipelineResult:
    """Review one pull request end to end and post the results.

    Args:
        pr: The PR to review.
        github: Platform client used for all reads and writes.
        llm: Model for the review and verify passes.
        settings: Skills location, workspace root, concurrency and failure policy.
        fast_llm: Optional cheaper model for summarizing and skill selection.

    Returns:
        PipelineResult describing what was posted.  ``failed`` is set when
        ``fail_on_critical`` is enabled and a critical issue was confirmed.
    """
    start_ms = time.perf_counter_ns() // 1_000_000
    bind_pr_context(pr.owner, pr.repo, pr.pr_number)

    try:
        # ── ScopeResolution ─────────────────────────────────────────────
        pr_data = await github.get_pull_request(pr.owner, pr.repo, pr.pr_number)
        head_sha = pr_data.head.sha
        logger.info("pipeline_started", title=pr_data.title, head=head_sha)

        last_state = await find_last_review_state(github, pr)
        all_files = await github.list_changed_files(pr.owner, pr.repo, pr.pr_number)
        scope = await resolve_scope(github, pr, all_files, last_state, head_sha)

        result = PipelineResult(
            pr=pr,
            head_sha=head_sha,
            incremental_base=last_state.sha if last_state else None,
            scope=[f.filename for f in scope],
        )

        if not scope:
            logger.info("pipeline_nothing_to_review", pr_files=len(all_files))
            result.skipped = True
            return result

        # Path escapes in the skills location must fail before any model call
        skills = load_skills(settings.skills_path, settings.workspace_dir)

        # ── Summarize ───────────────────────────────────────────────────
        summary_llm = fast_llm or llm
        summary = await summarize_pr(summary_llm, scope)
        result.summary = summary

        # ── Review ──────────────────────────────────────────────────────
        applied = await prepare_skills(summary_llm, summary, skills, result.scope)
        result.skills = [s.stem for s in applied]

        contents: dict[str, str] = {}
        await fetch_contents(github, pr, head_sha, summary.significant_files, contents)

        candidates = await review_pr(llm, summary, scope, contents, applied)
        result.candidates = candidates

        # ── ContentBackfill / Verify ────────────────────────────────────
        confirmed: list[Issue] = []
        if candidates:
            await fetch_contents(github, pr, head_sha, (i.file for i in candidates), contents)
            confirmed = await verify_issues(
                llm,
                candidates,
                contents,
                max_concurrent=settings.max_concurrent_verifications,
            )

        # ── Publish ─────────────────────────────────────────────────────
        result.confirmed = aggregate_issues(confirmed)
        result.inline_comments = resolve_inline_comments(result.confirmed, build_position_maps(scope))

        body = build_summary_body(summary.pr_goal, summary.files, result.confirmed)
        result.summary_body = append_state(body, ReviewState.now(head_sha))
        await github.post_comment(pr.owner, pr.repo, pr.pr_number, result.summary_body)

        if result.inline_comments:
            await github.post_inline_review(pr.owner, pr.repo, pr.pr_number, result.inline_comments)

        result.failed = settings.fail_on_critical and has_critical(result.confirmed)
        result.total_duration_ms = (time.perf_counter_ns() // 1_000_000) - start_ms

        logger.info("pipeline_complete", **result.stats, failed=result.failed, duration_ms=result.total_duration_ms)
        return result

    finally:
        clear_pr_context()
