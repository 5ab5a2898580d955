"""Result aggregation — deduplicate, rank, and place confirmed issues on the diff."""

from __future__ import annotations

from frcreview.core.constants import SEVERITY_ORDER
from frcreview.core.logging import get_logger
from frcreview.core.models import InlineComment, Issue, Severity
from frcreview.github.comment_poster import format_inline_comment

logger = get_logger(__name__)


def deduplicate_issues(issues: list[Issue]) -> list[Issue]:
    """Drop repeated findings of the same skill at the same location.

    The first occurrence wins; order is otherwise preserved.
    """
    seen: dict[tuple[str, int, str], Issue] = {}

    for issue in issues:
        key = (issue.file, issue.line, issue.skill.strip().lower())
        seen.setdefault(key, issue)

    deduped = list(seen.values())
    removed = len(issues) - len(deduped)
    if removed:
        logger.info("deduplicated_issues", removed=removed, remaining=len(deduped))

    return deduped


def rank_issues(issues: list[Issue]) -> list[Issue]:
    """Sort issues by severity (critical first), then by file and line."""
    return sorted(
        issues,
        key=lambda i: (SEVERITY_ORDER.get(i.severity.value, 99), i.file, i.line),
    )


def resolve_inline_comments(
    issues: list[Issue],
    position_maps: dict[str, dict[int, int]],
) -> list[InlineComment]:
    """Place each issue at its diff position.

    Issues whose file has no patch, or whose line is not an added line of
    that patch, are dropped; a nearby line is never substituted.
    """
    comments: list[InlineComment] = []

    for issue in issues:
        positions = position_maps.get(issue.file)
        if positions is None:
            logger.warning("inline_comment_no_diff", file=issue.file, line=issue.line)
            continue

        position = positions.get(issue.line)
        if position is None:
            logger.warning("inline_comment_unresolvable", file=issue.file, line=issue.line)
            continue

        comments.append(
            InlineComment(path=issue.file, position=position, body=format_inline_comment(issue))
        )

    return comments


def has_critical(issues: list[Issue]) -> bool:
    return any(i.severity == Severity.CRITICAL for i in issues)


def aggregate_issues(issues: list[Issue]) -> list[Issue]:
    """Full aggregation: deduplicate → rank."""
    return rank_issues(deduplicate_issues(issues))
