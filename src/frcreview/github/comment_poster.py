"""Formats review findings into GitHub comment bodies."""

from __future__ import annotations

from collections.abc import Sequence

from frcreview.core.constants import SEVERITY_ICONS
from frcreview.core.models import FileSummary, Issue, Severity


def count_by_severity(issues: Sequence[Issue]) -> dict[str, int]:
    """Tally issues per severity; every severity is present in the result."""
    return {s.value: sum(1 for i in issues if i.severity == s) for s in Severity}


def format_inline_comment(issue: Issue) -> str:
    """Format an issue into a Markdown inline comment body."""
    return f"**[{issue.severity.value.upper()}]** {issue.message}\n\n_Skill: {issue.skill}_"


def build_summary_body(
    pr_goal: str,
    file_summaries: Sequence[FileSummary],
    issues: Sequence[Issue],
) -> str:
    """Build the top-level summary comment in Markdown (without the state marker)."""
    counts = count_by_severity(issues)

    lines = [
        "## FRC Code Review",
        "",
        f"**PR Goal:** {pr_goal}",
        "",
        "### Summary",
        f"- {SEVERITY_ICONS['critical']} Critical: {counts['critical']}",
        f"- {SEVERITY_ICONS['warning']} Warnings: {counts['warning']}",
        f"- {SEVERITY_ICONS['suggestion']} Suggestions: {counts['suggestion']}",
        "",
    ]

    if file_summaries:
        lines.append("### Files Changed")
        for f in file_summaries:
            tag = " ⭐" if f.architecturally_significant else ""
            lines.append(f"- **{f.filename}**{tag}: {f.summary}")
        lines.append("")

    if issues:
        lines.append("### Issues Found")
        for issue in issues:
            icon = SEVERITY_ICONS.get(issue.severity.value, "💬")
            lines.append(
                f"{icon} **{issue.severity.value.upper()}** in "
                f"`{issue.file}:{issue.line}` _({issue.skill})_"
            )
            lines.append(f"> {issue.message}")
            lines.append("")
    else:
        lines.append("No issues found. ✅")

    return "\n".join(lines)
