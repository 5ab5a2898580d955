"""Unified diff helpers — changed-file parsing and line → diff-position mapping."""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Any

from frcreview.core.models import ChangedFile, FileStatus

# Matches: @@ -10,5 +12,7 @@ optional context
_HUNK_HEADER_RE = re.compile(r"^@@ -\d+(?:,\d+)? \+(\d+)(?:,\d+)? @@")


def compute_positions(patch: str) -> dict[int, int]:
    """Map each added line's new-file line number to its GitHub diff position.

    GitHub's review comment API addresses lines by ``position``: a 1-based
    count of lines into the file's patch text, hunk headers included.  Only
    ``+`` lines get an entry; removed and context lines are never commentable
    through this map.

    Args:
        patch: Raw unified diff patch string (from GitHub API).

    Returns:
        Mapping of new-file line number → diff position.  Empty when the
        patch contains no hunks.
    """
    positions: dict[int, int] = {}
    new_line = 0

    for position, line in enumerate(patch.split("\n"), start=1):
        if line.startswith("@@"):
            match = _HUNK_HEADER_RE.match(line)
            if match:
                new_line = int(match.group(1)) - 1
            continue

        if line.startswith("+"):
            new_line += 1
            positions[new_line] = position
        elif line.startswith("-"):
            continue
        else:
            new_line += 1

    return positions


def build_position_maps(files: Iterable[ChangedFile]) -> dict[str, dict[int, int]]:
    """Precompute position maps for every file that carries a patch."""
    return {f.filename: compute_positions(f.patch) for f in files if f.patch}


def count_changes(patch: str) -> tuple[int, int]:
    """Count added and removed lines in a patch."""
    additions = 0
    deletions = 0
    for line in patch.splitlines():
        if line.startswith("+") and not line.startswith("+++"):
            additions += 1
        elif line.startswith("-") and not line.startswith("---"):
            deletions += 1
    return additions, deletions


def parse_changed_file(raw: dict[str, Any]) -> ChangedFile:
    """Convert one entry of GET /pulls/{n}/files into a ChangedFile."""
    # Normalise GitHub's "removed" → our "deleted"
    status_map = {"removed": "deleted"}
    status = raw.get("status") or "modified"
    status = status_map.get(status, status)

    patch = raw.get("patch") or None
    additions = raw.get("additions")
    deletions = raw.get("deletions")
    if patch and (additions is None or deletions is None):
        additions, deletions = count_changes(patch)

    return ChangedFile(
        filename=raw.get("filename", ""),
        status=FileStatus(status),
        patch=patch,
        additions=additions or 0,
        deletions=deletions or 0,
    )


def parse_pr_files(files: list[dict[str, Any]]) -> list[ChangedFile]:
    """Parse a list of GitHub file dicts into ChangedFile models, preserving order."""
    return [parse_changed_file(f) for f in files if f.get("filename")]
