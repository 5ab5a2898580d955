"""Filename-glob matching of skills against changed files."""

from __future__ import annotations

from collections.abc import Iterable

from wcmatch import glob

from frcreview.core.models import Skill

# ``*`` stays within one path segment, ``**`` spans directories, ``{a,b}`` expands
_GLOB_FLAGS = glob.GLOBSTAR | glob.BRACE | glob.CASE


def pattern_matches(pattern: str, filename: str) -> bool:
    """Match a glob against a repository-relative path.

    A pattern without a slash is matched against the basename alone, so
    ``*.java`` covers ``src/main/java/Robot.java``.  Patterns with a slash
    match the full path.
    """
    if "/" not in pattern:
        filename = filename.rsplit("/", 1)[-1]
    return glob.globmatch(filename, pattern, flags=_GLOB_FLAGS)


def match_skills(skills: Iterable[Skill], filenames: Iterable[str]) -> list[Skill]:
    """Keep global skills and those whose patterns match at least one filename."""
    names = list(filenames)
    return [
        skill
        for skill in skills
        if skill.is_global
        or any(pattern_matches(pattern, name) for pattern in skill.applies_to for name in names)
    ]
