"""Skill repository — bundled rule documents plus repository-local overrides.

A skill is a Markdown document with YAML front matter::

    ---
    name: Command-Based Architecture
    description: Rules for Command subclasses and trigger bindings
    applies-to:
      - "*.java"
    ---
    # body ...

Repositories may add or replace skills under their skills directory, either
as a flat ``<stem>.md`` file or as a ``<stem>/`` directory containing
``SKILL.md`` and an optional ``references/`` folder of further documents that
are only inlined when the selector asks for them.  A repository skill
replaces the bundled skill with the same stem outright; nothing is merged.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml

from frcreview.core.constants import (
    MAX_SKILL_FILE_BYTES,
    REFERENCE_DELIMITER,
    SKILL_EXTENSION,
    SKILL_MAIN_DOCUMENT,
    SKILL_REFERENCES_DIR,
)
from frcreview.core.exceptions import SkillsPathError
from frcreview.core.logging import get_logger
from frcreview.core.models import Skill, SkillReference

logger = get_logger(__name__)

BUNDLED_DIR = Path(__file__).parent / "bundled"

# Load order of the skills shipped with the package
BUNDLED_SKILL_STEMS: tuple[str, ...] = ("wpilib", "command-based", "advantagekit")

_FRONT_MATTER_RE = re.compile(r"\A---[ \t]*\r?\n(?:(.*?)\r?\n)?---[ \t]*(?:\r?\n|\Z)", re.DOTALL)


def split_front_matter(raw: str) -> tuple[dict[str, Any], str]:
    """Split a document into (front matter mapping, body).

    Documents without a front matter block return an empty mapping and the
    whole text as body.

    Raises:
        yaml.YAMLError: If the front matter block is not valid YAML.
    """
    match = _FRONT_MATTER_RE.match(raw)
    if not match:
        return {}, raw

    data = yaml.safe_load(match.group(1) or "")
    if not isinstance(data, dict):
        data = {}
    return data, raw[match.end():]


def parse_skill(stem: str, raw: str, references: list[SkillReference] | None = None) -> Skill:
    """Build a Skill from a raw document."""
    front_matter, body = split_front_matter(raw)

    name = front_matter.get("name")
    description = front_matter.get("description")
    version = front_matter.get("version")
    applies_to = front_matter.get("applies-to")

    return Skill(
        stem=stem,
        name=name if isinstance(name, str) and name.strip() else stem,
        description=description.strip() if isinstance(description, str) and description.strip() else None,
        applies_to=[p for p in applies_to if isinstance(p, str)] if isinstance(applies_to, list) else [],
        version=str(version) if version is not None else None,
        content=body.strip(),
        references=references or [],
    )


def inline_references(skill: Skill, filenames: list[str]) -> Skill:
    """Append the chosen reference documents to a skill's content.

    References are appended in the skill's own (enumerated) order, not the
    order of ``filenames``; unknown filenames are ignored.  The returned skill
    has no pending references.
    """
    wanted = set(filenames)
    chosen = [ref for ref in skill.references if ref.filename in wanted]

    content = REFERENCE_DELIMITER.join([skill.content, *(ref.content.strip() for ref in chosen)])
    return skill.model_copy(update={"content": content, "references": []})


def load_bundled_skills() -> dict[str, Skill]:
    """Parse the skills shipped with the package, keyed by stem."""
    skills: dict[str, Skill] = {}
    for stem in BUNDLED_SKILL_STEMS:
        raw = (BUNDLED_DIR / f"{stem}{SKILL_EXTENSION}").read_text(encoding="utf-8")
        skills[stem] = parse_skill(stem, raw)
    return skills


def resolve_skills_path(skills_path: str, workspace: str | os.PathLike[str] | None = None) -> Path:
    """Resolve ``skills_path`` against the workspace root.

    The root is ``workspace`` if given, else ``$GITHUB_WORKSPACE``, else the
    current directory.

    Raises:
        SkillsPathError: If the path resolves outside the workspace root.
    """
    root = Path(workspace or os.environ.get("GITHUB_WORKSPACE") or os.getcwd()).resolve()
    resolved = (root / skills_path).resolve()

    if resolved != root and root not in resolved.parents:
        raise SkillsPathError(
            f'skills path "{skills_path}" resolves outside the workspace. '
            "Use a relative path within the repository.",
            detail=str(resolved),
        )
    return resolved


def _read_document(path: Path) -> str | None:
    """Read a skill document, or None if it is oversized or unreadable."""
    try:
        size = path.stat().st_size
    except OSError as e:
        logger.warning("skill_document_unreadable", path=str(path), error=str(e))
        return None

    if size > MAX_SKILL_FILE_BYTES:
        logger.warning("skill_document_too_large", path=str(path), size=size, limit=MAX_SKILL_FILE_BYTES)
        return None

    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("skill_document_unreadable", path=str(path), error=str(e))
        return None


def _load_references(skill_dir: Path) -> list[SkillReference]:
    refs_dir = skill_dir / SKILL_REFERENCES_DIR
    if not refs_dir.is_dir():
        return []

    references: list[SkillReference] = []
    for path in sorted(refs_dir.iterdir()):
        if not path.is_file() or path.suffix != SKILL_EXTENSION:
            continue
        text = _read_document(path)
        if text is not None:
            references.append(SkillReference(filename=path.name, content=text))
    return references


def _load_entry(entry: Path) -> Skill | None:
    """Load one entry of the skills directory (flat file or skill directory)."""
    if entry.is_file() and entry.suffix == SKILL_EXTENSION:
        stem = entry.stem
        raw = _read_document(entry)
        references: list[SkillReference] = []
    elif entry.is_dir() and (entry / SKILL_MAIN_DOCUMENT).is_file():
        stem = entry.name
        raw = _read_document(entry / SKILL_MAIN_DOCUMENT)
        references = _load_references(entry)
    else:
        return None

    if raw is None:
        return None

    try:
        return parse_skill(stem, raw, references)
    except yaml.YAMLError as e:
        logger.warning("skill_front_matter_invalid", path=str(entry), error=str(e))
        return None


def load_repo_skills(skills_dir: Path) -> dict[str, Skill]:
    """Load every skill defined under ``skills_dir``, keyed by stem."""
    skills: dict[str, Skill] = {}
    if not skills_dir.is_dir():
        return skills

    root = skills_dir.resolve()
    for entry in sorted(skills_dir.iterdir()):
        # Symlinks must not lead outside the skills directory
        if root not in entry.resolve().parents:
            logger.warning("skill_entry_outside_root", path=str(entry))
            continue

        skill = _load_entry(entry)
        if skill is not None:
            skills[skill.stem] = skill

    return skills


def load_skills(skills_path: str, workspace: str | os.PathLike[str] | None = None) -> list[Skill]:
    """Load bundled skills, then apply repository-local overrides by stem.

    Raises:
        SkillsPathError: If ``skills_path`` escapes the workspace root.
    """
    skills = load_bundled_skills()

    if skills_path:
        skills_dir = resolve_skills_path(skills_path, workspace)
        overrides = load_repo_skills(skills_dir)
        replaced = sorted(stem for stem in overrides if stem in skills)
        skills.update(overrides)

        logger.info(
            "skills_loaded",
            bundled=len(BUNDLED_SKILL_STEMS),
            repo=len(overrides),
            overridden=replaced,
            path=str(skills_dir),
        )

    return list(skills.values())
