"""Model-assisted narrowing of the matched skill set."""

from __future__ import annotations

import asyncio

from frcreview.core.logging import get_logger
from frcreview.core.models import PRSummary, ReferenceSelection, Skill, SkillSelection
from frcreview.llm.base import LLMProvider
from frcreview.skills.loader import inline_references

logger = get_logger(__name__)

SELECT_SYSTEM_PROMPT = """You are selecting which code review skills to apply to a pull request.
Only select skills that are genuinely relevant based on what the PR is doing.
Return an empty array if no skills apply."""

REFERENCES_SYSTEM_PROMPT = """You are selecting which reference files to load for a code review skill.
Read the skill's index and select only the references relevant to this pull request.
Return an empty array if no references are needed beyond the skill's main content."""


def _file_summaries(summary: PRSummary) -> str:
    return "\n".join(f"- {f.filename}: {f.summary}" for f in summary.files)


def build_selection_prompt(summary: PRSummary, skills: list[Skill]) -> str:
    skill_list = "\n".join(f"- **{s.stem}**: {s.description}" for s in skills)
    return f"""## PR Goal
{summary.pr_goal}

## Changed Files
{_file_summaries(summary)}

## Available Skills
{skill_list}

Which skills are relevant to this PR? Return the stems of applicable skills."""


def build_references_prompt(summary: PRSummary, skill: Skill) -> str:
    ref_list = "\n".join(f"- {r.filename}" for r in skill.references)
    return f"""## PR Goal
{summary.pr_goal}

## Changed Files
{_file_summaries(summary)}

## Skill: {skill.name}
{skill.content}

## Available References
{ref_list}

Which reference files are needed to review this PR? Return only the filenames."""


async def select_skills(llm: LLMProvider, summary: PRSummary, skills: list[Skill]) -> list[Skill]:
    """Let the model drop described skills that don't fit this PR.

    Skills without a description are always kept.  The model can only remove
    candidates: returned stems that are not among the candidates are ignored.
    """
    always = [s for s in skills if not s.description]
    selectable = [s for s in skills if s.description]

    if not selectable:
        return skills

    selection = await llm.generate_structured(
        SkillSelection,
        SELECT_SYSTEM_PROMPT,
        build_selection_prompt(summary, selectable),
    )

    chosen = set(selection.selected)
    unknown = chosen - {s.stem for s in selectable}
    if unknown:
        logger.warning("selector_unknown_stems", stems=sorted(unknown))

    selected = [s for s in selectable if s.stem in chosen]
    logger.info(
        "skills_selected",
        kept=[s.stem for s in always],
        selected=[s.stem for s in selected],
        dropped=[s.stem for s in selectable if s.stem not in chosen],
    )
    return [*always, *selected]


async def _resolve_one(llm: LLMProvider, summary: PRSummary, skill: Skill) -> Skill:
    if not skill.references:
        return skill

    selection = await llm.generate_structured(
        ReferenceSelection,
        REFERENCES_SYSTEM_PROMPT,
        build_references_prompt(summary, skill),
    )
    logger.info("references_selected", skill=skill.stem, filenames=selection.filenames)
    return inline_references(skill, selection.filenames)


async def resolve_references(llm: LLMProvider, summary: PRSummary, skills: list[Skill]) -> list[Skill]:
    """Inline only the reference documents the model asks for, one call per skill."""
    return list(await asyncio.gather(*(_resolve_one(llm, summary, s) for s in skills)))
