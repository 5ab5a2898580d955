"""Constants and mappings used across the application."""

from __future__ import annotations

# ── GitHub ───────────────────────────────────────────────────────────────────

# Page size for every paginated listing (files, comments)
GITHUB_PAGE_SIZE: int = 100

# OpenAI-compatible gateways (None → official OpenAI endpoint)
GATEWAY_BASE_URLS: dict[str, str | None] = {
    "openai": None,
    "anthropic": "https://api.anthropic.com/v1/",
    "digitalocean": "https://inference.do-ai.run/v1",
    "vercel": "https://ai.vercel.app/v1",
}

# ── Review State Marker ─────────────────────────────────────────────────────

STATE_MARKER: str = "frcreview:state"

# Comment bodies longer than this are never scanned for a marker
MAX_STATE_COMMENT_LENGTH: int = 10_000

MAX_STATE_TIMESTAMP_LENGTH: int = 64

# ── Skills ───────────────────────────────────────────────────────────────────

# Documents above this size are skipped, not truncated
MAX_SKILL_FILE_BYTES: int = 512 * 1024

SKILL_MAIN_DOCUMENT: str = "SKILL.md"
SKILL_REFERENCES_DIR: str = "references"
SKILL_EXTENSION: str = ".md"
GLOBAL_PATTERN: str = "*"

# Placed between a skill's body and each inlined reference document
REFERENCE_DELIMITER: str = "\n\n---\n\n"

# ── Severity ─────────────────────────────────────────────────────────────────

# Loose model vocabulary → closed severity set.  Anything unlisted maps to
# DEFAULT_SEVERITY (lenient parsing).
SEVERITY_ALIASES: dict[str, str] = {
    "critical": "critical",
    "error": "critical",
    "blocker": "critical",
    "high": "critical",
    "major": "critical",
    "warning": "warning",
    "warn": "warning",
    "medium": "warning",
    "minor": "warning",
    "suggestion": "suggestion",
    "info": "suggestion",
    "low": "suggestion",
    "nit": "suggestion",
    "nitpick": "suggestion",
    "note": "suggestion",
    "style": "suggestion",
}

DEFAULT_SEVERITY: str = "warning"

SEVERITY_ORDER: dict[str, int] = {
    "critical": 0,
    "warning": 1,
    "suggestion": 2,
}

SEVERITY_ICONS: dict[str, str] = {
    "critical": "🔴",
    "warning": "🟡",
    "suggestion": "🔵",
}

# ── Prompt placeholders ──────────────────────────────────────────────────────

NO_DIFF_PLACEHOLDER: str = "(no diff available)"
NO_CONTENT_PLACEHOLDER: str = "(file content not available)"
