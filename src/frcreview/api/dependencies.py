"""Dependency injection — shared services and configuration."""

from __future__ import annotations

import functools

from frcreview.core.config import Settings, get_settings
from frcreview.github.client import GitHubClient
from frcreview.llm.base import LLMProvider
from frcreview.llm.openai_provider import OpenAIProvider


@functools.lru_cache
def get_app_settings() -> Settings:
    """Cached application settings (singleton)."""
    return get_settings()


def create_github_client(settings: Settings | None = None) -> GitHubClient:
    """Create a GitHub API client from settings."""
    return GitHubClient(settings or get_app_settings())


def create_llm_provider(settings: Settings | None = None) -> LLMProvider:
    """Create the main (review / verify) model provider."""
    return OpenAIProvider(settings or get_app_settings())


def create_fast_llm_provider(settings: Settings | None = None) -> LLMProvider | None:
    """Create the cheaper summarize / selection provider, if one is configured."""
    s = settings or get_app_settings()
    if not s.openai_fast_model:
        return None
    return OpenAIProvider(s, model=s.openai_fast_model)
