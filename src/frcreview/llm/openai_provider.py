"""OpenAI-compatible LLM provider implementation."""

from __future__ import annotations

from typing import Any

import tiktoken
from openai import AsyncOpenAI

from frcreview.core.config import Settings
from frcreview.core.exceptions import (
    LLMContextOverflowError,
    LLMError,
    LLMRateLimitError,
    LLMResponseParseError,
)
from frcreview.core.logging import get_logger
from frcreview.llm.base import LLMProvider, LLMResponse

logger = get_logger(__name__)


class OpenAIProvider(LLMProvider):
    """Chat-completions adapter for OpenAI and OpenAI-compatible gateways."""

    def __init__(self, settings: Settings, model: str | None = None) -> None:
        self._settings = settings
        self._client = AsyncOpenAI(
            api_key=settings.openai_api_key.get_secret_value(),
            base_url=settings.resolved_base_url(),
            timeout=settings.llm_timeout_seconds,
        )
        self.model_name = model or settings.openai_model
        self.max_retries = settings.llm_max_retries
        self._default_temp = settings.openai_temperature
        self._default_max_tokens = settings.openai_max_tokens

        self._encoding: tiktoken.Encoding | None = None

    async def complete(
        self,
        messages: list[dict[str, str]],
        *,
        temperature: float | None = None,
        max_tokens: int | None = None,
        response_format: dict[str, Any] | None = None,
    ) -> LLMResponse:
        """Send a chat completion.

        Handles rate limits, context overflow, and empty responses.
        """
        kwargs: dict[str, Any] = {
            "model": self.model_name,
            "messages": messages,
            "temperature": temperature if temperature is not None else self._default_temp,
            "max_tokens": max_tokens if max_tokens is not None else self._default_max_tokens,
        }

        if response_format:
            kwargs["response_format"] = response_format

        try:
            response = await self._client.chat.completions.create(**kwargs)
        except Exception as e:
            error_str = str(e).lower()
            if "rate limit" in error_str or "429" in error_str:
                raise LLMRateLimitError(f"Rate limit from {self.model_name}: {e}") from e
            if "context" in error_str or "maximum" in error_str:
                raise LLMContextOverflowError(f"Context overflow: {e}") from e
            raise LLMError(f"LLM API error: {e}") from e

        choice = response.choices[0] if response.choices else None
        if not choice or not choice.message.content:
            raise LLMResponseParseError(f"Empty response from {self.model_name}")

        usage = response.usage
        return LLMResponse(
            content=choice.message.content,
            prompt_tokens=usage.prompt_tokens if usage else 0,
            completion_tokens=usage.completion_tokens if usage else 0,
            model=response.model or self.model_name,
        )

    async def count_tokens(self, text: str) -> int:
        """Count tokens using tiktoken; the encoding is loaded on first use."""
        if self._encoding is None:
            # Unknown models fall back to cl100k_base
            try:
                self._encoding = tiktoken.encoding_for_model(self.model_name)
            except KeyError:
                self._encoding = tiktoken.get_encoding("cl100k_base")
        return len(self._encoding.encode(text))

    async def close(self) -> None:
        """Close the async client."""
        await self._client.close()
