"""Abstract LLM provider interface."""

from __future__ import annotations

import json
import re
from abc import ABC, abstractmethod
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from frcreview.core.exceptions import LLMResponseParseError
from frcreview.core.logging import get_logger
from frcreview.orchestrator.retry import retry_with_backoff

logger = get_logger(__name__)

T = TypeVar("T", bound=BaseModel)

_CODE_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


class LLMResponse(BaseModel):
    """Structured response from an LLM call."""

    content: str
    prompt_tokens: int = 0
    completion_tokens: int = 0
    model: str = ""


def strip_code_fences(text: str) -> str:
    """Remove a surrounding ```json ... ``` fence if the model added one."""
    raw = text.strip()
    if raw.startswith("```"):
        return _CODE_FENCE_RE.sub("", raw)
    return raw


def schema_instructions(schema: type[BaseModel]) -> str:
    """Describe the expected JSON shape for models without native schema support."""
    return (
        "Respond ONLY with a JSON object (no markdown, no explanation) "
        "conforming to this JSON Schema:\n"
        f"{json.dumps(schema.model_json_schema(by_alias=True), indent=2)}"
    )


def parse_structured(content: str, schema: type[T]) -> T:
    """Parse a model response as JSON and validate it against ``schema``.

    Raises:
        LLMResponseParseError: If the text is not JSON or does not match.
    """
    stripped = strip_code_fences(content)
    try:
        data = json.loads(stripped)
    except json.JSONDecodeError as e:
        raise LLMResponseParseError(
            f"Failed to parse JSON from model response: {e}",
            detail=content[:500],
        ) from e

    try:
        return schema.model_validate(data)
    except ValidationError as e:
        raise LLMResponseParseError(
            f"Model response does not match {schema.__name__}: {e.error_count()} error(s)",
            detail=str(e),
        ) from e


class LLMProvider(ABC):
    """Abstract base for LLM provider implementations.

    All providers implement the same interface so they can be swapped
    via configuration without code changes.
    """

    model_name: str = ""
    max_retries: int = 0

    @abstractmethod
    async def complete(
        self,
        messages: list[dict[str, str]],
        *,
        temperature: float | None = None,
        max_tokens: int | None = None,
        response_format: dict[str, Any] | None = None,
    ) -> LLMResponse:
        """Send a chat completion request.

        Args:
            messages: List of message dicts with 'role' and 'content' keys.
            temperature: Sampling temperature (0.0 = deterministic).
            max_tokens: Max tokens in the response.
            response_format: Optional format spec (e.g. {"type": "json_object"}).

        Returns:
            LLMResponse with content and token usage.
        """
        ...

    @abstractmethod
    async def count_tokens(self, text: str) -> int:
        """Count tokens in the given text.

        Used to report prompt sizes before large calls.
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release any held resources."""
        ...

    async def generate_structured(self, schema: type[T], system: str, prompt: str) -> T:
        """Ask the model for a JSON object matching ``schema``.

        Every pipeline pass goes through here.  Rate-limit errors are retried
        up to ``max_retries`` times.  A response that does not conform raises
        LLMResponseParseError; there is no partial acceptance.
        """
        response = await retry_with_backoff(
            self.complete,
            max_retries=self.max_retries,
            messages=[
                {"role": "system", "content": f"{system}\n\n{schema_instructions(schema)}"},
                {"role": "user", "content": prompt},
            ],
            response_format={"type": "json_object"},
        )

        result = parse_structured(response.content, schema)
        logger.debug(
            "structured_generation_complete",
            schema=schema.__name__,
            model=response.model or self.model_name,
            prompt_tokens=response.prompt_tokens,
            completion_tokens=response.completion_tokens,
        )
        return result
