"""Environment-driven configuration using Pydantic Settings."""

from __future__ import annotations

from pydantic import SecretStr, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from frcreview.core.constants import GATEWAY_BASE_URLS
from frcreview.core.exceptions import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All env vars are prefixed with ``FRCREVIEW_`` and can be set via a ``.env`` file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="FRCREVIEW_",
        case_sensitive=False,
    )

    # --- GitHub ---
    github_token: SecretStr
    github_api_base: str = "https://api.github.com"
    github_webhook_secret: SecretStr | None = None

    # --- LLM ---
    openai_api_key: SecretStr
    gateway: str = "openai"
    openai_base_url: str | None = None
    openai_model: str = "gpt-4o"
    openai_fast_model: str | None = None
    openai_temperature: float = 0.1
    openai_max_tokens: int = 4096
    llm_timeout_seconds: float = 120.0
    llm_max_retries: int = 2

    # --- Review Pipeline ---
    skills_path: str = ".github/frc-skills"
    workspace_dir: str | None = None
    fail_on_critical: bool = False
    max_concurrent_verifications: int = 8

    # --- Server ---
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"
    debug: bool = False

    def resolved_base_url(self) -> str | None:
        """Base URL for the OpenAI-compatible client.

        An explicit ``openai_base_url`` wins; otherwise the gateway name is
        looked up.  ``None`` means the official OpenAI endpoint.
        """
        if self.openai_base_url:
            return self.openai_base_url
        gateway = self.gateway.lower()
        if gateway not in GATEWAY_BASE_URLS:
            raise ConfigurationError(f"Unknown gateway: {self.gateway}")
        return GATEWAY_BASE_URLS[gateway]


def get_settings() -> Settings:
    """Build Settings from the environment.

    Raises:
        ConfigurationError: If required variables are missing or invalid.
    """
    try:
        return Settings()  # type: ignore[call-arg]
    except ValidationError as e:
        fields = ", ".join(str(err["loc"][0]).upper() for err in e.errors() if err.get("loc"))
        raise ConfigurationError(f"Invalid settings: {fields}", detail=str(e)) from e
