"""Application configuration using Pydantic Settings."""

import os
import tempfile
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

KNOWN_PROVIDERS = ("chatgpt", "gemini", "claude", "deepseek")
ALLOWED_IMAGE_TYPES = ("image/jpeg", "image/png", "image/gif", "image/webp")

DEFAULT_CORS_ORIGIN = "http://localhost:5173"
DEFAULT_OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
SECRET_FILE_ENV_VARS = (
    "OPENAI_API_KEY",
    "GEMINI_API_KEY",
    "ANTHROPIC_API_KEY",
    "DEEPSEEK_API_KEY",
    "OPENROUTER_API_KEY",
)


def _load_secret_file_env_vars() -> None:
    """Allow secrets to be sourced from *_FILE env vars (Docker secrets)."""
    for env_var in SECRET_FILE_ENV_VARS:
        file_var = f"{env_var}_FILE"
        file_path = os.getenv(file_var)
        if not file_path:
            continue
        try:
            value = Path(file_path).read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise RuntimeError(f"Failed to read {file_var} at {file_path}") from exc
        if not value:
            raise ValueError(f"{file_var} is empty")
        os.environ[env_var] = value


def _split_list(value: str) -> list[str]:
    """Parse a JSON list or comma-separated string into a list of strings."""
    if not value:
        return []
    if value.startswith("["):
        import json

        raw = json.loads(value)
        if not isinstance(raw, list) or not all(isinstance(item, str) for item in raw):
            raise ValueError("Expected a JSON list of strings")
        return raw
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # ----- Application -----
    app_env: Literal["development", "staging", "production"] = "development"
    app_debug: bool = False

    # ----- OpenAI (ChatGPT) -----
    openai_api_key: str = ""
    openai_base_url: str | None = None
    openai_model: str = "gpt-4o"
    openai_max_tokens: int = 4096

    # ----- Google Gemini -----
    gemini_api_key: str = ""
    gemini_model: str = "gemini-1.5-flash"
    gemini_max_tokens: int = 4096

    # ----- Anthropic Claude -----
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-3-5-sonnet-20240620"
    anthropic_max_tokens: int = 4096

    # ----- DeepSeek (optional fourth column) -----
    deepseek_api_key: str = ""
    deepseek_model: str = "deepseek-chat"
    deepseek_base_url: str = "https://api.deepseek.com"
    deepseek_max_tokens: int = 4096

    # ----- Gateway -----
    # "direct" talks to each vendor SDK, "openrouter" routes every provider
    # through one OpenAI-compatible endpoint.
    ai_gateway: Literal["direct", "openrouter"] = "direct"
    openrouter_api_key: str = ""
    openrouter_base_url: str = DEFAULT_OPENROUTER_BASE_URL
    openrouter_site_url: str = ""
    openrouter_app_name: str = ""
    openrouter_model_chatgpt: str = "openai/gpt-4o"
    openrouter_model_gemini: str = "google/gemini-1.5-flash"
    openrouter_model_claude: str = "anthropic/claude-3.5-sonnet"
    openrouter_model_deepseek: str = "deepseek/deepseek-chat"

    # ----- Fan-out -----
    enabled_providers_str: str = Field(
        default="chatgpt,gemini,claude", alias="enabled_providers"
    )
    provider_timeout_ms: int = Field(default=30_000, gt=0)
    prompt_max_chars: int = Field(default=10_000, gt=0)
    allow_attachment_only: bool = False
    retry_provider: str | None = "gemini"
    retry_delay_seconds: float = Field(default=1.0, ge=0)

    # ----- Uploads -----
    upload_max_bytes: int = Field(default=10 * 1024 * 1024, gt=0)
    upload_dir: str = Field(default_factory=tempfile.gettempdir)

    # ----- CORS -----
    # Can be set as JSON list or comma-separated string
    cors_origins_str: str = Field(default=DEFAULT_CORS_ORIGIN, alias="allowed_origins")

    # ----- Rate limiting -----
    rate_limit_max: int = Field(default=60, gt=0)
    rate_limit_window_seconds: int = Field(default=15 * 60, gt=0)

    @property
    def cors_origins(self) -> list[str]:
        """Parse allowed origins from comma-separated string or JSON list."""
        return _split_list(self.cors_origins_str) or [DEFAULT_CORS_ORIGIN]

    @property
    def enabled_providers(self) -> list[str]:
        """Providers to fan out to, in display order."""
        return [name.lower() for name in _split_list(self.enabled_providers_str)]

    @property
    def provider_timeout_seconds(self) -> float:
        return self.provider_timeout_ms / 1000

    @property
    def rate_limit(self) -> str:
        """Rate limit in slowapi notation, e.g. ``60/900 seconds``."""
        return f"{self.rate_limit_max}/{self.rate_limit_window_seconds} seconds"

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @model_validator(mode="after")
    def validate_providers(self) -> "Settings":
        """Reject provider names nobody knows how to build."""
        unknown = [name for name in self.enabled_providers if name not in KNOWN_PROVIDERS]
        if unknown:
            raise ValueError(f"Unknown providers in ENABLED_PROVIDERS: {', '.join(unknown)}")
        if not self.enabled_providers:
            raise ValueError("ENABLED_PROVIDERS must name at least one provider")
        if self.retry_provider and self.retry_provider not in KNOWN_PROVIDERS:
            raise ValueError(f"Unknown RETRY_PROVIDER: {self.retry_provider}")
        return self

    @model_validator(mode="after")
    def validate_production_settings(self) -> "Settings":
        """Ensure secure settings in production environment."""
        if self.is_production:
            if self.app_debug:
                raise ValueError("APP_DEBUG must be false in production!")
            if any(
                origin == "*" or origin.startswith(("http://localhost", "http://127.0.0.1"))
                for origin in self.cors_origins
            ):
                raise ValueError("ALLOWED_ORIGINS must be restricted in production!")
        return self


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    _load_secret_file_env_vars()
    return Settings()
