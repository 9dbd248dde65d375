"""
Configuration management for Daedalus-Agent

Uses pydantic-settings for environment variable parsing and validation.
"""

from functools import lru_cache
from typing import Literal, get_args

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError

Provider = Literal["google", "openai", "anthropic"]
PROVIDERS: tuple[str, ...] = get_args(Provider)


class GatewayConfig(BaseSettings):
    """Configuration for a single model gateway."""

    model_config = SettingsConfigDict(extra="ignore")

    provider: Provider = "google"
    model: str = "gemini-2.5-flash"
    api_key: str = ""
    base_url: str | None = None
    context_window_tokens: int = Field(default=1_048_576, gt=0)


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    # Application
    app_name: str = "Daedalus-Agent"
    debug: bool = False
    log_level: str = "INFO"

    # Webhook trigger
    host: str = "0.0.0.0"
    port: int = 8080

    # Model providers (API keys)
    google_api_key: str = Field(default="", description="Google AI API key for Gemini")
    openai_api_key: str = Field(default="", description="OpenAI API key")
    anthropic_api_key: str = Field(default="", description="Anthropic API key for Claude")

    default_provider: Provider = "google"
    default_model: str = ""

    # Turn orchestration
    target_tokens: int = Field(default=10_000, gt=0, description="Target prompt token budget")
    max_output_tokens: int = Field(default=1024, gt=0, description="Tokens reserved for the reply")
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    tool_block_budget: Literal["system", "unbudgeted"] = Field(
        default="system",
        description="Whether the tool declaration block counts against the prompt budget",
    )
    include_turn_input: bool = Field(
        default=False, description="Fold the raw turn input into the user prompt"
    )
    turn_input_label: str = "Human input:"

    # CLI preset
    system_prefix: str = "You are a helpful assistant."

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.strip().upper() if v else "INFO"

    def get_gateway_config(self, provider: str | None = None) -> GatewayConfig:
        """Get gateway configuration for a provider."""
        provider = provider or self.default_provider
        if provider not in PROVIDERS:
            raise ConfigurationError(
                f"Unknown model provider: {provider} (expected one of {', '.join(PROVIDERS)})"
            )

        api_key_map = {
            "google": self.google_api_key,
            "openai": self.openai_api_key,
            "anthropic": self.anthropic_api_key,
        }

        model_map = {
            "google": "gemini-2.5-flash",
            "openai": "gpt-4o",
            "anthropic": "claude-sonnet-4-20250514",
        }

        context_window_map = {
            "google": 1_048_576,
            "openai": 128_000,
            "anthropic": 200_000,
        }

        model = model_map.get(provider, "")
        if self.default_model and provider == self.default_provider:
            model = self.default_model

        return GatewayConfig(
            provider=provider,  # type: ignore
            model=model,
            api_key=api_key_map.get(provider, ""),
            context_window_tokens=context_window_map.get(provider, 128_000),
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
