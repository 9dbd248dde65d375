"""
Gateway factory for creating provider instances.

Supports: Google Gemini (native), OpenAI GPT, Anthropic Claude.
"""

from ..config import GatewayConfig, Settings
from ..errors import ConfigurationError
from .base import ModelGateway


def create_gateway(
    config: GatewayConfig | None = None,
    settings: Settings | None = None,
) -> ModelGateway:
    """Create a gateway instance based on configuration.

    Provider routing:
    - google -> GeminiGateway (google-generativeai SDK)
    - openai -> OpenAIGateway (OpenAI SDK, also OpenAI-compatible endpoints)
    - anthropic -> AnthropicGateway (Anthropic SDK)
    """
    if config is None:
        if settings is None:
            from ..config import get_settings
            settings = get_settings()
        config = settings.get_gateway_config()

    if not config.api_key:
        raise ConfigurationError(f"No API key configured for provider '{config.provider}'")

    provider = config.provider

    if provider == "google":
        from .google import GeminiGateway
        return GeminiGateway(
            api_key=config.api_key,
            model=config.model,
            name=config.model,
            context_window_tokens=config.context_window_tokens,
        )
    elif provider == "openai":
        from .openai import OpenAIGateway
        return OpenAIGateway(
            api_key=config.api_key,
            model=config.model,
            base_url=config.base_url,
            name=config.model,
            context_window_tokens=config.context_window_tokens,
        )
    elif provider == "anthropic":
        from .anthropic import AnthropicGateway
        return AnthropicGateway(
            api_key=config.api_key,
            model=config.model,
            base_url=config.base_url,
            name=config.model,
            context_window_tokens=config.context_window_tokens,
        )
    else:
        raise ConfigurationError(f"Unknown model provider: {provider}")
