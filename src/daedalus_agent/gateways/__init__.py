"""
Gateways module - multi-provider model support.

Providers:
- Google Gemini (native SDK)
- OpenAI GPT (native SDK, OpenAI-compatible endpoints)
- Anthropic Claude (native SDK)

Provider classes are imported lazily by the factory so a missing SDK
only matters when that provider is used.
"""

from .base import CallParams, ModelGateway, ModelResponse, estimate_tokens
from .factory import create_gateway
from .schema import to_gemini_schema, to_json_schema_parameters

__all__ = [
    "CallParams",
    "ModelGateway",
    "ModelResponse",
    "estimate_tokens",
    "create_gateway",
    "to_gemini_schema",
    "to_json_schema_parameters",
]
