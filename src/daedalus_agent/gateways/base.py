"""
Base classes for model gateways.
"""

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from typing import Any

import structlog

from ..tools.base import ToolDeclaration
from ..turn import ToolCall, Usage

# Approximate characters per token, for providers without a count endpoint
CHARS_PER_TOKEN = 4


def estimate_tokens(text: str) -> int:
    """Estimate the token count of a piece of text."""
    if not text:
        return 0
    return max(1, (len(text) + CHARS_PER_TOKEN - 1) // CHARS_PER_TOKEN)


@dataclass
class CallParams:
    """Sampling controls for one model call. Unset fields use provider defaults."""

    max_output_tokens: int | None = None
    temperature: float | None = None
    top_p: float | None = None
    top_k: int | None = None
    candidate_count: int | None = None
    stop_sequences: list[str] | None = None
    presence_penalty: float | None = None
    frequency_penalty: float | None = None
    seed: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """Only the fields that were actually set."""
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class ModelResponse:
    """Provider response normalized to a canonical shape."""

    content: str = ""
    tool_calls: list[ToolCall] = field(default_factory=list)
    usage: Usage | None = None
    model: str = ""
    stop_reason: str | None = None
    raw_response: Any = None


class ModelGateway(ABC):
    """Abstraction over one model provider: tokenizer, context window, call."""

    def __init__(self, key: str, name: str, context_window_tokens: int):
        if context_window_tokens <= 0:
            raise ValueError("context_window_tokens must be positive")
        self._key = key
        self.name = name
        self.context_window_tokens = context_window_tokens
        self.logger = structlog.get_logger().bind(component=key)

    @property
    def key(self) -> str:
        return self._key

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Get the provider name."""
        pass

    @abstractmethod
    async def tokenize(self, text: str) -> int:
        """Count the tokens ``text`` occupies for this model."""
        pass

    @abstractmethod
    async def process(
        self,
        system_prompt: str,
        user_prompt: str,
        tools: list[ToolDeclaration],
        params: CallParams,
    ) -> ModelResponse:
        """Call the model once with the assembled prompts and declared tools."""
        pass
