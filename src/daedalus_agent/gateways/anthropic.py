"""
Anthropic Claude gateway.
"""

from typing import Any

import anthropic

from ..tools.base import ToolDeclaration
from ..turn import ToolCall, Usage
from .base import CallParams, ModelGateway, ModelResponse
from .schema import to_json_schema_parameters

# The messages API requires max_tokens on every call
DEFAULT_MAX_TOKENS = 1024


class AnthropicGateway(ModelGateway):
    """Anthropic Claude gateway."""

    def __init__(
        self,
        api_key: str,
        model: str = "claude-sonnet-4-20250514",
        base_url: str | None = None,
        name: str = "Claude Sonnet 4",
        context_window_tokens: int = 200_000,
    ):
        super().__init__(model, name, context_window_tokens)
        self.model = model
        self.client = anthropic.AsyncAnthropic(
            api_key=api_key,
            base_url=base_url,
        )

    @property
    def provider_name(self) -> str:
        return "anthropic"

    async def tokenize(self, text: str) -> int:
        if not text:
            return 0
        response = await self.client.messages.count_tokens(
            model=self.model,
            messages=[{"role": "user", "content": text}],
        )
        return response.input_tokens

    def build_tools(self, tools: list[ToolDeclaration]) -> list[dict[str, Any]]:
        """Convert tool declarations to Anthropic format."""
        return [
            {
                "name": tool.name,
                "description": tool.description,
                "input_schema": to_json_schema_parameters(tool.parameters),
            }
            for tool in tools
        ]

    def build_kwargs(self, params: CallParams) -> dict[str, Any]:
        set_params = params.to_dict()
        kwargs: dict[str, Any] = {
            "max_tokens": set_params.get("max_output_tokens", DEFAULT_MAX_TOKENS),
        }
        if "stop_sequences" in set_params:
            kwargs["stop_sequences"] = set_params["stop_sequences"]
        for name in ("temperature", "top_p", "top_k"):
            if name in set_params:
                kwargs[name] = set_params[name]

        unsupported = set(set_params) & {
            "candidate_count", "presence_penalty", "frequency_penalty", "seed",
        }
        if unsupported:
            self.logger.warning("Ignoring unsupported call params", params=sorted(unsupported))
        return kwargs

    def parse_response(self, response: Any) -> ModelResponse:
        content = ""
        tool_calls = []

        for block in response.content:
            if block.type == "text":
                content += block.text
            elif block.type == "tool_use":
                tool_calls.append(ToolCall(
                    id=block.id,
                    name=block.name,
                    arguments=dict(block.input) if isinstance(block.input, dict) else {},
                ))

        return ModelResponse(
            content=content,
            tool_calls=tool_calls,
            usage=Usage(
                prompt_tokens=response.usage.input_tokens,
                completion_tokens=response.usage.output_tokens,
                total_tokens=response.usage.input_tokens + response.usage.output_tokens,
            ),
            model=response.model,
            stop_reason=response.stop_reason,
            raw_response=response,
        )

    async def process(
        self,
        system_prompt: str,
        user_prompt: str,
        tools: list[ToolDeclaration],
        params: CallParams,
    ) -> ModelResponse:
        """Generate a response from Claude."""
        kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": [{"role": "user", "content": user_prompt}],
            **self.build_kwargs(params),
        }
        if system_prompt:
            kwargs["system"] = system_prompt
        if tools:
            kwargs["tools"] = self.build_tools(tools)

        try:
            response = await self.client.messages.create(**kwargs)
        except anthropic.APIError as e:
            self.logger.error("Anthropic API error", error=str(e))
            raise

        return self.parse_response(response)
