"""
OpenAI GPT gateway (also works with OpenRouter and compatible APIs).
"""

import json
from typing import Any

import openai

from ..tools.base import ToolDeclaration
from ..turn import ToolCall, Usage
from .base import CallParams, ModelGateway, ModelResponse, estimate_tokens
from .schema import to_json_schema_parameters


class OpenAIGateway(ModelGateway):
    """OpenAI GPT gateway."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o",
        base_url: str | None = None,
        name: str = "GPT-4o",
        context_window_tokens: int = 128_000,
    ):
        super().__init__(model, name, context_window_tokens)
        self.model = model
        self.client = openai.AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
        )

    @property
    def provider_name(self) -> str:
        return "openai"

    async def tokenize(self, text: str) -> int:
        # The chat API has no count endpoint; estimate from characters.
        return estimate_tokens(text)

    def build_tools(self, tools: list[ToolDeclaration]) -> list[dict[str, Any]]:
        """Convert tool declarations to OpenAI format."""
        return [
            {
                "type": "function",
                "function": {
                    "name": tool.name,
                    "description": tool.description,
                    "parameters": to_json_schema_parameters(tool.parameters),
                },
            }
            for tool in tools
        ]

    def build_kwargs(self, params: CallParams) -> dict[str, Any]:
        set_params = params.to_dict()
        kwargs: dict[str, Any] = {}
        if "max_output_tokens" in set_params:
            kwargs["max_tokens"] = set_params["max_output_tokens"]
        if "candidate_count" in set_params:
            kwargs["n"] = set_params["candidate_count"]
        if "stop_sequences" in set_params:
            kwargs["stop"] = set_params["stop_sequences"]
        for name in ("temperature", "top_p", "presence_penalty", "frequency_penalty", "seed"):
            if name in set_params:
                kwargs[name] = set_params[name]
        return kwargs

    def parse_response(self, response: Any) -> ModelResponse:
        choice = response.choices[0]
        message = choice.message

        tool_calls = []
        for tc in message.tool_calls or []:
            tool_calls.append(ToolCall(
                id=tc.id,
                name=tc.function.name,
                arguments=json.loads(tc.function.arguments) if tc.function.arguments else {},
            ))

        usage = None
        if response.usage:
            usage = Usage(
                prompt_tokens=response.usage.prompt_tokens,
                completion_tokens=response.usage.completion_tokens,
                total_tokens=response.usage.total_tokens,
            )

        return ModelResponse(
            content=message.content or "",
            tool_calls=tool_calls,
            usage=usage,
            model=response.model,
            stop_reason=choice.finish_reason,
            raw_response=response,
        )

    async def process(
        self,
        system_prompt: str,
        user_prompt: str,
        tools: list[ToolDeclaration],
        params: CallParams,
    ) -> ModelResponse:
        """Generate a response from GPT."""
        messages: list[dict[str, Any]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": user_prompt})

        kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            **self.build_kwargs(params),
        }
        if tools:
            kwargs["tools"] = self.build_tools(tools)

        try:
            response = await self.client.chat.completions.create(**kwargs)
        except openai.APIError as e:
            self.logger.error("OpenAI API error", error=str(e))
            raise

        return self.parse_response(response)
