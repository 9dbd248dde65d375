"""
Native Google Gemini gateway.

Uses the google-generativeai SDK directly: token counting through the
countTokens endpoint and native function calling for tool dispatch.
"""

from typing import Any

from ..tools.base import ToolDeclaration
from ..turn import ToolCall, Usage
from .base import CallParams, ModelGateway, ModelResponse
from .schema import to_gemini_schema

# CallParams field -> Gemini generation_config key
_GENERATION_KEYS = {
    "max_output_tokens": "max_output_tokens",
    "temperature": "temperature",
    "top_p": "top_p",
    "top_k": "top_k",
    "candidate_count": "candidate_count",
    "stop_sequences": "stop_sequences",
    "presence_penalty": "presence_penalty",
    "frequency_penalty": "frequency_penalty",
    "seed": "seed",
}


class GeminiGateway(ModelGateway):
    """Native Google Gemini gateway."""

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-flash",
        name: str = "Gemini 2.5 Flash",
        context_window_tokens: int = 1_048_576,
    ):
        super().__init__(model, name, context_window_tokens)
        self.api_key = api_key
        self.model = model
        self._client = None

    def _get_client(self):
        """Lazy-initialize the Gemini client."""
        if self._client is None:
            import google.generativeai as genai

            genai.configure(api_key=self.api_key)
            self._client = genai
        return self._client

    @property
    def provider_name(self) -> str:
        return "google"

    def build_declarations(self, tools: list[ToolDeclaration]) -> list[dict[str, Any]]:
        """Convert tool declarations to Gemini function declarations."""
        declarations = []
        for tool in tools:
            declaration: dict[str, Any] = {
                "name": tool.name,
                "description": tool.description,
            }
            if tool.parameters:
                declaration["parameters"] = to_gemini_schema(tool.parameters)
            declarations.append(declaration)
        return declarations

    def build_generation_config(self, params: CallParams) -> dict[str, Any]:
        return {
            _GENERATION_KEYS[name]: value
            for name, value in params.to_dict().items()
            if name in _GENERATION_KEYS
        }

    async def tokenize(self, text: str) -> int:
        if not text:
            return 0
        genai = self._get_client()
        model = genai.GenerativeModel(model_name=self.model)
        response = await model.count_tokens_async(text)
        total = getattr(response, "total_tokens", None)
        if total is None:
            raise RuntimeError("Error counting tokens: total_tokens missing from response")
        return total

    def parse_response(self, response: Any) -> ModelResponse:
        """Normalize a generate_content response."""
        content = ""
        tool_calls: list[ToolCall] = []
        stop_reason = None

        if response.candidates:
            candidate = response.candidates[0]
            for part in candidate.content.parts:
                fc = getattr(part, "function_call", None)
                if fc and fc.name:
                    tool_calls.append(ToolCall(
                        id=f"gemini_{fc.name}_{len(tool_calls)}",
                        name=fc.name,
                        arguments=dict(fc.args) if fc.args else {},
                    ))
                elif getattr(part, "text", None):
                    content += part.text
            finish_reason = getattr(candidate, "finish_reason", None)
            stop_reason = getattr(finish_reason, "name", None)

        usage = None
        metadata = getattr(response, "usage_metadata", None)
        if metadata:
            prompt_tokens = getattr(metadata, "prompt_token_count", 0) or 0
            completion_tokens = getattr(metadata, "candidates_token_count", 0) or 0
            usage = Usage(
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                total_tokens=getattr(metadata, "total_token_count", 0)
                or prompt_tokens + completion_tokens,
            )

        return ModelResponse(
            content=content,
            tool_calls=tool_calls,
            usage=usage,
            model=self.model,
            stop_reason=stop_reason,
            raw_response=response,
        )

    async def process(
        self,
        system_prompt: str,
        user_prompt: str,
        tools: list[ToolDeclaration],
        params: CallParams,
    ) -> ModelResponse:
        """Generate a response from Gemini."""
        genai = self._get_client()

        model_kwargs: dict[str, Any] = {
            "model_name": self.model,
            "generation_config": self.build_generation_config(params),
        }
        if system_prompt:
            model_kwargs["system_instruction"] = system_prompt
        if tools:
            model_kwargs["tools"] = [{"function_declarations": self.build_declarations(tools)}]

        model = genai.GenerativeModel(**model_kwargs)

        try:
            response = await model.generate_content_async(user_prompt)
        except Exception as e:
            self.logger.error("Gemini API error", error=str(e))
            raise

        return self.parse_response(response)
