"""
Shared fakes for the test suite.
"""

from typing import Any

import pytest

from daedalus_agent.config import Settings
from daedalus_agent.fragments.base import ContextFragment
from daedalus_agent.gateways.base import CallParams, ModelGateway, ModelResponse
from daedalus_agent.tools.base import Tool, ToolDeclaration
from daedalus_agent.turn import ToolCall, TurnContext


class FakeClock:
    """Millisecond clock advanced by hand."""

    def __init__(self, now: float = 1_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


class CountingFragment(ContextFragment):
    """Returns fixed text and counts how often it was gathered."""

    def __init__(self, key: str, text: str = "", **kwargs: Any):
        super().__init__(key, **kwargs)
        self.text = text
        self.gather_count = 0
        self.seen_turns: list[TurnContext] = []

    async def gather(self, turn: TurnContext) -> str:
        self.gather_count += 1
        self.seen_turns.append(turn)
        return self.text


class FakeGateway(ModelGateway):
    """One token per character; replays a canned response."""

    def __init__(
        self,
        response: ModelResponse | None = None,
        context_window_tokens: int = 100_000,
    ):
        super().__init__("fake-model", "Fake Model", context_window_tokens)
        self.response = response or ModelResponse(content="ok")
        self.calls: list[dict[str, Any]] = []

    @property
    def provider_name(self) -> str:
        return "fake"

    async def tokenize(self, text: str) -> int:
        return len(text)

    async def process(
        self,
        system_prompt: str,
        user_prompt: str,
        tools: list[ToolDeclaration],
        params: CallParams,
    ) -> ModelResponse:
        self.calls.append({
            "system_prompt": system_prompt,
            "user_prompt": user_prompt,
            "tools": tools,
            "params": params,
        })
        return self.response


class EchoTool(Tool):
    """Returns its arguments; fails when told to."""

    def __init__(self, key: str, fail: bool = False):
        self._key = key
        self.fail = fail
        self.calls: list[dict[str, Any]] = []

    @property
    def key(self) -> str:
        return self._key

    @property
    def description(self) -> str:
        return f"Echo tool {self._key}"

    @property
    def args_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {"value": {"type": "string"}},
            "required": ["value"],
        }

    async def execute(self, args: dict[str, Any]) -> Any:
        self.calls.append(args)
        if self.fail:
            raise RuntimeError(f"{self._key} exploded")
        return {"echo": args}


def tool_response(*calls: tuple[str | None, dict[str, Any]], content: str = "") -> ModelResponse:
    return ModelResponse(
        content=content,
        tool_calls=[ToolCall(name=name, arguments=args) for name, args in calls],
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()
