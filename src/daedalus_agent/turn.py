"""
Turn-scoped values passed between the orchestrator and its components.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class TurnState(str, Enum):
    """Orchestrator lifecycle within a single turn."""

    IDLE = "idle"
    ASSEMBLING = "assembling"
    AWAITING_GATEWAY = "awaiting-gateway"
    DISPATCHING = "dispatching"


@dataclass(frozen=True)
class TurnContext:
    """Input for one turn, handed explicitly to every fragment's gather().

    ``input`` has arbitrary shape; the CLI trigger passes plain text.
    """

    input: Any = None
    turn_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def text(self) -> str | None:
        """The turn input when it is a string, otherwise None."""
        return self.input if isinstance(self.input, str) else None


@dataclass
class ToolCall:
    """A tool invocation requested by the model."""

    name: str | None
    arguments: dict[str, Any] = field(default_factory=dict)
    id: str = ""


@dataclass
class ExecutedTool:
    """One dispatched tool invocation, in execution order."""

    key: str
    args: dict[str, Any]
    result: Any = None
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.error is None


@dataclass
class Usage:
    """Token accounting reported by the provider."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


@dataclass
class TurnResult:
    """Canonical outcome of Orchestrator.execute()."""

    final_text_response: str | None = None
    executed_tools: list[ExecutedTool] = field(default_factory=list)
    usage: Usage | None = None
    raw_response: Any = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-friendly dictionary."""
        return {
            "final_text_response": self.final_text_response,
            "executed_tools": [
                {"key": t.key, "args": t.args, "result": t.result, "error": t.error}
                for t in self.executed_tools
            ],
            "usage": (
                {
                    "prompt_tokens": self.usage.prompt_tokens,
                    "completion_tokens": self.usage.completion_tokens,
                    "total_tokens": self.usage.total_tokens,
                }
                if self.usage
                else None
            ),
        }
