"""
Reply tool - lets the model answer the user through a tool call.
"""

import sys
from typing import Any, TextIO

from .base import Tool, ToolResult


class ReplyTool(Tool):
    """Writes the model's reply text to an output stream."""

    def __init__(
        self,
        key: str = "reply",
        description: str = "Reply to the users message",
        stream: TextIO | None = None,
    ):
        self._key = key
        self._description = description
        self.stream = stream

    @property
    def key(self) -> str:
        return self._key

    @property
    def description(self) -> str:
        return self._description

    @property
    def args_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "replyText": {
                    "type": "string",
                    "description": "The text to send back to the user",
                },
            },
            "required": ["replyText"],
        }

    async def execute(self, args: dict[str, Any]) -> ToolResult:
        text = args.get("replyText")
        if not isinstance(text, str):
            return ToolResult(success=False, error="replyText must be a string")

        stream = self.stream or sys.stdout
        print(text, file=stream)
        stream.flush()
        return ToolResult(success=True, output=text)
