"""
Tool registry: declares tools to the model and dispatches its calls back.
"""

from typing import Any

import structlog

from ..errors import ToolDispatchError
from ..registry import Registry
from ..turn import ExecutedTool, ToolCall
from .base import Tool, ToolDeclaration, ToolResult

logger = structlog.get_logger()


class ToolRegistry(Registry[Tool]):
    """Registry for managing tools."""

    def register(self, tool: Tool) -> bool:
        """Register a tool. Returns True if it replaced one with the same key."""
        replaced = self.put(tool)
        logger.info("Tool registered", tool_name=tool.key, replaced=replaced)
        return replaced

    def unregister(self, key: str) -> None:
        """Unregister a tool."""
        if self.remove(key) is not None:
            logger.info("Tool unregistered", tool_name=key)

    def list_tools(self) -> list[str]:
        """List all registered tool names."""
        return self.keys()

    def get_declarations(self) -> list[ToolDeclaration]:
        """Get all tool declarations for the model, in registration order."""
        return [tool.to_declaration() for tool in self]

    async def invoke(self, tool: Tool, arguments: dict[str, Any]) -> ExecutedTool:
        """Run one tool, turning any failure into an error annotation."""
        try:
            logger.info("Executing tool", tool_name=tool.key, arguments=arguments)
            result = await tool.execute(arguments)
        except Exception as e:
            logger.error("Tool execution error", tool_name=tool.key, error=str(e))
            return ExecutedTool(key=tool.key, args=arguments, error=str(e))

        if isinstance(result, ToolResult) and not result.success:
            logger.warning("Tool reported failure", tool_name=tool.key, error=result.error)
            return ExecutedTool(
                key=tool.key,
                args=arguments,
                result=result,
                error=result.error or "Tool reported failure",
            )

        logger.info("Tool executed", tool_name=tool.key)
        return ExecutedTool(key=tool.key, args=arguments, result=result)

    async def dispatch(self, tool_calls: list[ToolCall]) -> list[ExecutedTool]:
        """Execute the model's tool calls sequentially, in the order received.

        Raises ToolDispatchError if a call has no name or names a tool that
        was never registered. Calls before the bad one have already run and
        are attached to the exception.
        """
        executed: list[ExecutedTool] = []

        for call in tool_calls:
            if not call.name:
                raise ToolDispatchError(
                    "Model returned a tool call without a name",
                    tool_name=None,
                    executed=executed,
                )

            tool = self.get(call.name)
            if tool is None:
                logger.error(
                    "Model requested an undeclared tool",
                    tool_name=call.name,
                    declared=self.keys(),
                )
                raise ToolDispatchError(
                    f"Tool '{call.name}' was not declared to the model",
                    tool_name=call.name,
                    executed=executed,
                )

            executed.append(await self.invoke(tool, call.arguments or {}))

        return executed
