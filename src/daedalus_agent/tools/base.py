"""
Base classes for tools.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Coroutine


@dataclass
class ToolResult:
    """Structured outcome a tool may return instead of a bare value."""

    success: bool
    output: str = ""
    data: Any = None
    error: str | None = None


@dataclass
class ToolParameter:
    """Definition of a tool parameter."""

    name: str
    param_type: str  # string, number, integer, boolean, array, object
    description: str
    required: bool = True
    default: Any = None
    enum: list[str] | None = None


@dataclass(frozen=True)
class ToolDeclaration:
    """Provider-facing description of a tool.

    ``name`` is the tool key; the same string routes invocations back.
    """

    name: str
    description: str
    parameters: dict[str, Any]


class Tool(ABC):
    """Base class for all tools."""

    @property
    @abstractmethod
    def key(self) -> str:
        """Unique tool name, used both in declarations and for dispatch."""
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        """Textual description of what the tool does, for the model."""
        pass

    @property
    def args_schema(self) -> dict[str, Any] | None:
        """JSON Schema for the arguments, or None if the tool takes none."""
        return None

    @abstractmethod
    async def execute(self, args: dict[str, Any]) -> Any:
        """Run the tool with structured arguments."""
        pass

    def to_declaration(self) -> ToolDeclaration:
        """Convert to a declaration for the model."""
        return ToolDeclaration(
            name=self.key,
            description=self.description,
            parameters=self.args_schema or {},
        )


class FunctionTool(Tool):
    """
    Simple tool wrapper that can be created from a function.

    This is an alternative to subclassing Tool for simpler tools. The
    handler receives the arguments as keyword arguments.
    """

    def __init__(
        self,
        key: str,
        description: str,
        handler: Callable[..., Coroutine[Any, Any, Any]],
        parameters: list[ToolParameter] | None = None,
    ):
        self._key = key
        self._description = description
        self.handler = handler
        self.parameters = parameters or []

    @property
    def key(self) -> str:
        return self._key

    @property
    def description(self) -> str:
        return self._description

    @property
    def args_schema(self) -> dict[str, Any] | None:
        """Convert parameters to JSON Schema format."""
        if not self.parameters:
            return None

        properties = {}
        required = []

        for param in self.parameters:
            prop: dict[str, Any] = {
                "type": param.param_type,
                "description": param.description,
            }
            if param.enum:
                prop["enum"] = param.enum
            if param.default is not None:
                prop["default"] = param.default

            properties[param.name] = prop

            if param.required:
                required.append(param.name)

        return {
            "type": "object",
            "properties": properties,
            "required": required,
        }

    async def execute(self, args: dict[str, Any]) -> Any:
        """Execute the tool handler."""
        return await self.handler(**args)
