"""
Tools module - capabilities the model can invoke.
"""

from .base import FunctionTool, Tool, ToolDeclaration, ToolParameter, ToolResult
from .registry import ToolRegistry
from .reply import ReplyTool

__all__ = [
    "FunctionTool",
    "Tool",
    "ToolDeclaration",
    "ToolParameter",
    "ToolResult",
    "ToolRegistry",
    "ReplyTool",
]
