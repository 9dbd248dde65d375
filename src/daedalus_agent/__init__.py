"""
Daedalus-Agent - single-turn orchestration for LLM agents.
"""

from .agent import AssembledPrompt, Orchestrator, PresetBundle, PromptAssembler
from .errors import ConfigurationError, DaedalusError, SchemaConversionError, ToolDispatchError
from .fragments import (
    ContextFragment,
    FileFragment,
    FragmentSnapshot,
    Section,
    StaticFragment,
    SystemPrefix,
    SystemSuffix,
    TurnInputFragment,
)
from .gateways import CallParams, ModelGateway, ModelResponse, create_gateway
from .tools import FunctionTool, ReplyTool, Tool, ToolParameter, ToolResult
from .triggers import DirectTrigger, ScheduleTrigger, Trigger
from .turn import ExecutedTool, ToolCall, TurnContext, TurnResult, TurnState, Usage

__version__ = "0.1.0"

__all__ = [
    "AssembledPrompt",
    "Orchestrator",
    "PresetBundle",
    "PromptAssembler",
    "ConfigurationError",
    "DaedalusError",
    "SchemaConversionError",
    "ToolDispatchError",
    "ContextFragment",
    "FileFragment",
    "FragmentSnapshot",
    "Section",
    "StaticFragment",
    "SystemPrefix",
    "SystemSuffix",
    "TurnInputFragment",
    "CallParams",
    "ModelGateway",
    "ModelResponse",
    "create_gateway",
    "FunctionTool",
    "ReplyTool",
    "Tool",
    "ToolParameter",
    "ToolResult",
    "DirectTrigger",
    "ScheduleTrigger",
    "Trigger",
    "ExecutedTool",
    "ToolCall",
    "TurnContext",
    "TurnResult",
    "TurnState",
    "Usage",
]
