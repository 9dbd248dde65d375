"""
Agent module - the brain of the system.

Includes:
- Orchestrator: Drives one turn from prompt assembly to tool dispatch
- PromptAssembler: Token-budgeted packing of context fragments
- PresetBundle: Reusable component sets loaded in bulk
"""

from .bundle import PresetBundle
from .core import Orchestrator
from .prompt import AssembledPrompt, PromptAssembler, ToolBlockBudget, render_tool_block

__all__ = [
    "Orchestrator",
    "PromptAssembler",
    "AssembledPrompt",
    "ToolBlockBudget",
    "render_tool_block",
    "PresetBundle",
]
