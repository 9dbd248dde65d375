"""
Exception types raised by the orchestration core.

Only fatal conditions are exceptions. Budget overflows and tool failures
are reported through logging and the turn result instead.
"""

from typing import Any


class DaedalusError(Exception):
    """Base class for all orchestration errors."""


class ConfigurationError(DaedalusError):
    """The orchestrator was wired incorrectly (programmer error, never retried)."""


class ToolDispatchError(DaedalusError):
    """The provider asked for a tool the orchestrator never declared."""

    def __init__(
        self,
        message: str,
        tool_name: str | None = None,
        executed: list[Any] | None = None,
    ):
        super().__init__(message)
        self.tool_name = tool_name
        self.executed = executed or []


class SchemaConversionError(DaedalusError, ValueError):
    """A tool argument schema could not be converted for a provider."""
