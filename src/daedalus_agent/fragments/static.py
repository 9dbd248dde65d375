"""
Fragments whose content is fixed at construction time.
"""

from ..turn import TurnContext
from .base import ContextFragment, Section


class StaticFragment(ContextFragment):
    """A fragment that always gathers the same text."""

    def __init__(self, key: str, text: str, **kwargs):
        super().__init__(key, **kwargs)
        self.text = text

    async def gather(self, turn: TurnContext) -> str:
        return self.text


class SystemPrefix(StaticFragment):
    """Instruction text pinned to the very start of the system prompt."""

    def __init__(self, text: str, key: str = "system_prefix"):
        super().__init__(
            key,
            text,
            section=Section.PREAMBLE,
            order=float("-inf"),
            name="System Prefix",
            description="The system prefix for the agent.",
        )


class SystemSuffix(StaticFragment):
    """Instruction text pinned to the very end of the system prompt."""

    def __init__(self, text: str, key: str = "system_suffix"):
        super().__init__(
            key,
            text,
            section=Section.PREAMBLE,
            order=float("inf"),
            name="System Suffix",
            description="The system suffix for the agent.",
        )
