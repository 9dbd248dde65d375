"""
Fragment that surfaces the current turn's input as prompt content.
"""

from ..turn import TurnContext
from .base import ContextFragment, Section


class TurnInputFragment(ContextFragment):
    """Body fragment carrying the text that started the turn.

    Reads the input from the TurnContext handed to ``gather``; it never
    looks at orchestrator state. TTL is 0 because the input changes every turn.
    """

    def __init__(
        self,
        key: str = "turn_input",
        order: float = 0,
        prefix: str = "",
    ):
        super().__init__(
            key,
            section=Section.BODY,
            order=order,
            ttl=0,
            name="Turn Input",
            description="Contextual information supplied by the trigger",
        )
        self.prefix = prefix

    async def gather(self, turn: TurnContext) -> str:
        if turn.input is None:
            self.logger.warning("No turn input available, returning empty content")
            return ""
        if turn.text is None:
            self.logger.error(
                "Turn input is not a string, returning empty content",
                input_type=type(turn.input).__name__,
            )
            return ""
        return self.prefix + turn.text
