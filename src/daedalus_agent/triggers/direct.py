"""
Direct trigger - hands text straight to the orchestrator (CLI / REPL use).
"""

from typing import TYPE_CHECKING

from ..errors import DaedalusError
from ..turn import TurnResult
from .base import Trigger

if TYPE_CHECKING:
    from ..agent.core import Orchestrator


class DirectTrigger(Trigger):
    """Runs a turn per call and reports failures instead of raising them.

    Output reaches the user through tools (e.g. the reply tool); the
    returned TurnResult is only for callers that want it.
    """

    def __init__(self, orchestrator: "Orchestrator", key: str = "direct"):
        super().__init__(key, orchestrator)

    async def execute(self, data: str) -> TurnResult | None:
        self.logger.debug("Direct input received", chars=len(data))
        try:
            return await self.fire(data)
        except DaedalusError as e:
            self.logger.error("Turn failed", error=str(e), error_type=type(e).__name__)
        except Exception as e:
            self.logger.exception("Unexpected error during turn", error=str(e))
        return None
