"""
Base class for triggers - external stimuli that start a turn.
"""

from abc import ABC
from typing import TYPE_CHECKING, Any

import structlog

from ..turn import TurnResult

if TYPE_CHECKING:
    from ..agent.core import Orchestrator


class Trigger(ABC):
    """Supplies turn input to an orchestrator.

    A trigger owns no orchestration logic. The orchestrator is required
    at construction, so a trigger is always fully wired.
    """

    def __init__(self, key: str, orchestrator: "Orchestrator"):
        self._key = key
        self.orchestrator = orchestrator
        self.logger = structlog.get_logger().bind(component=key, agent=orchestrator.name)

    @property
    def key(self) -> str:
        return self._key

    async def fire(self, data: Any = None) -> TurnResult:
        """Start a turn with ``data`` as its input. Errors propagate.

        Waits for any turn another trigger started on the same orchestrator.
        """
        self.logger.debug("Trigger fired")
        async with self.orchestrator.turn_lock:
            return await self.orchestrator.execute(data)

    async def start(self) -> None:
        """Begin listening for stimuli. Push-style triggers need nothing here."""

    async def stop(self) -> None:
        """Stop listening for stimuli."""
