"""
Schedule trigger - fires turns on a cron expression.
"""

import asyncio
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any, Optional

from croniter import croniter

from .base import Trigger

if TYPE_CHECKING:
    from ..agent.core import Orchestrator

# A cron that matches no active hour within this window never will
MAX_LOOKAHEAD = timedelta(days=366)


class ScheduleTrigger(Trigger):
    """Fires a turn every time ``cron_expression`` comes due.

    ``payload`` is the turn input; pass a callable to compute it at fire
    time. A failing turn is logged and the schedule keeps running.
    ``active_hours`` is a (start, end) hour window, end exclusive; a window
    with start > end wraps past midnight, e.g. (22, 6).
    """

    def __init__(
        self,
        orchestrator: "Orchestrator",
        cron_expression: str,
        payload: Any = None,
        key: str = "schedule",
        active_hours: Optional[tuple[int, int]] = None,
    ):
        super().__init__(key, orchestrator)
        if not croniter.is_valid(cron_expression):
            raise ValueError(f"Invalid cron expression: {cron_expression!r}")
        self.cron_expression = cron_expression
        self.payload = payload
        if active_hours is not None:
            start_hour, end_hour = active_hours
            if not (0 <= start_hour <= 23 and 0 <= end_hour <= 24) or start_hour == end_hour:
                raise ValueError(f"Invalid active hours: {active_hours!r}")
        self.active_hours = active_hours
        self.last_run: Optional[datetime] = None
        self._task: Optional[asyncio.Task] = None

        if active_hours is not None:
            # fail at construction rather than inside the running loop
            self.next_run()

    def next_run(self, after: Optional[datetime] = None) -> datetime:
        """Next due time after ``after`` (default now), honoring active hours."""
        after = after or datetime.now()
        cron = croniter(self.cron_expression, after)
        next_time = cron.get_next(datetime)

        if self.active_hours:
            horizon = after + MAX_LOOKAHEAD
            while not self.in_active_hours(next_time):
                if next_time > horizon:
                    raise ValueError(
                        f"Cron expression {self.cron_expression!r} never fires "
                        f"within active hours {self.active_hours!r}"
                    )
                next_time = cron.get_next(datetime)

        return next_time

    def in_active_hours(self, when: datetime) -> bool:
        if not self.active_hours:
            return True
        start_hour, end_hour = self.active_hours
        if start_hour < end_hour:
            return start_hour <= when.hour < end_hour
        return when.hour >= start_hour or when.hour < end_hour

    def _resolve_payload(self) -> Any:
        if callable(self.payload):
            return self.payload()
        return self.payload

    async def run_once(self) -> None:
        """Fire one scheduled turn, logging instead of raising on failure."""
        self.last_run = datetime.now()
        try:
            result = await self.fire(self._resolve_payload())
            self.logger.info(
                "Scheduled turn complete",
                executed_tools=[t.key for t in result.executed_tools],
            )
        except Exception as e:
            self.logger.error("Scheduled turn failed", error=str(e))

    async def _loop(self) -> None:
        while True:
            due = self.next_run()
            delay = max(0.0, (due - datetime.now()).total_seconds())
            self.logger.debug("Next scheduled turn", due=due.isoformat())
            await asyncio.sleep(delay)
            await self.run_once()

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.is_running:
            return
        self._task = asyncio.create_task(self._loop())
        self.logger.info("Schedule started", cron=self.cron_expression)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        self.logger.info("Schedule stopped")
