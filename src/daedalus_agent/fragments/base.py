"""
Context fragments: named, cacheable pieces of prompt content.

A fragment gathers its content lazily and keeps it until its TTL runs
out. Preamble fragments become system-level instructions, body fragments
become user-level content.
"""

import re
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable

import structlog

from ..turn import TurnContext

logger = structlog.get_logger()


class Section(str, Enum):
    """Prompt section a fragment is delivered in."""

    PREAMBLE = "preamble"
    BODY = "body"


@dataclass(frozen=True)
class FragmentSnapshot:
    """Content of a fragment as seen at one point of a turn.

    ``token_count`` is left unset here; the prompt assembler fills it in
    with the active gateway's tokenizer.
    """

    key: str
    content: str
    section: Section
    order: float
    char_count: int
    token_count: int | None = None


_MS_PER = {
    "ms": 1,
    "s": 1000,
    "m": 60 * 1000,
    "h": 60 * 60 * 1000,
    "d": 24 * 60 * 60 * 1000,
    "w": 7 * 24 * 60 * 60 * 1000,
    "y": 365.25 * 24 * 60 * 60 * 1000,
}

_UNIT_ALIASES = {
    "milliseconds": "ms", "millisecond": "ms", "msecs": "ms", "msec": "ms", "ms": "ms",
    "seconds": "s", "second": "s", "secs": "s", "sec": "s", "s": "s",
    "minutes": "m", "minute": "m", "mins": "m", "min": "m", "m": "m",
    "hours": "h", "hour": "h", "hrs": "h", "hr": "h", "h": "h",
    "days": "d", "day": "d", "d": "d",
    "weeks": "w", "week": "w", "w": "w",
    "years": "y", "year": "y", "yrs": "y", "yr": "y", "y": "y",
}

_TTL_PATTERN = re.compile(r"^(-?(?:\d+)?\.?\d+) *([a-z]+)?$", re.IGNORECASE)


def parse_ttl(value: str | int | float) -> float | None:
    """Parse a duration such as ``"5m"``, ``"2 hours"`` or ``"500"`` into milliseconds.

    Bare numbers are milliseconds. Returns None if the value can't be parsed.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if not isinstance(value, str) or not value or len(value) > 100:
        return None

    match = _TTL_PATTERN.match(value.strip())
    if match is None:
        return None

    amount = float(match.group(1))
    unit = (match.group(2) or "ms").lower()
    alias = _UNIT_ALIASES.get(unit)
    if alias is None:
        return None
    return amount * _MS_PER[alias]


def _monotonic_ms() -> float:
    return time.monotonic() * 1000


class ContextFragment(ABC):
    """Base class for all context fragments.

    Subclasses implement ``gather``. Everything else (TTL bookkeeping,
    snapshots) is handled here.
    """

    def __init__(
        self,
        key: str,
        *,
        section: Section | str = Section.BODY,
        order: float = 0,
        ttl: str | int | float = "0",
        name: str = "",
        description: str = "",
        clock: Callable[[], float] | None = None,
    ):
        self._key = key
        self.section = Section(section)
        self.order = order
        self.name = name or key
        self.description = description
        self.logger = logger.bind(component=key)
        self._clock = clock or _monotonic_ms

        parsed = parse_ttl(ttl)
        if parsed is None:
            self.logger.warning(
                "Invalid TTL, fragment will always regather", ttl=ttl
            )
            parsed = 0
        self.ttl_millis = parsed

        self._content: str | None = None
        self.expires_at: float = 0

    @property
    def key(self) -> str:
        return self._key

    @property
    def content(self) -> str | None:
        """Last gathered content, or None if never gathered."""
        return self._content

    def is_fresh(self) -> bool:
        """Whether the cached content can be served without regathering."""
        if self._content is None or self.ttl_millis <= 0:
            return False
        return self._clock() < self.expires_at

    def invalidate(self) -> None:
        """Force the next access to regather."""
        self.expires_at = 0

    @abstractmethod
    async def gather(self, turn: TurnContext) -> str:
        """Produce fresh content for this fragment."""
        ...

    async def get_data(
        self,
        revalidate: bool = False,
        turn: TurnContext | None = None,
    ) -> FragmentSnapshot:
        """Return a snapshot, regathering if the cache is missing or stale.

        If ``gather`` raises, the exception propagates and the previous
        cached value is left as it was.
        """
        if revalidate or not self.is_fresh():
            content = await self.gather(turn or TurnContext())
            self._content = content
            if self.ttl_millis > 0:
                self.expires_at = self._clock() + self.ttl_millis
            self.logger.debug("Fragment gathered", chars=len(content))

        content = self._content or ""
        return FragmentSnapshot(
            key=self.key,
            content=content,
            section=self.section,
            order=self.order,
            char_count=len(content),
        )

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(key={self.key!r}, section={self.section.value!r}, "
            f"order={self.order!r}, ttl_millis={self.ttl_millis!r})"
        )
