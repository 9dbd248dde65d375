"""
Fragment backed by a file on disk, re-read when its TTL expires.
"""

import asyncio
from pathlib import Path

from ..turn import TurnContext
from .base import ContextFragment, Section


class FileFragment(ContextFragment):
    """Loads prompt content from a text file (e.g. a persona or notes file).

    A missing file yields ``default`` instead of failing the turn.
    """

    def __init__(
        self,
        key: str,
        path: str | Path,
        *,
        section: Section | str = Section.PREAMBLE,
        order: float = 0,
        ttl: str | int | float = "5m",
        default: str = "",
        encoding: str = "utf-8",
    ):
        super().__init__(
            key,
            section=section,
            order=order,
            ttl=ttl,
            name=Path(path).name,
            description=f"Contents of {path}",
        )
        self.path = Path(path).expanduser()
        self.default = default
        self.encoding = encoding

    def _read(self) -> str:
        if not self.path.exists():
            self.logger.warning("Fragment file not found, using default", path=str(self.path))
            return self.default
        return self.path.read_text(encoding=self.encoding).strip()

    async def gather(self, turn: TurnContext) -> str:
        return await asyncio.to_thread(self._read)
