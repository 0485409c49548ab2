"""In-memory pointer store."""

from __future__ import annotations

from ..exceptions import PointerNotFoundError
from .base import PointerStore


class MemoryPointerStore(PointerStore):
    """Dict-backed pointer slots with a write history for inspection."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})
        self.history: list[tuple[str, str]] = []

    async def read(self, address: str) -> str:
        try:
            return self._values[address]
        except KeyError:
            raise PointerNotFoundError(address) from None

    async def write(self, address: str, value: str) -> None:
        self._values[address] = value
        self.history.append((address, value))
