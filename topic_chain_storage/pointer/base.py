"""
Abstract single-slot pointer store.

Models a contract-style register: each address holds one value,
writes overwrite (last writer wins) and there is no compare-and-swap.
Single-writer discipline per address is the caller's responsibility.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class PointerStore(ABC):
    """Read/write slots addressed by a stable identifier."""

    @abstractmethod
    async def read(self, address: str) -> str:
        """
        Read the value at ``address``.

        Raises:
            PointerNotFoundError: If the address was never written
        """
        pass

    @abstractmethod
    async def write(self, address: str, value: str) -> None:
        """Overwrite the value at ``address``."""
        pass

    async def close(self) -> None:
        """Cleanup resources."""
        return None
