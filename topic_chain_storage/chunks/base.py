"""
Abstract chunk chain writer/reader.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

from .types import ChunkRef


class ChunkStore(ABC):
    """Appends batches to hash-linked chains and reads ranges back."""

    @abstractmethod
    async def write(self, previous_hash: str | None, entries: Sequence[Any]) -> ChunkRef:
        """
        Append a batch after ``previous_hash``.

        Writing the same batch after the same predecessor twice yields
        the same hash.

        Args:
            previous_hash: Current tip of the chain, None to start a chain
            entries: Payloads to append, in order

        Returns:
            Reference to the new tip
        """
        pass

    @abstractmethod
    async def read(self, from_hash: str | None = None, to_hash: str | None = None) -> list[Any]:
        """
        Read entries after ``from_hash`` through ``to_hash``.

        Chunk stores do not track tips: the caller supplies ``to_hash``
        (normally the tip from the directory). A missing ``to_hash`` reads
        nothing rather than resolving to a tip.

        Args:
            from_hash: Exclusive lower bound, None for genesis
            to_hash: Inclusive upper bound (a chain tip or any chunk in it)

        Returns:
            Entries in append order; empty when ``to_hash`` is None

        Raises:
            ChainError: If ``from_hash`` is not an ancestor of ``to_hash``
        """
        pass
