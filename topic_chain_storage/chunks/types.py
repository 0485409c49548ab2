"""
Chunk types for per-topic append-only chains.

A chunk is one epoch's batch for one topic plus a back-link to the
previous chunk. Chunks are immutable; their hash is the blob store's
hash of the canonical encoding below.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..encoding import canonical_bytes

CHUNK_SCHEMA = "topic-chain/chunk@v1"


@dataclass(frozen=True)
class Chunk:
    """A single batch in a topic's chain.

    Attributes:
        entries: Payloads appended by this chunk, in order
        previous: Hash of the preceding chunk, None for the first one
    """

    entries: tuple[Any, ...]
    previous: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for storage."""
        return {
            "schema": CHUNK_SCHEMA,
            "previous": self.previous,
            "entries": list(self.entries),
        }

    def encode(self) -> bytes:
        return canonical_bytes(self.to_dict())

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Chunk:
        """Deserialize from dictionary."""
        return cls(
            entries=tuple(data.get("entries", [])),
            previous=data.get("previous"),
        )


@dataclass(frozen=True)
class ChunkRef:
    """Result of writing a chunk."""

    hash: str
    previous: str | None = None
    entry_count: int = 0
