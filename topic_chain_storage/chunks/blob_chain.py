"""
Chunk chains stored in a content-addressed blob store.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from typing import Any

from ..blobs.base import BlobStore
from ..exceptions import BlobNotFoundError, ChainError, ValidationError
from .base import ChunkStore
from .types import CHUNK_SCHEMA, Chunk, ChunkRef

logger = logging.getLogger(__name__)


class BlobChunkStore(ChunkStore):
    """Chunk chains whose links are blob hashes.

    Reads walk backwards from ``to_hash`` along ``previous`` links and
    return the collected batches oldest first.
    """

    def __init__(self, blobs: BlobStore, max_depth: int | None = None):
        """Initialize the chunk store.

        Args:
            blobs: Blob store holding encoded chunks
            max_depth: Optional cap on chunks visited per read
        """
        self.blobs = blobs
        self.max_depth = max_depth

    async def write(self, previous_hash: str | None, entries: Sequence[Any]) -> ChunkRef:
        if not entries:
            raise ValidationError("entries", "a chunk needs at least one entry")

        chunk = Chunk(entries=tuple(entries), previous=previous_hash)
        chunk_hash = await self.blobs.put(chunk.encode())
        logger.debug(
            "Wrote chunk %s (%d entries, previous=%s)", chunk_hash, len(entries), previous_hash
        )
        return ChunkRef(hash=chunk_hash, previous=previous_hash, entry_count=len(entries))

    async def read_chunk(self, chunk_hash: str) -> Chunk:
        try:
            raw = await self.blobs.get(chunk_hash)
        except BlobNotFoundError as e:
            raise ChainError("chunk missing from blob store", chunk_hash) from e

        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ChainError(f"chunk is not valid JSON: {e}", chunk_hash) from e
        if not isinstance(data, dict) or data.get("schema") != CHUNK_SCHEMA:
            raise ChainError("blob is not a chunk", chunk_hash)
        return Chunk.from_dict(data)

    async def read(self, from_hash: str | None = None, to_hash: str | None = None) -> list[Any]:
        if to_hash is None or to_hash == from_hash:
            return []

        batches: list[tuple[Any, ...]] = []
        current: str | None = to_hash
        while current is not None and current != from_hash:
            if self.max_depth is not None and len(batches) >= self.max_depth:
                raise ChainError(f"chain deeper than {self.max_depth} chunks", to_hash)
            chunk = await self.read_chunk(current)
            batches.append(chunk.entries)
            current = chunk.previous

        if from_hash is not None and current != from_hash:
            raise ChainError(f"{from_hash} is not an ancestor", to_hash)

        entries: list[Any] = []
        for batch in reversed(batches):
            entries.extend(batch)
        return entries
