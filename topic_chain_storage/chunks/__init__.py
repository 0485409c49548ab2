"""
Append-only, hash-linked chunk chains (one per topic).
"""

from .base import ChunkStore
from .blob_chain import BlobChunkStore
from .types import CHUNK_SCHEMA, Chunk, ChunkRef

__all__ = [
    "CHUNK_SCHEMA",
    "Chunk",
    "ChunkRef",
    "ChunkStore",
    "BlobChunkStore",
]
