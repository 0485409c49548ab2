"""In-memory blob store keyed by SHA-256."""

from __future__ import annotations

from ..encoding import sha256_hex
from ..exceptions import BlobNotFoundError
from .base import BlobStore


class MemoryBlobStore(BlobStore):
    """Dict-backed blob store.

    ``put_count`` counts every ``put`` call, including repeats of
    content that is already stored.
    """

    def __init__(self) -> None:
        self._blobs: dict[str, bytes] = {}
        self.put_count = 0

    async def put(self, data: bytes) -> str:
        self.put_count += 1
        blob_hash = sha256_hex(data)
        self._blobs.setdefault(blob_hash, bytes(data))
        return blob_hash

    async def get(self, blob_hash: str) -> bytes:
        try:
            return self._blobs[blob_hash]
        except KeyError:
            raise BlobNotFoundError(blob_hash) from None

    async def exists(self, blob_hash: str) -> bool:
        return blob_hash in self._blobs

    def __len__(self) -> int:
        return len(self._blobs)
