"""
Local directory blob store.

Layout:
    {base_path}/
    ├── ab/
    │   └── ab34...ef      # blob named by its SHA-256
    └── cd/
        └── cd01...23

Blobs are written atomically and verified against their name on read.
"""

from __future__ import annotations

import logging
from pathlib import Path

import aiofiles.os

from ..encoding import sha256_hex
from ..exceptions import BlobNotFoundError, StorageIOError, ValidationError
from ..file_ops import ensure_directory, read_bytes, write_bytes_atomic
from .base import BlobStore

logger = logging.getLogger(__name__)

_HEX = frozenset("0123456789abcdef")


class LocalBlobStore(BlobStore):
    """Content-addressed files under a base directory."""

    def __init__(self, base_path: Path | str):
        self.base_path = Path(base_path)

    def _blob_path(self, blob_hash: str) -> Path:
        if len(blob_hash) != 64 or not set(blob_hash) <= _HEX:
            raise ValidationError("blob_hash", "must be a lowercase SHA-256 hex digest", blob_hash)
        return self.base_path / blob_hash[:2] / blob_hash

    async def put(self, data: bytes) -> str:
        blob_hash = sha256_hex(data)
        path = self._blob_path(blob_hash)
        if await aiofiles.os.path.exists(path):
            return blob_hash
        await ensure_directory(path.parent)
        await write_bytes_atomic(path, data)
        logger.debug("Stored blob %s (%d bytes)", blob_hash, len(data))
        return blob_hash

    async def get(self, blob_hash: str) -> bytes:
        path = self._blob_path(blob_hash)
        data = await read_bytes(path)
        if data is None:
            raise BlobNotFoundError(blob_hash)
        if sha256_hex(data) != blob_hash:
            raise StorageIOError(
                "verify_blob", str(path), ValueError("content does not match its hash")
            )
        return data

    async def exists(self, blob_hash: str) -> bool:
        return await aiofiles.os.path.exists(self._blob_path(blob_hash))
