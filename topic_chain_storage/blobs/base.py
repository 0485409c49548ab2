"""
Abstract base class for content-addressed blob stores.

Allows pluggable blob storage:
- In-memory (tests, single-process use)
- Local directory
- IPFS node over its HTTP API
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class BlobStore(ABC):
    """Content-addressed get/put by hash.

    ``put`` must be deterministic: the same bytes always yield the same
    hash, which is what makes chunk and directory writes idempotent.
    """

    @abstractmethod
    async def put(self, data: bytes) -> str:
        """
        Store bytes.

        Args:
            data: Raw bytes to store

        Returns:
            Content hash of ``data``
        """
        pass

    @abstractmethod
    async def get(self, blob_hash: str) -> bytes:
        """
        Retrieve bytes by hash.

        Raises:
            BlobNotFoundError: If no blob has this hash
        """
        pass

    @abstractmethod
    async def exists(self, blob_hash: str) -> bool:
        """Check whether a blob is stored."""
        pass

    async def close(self) -> None:
        """Cleanup resources (close connections)."""
        return None

    async def __aenter__(self) -> BlobStore:
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: type, exc_val: Exception, exc_tb: object) -> None:
        """Async context manager exit."""
        await self.close()
