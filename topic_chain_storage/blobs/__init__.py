"""
Content-addressed blob stores.

Chunk chains and directory versions are encoded to bytes and stored
here; the returned hash is their identity.
"""

from .base import BlobStore
from .ipfs import IpfsHttpBlobStore
from .local import LocalBlobStore
from .memory import MemoryBlobStore

__all__ = [
    "BlobStore",
    "MemoryBlobStore",
    "LocalBlobStore",
    "IpfsHttpBlobStore",
]
