"""
Topic Chain Storage

Versioned, topic-partitioned append-only dataset published behind a
single root pointer.

Provides:
- A staging buffer (mempool) with snapshot/prune semantics
- Per-topic append-only chunk chains in a content-addressed blob store
- A versioned topic directory
- An epoch committer that publishes everything by advancing one pointer

Usage:

    >>> from topic_chain_storage import (
    ...     CommitterConfig, EpochCommitter, build_stores, provision_root,
    ... )
    >>> stores = build_stores()
    >>> await provision_root(stores.pointers, stores.directory, "root:main")
    >>> committer = await EpochCommitter.create(
    ...     stores.chunks, stores.directory, stores.pointers,
    ...     CommitterConfig(root_address="root:main"),
    ... )
    >>> committer.append_data("orders", {"id": 1})
    >>> await committer.run_epoch()
    >>> (await committer.get_topic_contents("orders")).data
    [{'id': 1}]

Single writer:

    The root pointer has no compare-and-swap. Run exactly one
    committer per root address; electing it is outside this library.

Stores:

    # In-memory (tests, single process)
    from topic_chain_storage.blobs import MemoryBlobStore
    from topic_chain_storage.pointer import MemoryPointerStore

    # Local disk
    from topic_chain_storage.blobs import LocalBlobStore
    from topic_chain_storage.pointer import LocalPointerStore

    # IPFS node
    from topic_chain_storage.blobs import IpfsHttpBlobStore
"""

from .blobs import BlobStore, IpfsHttpBlobStore, LocalBlobStore, MemoryBlobStore
from .chunks import BlobChunkStore, Chunk, ChunkRef, ChunkStore
from .committer import (
    CommitterStatus,
    EpochCommitter,
    EpochResult,
    EpochState,
    EpochStatus,
    TopicContents,
    provision_root,
)
from .config import CommitterConfig, StoreConfig, Stores, build_stores
from .directory import BlobDirectoryStore, DirectoryRef, DirectoryStore

# Exceptions
from .exceptions import (
    BlobNotFoundError,
    ChainError,
    CommitterStateError,
    DuplicateEntryError,
    EpochCommitError,
    PointerNotFoundError,
    RootAlreadyProvisionedError,
    SnapshotAlreadyCompletedError,
    StorageConnectionError,
    StorageIOError,
    TopicStorageError,
    UninitializedRootError,
    ValidationError,
)
from .logging_utils import DatasetLogAdapter, configure_structured_logging
from .pointer import LocalPointerStore, MemoryPointerStore, PointerStore
from .resilience import RetryConfig
from .staging import BufferSnapshot, StagedEntry, StagingBuffer

__all__ = [
    # Core
    "EpochCommitter",
    "EpochState",
    "EpochStatus",
    "EpochResult",
    "TopicContents",
    "CommitterStatus",
    "provision_root",
    "StagingBuffer",
    "StagedEntry",
    "BufferSnapshot",
    # Collaborators
    "BlobStore",
    "MemoryBlobStore",
    "LocalBlobStore",
    "IpfsHttpBlobStore",
    "ChunkStore",
    "BlobChunkStore",
    "Chunk",
    "ChunkRef",
    "DirectoryStore",
    "BlobDirectoryStore",
    "DirectoryRef",
    "PointerStore",
    "MemoryPointerStore",
    "LocalPointerStore",
    # Configuration
    "CommitterConfig",
    "StoreConfig",
    "Stores",
    "build_stores",
    "RetryConfig",
    "configure_structured_logging",
    "DatasetLogAdapter",
    # Exceptions
    "TopicStorageError",
    "DuplicateEntryError",
    "ValidationError",
    "UninitializedRootError",
    "RootAlreadyProvisionedError",
    "StorageIOError",
    "StorageConnectionError",
    "EpochCommitError",
    "BlobNotFoundError",
    "PointerNotFoundError",
    "ChainError",
    "SnapshotAlreadyCompletedError",
    "CommitterStateError",
]

__version__ = "0.1.0"
