"""
Custom exceptions for topic chain storage.

All collaborators and the epoch committer raise these exceptions
for consistent error handling across store implementations.
"""


class TopicStorageError(Exception):
    """Base exception for all topic chain storage errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class DuplicateEntryError(TopicStorageError):
    """Raised when a structurally equal payload is already staged."""

    def __init__(self, topic: str, fingerprint: str):
        super().__init__(
            f"Duplicate entry for topic {topic}: payload already staged",
            {"topic": topic, "fingerprint": fingerprint},
        )
        self.topic = topic
        self.fingerprint = fingerprint


class ValidationError(TopicStorageError):
    """Raised when data validation fails."""

    def __init__(self, field: str, reason: str, value: str | None = None):
        details = {"field": field, "reason": reason}
        if value is not None:
            details["value"] = value
        super().__init__(f"Validation failed for {field}: {reason}", details)
        self.field = field
        self.reason = reason
        self.value = value


class UninitializedRootError(TopicStorageError):
    """Raised when the root pointer has never been provisioned.

    A fresh dataset needs an empty directory and a pointer to it
    before the first committer starts (see ``provision_root``).
    """

    def __init__(self, root_address: str):
        super().__init__(
            f"Root pointer is not provisioned: {root_address}",
            {"root_address": root_address},
        )
        self.root_address = root_address


class RootAlreadyProvisionedError(TopicStorageError):
    """Raised when provisioning a root that already holds a value."""

    def __init__(self, root_address: str, current: str):
        super().__init__(
            f"Root pointer already provisioned: {root_address}",
            {"root_address": root_address, "current": current},
        )
        self.root_address = root_address
        self.current = current


class StorageIOError(TopicStorageError):
    """Raised when a collaborator I/O operation fails.

    ``status`` carries the HTTP status when a remote store answered with one.
    """

    def __init__(
        self,
        operation: str,
        path: str | None = None,
        cause: Exception | None = None,
        status: int | None = None,
    ):
        details = {"operation": operation}
        if path:
            details["path"] = path
        if cause:
            details["cause"] = str(cause)
        if status is not None:
            details["status"] = status
        message = f"Storage I/O error during {operation}"
        if path:
            message += f": {path}"
        super().__init__(message, details)
        self.operation = operation
        self.path = path
        self.cause = cause
        self.status = status


class StorageConnectionError(StorageIOError):
    """Raised when connection to a remote collaborator fails.

    Note: Named StorageConnectionError to avoid shadowing the builtin ConnectionError.
    """

    def __init__(self, endpoint: str, cause: Exception | None = None):
        super().__init__("connect", endpoint, cause)
        self.endpoint = endpoint


class EpochCommitError(StorageIOError):
    """Raised when an epoch aborts on a collaborator failure.

    Staged data is retained and cached state is untouched, so the
    epoch can simply be run again.
    """

    def __init__(self, step: str, cause: Exception, topics: list[str] | None = None):
        super().__init__(f"epoch {step}", None, cause)
        self.step = step
        self.topics = topics or []
        self.details["step"] = step
        self.details["topics"] = self.topics


class BlobNotFoundError(TopicStorageError):
    """Raised when a blob is not present in the blob store."""

    def __init__(self, blob_hash: str):
        super().__init__(f"Blob not found: {blob_hash}", {"hash": blob_hash})
        self.blob_hash = blob_hash


class PointerNotFoundError(TopicStorageError):
    """Raised when a pointer address has no value."""

    def __init__(self, address: str):
        super().__init__(f"Pointer not set: {address}", {"address": address})
        self.address = address


class ChainError(TopicStorageError):
    """Raised when a chunk chain cannot be read as requested."""

    def __init__(self, reason: str, chunk_hash: str | None = None):
        details = {"reason": reason}
        if chunk_hash:
            details["hash"] = chunk_hash
        super().__init__(f"Chunk chain error: {reason}", details)
        self.reason = reason
        self.chunk_hash = chunk_hash


class SnapshotAlreadyCompletedError(TopicStorageError):
    """Raised when a buffer snapshot's completion handle is invoked twice."""

    def __init__(self, high_water: int):
        super().__init__(
            f"Snapshot up to sequence {high_water} was already completed",
            {"high_water": high_water},
        )
        self.high_water = high_water


class CommitterStateError(TopicStorageError):
    """Raised when the committer is used before ``initialize()``."""
