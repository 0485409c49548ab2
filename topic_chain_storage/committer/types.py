"""
Result and status types for the epoch committer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class EpochState(Enum):
    """Current state of the epoch committer."""

    IDLE = "idle"
    COMMITTING = "committing"


class EpochStatus(Enum):
    """Outcome of a single ``run_epoch()`` call."""

    COMMITTED = "committed"
    SKIPPED_BUSY = "skipped_busy"
    SKIPPED_EMPTY = "skipped_empty"


@dataclass
class EpochResult:
    """Result of an epoch that did not fail."""

    status: EpochStatus
    directory_hash: str | None = None
    topic_hashes: dict[str, str] = field(default_factory=dict)
    entry_count: int = 0
    duration_ms: int = 0

    @property
    def committed(self) -> bool:
        return self.status == EpochStatus.COMMITTED

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary (used for structured log records)."""
        return {
            "status": self.status.value,
            "directory_hash": self.directory_hash,
            "topic_hashes": dict(self.topic_hashes),
            "entry_count": self.entry_count,
            "duration_ms": self.duration_ms,
        }


@dataclass
class TopicContents:
    """Persisted plus staged data for one topic.

    Attributes:
        data: Chain entries followed by staged payloads
        hash: Persisted tip hash of the topic, None if never committed
    """

    data: list[Any]
    hash: str | None


@dataclass
class CommitterStatus:
    """Snapshot of committer state for monitoring."""

    state: EpochState
    root_address: str
    root_hash: str | None
    topic_count: int
    staged_entries: int
    epochs_committed: int = 0
    last_epoch_at: datetime | None = None
    last_error: str | None = None
