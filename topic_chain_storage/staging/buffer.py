"""
In-memory staging buffer (mempool) for topic writes.

Writes are staged here until an epoch persists them. The buffer hands
out snapshots whose completion handle prunes only the entries that
existed when the snapshot was taken, so writes arriving while an
epoch is in flight survive to the next epoch.

None of the methods here are coroutines: under asyncio a snapshot can
never interleave with an append.
"""

from __future__ import annotations

import copy
import json
import logging
from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from ..encoding import canonical_bytes, sha256_hex
from ..exceptions import DuplicateEntryError, SnapshotAlreadyCompletedError, ValidationError
from .sequence import EntrySequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StagedEntry:
    """A single staged write.

    Attributes:
        sequence: Buffer-wide monotonic position
        timestamp: When the entry was staged
        topic: Topic the payload belongs to
        payload: Opaque JSON-serializable value
        fingerprint: SHA-256 of the canonical payload, used for dedup
    """

    sequence: int
    timestamp: datetime
    topic: str
    payload: Any
    fingerprint: str


@dataclass
class BufferSnapshot:
    """Point-in-time view of the buffer grouped by topic.

    ``complete()`` is the one-shot completion handle: it prunes the
    entries this snapshot covered and must be called at most once.
    """

    contents: dict[str, tuple[Any, ...]]
    entry_count: int
    high_water: int
    taken_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    _release: Callable[[int], int] | None = field(default=None, repr=False)
    _completed: bool = field(default=False, init=False, repr=False)

    @property
    def topics(self) -> list[str]:
        return list(self.contents)

    @property
    def is_empty(self) -> bool:
        return not self.contents

    @property
    def completed(self) -> bool:
        return self._completed

    def complete(self) -> int:
        """Remove the snapshotted prefix from the buffer.

        Returns:
            Number of entries removed

        Raises:
            SnapshotAlreadyCompletedError: If called a second time
        """
        if self._completed:
            raise SnapshotAlreadyCompletedError(self.high_water)
        self._completed = True
        if self._release is None:
            return 0
        return self._release(self.high_water)


class StagingBuffer:
    """Process-local, append-ordered write buffer.

    Duplicate detection is buffer-wide: a payload structurally equal to
    one already staged is rejected regardless of topic.
    """

    def __init__(self) -> None:
        self._entries: list[StagedEntry] = []
        self._fingerprints: Counter[str] = Counter()
        self._sequence = EntrySequence()

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def is_empty(self) -> bool:
        return not self._entries

    def append(self, topic: str, payload: Any) -> StagedEntry:
        """Stage ``payload`` under ``topic``.

        Raises:
            ValidationError: If the topic is empty or the payload is not JSON serializable
            DuplicateEntryError: If an equal payload is already staged
        """
        if not isinstance(topic, str) or not topic:
            raise ValidationError("topic", "must be a non-empty string", repr(topic))

        encoded = canonical_bytes(payload)
        digest = sha256_hex(encoded)
        if self._fingerprints[digest]:
            raise DuplicateEntryError(topic, digest)

        entry = StagedEntry(
            sequence=self._sequence.next_sequence(),
            timestamp=datetime.now(UTC),
            topic=topic,
            # Decoded from the canonical form so later caller mutations cannot
            # drift from the fingerprint
            payload=json.loads(encoded),
            fingerprint=digest,
        )
        self._entries.append(entry)
        self._fingerprints[digest] += 1
        return entry

    def _grouped(self) -> dict[str, list[Any]]:
        by_topic: dict[str, list[Any]] = {}
        for entry in self._entries:
            by_topic.setdefault(entry.topic, []).append(entry.payload)
        return by_topic

    def contents(self) -> dict[str, list[Any]]:
        """Copies of the staged payloads per topic, in append order."""
        return copy.deepcopy(self._grouped())

    def topic_contents(self, topic: str) -> list[Any]:
        return copy.deepcopy([entry.payload for entry in self._entries if entry.topic == topic])

    def topics(self) -> list[str]:
        return list(dict.fromkeys(entry.topic for entry in self._entries))

    def snapshot_and_get_completion_handle(self) -> BufferSnapshot:
        """Snapshot current contents together with a prune handle."""
        return BufferSnapshot(
            contents={topic: tuple(items) for topic, items in self._grouped().items()},
            entry_count=len(self._entries),
            high_water=self._sequence.get_current(),
            _release=self._release_through,
        )

    def _release_through(self, high_water: int) -> int:
        """Drop the leading entries with sequence <= ``high_water``."""
        cut = 0
        for entry in self._entries:
            if entry.sequence > high_water:
                break
            cut += 1

        for entry in self._entries[:cut]:
            self._fingerprints[entry.fingerprint] -= 1
            if self._fingerprints[entry.fingerprint] <= 0:
                del self._fingerprints[entry.fingerprint]
        del self._entries[:cut]

        logger.debug("Released %d staged entries through sequence %d", cut, high_water)
        return cut
