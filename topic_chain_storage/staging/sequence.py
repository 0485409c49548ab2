"""
Sequence number allocation for staged entries.

Every entry gets a monotonic sequence number when it is staged.
Snapshots record the highest number they saw, which lets a completed
snapshot drop exactly its own prefix of the buffer.
"""

from __future__ import annotations

from threading import Lock


class EntrySequence:
    """Monotonic sequence allocator for one staging buffer.

    Numbers are never reused, even after the buffer is pruned.
    """

    def __init__(self, start: int = 1) -> None:
        """Initialize with starting sequence.

        Args:
            start: First sequence number to hand out
        """
        self._current = start - 1
        self._lock = Lock()

    def next_sequence(self) -> int:
        """Get next sequence number."""
        with self._lock:
            self._current += 1
            return self._current

    def get_current(self) -> int:
        """Get current sequence (last allocated), 0 before the first entry."""
        return self._current
