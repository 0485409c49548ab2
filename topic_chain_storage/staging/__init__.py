"""
Staging buffer (mempool) for writes awaiting the next epoch.
"""

from .buffer import BufferSnapshot, StagedEntry, StagingBuffer
from .sequence import EntrySequence

__all__ = [
    "BufferSnapshot",
    "StagedEntry",
    "StagingBuffer",
    "EntrySequence",
]
