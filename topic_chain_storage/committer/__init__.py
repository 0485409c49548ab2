"""
Epoch commit protocol over the staging buffer and collaborators.
"""

from .epoch import EpochCommitter
from .provision import provision_root
from .types import CommitterStatus, EpochResult, EpochState, EpochStatus, TopicContents

__all__ = [
    "EpochCommitter",
    "EpochState",
    "EpochStatus",
    "EpochResult",
    "TopicContents",
    "CommitterStatus",
    "provision_root",
]
