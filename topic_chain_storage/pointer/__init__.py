"""
Root pointer stores: one mutable slot per root address.
"""

from .base import PointerStore
from .local import LocalPointerStore
from .memory import MemoryPointerStore

__all__ = [
    "PointerStore",
    "MemoryPointerStore",
    "LocalPointerStore",
]
