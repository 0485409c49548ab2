"""
Versioned, content-addressed topic directory.
"""

from .store import DIRECTORY_SCHEMA, BlobDirectoryStore, DirectoryRef, DirectoryStore

__all__ = [
    "DIRECTORY_SCHEMA",
    "DirectoryRef",
    "DirectoryStore",
    "BlobDirectoryStore",
]
