"""
Versioned topic directory stored in a content-addressed blob store.

Each version is the full ``{topic: tip_hash}`` map, encoded with
sorted keys, so identical maps always produce the same hash no
matter the order topics were inserted.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ..blobs.base import BlobStore
from ..encoding import canonical_bytes
from ..exceptions import StorageIOError, ValidationError

logger = logging.getLogger(__name__)

DIRECTORY_SCHEMA = "topic-chain/directory@v1"


@dataclass(frozen=True)
class DirectoryRef:
    """Result of writing a directory version."""

    hash: str
    topic_count: int = 0


class DirectoryStore(ABC):
    """Holds versions of the topic -> chunk tip mapping."""

    @abstractmethod
    async def read_latest(self, directory_hash: str) -> dict[str, str]:
        """
        Load the mapping stored under ``directory_hash``.

        Raises:
            BlobNotFoundError: If no such version exists
        """
        pass

    @abstractmethod
    async def write(self, mapping: Mapping[str, str]) -> DirectoryRef:
        """
        Store a new version of the mapping.

        Returns:
            Reference whose hash identifies this version
        """
        pass


class BlobDirectoryStore(DirectoryStore):
    """Directory versions kept as canonical JSON blobs."""

    def __init__(self, blobs: BlobStore):
        self.blobs = blobs

    @staticmethod
    def encode(mapping: Mapping[str, str]) -> bytes:
        for topic, tip in mapping.items():
            if not isinstance(topic, str) or not isinstance(tip, str):
                raise ValidationError("mapping", "topics and tip hashes must be strings", repr(topic))
        return canonical_bytes({"schema": DIRECTORY_SCHEMA, "topics": dict(mapping)})

    async def read_latest(self, directory_hash: str) -> dict[str, str]:
        raw = await self.blobs.get(directory_hash)
        try:
            data: Any = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise StorageIOError("parse_directory", directory_hash, e) from e

        if not isinstance(data, dict) or data.get("schema") != DIRECTORY_SCHEMA:
            raise StorageIOError(
                "parse_directory", directory_hash, ValueError("blob is not a directory")
            )
        return dict(data.get("topics", {}))

    async def write(self, mapping: Mapping[str, str]) -> DirectoryRef:
        directory_hash = await self.blobs.put(self.encode(mapping))
        logger.debug("Wrote directory %s (%d topics)", directory_hash, len(mapping))
        return DirectoryRef(hash=directory_hash, topic_count=len(mapping))
