"""
Shared test configuration and fixtures.

Collaborators are in-memory stores wrapped with failure injection and,
for chunk writes, a gate that holds an epoch in flight so tests can
interleave appends and overlapping epochs deterministically.
"""

import asyncio
import logging
from collections.abc import Mapping, Sequence
from typing import Any

import pytest

from topic_chain_storage import (
    BlobChunkStore,
    BlobDirectoryStore,
    CommitterConfig,
    EpochCommitter,
    MemoryBlobStore,
    MemoryPointerStore,
    provision_root,
)
from topic_chain_storage.chunks import ChunkRef, ChunkStore
from topic_chain_storage.directory import DirectoryRef, DirectoryStore

logger = logging.getLogger(__name__)

ROOT = "root:test"


class GatedChunkStore(ChunkStore):
    """Chunk store that can pause reads and writes or fail writes."""

    def __init__(self, inner: ChunkStore):
        self.inner = inner
        self.gate = asyncio.Event()
        self.gate.set()
        self.entered = asyncio.Event()
        self.read_gate = asyncio.Event()
        self.read_gate.set()
        self.fail_with: Exception | None = None
        self.write_calls = 0

    async def write(self, previous_hash: str | None, entries: Sequence[Any]) -> ChunkRef:
        self.write_calls += 1
        self.entered.set()
        await self.gate.wait()
        if self.fail_with is not None:
            raise self.fail_with
        return await self.inner.write(previous_hash, entries)

    async def read(self, from_hash: str | None = None, to_hash: str | None = None) -> list[Any]:
        await self.read_gate.wait()
        return await self.inner.read(from_hash, to_hash)


class FlakyDirectoryStore(DirectoryStore):
    """Directory store that fails writes while ``fail_with`` is set."""

    def __init__(self, inner: DirectoryStore):
        self.inner = inner
        self.fail_with: Exception | None = None
        self.write_calls = 0

    async def read_latest(self, directory_hash: str) -> dict[str, str]:
        return await self.inner.read_latest(directory_hash)

    async def write(self, mapping: Mapping[str, str]) -> DirectoryRef:
        self.write_calls += 1
        if self.fail_with is not None:
            raise self.fail_with
        return await self.inner.write(mapping)


class FlakyPointerStore(MemoryPointerStore):
    """Memory pointer store that fails writes while ``fail_with`` is set."""

    def __init__(self) -> None:
        super().__init__()
        self.fail_with: Exception | None = None

    async def write(self, address: str, value: str) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        await super().write(address, value)


@pytest.fixture
def blobs():
    """Shared in-memory blob store."""
    return MemoryBlobStore()


@pytest.fixture
def chunks(blobs):
    return GatedChunkStore(BlobChunkStore(blobs))


@pytest.fixture
def directory(blobs):
    return FlakyDirectoryStore(BlobDirectoryStore(blobs))


@pytest.fixture
def pointers():
    return FlakyPointerStore()


@pytest.fixture
def config():
    return CommitterConfig(
        root_address=ROOT,
        epoch_interval_seconds=0.01,
        call_timeout_seconds=5.0,
    )


@pytest.fixture
async def committer(chunks, directory, pointers, config):
    """Initialized committer over a freshly provisioned root."""
    await provision_root(pointers, directory, ROOT)
    committer = await EpochCommitter.create(chunks, directory, pointers, config)
    yield committer
    await committer.close()
