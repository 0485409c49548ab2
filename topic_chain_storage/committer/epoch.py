"""
Epoch committer: drains the staging buffer into chunk chains.

One epoch:
1. Snapshot the staging buffer
2. Append one chunk per changed topic (concurrently)
3. Write a new directory version (unchanged topics carry over)
4. Point the root address at the new directory
5. Replace the cached directory and release the snapshot

A failure in steps 2-4 leaves the buffer and caches untouched, so the
next epoch retries the same data plus anything staged since.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Any, TypeVar

from ..chunks.base import ChunkStore
from ..config import CommitterConfig
from ..directory.store import DirectoryStore
from ..exceptions import (
    CommitterStateError,
    EpochCommitError,
    PointerNotFoundError,
    StorageIOError,
    TopicStorageError,
    UninitializedRootError,
)
from ..logging_utils import DatasetLogAdapter
from ..pointer.base import PointerStore
from ..resilience import retry_with_backoff
from ..staging import BufferSnapshot, StagingBuffer
from .types import CommitterStatus, EpochResult, EpochState, EpochStatus, TopicContents

logger = logging.getLogger(__name__)

T = TypeVar("T")


class EpochCommitter:
    """Publishes staged topic writes behind a single root pointer.

    The committer assumes it is the only writer of its root address.
    Overlapping ``run_epoch()`` calls within this instance collapse to
    a no-op; nothing here coordinates separate processes, so deployments
    must run one committer per root address.

    Example:
        >>> committer = await EpochCommitter.create(chunks, directory, pointers, config)
        >>> committer.append_data("orders", {"id": 1})
        >>> await committer.run_epoch()
        >>> (await committer.get_topic_contents("orders")).data
        [{'id': 1}]
    """

    def __init__(
        self,
        chunks: ChunkStore,
        directory: DirectoryStore,
        pointers: PointerStore,
        config: CommitterConfig,
        buffer: StagingBuffer | None = None,
    ):
        """Initialize the committer.

        Args:
            chunks: Chunk chain writer/reader
            directory: Directory version store
            pointers: Root pointer store
            config: Committer configuration
            buffer: Staging buffer (a fresh one if omitted)
        """
        self.chunks = chunks
        self.directory = directory
        self.pointers = pointers
        self.config = config

        self._buffer = buffer or StagingBuffer()
        self._state = EpochState.IDLE
        self._initialized = False
        self._root_hash: str | None = None
        self._topic_hashes: dict[str, str] = {}

        self._epochs_committed = 0
        self._last_epoch_at: datetime | None = None
        self._last_error: str | None = None
        self._epoch_task: asyncio.Task[None] | None = None

        self._log = DatasetLogAdapter(logger, {"root_address": config.root_address})

    @classmethod
    async def create(
        cls,
        chunks: ChunkStore,
        directory: DirectoryStore,
        pointers: PointerStore,
        config: CommitterConfig,
    ) -> EpochCommitter:
        """Create and initialize a committer."""
        committer = cls(chunks, directory, pointers, config)
        await committer.initialize()
        return committer

    @property
    def state(self) -> EpochState:
        """Get current epoch state."""
        return self._state

    @property
    def root_address(self) -> str:
        return self.config.root_address

    @property
    def root_hash(self) -> str | None:
        """Directory hash of the last published (or loaded) version."""
        return self._root_hash

    @property
    def topic_hashes(self) -> dict[str, str]:
        """Copy of the cached topic -> tip hash map."""
        return dict(self._topic_hashes)

    @property
    def buffer(self) -> StagingBuffer:
        return self._buffer

    async def initialize(self) -> None:
        """Load the directory the root pointer currently names.

        Raises:
            UninitializedRootError: If the root pointer was never provisioned
            StorageIOError: If the pointer or directory cannot be read
        """
        try:
            root_hash = await self._call(self.pointers.read, self.root_address, context="root")
        except PointerNotFoundError as e:
            raise UninitializedRootError(self.root_address) from e
        except TopicStorageError:
            raise
        except Exception as e:
            raise StorageIOError("read_root_pointer", self.root_address, e) from e

        try:
            topic_hashes = await self._call(self.directory.read_latest, root_hash, context="root")
        except Exception as e:
            raise StorageIOError("read_directory", root_hash, e) from e

        self._root_hash = root_hash
        self._topic_hashes = dict(topic_hashes)
        self._initialized = True
        self._log.info(
            "ROOT_LOADED: directory %s with %d topics",
            root_hash,
            len(topic_hashes),
            extra={"directory_hash": root_hash},
        )

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise CommitterStateError("EpochCommitter.initialize() has not completed")

    async def _call(
        self, fn: Callable[..., Awaitable[T]], *args: Any, context: str = ""
    ) -> T:
        """Call a collaborator with the configured timeout and retry policy."""
        return await retry_with_backoff(
            fn,
            *args,
            config=self.config.retry,
            timeout=self.config.call_timeout_seconds,
            context_msg=f"{self.root_address} {context}".strip(),
        )

    def append_data(self, topic: str, payload: Any) -> None:
        """Stage a payload for the next epoch.

        Raises:
            DuplicateEntryError: If an equal payload is already staged
        """
        self._buffer.append(topic, payload)

    async def get_topic_contents(self, topic: str, up_to_hash: str | None = None) -> TopicContents:
        """Read a topic's committed entries followed by its staged ones.

        Args:
            topic: Topic to read
            up_to_hash: Stop the chain read at this chunk instead of the tip

        Returns:
            Combined data and the topic's persisted tip hash
        """
        self._require_initialized()
        # Tip and staged entries are captured together, before any await, so an
        # epoch finishing mid-read cannot drop entries from the result
        tip = self._topic_hashes.get(topic)
        staged = self._buffer.topic_contents(topic)
        to_hash = up_to_hash or tip

        persisted: list[Any] = []
        if to_hash is not None:
            try:
                persisted = await self._call(self.chunks.read, None, to_hash, context=topic)
            except TopicStorageError:
                raise
            except Exception as e:
                raise StorageIOError("read_chunks", topic, e) from e

        return TopicContents(data=[*persisted, *staged], hash=tip)

    def list_topics(self) -> list[str]:
        """All topics with committed or staged data."""
        return sorted(set(self._topic_hashes) | set(self._buffer.topics()))

    async def run_epoch(self) -> EpochResult:
        """Commit everything staged so far.

        Returns:
            Result describing what was committed or why nothing was

        Raises:
            EpochCommitError: If a collaborator write failed; nothing was released
        """
        if self._state == EpochState.COMMITTING:
            self._log.info("EPOCH_SKIPPED: epoch already in progress")
            return EpochResult(status=EpochStatus.SKIPPED_BUSY)

        self._require_initialized()
        self._state = EpochState.COMMITTING
        start = time.monotonic()

        try:
            snapshot = self._buffer.snapshot_and_get_completion_handle()
            if snapshot.is_empty:
                return EpochResult(status=EpochStatus.SKIPPED_EMPTY)

            result = await self._commit(snapshot)
            result.duration_ms = int((time.monotonic() - start) * 1000)

            self._epochs_committed += 1
            self._last_epoch_at = datetime.now(UTC)
            self._last_error = None
            self._log.info(
                "EPOCH_COMMITTED: directory=%s topics=%d entries=%d duration_ms=%d",
                result.directory_hash,
                len(result.topic_hashes),
                result.entry_count,
                result.duration_ms,
                extra={"epoch": result.to_dict()},
            )
            return result
        except EpochCommitError as e:
            self._last_error = str(e)
            self._log.error(
                "EPOCH_FAILED: step=%s topics=%s: %r",
                e.step,
                e.topics,
                e.cause,
                extra={"step": e.step, "topics": e.topics},
            )
            raise
        finally:
            self._state = EpochState.IDLE

    async def _commit(self, snapshot: BufferSnapshot) -> EpochResult:
        new_tips = await self._write_chunks(snapshot)

        # Unchanged topics keep their previous tips
        topic_hashes = {**self._topic_hashes, **new_tips}
        try:
            directory_ref = await self._call(self.directory.write, topic_hashes, context="directory")
        except Exception as e:
            raise EpochCommitError("directory_write", e, snapshot.topics) from e

        try:
            await self._call(
                self.pointers.write, self.root_address, directory_ref.hash, context="pointer"
            )
        except Exception as e:
            raise EpochCommitError("pointer_write", e, snapshot.topics) from e

        self._topic_hashes = topic_hashes
        self._root_hash = directory_ref.hash
        snapshot.complete()

        return EpochResult(
            status=EpochStatus.COMMITTED,
            directory_hash=directory_ref.hash,
            topic_hashes=new_tips,
            entry_count=snapshot.entry_count,
        )

    async def _write_chunks(self, snapshot: BufferSnapshot) -> dict[str, str]:
        """Append one chunk per snapshot topic, returning the new tips."""
        semaphore = asyncio.Semaphore(self.config.max_concurrent_chunk_writes)

        async def write_topic(topic: str, entries: tuple[Any, ...]) -> str:
            async with semaphore:
                ref = await self._call(
                    self.chunks.write, self._topic_hashes.get(topic), list(entries), context=topic
                )
            self._log.bind(topic=topic).debug(
                "CHUNK_WRITTEN: %s (%d entries)", ref.hash, ref.entry_count
            )
            return ref.hash

        topics = snapshot.topics
        outcomes = await asyncio.gather(
            *(write_topic(topic, snapshot.contents[topic]) for topic in topics),
            return_exceptions=True,
        )

        errors = {
            topic: outcome
            for topic, outcome in zip(topics, outcomes)
            if isinstance(outcome, BaseException)
        }
        if errors:
            cause = next(iter(errors.values()))
            if not isinstance(cause, Exception):
                raise cause
            raise EpochCommitError("chunk_write", cause, list(errors)) from cause

        return dict(zip(topics, outcomes))

    def get_status(self) -> CommitterStatus:
        """Get current committer status."""
        return CommitterStatus(
            state=self._state,
            root_address=self.root_address,
            root_hash=self._root_hash,
            topic_count=len(self._topic_hashes),
            staged_entries=len(self._buffer),
            epochs_committed=self._epochs_committed,
            last_epoch_at=self._last_epoch_at,
            last_error=self._last_error,
        )

    async def debug_dump(self) -> dict[str, dict[str, Any]]:
        """Log and return every topic's tip hash and contents."""
        dump: dict[str, dict[str, Any]] = {}
        for topic in self.list_topics():
            contents = await self.get_topic_contents(topic)
            dump[topic] = {"hash": contents.hash, "data": contents.data}
            self._log.bind(topic=topic).debug(
                "DUMP: tip=%s entries=%d", contents.hash, len(contents.data)
            )
        return dump

    async def start_auto_epochs(self) -> None:
        """Run epochs in the background every ``epoch_interval_seconds``."""
        if self._epoch_task is not None:
            return
        self._require_initialized()

        async def epoch_loop() -> None:
            while True:
                await asyncio.sleep(self.config.epoch_interval_seconds)
                try:
                    await self.run_epoch()
                except EpochCommitError:
                    # Already logged; staged data is retried next tick
                    continue
                except TopicStorageError:
                    self._log.exception("Epoch loop error")

        self._epoch_task = asyncio.create_task(epoch_loop())
        self._log.info("Auto epochs started (interval=%.1fs)", self.config.epoch_interval_seconds)

    async def stop_auto_epochs(self) -> None:
        """Stop the background epoch loop."""
        if self._epoch_task is None:
            return
        self._epoch_task.cancel()
        try:
            await self._epoch_task
        except asyncio.CancelledError:
            pass
        self._epoch_task = None
        self._log.info("Auto epochs stopped")

    async def close(self) -> None:
        await self.stop_auto_epochs()

    async def __aenter__(self) -> EpochCommitter:
        return self

    async def __aexit__(self, exc_type: type, exc_val: Exception, exc_tb: object) -> None:
        await self.close()
