"""
Configuration for the epoch committer and its collaborators.

Configuration in a YAML file:

```yaml
committer:
  root_address: "root:main"
  epoch_interval_seconds: 10
  call_timeout_seconds: 30
  max_concurrent_chunk_writes: 8
  retry:
    max_retries: 2
    backoff_base: 0.5

stores:
  blob_backend: local          # memory | local | ipfs
  blob_path: ~/.topic-chain/blobs
  ipfs_api_url: http://127.0.0.1:5001
  pointer_backend: local       # memory | local
  pointer_path: ~/.topic-chain/pointers.json
```

The same settings can come from ``TOPIC_CHAIN_*`` environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .blobs import BlobStore, IpfsHttpBlobStore, LocalBlobStore, MemoryBlobStore
from .blobs.ipfs import DEFAULT_API_URL
from .chunks import BlobChunkStore
from .directory import BlobDirectoryStore
from .exceptions import StorageIOError, ValidationError
from .pointer import LocalPointerStore, MemoryPointerStore, PointerStore
from .resilience import RetryConfig

DEFAULT_HOME = Path.home() / ".topic-chain"

BLOB_BACKENDS = ("memory", "local", "ipfs")
POINTER_BACKENDS = ("memory", "local")


def _optional_float(value: Any) -> float | None:
    if value is None or value == "" or str(value).lower() == "none":
        return None
    return float(value)


@dataclass
class CommitterConfig:
    """Configuration for an EpochCommitter."""

    root_address: str

    # Auto-epoch loop
    epoch_interval_seconds: float = 10.0

    # Collaborator call boundary
    call_timeout_seconds: float | None = 30.0
    retry: RetryConfig = field(default_factory=RetryConfig)
    max_concurrent_chunk_writes: int = 8

    def __post_init__(self) -> None:
        if not self.root_address:
            raise ValidationError("root_address", "must not be empty")
        if self.epoch_interval_seconds <= 0:
            raise ValidationError(
                "epoch_interval_seconds", "must be positive", str(self.epoch_interval_seconds)
            )
        if self.call_timeout_seconds is not None and self.call_timeout_seconds <= 0:
            raise ValidationError(
                "call_timeout_seconds", "must be positive or None", str(self.call_timeout_seconds)
            )
        if self.max_concurrent_chunk_writes < 1:
            raise ValidationError(
                "max_concurrent_chunk_writes", "must be >= 1", str(self.max_concurrent_chunk_writes)
            )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CommitterConfig:
        """Create config from a ``committer`` mapping."""
        return cls(
            root_address=data.get("root_address", ""),
            epoch_interval_seconds=float(data.get("epoch_interval_seconds", 10.0)),
            call_timeout_seconds=_optional_float(data.get("call_timeout_seconds", 30.0)),
            retry=RetryConfig.from_dict(data.get("retry") or {}),
            max_concurrent_chunk_writes=int(data.get("max_concurrent_chunk_writes", 8)),
        )

    @classmethod
    def from_env(cls) -> CommitterConfig:
        """Create config from environment variables."""
        root_address = os.environ.get("TOPIC_CHAIN_ROOT_ADDRESS")
        if not root_address:
            raise ValidationError("TOPIC_CHAIN_ROOT_ADDRESS", "not set")

        return cls(
            root_address=root_address,
            epoch_interval_seconds=float(os.environ.get("TOPIC_CHAIN_EPOCH_INTERVAL", "10")),
            call_timeout_seconds=_optional_float(os.environ.get("TOPIC_CHAIN_CALL_TIMEOUT", "30")),
            retry=RetryConfig(max_retries=int(os.environ.get("TOPIC_CHAIN_MAX_RETRIES", "0"))),
            max_concurrent_chunk_writes=int(os.environ.get("TOPIC_CHAIN_MAX_CHUNK_WRITES", "8")),
        )

    @classmethod
    def from_yaml(cls, path: Path | str) -> CommitterConfig:
        """Create config from the ``committer`` section of a YAML file."""
        return cls.from_dict(load_yaml(path).get("committer") or {})


@dataclass
class StoreConfig:
    """Selects and configures the reference collaborators."""

    blob_backend: str = "memory"
    blob_path: Path = DEFAULT_HOME / "blobs"
    ipfs_api_url: str = DEFAULT_API_URL
    pointer_backend: str = "memory"
    pointer_path: Path = DEFAULT_HOME / "pointers.json"

    def __post_init__(self) -> None:
        if self.blob_backend not in BLOB_BACKENDS:
            raise ValidationError("blob_backend", f"must be one of {BLOB_BACKENDS}", self.blob_backend)
        if self.pointer_backend not in POINTER_BACKENDS:
            raise ValidationError(
                "pointer_backend", f"must be one of {POINTER_BACKENDS}", self.pointer_backend
            )
        self.blob_path = Path(self.blob_path).expanduser()
        self.pointer_path = Path(self.pointer_path).expanduser()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StoreConfig:
        return cls(
            blob_backend=data.get("blob_backend", "memory"),
            blob_path=Path(data.get("blob_path", DEFAULT_HOME / "blobs")),
            ipfs_api_url=data.get("ipfs_api_url", DEFAULT_API_URL),
            pointer_backend=data.get("pointer_backend", "memory"),
            pointer_path=Path(data.get("pointer_path", DEFAULT_HOME / "pointers.json")),
        )

    @classmethod
    def from_env(cls) -> StoreConfig:
        return cls(
            blob_backend=os.environ.get("TOPIC_CHAIN_BLOB_BACKEND", "memory"),
            blob_path=Path(os.environ.get("TOPIC_CHAIN_BLOB_PATH", DEFAULT_HOME / "blobs")),
            ipfs_api_url=os.environ.get("TOPIC_CHAIN_IPFS_API_URL", DEFAULT_API_URL),
            pointer_backend=os.environ.get("TOPIC_CHAIN_POINTER_BACKEND", "memory"),
            pointer_path=Path(
                os.environ.get("TOPIC_CHAIN_POINTER_PATH", DEFAULT_HOME / "pointers.json")
            ),
        )

    @classmethod
    def from_yaml(cls, path: Path | str) -> StoreConfig:
        return cls.from_dict(load_yaml(path).get("stores") or {})


@dataclass
class Stores:
    """The collaborators an EpochCommitter is built from."""

    blobs: BlobStore
    chunks: BlobChunkStore
    directory: BlobDirectoryStore
    pointers: PointerStore

    async def close(self) -> None:
        await self.pointers.close()
        await self.blobs.close()


def build_stores(config: StoreConfig | None = None) -> Stores:
    """Construct collaborators from configuration."""
    cfg = config or StoreConfig()

    blobs: BlobStore
    if cfg.blob_backend == "local":
        blobs = LocalBlobStore(cfg.blob_path)
    elif cfg.blob_backend == "ipfs":
        blobs = IpfsHttpBlobStore(cfg.ipfs_api_url)
    else:
        blobs = MemoryBlobStore()

    pointers: PointerStore
    if cfg.pointer_backend == "local":
        pointers = LocalPointerStore(cfg.pointer_path)
    else:
        pointers = MemoryPointerStore()

    return Stores(
        blobs=blobs,
        chunks=BlobChunkStore(blobs),
        directory=BlobDirectoryStore(blobs),
        pointers=pointers,
    )


def load_yaml(path: Path | str) -> dict[str, Any]:
    """Load a YAML config file, returning {} for an empty file."""
    path = Path(path).expanduser()
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise StorageIOError("read_config", str(path), e) from e
    except yaml.YAMLError as e:
        raise ValidationError("config", f"invalid YAML in {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("config", f"{path} must contain a mapping")
    return data
