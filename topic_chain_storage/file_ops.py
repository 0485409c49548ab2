"""
File operations for the local blob and pointer stores.

Provides:
- Atomic writes using temp file + rename
- Whole-file reads returning None for missing files
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any

import aiofiles
import aiofiles.os

from .exceptions import StorageIOError


async def ensure_directory(path: Path) -> None:
    """Ensure directory exists, creating if necessary.

    Args:
        path: Directory path to ensure exists
    """
    try:
        await aiofiles.os.makedirs(path, exist_ok=True)
    except OSError as e:
        raise StorageIOError("create_directory", str(path), e) from e


async def read_bytes(path: Path) -> bytes | None:
    """Read a file's bytes.

    Args:
        path: Path to read

    Returns:
        File contents or None if the file doesn't exist
    """
    try:
        if not await aiofiles.os.path.exists(path):
            return None
        async with aiofiles.open(path, "rb") as f:
            return await f.read()
    except OSError as e:
        raise StorageIOError("read_bytes", str(path), e) from e


async def write_bytes_atomic(path: Path, data: bytes) -> None:
    """Write bytes atomically using temp file + rename.

    Args:
        path: Target path
        data: Bytes to write
    """
    await ensure_directory(path.parent)

    fd, temp_path = tempfile.mkstemp(dir=path.parent, prefix=".tmp_")
    replaced = False
    try:
        os.close(fd)
        async with aiofiles.open(temp_path, "wb") as f:
            await f.write(data)
            await f.flush()
            os.fsync(f.fileno())

        await aiofiles.os.replace(temp_path, path)
        replaced = True
    except Exception as e:
        raise StorageIOError("write_bytes", str(path), e) from e
    finally:
        # Also runs when a timeout cancels the write; unlink without awaiting
        if not replaced:
            try:
                os.remove(temp_path)
            except OSError:
                pass


async def read_json(path: Path) -> dict[str, Any] | None:
    """Read a JSON file.

    Returns:
        Parsed JSON data or None if file doesn't exist
    """
    content = await read_bytes(path)
    if content is None or not content.strip():
        return None
    try:
        return json.loads(content)
    except json.JSONDecodeError as e:
        raise StorageIOError("parse_json", str(path), e) from e


async def write_json_atomic(path: Path, data: dict[str, Any]) -> None:
    """Write a JSON file atomically."""
    await write_bytes_atomic(path, json.dumps(data, indent=2, sort_keys=True).encode("utf-8"))
