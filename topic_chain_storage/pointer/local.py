"""
Local file pointer store.

All addresses live in one JSON document:

```json
{
  "pointers": {
    "root:main": {"value": "ab34...ef", "updated": "2026-01-01T00:00:00+00:00"}
  }
}
```

Writes replace the whole document atomically (temp file + rename).
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from ..exceptions import PointerNotFoundError, StorageIOError
from ..file_ops import read_json, write_json_atomic
from .base import PointerStore

logger = logging.getLogger(__name__)


class LocalPointerStore(PointerStore):
    """Pointer slots persisted to a JSON file."""

    def __init__(self, path: Path | str):
        self.path = Path(path)

    async def _load(self) -> dict[str, Any]:
        document = await read_json(self.path) or {}
        pointers = document.get("pointers", {})
        if not isinstance(pointers, dict):
            raise StorageIOError("parse_pointers", str(self.path), ValueError("bad pointers"))
        return pointers

    async def read(self, address: str) -> str:
        pointers = await self._load()
        entry = pointers.get(address)
        if entry is None:
            raise PointerNotFoundError(address)
        return entry["value"]

    async def write(self, address: str, value: str) -> None:
        pointers = await self._load()
        pointers[address] = {"value": value, "updated": datetime.now(UTC).isoformat()}
        await write_json_atomic(self.path, {"pointers": pointers})
        logger.debug("Pointer %s -> %s", address, value)
