"""Canonical JSON encoding shared by the buffer, chunks and directory."""

from __future__ import annotations

import hashlib
import json
from typing import Any

from .exceptions import ValidationError


def canonical_json(value: Any) -> str:
    """Serialize ``value`` so that structurally equal values encode identically.

    Dict keys are sorted, so field order never affects equality or hashes.
    """
    try:
        return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise ValidationError("payload", f"not JSON serializable: {e}") from e


def canonical_bytes(value: Any) -> bytes:
    return canonical_json(value).encode("utf-8")


def sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()
