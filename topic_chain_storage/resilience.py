"""Resilience utilities for collaborator calls.

Provides a per-call timeout and optional retry with exponential backoff.
Retries only make sense because chunk and directory writes are
content-addressed: repeating one with the same input is harmless.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from .exceptions import StorageConnectionError, StorageIOError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryConfig:
    """Configuration for retry with exponential backoff.

    ``max_retries=0`` means a single attempt.
    """

    max_retries: int = 0
    backoff_base: float = 0.5  # seconds
    backoff_max: float = 30.0  # cap
    backoff_multiplier: float = 2.0
    retryable_status_codes: tuple[int, ...] = (429, 500, 502, 503, 504)
    retryable_exceptions: tuple[type[Exception], ...] = (
        ConnectionError,
        TimeoutError,
        OSError,
        StorageConnectionError,
    )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RetryConfig:
        return cls(
            max_retries=int(data.get("max_retries", 0)),
            backoff_base=float(data.get("backoff_base", 0.5)),
            backoff_max=float(data.get("backoff_max", 30.0)),
            backoff_multiplier=float(data.get("backoff_multiplier", 2.0)),
        )


def _extract_status_code(exc: Exception) -> int | None:
    """Try to extract an HTTP status code from an exception."""
    # aiohttp.ClientResponseError
    status = getattr(exc, "status", None)
    if isinstance(status, int):
        return status
    status = getattr(exc, "status_code", None)
    if isinstance(status, int):
        return status
    return None


def _is_retryable(exc: Exception, cfg: RetryConfig, status_code: int | None) -> bool:
    if isinstance(exc, cfg.retryable_exceptions):
        return True
    if status_code is not None and status_code in cfg.retryable_status_codes:
        return True
    # Stores wrap transient OS errors; classify by the wrapped cause
    return isinstance(exc, StorageIOError) and isinstance(exc.cause, cfg.retryable_exceptions)


async def call_with_timeout(
    fn: Callable[..., Awaitable[T]],
    *args: Any,
    timeout: float | None = None,
    **kwargs: Any,
) -> T:
    """Await ``fn(*args, **kwargs)``, raising TimeoutError after ``timeout`` seconds."""
    if timeout is None:
        return await fn(*args, **kwargs)
    return await asyncio.wait_for(fn(*args, **kwargs), timeout=timeout)


async def retry_with_backoff(
    fn: Callable[..., Awaitable[T]],
    *args: Any,
    config: RetryConfig | None = None,
    timeout: float | None = None,
    context_msg: str = "",
    **kwargs: Any,
) -> T:
    """Execute an async function with timeout, retry and backoff.

    Args:
        fn: Async callable to execute
        *args: Positional args for fn
        config: Retry configuration (uses defaults if None)
        timeout: Seconds allowed per attempt, None for no limit
        context_msg: Extra context for log messages (e.g. topic)
        **kwargs: Keyword args for fn

    Returns:
        Result of fn

    Raises:
        Exception: Last exception after all retries exhausted
    """
    cfg = config or RetryConfig()
    ctx = f" [{context_msg}]" if context_msg else ""

    for attempt in range(cfg.max_retries + 1):
        try:
            result = await call_with_timeout(fn, *args, timeout=timeout, **kwargs)
        except Exception as exc:
            status_code = _extract_status_code(exc)
            is_retryable = _is_retryable(exc, cfg, status_code)

            if not is_retryable or attempt >= cfg.max_retries:
                if cfg.max_retries:
                    logger.error(
                        "RETRY_EXHAUSTED: attempt=%d/%d status=%s retryable=%s%s: %r",
                        attempt + 1,
                        cfg.max_retries + 1,
                        status_code,
                        is_retryable,
                        ctx,
                        exc,
                    )
                raise

            delay = min(
                cfg.backoff_base * (cfg.backoff_multiplier**attempt),
                cfg.backoff_max,
            )
            logger.warning(
                "RETRYING: attempt=%d/%d status=%s delay=%.1fs%s: %r",
                attempt + 1,
                cfg.max_retries + 1,
                status_code,
                delay,
                ctx,
                exc,
            )
            await asyncio.sleep(delay)
        else:
            if attempt > 0:
                logger.warning(
                    "RETRY_RECOVERED: succeeded on attempt %d/%d after %d retries%s",
                    attempt + 1,
                    cfg.max_retries + 1,
                    attempt,
                    ctx,
                )
            return result

    # Unreachable, but satisfies type checker
    raise RuntimeError("retry_with_backoff exhausted without raising")  # pragma: no cover
