"""
Structured JSON logging for epoch activity.

Every record becomes one JSON line. Messages written as ``TAG: text``
(``EPOCH_COMMITTED``, ``RETRYING``, ...) have the tag split out as
``event`` so aggregators can filter on it. Dataset fields bound by the
committer (root address, directory hash, topic, failed step) sit at the
top level; any other ``extra`` goes under ``context``.

Example line:
    {"timestamp": "...", "level": "ERROR", "logger": "topic_chain_storage.committer.epoch",
     "event": "EPOCH_FAILED", "message": "step=chunk_write ...",
     "root_address": "root:main", "step": "chunk_write", "topics": ["orders"]}
"""

import json
import logging
import re
import sys
from datetime import datetime, timezone
from typing import Any, TextIO

from .exceptions import TopicStorageError

DATASET_FIELDS = ("root_address", "directory_hash", "topic", "step", "topics")

_EVENT_TAG = re.compile(r"^([A-Z][A-Z0-9_]+):\s*")

# Attributes every LogRecord carries; whatever else is on a record came from ``extra``
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {
    "message",
    "asctime",
    "taskName",
}


def _jsonable(value: Any) -> Any:
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return str(value)
    return value


class StructuredJsonFormatter(logging.Formatter):
    """Formats records as single-line JSON with dataset fields lifted out."""

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        log_obj: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
        }

        match = _EVENT_TAG.match(message)
        if match:
            log_obj["event"] = match.group(1)
            message = message[match.end() :]
        log_obj["message"] = message

        context: dict[str, Any] = {}
        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRS or key.startswith("_"):
                continue
            target = log_obj if key in DATASET_FIELDS else context
            target[key] = _jsonable(value)
        if context:
            log_obj["context"] = context

        if record.exc_info:
            exc = record.exc_info[1]
            if isinstance(exc, TopicStorageError):
                log_obj["error"] = {
                    "type": type(exc).__name__,
                    "message": exc.message,
                    "details": _jsonable(exc.details),
                }
            log_obj["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_obj, default=str)


def configure_structured_logging(
    level: int = logging.INFO,
    logger_name: str | None = "topic_chain_storage",
    stream: TextIO | None = None,
) -> logging.Logger:
    """
    Send the package's logs to ``stream`` as JSON lines.

    Logs go to stderr by default so command output on stdout stays clean.

    Args:
        level: Logging level (default: INFO)
        logger_name: Logger to configure (default: the package logger)
        stream: Destination stream (default: stderr)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(logger_name)

    # Reconfiguring replaces the handler instead of stacking another
    logger.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(StructuredJsonFormatter())
    logger.addHandler(handler)
    logger.setLevel(level)

    return logger


class DatasetLogAdapter(logging.LoggerAdapter):
    """
    Logger adapter carrying the dataset a committer writes to.

    Bound fields are added to every record; a call-site ``extra`` wins
    on conflicting keys.
    """

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        kwargs["extra"] = {**(self.extra or {}), **(kwargs.get("extra") or {})}
        return msg, kwargs

    def bind(self, **fields: Any) -> "DatasetLogAdapter":
        """Return an adapter with ``fields`` added to the bound context."""
        return DatasetLogAdapter(self.logger, {**(self.extra or {}), **fields})
