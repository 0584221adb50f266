"""JSON logging for pytest hooks, page objects, and the interaction core.

Every record becomes one JSON line. Event-style messages (``action_fallback``,
``cart_cleared``) carry their details in ``extra`` so CI log search can filter
on fields instead of parsing prose.
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from typing import Any

_STANDARD_FIELDS = set(logging.makeLogRecord({}).__dict__.keys()) | {"message", "asctime"}
DEFAULT_LEVEL = "INFO"


def resolve_level(value: str | None) -> int:
    """Map a LOG_LEVEL name to a logging level; unknown names are rejected."""

    name = (value or DEFAULT_LEVEL).strip().upper()
    level = logging.getLevelName(name)
    if not isinstance(level, int):
        raise ValueError(f"Invalid LOG_LEVEL {value!r}")
    return level


def setup_logging(level: str | None = None) -> None:
    """Configure root logging for one-line JSON output."""

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(resolve_level(level if level is not None else os.getenv("LOG_LEVEL")))


class JsonFormatter(logging.Formatter):
    """Serialize log records as compact JSON with support for `extra` fields."""

    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        worker = os.getenv("PYTEST_XDIST_WORKER")
        if worker:
            data["worker"] = worker
        extras = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _STANDARD_FIELDS and not key.startswith("_")
        }
        if extras:
            data.update(extras)
        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)
        return json.dumps(data, default=str)
