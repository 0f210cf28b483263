"""Structured JSON logger for pixelrelay.

Every log record is emitted as a single-line JSON object so a CI job or a
container log collector can consume it without extra parsing.

Typical structured output::

    {"ts": "2025-07-01T12:00:00.123456+00:00", "level": "INFO",
     "logger": "pixelrelay.pipeline", "message": "download complete",
     "op": "fetch", "resource_id": "abc123", "bytes": 500}

Usage::

    from pixelrelay.observability import get_logger

    log = get_logger("pixelrelay.pipeline")
    log.info("plan chosen", extra={"extra_fields": {"plan": "direct"}})
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

ROOT_LOGGER = "pixelrelay"


class StructuredFormatter(logging.Formatter):
    """Format log records as single-line JSON objects.

    Guaranteed keys are ``ts``, ``level``, ``logger`` and ``message``.
    Fields passed via ``extra={"extra_fields": {...}}`` are merged into the
    top-level object; exception and stack info are serialised when present.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        extra_fields: dict[str, Any] | None = getattr(
            record, "extra_fields", None
        )
        if extra_fields is not None:
            log_entry.update(extra_fields)

        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)

        if record.stack_info:
            log_entry["stack_info"] = self.formatStack(record.stack_info)

        return json.dumps(log_entry, default=str)


# One handler per configured logger name so that ``get_logger`` is
# idempotent across modules.
_configured_loggers: set[str] = set()


def get_logger(
    name: str = ROOT_LOGGER,
    *,
    level: int | str = logging.INFO,
    stream: Any | None = None,
) -> logging.Logger:
    """Get or create a structured JSON logger.

    Only the root ``"pixelrelay"`` logger gets a handler; child loggers such
    as ``"pixelrelay.pipeline"`` propagate to it.  Calling this with a child
    name configures the root on first use.

    Parameters
    ----------
    name:
        Logger name.  Defaults to ``"pixelrelay"``.
    level:
        Level applied to the root logger when it is first configured.
        Accepts an ``int`` or a case-insensitive level name.
    stream:
        Output stream for the handler.  Defaults to ``sys.stderr``.
    """
    root = logging.getLogger(ROOT_LOGGER)

    if ROOT_LOGGER not in _configured_loggers:
        root.setLevel(_resolve_level(level))

        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(StructuredFormatter())
        root.addHandler(handler)

        # Prevent duplicate lines when the root logger also has handlers.
        root.propagate = False

        _configured_loggers.add(ROOT_LOGGER)

    if name == ROOT_LOGGER:
        return root
    return logging.getLogger(name)


def set_level(level: int | str) -> None:
    """Change the level of the ``"pixelrelay"`` logger tree."""
    get_logger().setLevel(_resolve_level(level))


def _resolve_level(level: int | str) -> int:
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"unknown log level: {level!r}")
        return resolved
    return level
