"""Structured JSON logger for imagevault.

Each record is written as one JSON object per line, ready for a log
aggregation pipeline.  A typical upload emits::

    {"ts": "2026-10-18T12:00:00.123456+00:00", "level": "INFO",
     "logger": "imagevault.uploader", "message": "Image uploaded",
     "op": "upload", "filename": "cat.png", "file_size": 48213}

Usage::

    from imagevault.observability import get_logger

    log = get_logger("imagevault.storage.local")
    log.info("Creating base directory", extra={"extra_fields": {"path": p}})
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any


class StructuredFormatter(logging.Formatter):
    """Format log records as single-line JSON objects.

    Guaranteed keys are ``ts`` (ISO-8601 UTC), ``level``, ``logger`` and
    ``message``.  Fields passed as ``extra={"extra_fields": {...}}`` are
    merged into the top level; ``exception`` and ``stack_info`` are added
    when present on the record.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        extra_fields: dict[str, Any] | None = getattr(record, "extra_fields", None)
        if extra_fields is not None:
            log_entry.update(extra_fields)

        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)

        if record.stack_info:
            log_entry["stack_info"] = self.formatStack(record.stack_info)

        return json.dumps(log_entry, default=str)


PACKAGE_LOGGER = "imagevault"

_configured_loggers: set[str] = set()


def _attach_handler(logger: logging.Logger, level: int | str, stream: Any | None) -> None:
    resolved_level = (
        logging.getLevelName(level.upper()) if isinstance(level, str) else level
    )
    logger.setLevel(resolved_level)
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(StructuredFormatter())
    logger.addHandler(handler)
    logger.propagate = False
    _configured_loggers.add(logger.name)


def get_logger(
    name: str = PACKAGE_LOGGER,
    *,
    level: int | str = logging.DEBUG,
    stream: Any | None = None,
) -> logging.Logger:
    """Get or create a structured JSON logger.

    Module loggers below the package (``imagevault.uploader``,
    ``imagevault.storage.s3``, ...) get no handler of their own.  They
    propagate to the ``"imagevault"`` logger, which owns the single JSON
    handler, so one ``logging.getLogger("imagevault").setLevel(...)`` call
    tunes every library record.  Any other *name* gets its own handler.

    Parameters
    ----------
    name:
        Logger name.  Defaults to ``"imagevault"``.
    level:
        Minimum log level, as an ``int`` or a case-insensitive name.
        Applied to the logger that owns the handler, and only when that
        logger is configured for the first time.
    stream:
        Output stream for the handler.  Defaults to ``sys.stderr``.

    Returns
    -------
    logging.Logger
        The logger for *name*.  Repeated calls never add handlers.
    """
    logger = logging.getLogger(name)

    if name.startswith(PACKAGE_LOGGER + "."):
        if PACKAGE_LOGGER not in _configured_loggers:
            _attach_handler(logging.getLogger(PACKAGE_LOGGER), level, stream)
        return logger

    if name not in _configured_loggers:
        _attach_handler(logger, level, stream)
    return logger
