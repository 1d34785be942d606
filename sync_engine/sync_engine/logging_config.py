"""Log handler setup for the engine and its command line.

Two output modes:

* plain text, ``<time> <level> <logger>: <message>``, the default;
* single-line JSON objects (``SCHEMASYNC_STRUCTURED_LOGGING=true``) for
  log aggregators, rendered by :class:`JSONFormatter`.

Output schema per JSON line::

    {
        "timestamp": "2026-05-15T12:34:56.789012+00:00",
        "level": "WARNING",
        "logger": "sync_engine.generator.ddl_generator",
        "message": "DDL generation: ...",
        "exc_info": "Traceback ..."  // present only on exceptions
    }
"""

from __future__ import annotations

import json
import logging
import traceback
from datetime import UTC, datetime
from typing import IO, Any

from sync_engine.config import Settings
from sync_engine.telemetry.profiling import set_profiling_enabled

TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class JSONFormatter(logging.Formatter):
    """Format log records as single-line JSON."""

    def format(self, record: logging.LogRecord) -> str:
        """Render *record* as a single JSON line."""
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Structured context passed via ``extra={"context": {...}}``.
        context = getattr(record, "context", None)
        if context is not None:
            payload["context"] = context

        if record.exc_info and record.exc_info[0] is not None:
            payload["exc_info"] = "".join(traceback.format_exception(*record.exc_info))

        return json.dumps(payload, default=str, ensure_ascii=False)


def configure_logging(settings: Settings, stream: IO[str] | None = None) -> logging.Handler:
    """Replace the root handlers with one configured from *settings*.

    Also switches operation profiling on or off.  Returns the installed
    handler so callers (and tests) can inspect or remove it.
    """
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    handler = logging.StreamHandler(stream)
    if settings.structured_logging:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.DEBUG if settings.debug else settings.log_level)

    set_profiling_enabled(settings.profiling_enabled)
    if settings.structured_logging:
        logging.getLogger(__name__).info("Structured JSON logging enabled")
    return handler
