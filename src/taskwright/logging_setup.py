from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from .settings import settings

_CONFIGURED = False

_RESERVED_RECORD_KEYS = frozenset({
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "stack_info", "exc_info", "exc_text", "thread", "threadName",
    "message", "asctime", "taskName",
})


class JsonFormatter(logging.Formatter):
    """One JSON object per line, suitable for log aggregation."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        extra_fields = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RESERVED_RECORD_KEYS and not key.startswith("_")
        }
        if extra_fields:
            log_entry["extra"] = extra_fields

        return json.dumps(log_entry, default=str, ensure_ascii=False)


def configure_logging(*, log_path: Path | None = None, log_format: str | None = None) -> None:
    """Configure Taskwright logging.

    - Logs to stderr for developer visibility.
    - Logs to a rotating file under `.taskwright-data/` for later inspection.
    - `log_format="json"` switches both handlers to structured output.

    Safe to call multiple times; it will not duplicate handlers.
    """

    global _CONFIGURED
    if _CONFIGURED:
        return

    level_name = settings.log_level.upper().strip()
    level = getattr(logging, level_name, logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)

    fmt = (log_format or settings.log_format).strip().lower()
    formatter: logging.Formatter
    if fmt == "json":
        formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(
            fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S%z",
        )

    if not any(isinstance(h, logging.StreamHandler) for h in root.handlers):
        stream_handler = logging.StreamHandler()
        stream_handler.setLevel(level)
        stream_handler.setFormatter(formatter)
        root.addHandler(stream_handler)

    resolved_log_path = log_path or settings.log_path
    try:
        resolved_log_path.parent.mkdir(parents=True, exist_ok=True)
        if not any(
            isinstance(h, RotatingFileHandler)
            and getattr(h, "baseFilename", None) == str(resolved_log_path)
            for h in root.handlers
        ):
            file_handler = RotatingFileHandler(
                filename=str(resolved_log_path),
                maxBytes=settings.log_max_bytes,
                backupCount=settings.log_backup_count,
                encoding="utf-8",
            )
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            root.addHandler(file_handler)
    except OSError as exc:
        root.warning("Could not create log file at %s: %s", resolved_log_path, exc)

    # Request-level noise from the HTTP stack.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    _CONFIGURED = True
