from __future__ import annotations

import hashlib
import json
import logging
import traceback
import uuid
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

from .settings import settings

logger = logging.getLogger(__name__)

_RECENT_SIGNATURES: dict[str, datetime] = {}


class ExecutionCancelledError(Exception):
    """Raised at a suspension point once the user has cancelled a command."""


def _default_errors_path() -> Path:
    return settings.errors_path


def _error_signature(*, operation: str, exc: BaseException) -> str:
    material = f"{operation}|{type(exc).__name__}|{str(exc)}".encode("utf-8", errors="replace")
    return hashlib.sha256(material).hexdigest()


def record_error(
    *,
    source: str,
    operation: str,
    exc: BaseException,
    context: dict[str, Any] | None = None,
    path: Path | None = None,
    dedupe_window_seconds: int = 60,
    include_traceback: bool = True,
) -> str | None:
    """Record an error as a local JSONL event.

    - Stores a metadata-only error summary (no prompt or reply bodies).
    - Optionally deduplicates repeated identical errors for a short window.

    Returns the stored event id, or None when deduplicated or the write failed.
    """

    signature = _error_signature(operation=operation, exc=exc)
    now = datetime.now(UTC)

    if dedupe_window_seconds > 0:
        cutoff = now - timedelta(seconds=dedupe_window_seconds)
        last_seen = _RECENT_SIGNATURES.get(signature)
        if last_seen is not None and last_seen >= cutoff:
            return None
        _RECENT_SIGNATURES[signature] = now

    tb_text: str | None = None
    if include_traceback:
        tb_text = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        # Keep the payload bounded.
        if len(tb_text) > 10_000:
            tb_text = tb_text[-10_000:]

    event_id = str(uuid.uuid4())
    payload: dict[str, Any] = {
        "id": event_id,
        "source": source,
        "kind": "error",
        "signature": signature,
        "operation": operation,
        "error_type": type(exc).__name__,
        "message": str(exc),
        "context": context or {},
        "traceback": tb_text,
        "ts": now.isoformat(),
    }

    target = path or _default_errors_path()
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        with target.open("a", encoding="utf-8") as fh:
            fh.write(json.dumps(payload, ensure_ascii=True, default=str) + "\n")
        return event_id
    except Exception as write_exc:  # noqa: BLE001
        logger.debug("Failed to record error event: %s", write_exc)
        return None
