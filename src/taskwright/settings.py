from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    val = raw.strip().lower()
    if val in {"1", "true", "yes", "y", "on"}:
        return True
    if val in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclass(frozen=True)
class Settings:
    """Static settings for the command service.

    Everything is read from the environment once, at import time.
    """

    root_dir: Path = Path(__file__).resolve().parents[2]
    data_dir: Path = root_dir / ".taskwright-data"
    errors_path: Path = data_dir / "errors.jsonl"
    log_path: Path = data_dir / "taskwright.log"
    log_level: str = os.environ.get("TASKWRIGHT_LOG_LEVEL", "INFO")
    log_format: str = os.environ.get("TASKWRIGHT_LOG_FORMAT", "text")
    log_max_bytes: int = int(os.environ.get("TASKWRIGHT_LOG_MAX_BYTES", str(1_000_000)))
    log_backup_count: int = int(os.environ.get("TASKWRIGHT_LOG_BACKUP_COUNT", "3"))
    host: str = os.environ.get("TASKWRIGHT_HOST", "127.0.0.1")
    port: int = int(os.environ.get("TASKWRIGHT_PORT", "8020"))

    # Project/task backend.
    api_url: str = os.environ.get("TASKWRIGHT_API_URL", "http://127.0.0.1:3001/api/v1")
    api_token: str | None = os.environ.get("TASKWRIGHT_API_TOKEN")
    http_timeout_seconds: float = float(os.environ.get("TASKWRIGHT_HTTP_TIMEOUT", "30"))

    # Text generation (local Ollama).
    ollama_url: str = os.environ.get("TASKWRIGHT_OLLAMA_URL", "http://127.0.0.1:11434")
    ollama_model: str | None = os.environ.get("TASKWRIGHT_OLLAMA_MODEL")
    llm_timeout_seconds: float = float(os.environ.get("TASKWRIGHT_LLM_TIMEOUT", "120"))

    # When enabled, replies are parsed and validated but never executed.
    preview_mode: bool = _env_bool("TASKWRIGHT_PREVIEW_MODE", False)


settings = Settings()

# Ensure data directories exist at import time (local-only side effect).
settings.data_dir.mkdir(parents=True, exist_ok=True)
