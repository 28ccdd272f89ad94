"""Ollama Provider - local text generation via the Ollama HTTP API.

Streams `/api/generate` so the pipeline can observe cancellation between
fragments instead of blocking on one long request.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from typing import Any

import httpx

from taskwright.settings import settings

from .base import LLMError, ModelInfo, ProviderHealth

logger = logging.getLogger(__name__)

# Smaller instruction-following models keep to the key/value layout best.
PREFERRED_MODEL_PATTERNS = ("mistral", "llama3", "qwen", "gemma", "phi")


class OllamaProvider:
    """TextGenerationService backed by a local Ollama server.

    Example:
        provider = OllamaProvider(url="http://localhost:11434", model="llama3.2:3b")
        reply = "".join(provider.generate("ACTION: ..."))
    """

    def __init__(
        self,
        *,
        url: str | None = None,
        model: str | None = None,
        timeout_seconds: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize Ollama provider.

        Args:
            url: Ollama server URL. Defaults to settings.ollama_url.
            model: Model to use. Defaults to settings.ollama_model or auto-detect.
            timeout_seconds: Read timeout for generation requests.
            transport: Optional httpx transport (tests use MockTransport).
        """
        self._url = (url or settings.ollama_url).rstrip("/")
        self._model = model or settings.ollama_model
        self._timeout = timeout_seconds or settings.llm_timeout_seconds
        self._transport = transport

    @property
    def provider_type(self) -> str:
        return "ollama"

    @property
    def model(self) -> str | None:
        return self._model

    def _client(self, timeout: float) -> httpx.Client:
        return httpx.Client(timeout=timeout, transport=self._transport)

    def is_ready(self) -> bool:
        health = self.check_health()
        return health.reachable and health.current_model is not None

    def generate(self, prompt: str) -> Iterator[str]:
        """Stream reply fragments for a single prompt."""
        payload: dict[str, Any] = {
            "model": self._resolve_model(),
            "prompt": prompt,
            "stream": True,
            "options": {"temperature": 0.2},
        }
        url = f"{self._url}/api/generate"
        try:
            with self._client(self._timeout) as client:
                with client.stream("POST", url, json=payload) as res:
                    res.raise_for_status()
                    for line in res.iter_lines():
                        if not line.strip():
                            continue
                        try:
                            chunk = json.loads(line)
                        except json.JSONDecodeError as e:
                            raise LLMError(f"Malformed stream chunk from Ollama: {line[:80]}") from e
                        if chunk.get("error"):
                            raise LLMError(f"Ollama error: {chunk['error']}")
                        fragment = chunk.get("response")
                        if isinstance(fragment, str) and fragment:
                            yield fragment
                        if chunk.get("done"):
                            return
        except httpx.HTTPError as e:
            raise LLMError(f"Ollama request failed: {e}") from e

    def list_models(self) -> list[ModelInfo]:
        """List available Ollama models."""
        try:
            with self._client(5.0) as client:
                res = client.get(f"{self._url}/api/tags")
                res.raise_for_status()
                data = res.json()
        except Exception as e:  # noqa: BLE001
            logger.warning("Failed to list Ollama models: %s", e)
            return []

        models = []
        for m in data.get("models", []):
            if isinstance(m, dict) and isinstance(m.get("name"), str):
                details = m.get("details") or {}
                size_bytes = m.get("size") or 0
                models.append(
                    ModelInfo(
                        name=m["name"],
                        size_gb=round(size_bytes / (1024**3), 1) if size_bytes else None,
                        context_length=details.get("context_length"),
                        description=details.get("family"),
                    )
                )
        return models

    def check_health(self) -> ProviderHealth:
        """Check Ollama server health and which model would be used."""
        try:
            with self._client(2.0) as client:
                res = client.get(f"{self._url}/api/tags")
                res.raise_for_status()
                names = [
                    m["name"]
                    for m in res.json().get("models", [])
                    if isinstance(m, dict) and isinstance(m.get("name"), str)
                ]
        except Exception as e:  # noqa: BLE001
            return ProviderHealth(reachable=False, error=str(e))

        if self._model and not _is_pulled(self._model, names):
            logger.warning("Configured model %s is not available in Ollama", self._model)
            return ProviderHealth(
                reachable=True,
                model_count=len(names),
                error=f"Model '{self._model}' is not pulled. Run: ollama pull {self._model}",
            )

        return ProviderHealth(
            reachable=True,
            model_count=len(names),
            current_model=self._model or _pick_model(names),
        )

    def _resolve_model(self) -> str:
        if self._model:
            return self._model
        model = _pick_model([m.name for m in self.list_models()])
        if model is None:
            raise LLMError(
                "No Ollama model configured. Set TASKWRIGHT_OLLAMA_MODEL or pull a model."
            )
        logger.info("Auto-selected model: %s", model)
        self._model = model
        return model


def _pick_model(names: list[str]) -> str | None:
    for pattern in PREFERRED_MODEL_PATTERNS:
        for name in names:
            if pattern in name.lower():
                return name
    return names[0] if names else None


def _is_pulled(model: str, names: list[str]) -> bool:
    # Ollama reads an untagged name as ":latest".
    wanted = model if ":" in model else f"{model}:latest"
    return wanted in names or model in names
