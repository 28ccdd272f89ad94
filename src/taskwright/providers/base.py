"""Text generation provider contracts.

The command pipeline only needs two things from a provider: whether a model is
ready, and a stream of text fragments for a prompt. Everything else (model
download, switching, credentials) lives outside the pipeline.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable


class LLMError(RuntimeError):
    """Generation failed (transport error, malformed stream, no model)."""


@dataclass(frozen=True)
class ModelInfo:
    name: str
    size_gb: float | None = None
    context_length: int | None = None
    capabilities: list[str] = field(default_factory=list)
    description: str | None = None


@dataclass(frozen=True)
class ProviderHealth:
    reachable: bool
    model_count: int | None = None
    current_model: str | None = None
    error: str | None = None


@runtime_checkable
class TextGenerationService(Protocol):
    """Anything that can turn a prompt into incrementally delivered text."""

    def is_ready(self) -> bool:
        """True once a model is loaded and can accept prompts."""
        ...

    def generate(self, prompt: str) -> Iterator[str]:
        """Yield text fragments until the reply is complete.

        Raises:
            LLMError: the stream could not be started or broke mid-way.
        """
        ...
