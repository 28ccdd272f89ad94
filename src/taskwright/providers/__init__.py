"""Text generation providers."""

from .base import LLMError, ModelInfo, ProviderHealth, TextGenerationService
from .ollama import OllamaProvider

__all__ = [
    "LLMError",
    "ModelInfo",
    "OllamaProvider",
    "ProviderHealth",
    "TextGenerationService",
]
