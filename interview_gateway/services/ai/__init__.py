"""AI provider interface and its vendor backends."""

from .anthropic_provider import AnthropicProvider
from .base import AIProvider
from .gemini_provider import GeminiProvider
from .ollama_provider import OllamaProvider, fallback_evaluation

__all__ = [
    "AIProvider",
    "AnthropicProvider",
    "GeminiProvider",
    "OllamaProvider",
    "fallback_evaluation",
]
