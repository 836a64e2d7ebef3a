"""
Proveedores LLM
"""
from .base import LLMMessage, LLMProvider, LLMResponse, LLMRole
from .factory import LLMProviderFactory
from .gemini_provider import GeminiProvider
from .mock import MockLLMProvider

__all__ = [
    "LLMMessage",
    "LLMProvider",
    "LLMResponse",
    "LLMRole",
    "LLMProviderFactory",
    "GeminiProvider",
    "MockLLMProvider",
]
