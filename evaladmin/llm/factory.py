"""
LLM Provider Factory

Centraliza la creación y configuración de proveedores LLM.

Soporta:
- mock: Provider simulado para testing/desarrollo (sin API calls)
- gemini: Google Gemini (generateContent REST API)

Usage:
    >>> from evaladmin.llm import LLMProviderFactory
    >>>
    >>> # Desde variables de entorno (recomendado)
    >>> provider = LLMProviderFactory.create_from_env()
    >>>
    >>> # Configuración manual
    >>> provider = LLMProviderFactory.create("gemini", {"api_key": "...", "model": "gemini-2.0-flash"})
    >>>
    >>> response = await provider.generate(messages, temperature=0.7)
"""
import os
from typing import Any, Dict, Optional

from .base import LLMProvider
from .gemini_provider import GeminiProvider
from .mock import MockLLMProvider


class LLMProviderFactory:
    """Factory de proveedores LLM (registro por nombre)"""

    # Registry of available providers
    _providers = {
        "mock": MockLLMProvider,
        "gemini": GeminiProvider,
    }

    @classmethod
    def create(
        cls,
        provider_type: str,
        config: Optional[Dict[str, Any]] = None
    ) -> LLMProvider:
        """
        Create LLM provider instance

        Raises:
            ValueError: If provider type is not registered or config is invalid
        """
        if provider_type not in cls._providers:
            available = ", ".join(cls._providers.keys())
            raise ValueError(
                f"Unknown provider type: {provider_type}. "
                f"Available providers: {available}"
            )

        return cls._providers[provider_type](config)

    @classmethod
    def create_from_env(cls, provider_type: str = None) -> LLMProvider:
        """
        Create provider using environment variables

        Looks for:
        - LLM_PROVIDER (default gemini)
        - GEMINI_API_KEY, GEMINI_MODEL, GEMINI_BASE_URL, GEMINI_TEMPERATURE
        - LLM_TIMEOUT, LLM_MAX_RETRIES, LLM_RETRY_BACKOFF

        Raises:
            ValueError: Unknown provider or GEMINI_API_KEY missing
        """
        if provider_type is None:
            provider_type = os.getenv("LLM_PROVIDER", "gemini")

        config: Dict[str, Any] = {}

        if provider_type == "gemini":
            config["api_key"] = os.getenv("GEMINI_API_KEY")
            config["model"] = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
            base_url = os.getenv("GEMINI_BASE_URL")
            if base_url:
                config["base_url"] = base_url
            config["temperature"] = float(os.getenv("GEMINI_TEMPERATURE", "0.7"))
            config["timeout"] = float(os.getenv("LLM_TIMEOUT", "60"))
            config["max_retries"] = int(os.getenv("LLM_MAX_RETRIES", "0"))
            config["retry_backoff"] = float(os.getenv("LLM_RETRY_BACKOFF", "1.0"))

        elif provider_type == "mock":
            # Mock provider doesn't need configuration
            pass

        return cls.create(provider_type, config)
