"""
Proveedor Google Gemini vía REST (generateContent)

    POST {base_url}/v1beta/models/{model}:generateContent
    Header: x-goog-api-key: <api_key>

Los errores transitorios (red, 429, 5xx) se reintentan con backoff exponencial.
"""
import asyncio
import logging
import time
from typing import Any, Dict, List, Optional

import httpx

from ..core import metrics
from .base import LLMMessage, LLMProvider, LLMResponse, LLMRole

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com"
DEFAULT_MODEL = "gemini-2.0-flash"
RETRYABLE_STATUS = {429, 500, 502, 503, 504}


class GeminiProvider(LLMProvider):
    """
    Proveedor Gemini

    Config:
        api_key: API key (obligatoria)
        model: Modelo (default gemini-2.0-flash)
        base_url: URL base del API
        temperature: Temperatura por defecto
        timeout: Timeout por request en segundos
        max_retries: Reintentos ante errores transitorios
        retry_backoff: Segundos base del backoff (se duplica en cada intento)
        transport: httpx transport alternativo (tests)
    """

    name = "gemini"

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        super().__init__(config)
        if not self.config.get("api_key"):
            raise ValueError("GEMINI_API_KEY is not configured")

        self.api_key = self.config["api_key"]
        self.model = self.config.get("model") or DEFAULT_MODEL
        self.base_url = (self.config.get("base_url") or DEFAULT_BASE_URL).rstrip("/")
        self.temperature = float(self.config.get("temperature", 0.7))
        self.timeout = float(self.config.get("timeout", 60.0))
        self.max_retries = int(self.config.get("max_retries", 0))
        self.retry_backoff = float(self.config.get("retry_backoff", 1.0))
        self.transport = self.config.get("transport")

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/v1beta/models/{self.model}:generateContent"

    def _build_payload(
        self,
        messages: List[LLMMessage],
        temperature: Optional[float],
        max_tokens: Optional[int],
    ) -> Dict[str, Any]:
        system_parts = [{"text": m.content} for m in messages if m.role == LLMRole.SYSTEM]
        contents = [
            {
                "role": "model" if m.role == LLMRole.ASSISTANT else "user",
                "parts": [{"text": m.content}],
            }
            for m in messages
            if m.role != LLMRole.SYSTEM
        ]

        generation_config: Dict[str, Any] = {
            "temperature": self.temperature if temperature is None else temperature,
        }
        if max_tokens:
            generation_config["maxOutputTokens"] = max_tokens

        payload: Dict[str, Any] = {
            "contents": contents,
            "generationConfig": generation_config,
        }
        if system_parts:
            payload["systemInstruction"] = {"parts": system_parts}
        return payload

    @staticmethod
    def _extract_text(data: Dict[str, Any]) -> str:
        candidates = data.get("candidates") or []
        if not candidates:
            raise ValueError("Gemini response has no candidates")
        parts = (candidates[0].get("content") or {}).get("parts") or []
        return "".join(part.get("text", "") for part in parts)

    async def generate(
        self,
        messages: List[LLMMessage],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        **kwargs
    ) -> LLMResponse:
        payload = self._build_payload(messages, temperature, max_tokens)
        headers = {"x-goog-api-key": self.api_key, "Content-Type": "application/json"}

        start = time.perf_counter()
        attempt = 0
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                while True:
                    try:
                        response = await client.post(self.endpoint, json=payload, headers=headers)
                        response.raise_for_status()
                        break
                    except (httpx.TransportError, httpx.HTTPStatusError) as e:
                        retryable = isinstance(e, httpx.TransportError) or (
                            e.response.status_code in RETRYABLE_STATUS
                        )
                        if not retryable or attempt >= self.max_retries:
                            raise
                        delay = self.retry_backoff * (2 ** attempt)
                        attempt += 1
                        logger.warning(
                            "Gemini request failed, retrying",
                            extra={"attempt": attempt, "delay": delay, "error": str(e)}
                        )
                        await asyncio.sleep(delay)

            data = response.json()
            content = self._extract_text(data)
        except Exception:
            metrics.llm_requests_total.labels(provider=self.name, status="error").inc()
            raise
        finally:
            metrics.llm_call_duration_seconds.labels(provider=self.name).observe(
                time.perf_counter() - start
            )

        metrics.llm_requests_total.labels(provider=self.name, status="success").inc()

        usage_data = data.get("usageMetadata") or {}
        usage = {
            "prompt_tokens": int(usage_data.get("promptTokenCount", 0)),
            "completion_tokens": int(usage_data.get("candidatesTokenCount", 0)),
            "total_tokens": int(usage_data.get("totalTokenCount", 0)),
        }

        return LLMResponse(
            content=content,
            model=self.model,
            usage=usage,
            metadata={
                "finish_reason": data["candidates"][0].get("finishReason"),
                "retries": attempt,
            },
        )

    def get_model_info(self) -> Dict[str, Any]:
        return {
            "provider": self.name,
            "model": self.model,
            "base_url": self.base_url,
        }
