"""
Mock LLM provider para testing/desarrollo (sin API calls)
"""
from typing import Any, Dict, List, Optional

from .base import LLMMessage, LLMProvider, LLMResponse


class MockLLMProvider(LLMProvider):
    """
    Devuelve respuestas preconfiguradas y registra cada llamada.

    Config:
        response: Texto devuelto en todas las llamadas
        responses: Lista de textos devueltos en orden (tiene prioridad sobre response)
        error: Excepción a lanzar en cada llamada
    """

    name = "mock"
    DEFAULT_RESPONSE = "Respuesta simulada"

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        super().__init__(config)
        self.config.setdefault("model", "mock-model")
        self._responses = list(self.config.get("responses") or [])
        self.calls: List[Dict[str, Any]] = []

    async def generate(
        self,
        messages: List[LLMMessage],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        **kwargs
    ) -> LLMResponse:
        self.calls.append({
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        })

        error = self.config.get("error")
        if error is not None:
            raise error

        if self._responses:
            content = self._responses.pop(0)
        else:
            content = self.config.get("response", self.DEFAULT_RESPONSE)

        return LLMResponse(
            content=content,
            model=self.config["model"],
            usage={"prompt_tokens": 0, "completion_tokens": 0},
        )

    @property
    def last_prompt(self) -> Optional[str]:
        """Contenido del último mensaje de usuario recibido"""
        if not self.calls:
            return None
        return self.calls[-1]["messages"][-1].content
