"""
Interfaz común de proveedores LLM

Todos los proveedores reciben una lista de LLMMessage y devuelven un LLMResponse.
Los servicios sólo dependen de esta interfaz, nunca de un proveedor concreto.
"""
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class LLMRole(str, Enum):
    """Rol de un mensaje en la conversación"""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class LLMMessage(BaseModel):
    role: LLMRole
    content: str


class LLMResponse(BaseModel):
    """Respuesta normalizada de un proveedor"""
    content: str
    model: str
    usage: Dict[str, int] = Field(default_factory=dict)
    metadata: Dict[str, Any] = Field(default_factory=dict)


class LLMProvider(ABC):
    """
    Proveedor LLM abstracto

    Args:
        config: Configuración específica del proveedor (model, api_key, timeout...)
    """

    name = "base"

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config or {}

    @abstractmethod
    async def generate(
        self,
        messages: List[LLMMessage],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        **kwargs
    ) -> LLMResponse:
        """
        Genera una respuesta a partir de los mensajes

        Args:
            messages: Conversación (system/user/assistant)
            temperature: Temperatura de muestreo (None = default del proveedor)
            max_tokens: Máximo de tokens de salida

        Returns:
            LLMResponse con el texto generado

        Raises:
            httpx.HTTPError: Error de red o HTTP del proveedor
            ValueError: Respuesta sin contenido utilizable
        """

    def get_model_info(self) -> Dict[str, Any]:
        """Información del modelo configurado"""
        return {
            "provider": self.name,
            "model": self.config.get("model"),
        }
