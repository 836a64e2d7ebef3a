"""
Question Generator Service - Redacción de preguntas con IA

Genera el enunciado de una pregunta (Markdown) a partir de una solicitud libre
del docente. El prompt se carga desde prompts/question_generation_prompt.md.

Uso:
    generator = QuestionGenerator(llm_provider)
    markdown = await generator.generate("Recorrer una lista enlazada", "CODE", "python")
"""
import logging
import re
from pathlib import Path
from typing import Optional

from ..api.exceptions import GenerationError, ValidationError
from ..core import metrics
from ..llm.base import LLMMessage, LLMProvider, LLMRole
from ..models.evaluation import QuestionType

logger = logging.getLogger(__name__)

_MARKDOWN_BLOCK = re.compile(r"\A```(?:markdown|md)[ \t]*\n(.*?)\n?```\Z", re.IGNORECASE | re.DOTALL)


class QuestionGenerator:
    """
    Cliente de generación de preguntas sobre un LLMProvider.
    """

    PROMPT_TEMPLATE_PATH = Path(__file__).parent.parent / "prompts" / "question_generation_prompt.md"
    USER_MESSAGE = "No se pudo generar la pregunta. Por favor, inténtelo de nuevo."
    MAX_TOKENS = 2048

    def __init__(self, llm_provider: LLMProvider):
        self.llm_provider = llm_provider
        self.prompt_template = self._load_prompt_template()

    def _load_prompt_template(self) -> str:
        """Carga el template del prompt desde archivo."""
        try:
            with open(self.PROMPT_TEMPLATE_PATH, "r", encoding="utf-8") as f:
                return f.read()
        except FileNotFoundError:
            raise FileNotFoundError(
                f"Prompt template not found at {self.PROMPT_TEMPLATE_PATH}"
            )

    @staticmethod
    def _type_instruction(question_type: QuestionType, language: Optional[str]) -> str:
        if question_type == QuestionType.CODE:
            return (
                "Genera una pregunta de programación. "
                f"El lenguaje de programación es: {language or 'desconocido'}. "
                "La pregunta debe pedir al estudiante que escriba una función o un "
                "fragmento de código. La descripción debe ser clara y concisa."
            )
        return "Genera una pregunta teórica o conceptual. La pregunta debe ser clara, precisa y concisa."

    def build_prompt(
        self,
        user_prompt: str,
        question_type: str,
        language: Optional[str] = None,
    ) -> str:
        """
        Construye el prompt final reemplazando variables.

        Args:
            user_prompt: Solicitud del docente
            question_type: "CODE" o "TEXT"
            language: Lenguaje de programación (preguntas CODE)

        Returns:
            Prompt con variables reemplazadas

        Raises:
            ValidationError: Tipo de pregunta inválido o solicitud vacía
        """
        if not user_prompt or not user_prompt.strip():
            raise ValidationError("prompt must not be empty")
        try:
            qtype = QuestionType(question_type)
        except ValueError:
            raise ValidationError(
                f"Invalid question type: {question_type}",
                {"allowed": [t.value for t in QuestionType]},
            )

        replacements = {
            "{{user_prompt}}": user_prompt.strip(),
            "{{question_type}}": qtype.value,
            "{{language}}": language or "No especificado",
            "{{type_instruction}}": self._type_instruction(qtype, language),
        }

        prompt = self.prompt_template
        for key, value in replacements.items():
            prompt = prompt.replace(key, value)
        return prompt

    @staticmethod
    def clean_output(text: str) -> str:
        """
        Quita espacios y un bloque ```markdown que envuelva toda la respuesta.

        Otros bloques de código (```python, ``` sin lenguaje) son parte del enunciado.
        """
        text = text.strip()
        match = _MARKDOWN_BLOCK.match(text)
        if match:
            text = match.group(1)
        return text.strip()

    async def generate(
        self,
        user_prompt: str,
        question_type: str,
        language: Optional[str] = None,
    ) -> str:
        """
        Genera el enunciado en Markdown.

        Returns:
            Markdown de la pregunta (sin delimitadores)

        Raises:
            ValidationError: Parámetros inválidos
            GenerationError: El proveedor falló o devolvió texto vacío
        """
        prompt = self.build_prompt(user_prompt, question_type, language)

        logger.info(
            "Generating question",
            extra={"question_type": question_type, "language": language},
        )

        try:
            response = await self.llm_provider.generate(
                messages=[LLMMessage(role=LLMRole.USER, content=prompt)],
                max_tokens=self.MAX_TOKENS,
            )
            text = self.clean_output(response.content or "")
            if not text:
                raise ValueError("LLM returned empty content")
        except Exception as e:
            metrics.generation_failures_total.labels(operation="generate_question").inc()
            logger.error(
                f"Question generation failed: {e}",
                exc_info=True,
                extra={"question_type": question_type, "error_type": type(e).__name__},
            )
            raise GenerationError(self.USER_MESSAGE, operation="generate_question") from e

        return text
