"""
Modelos de dominio de evaluaciones y su formato de intercambio JSON

El formato de export/import es:

    {
      "title": "...",
      "description": "...",
      "helpUrl": "...",
      "questions": [{"text": "...", "type": "CODE", "language": "python", "answer": "..."}]
    }

Los ids y timestamps no forman parte del documento.
"""
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class QuestionType(str, Enum):
    """Tipo de pregunta"""
    CODE = "CODE"
    TEXT = "TEXT"


def check_question_language(question_type: str, language: Optional[str]) -> None:
    """
    Valida la regla tipo/lenguaje.

    Raises:
        ValueError: Si la pregunta es CODE y no tiene lenguaje
    """
    if question_type == QuestionType.CODE.value and not (language and language.strip()):
        raise ValueError("language is required for CODE questions")


class QuestionData(BaseModel):
    """Campos de una pregunta sin identidad (usado en create e import/export)"""

    text: str = Field(..., min_length=1, description="Enunciado en Markdown")
    type: QuestionType
    language: Optional[str] = Field(None, max_length=50)
    answer: Optional[str] = None

    @model_validator(mode="after")
    def language_matches_type(self):
        check_question_language(self.type.value, self.language)
        return self


class EvaluationExport(BaseModel):
    """Documento JSON de export/import de una evaluación"""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: str = Field(..., max_length=200)
    description: Optional[str] = None
    help_url: Optional[str] = Field(None, alias="helpUrl", max_length=500)
    questions: List[QuestionData] = Field(default_factory=list)

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("title must not be empty")
        return value
