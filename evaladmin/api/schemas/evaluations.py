"""
Schemas de evaluaciones y preguntas
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ...models.evaluation import QuestionData, QuestionType, check_question_language


def _not_blank(value: Optional[str]) -> Optional[str]:
    if value is not None and not value.strip():
        raise ValueError("must not be empty")
    return value


# =============================================================================
# PREGUNTAS
# =============================================================================

class QuestionCreate(QuestionData):
    """Alta de pregunta (mismos campos que en el documento de export)"""


class QuestionUpdate(BaseModel):
    """Edición parcial; la regla tipo/lenguaje se valida sobre el resultado"""
    text: Optional[str] = Field(None, min_length=1)
    type: Optional[QuestionType] = None
    language: Optional[str] = Field(None, max_length=50)
    answer: Optional[str] = None


class QuestionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    evaluation_id: int
    text: str
    type: str
    language: Optional[str] = None
    answer: Optional[str] = None
    created_at: datetime
    updated_at: datetime


# =============================================================================
# EVALUACIONES
# =============================================================================

class EvaluationCreate(BaseModel):
    title: str = Field(..., max_length=200)
    description: Optional[str] = None
    help_url: Optional[str] = Field(None, max_length=500)
    questions: List[QuestionCreate] = Field(default_factory=list)

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: Optional[str]) -> Optional[str]:
        return _not_blank(value)


class EvaluationUpdate(BaseModel):
    title: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = None
    help_url: Optional[str] = Field(None, max_length=500)

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: Optional[str]) -> Optional[str]:
        return _not_blank(value)


class EvaluationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: Optional[str] = None
    help_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class EvaluationDetailResponse(EvaluationResponse):
    """Evaluación con sus preguntas"""
    questions: List[QuestionResponse] = Field(default_factory=list)


# =============================================================================
# GENERACIÓN CON IA
# =============================================================================

class GenerateQuestionRequest(BaseModel):
    prompt: str = Field(..., min_length=1, max_length=4000, description="Qué pregunta se quiere generar")
    type: QuestionType
    language: Optional[str] = Field(None, max_length=50)

    @model_validator(mode="after")
    def language_matches_type(self):
        check_question_language(self.type.value, self.language)
        return self


class GeneratedQuestionResponse(BaseModel):
    text: str = Field(..., description="Enunciado en Markdown")
    type: QuestionType
    language: Optional[str] = None
