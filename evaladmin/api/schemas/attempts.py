"""
Schemas de presentaciones, entregas y analítica
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ...models.analytics import AnalysisKind, AttemptAnalysis, ReportSection


class AttemptCreate(BaseModel):
    """
    Alta de presentación.

    Código, ventana y tope se validan en AttemptScheduler (ValidationError -> 400).
    """
    evaluation_id: int
    unique_code: str
    start_time: datetime
    end_time: datetime
    max_submissions: Optional[int] = None


class AttemptUpdate(BaseModel):
    """Sólo se aplican los campos enviados; `max_submissions: null` quita el tope"""
    unique_code: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    max_submissions: Optional[int] = None


class AttemptResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    evaluation_id: int
    evaluation_title: Optional[str] = None
    unique_code: str
    start_time: datetime
    end_time: datetime
    max_submissions: Optional[int] = None
    submission_count: int = 0
    created_at: datetime
    updated_at: datetime


class SubmissionSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    attempt_id: int
    first_name: str
    last_name: str
    score: Optional[float] = None
    fraud_attempts: int
    time_outside_eval: int
    submitted_at: datetime


class AnswerQuestion(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    text: str
    type: str
    language: Optional[str] = None


class AnswerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    question_id: int
    content: Optional[str] = None
    score: Optional[float] = None
    question: AnswerQuestion


class SubmissionDetail(SubmissionSummary):
    """Entrega con respuestas y su pregunta"""
    answers: List[AnswerResponse] = Field(default_factory=list)


class AnalysisRequest(BaseModel):
    kinds: List[AnalysisKind] = Field(
        default_factory=lambda: [AnalysisKind.GENERAL],
        min_length=1,
        description="Análisis a ejecutar",
    )


class ReportRequest(BaseModel):
    """Resultados de /analysis más las secciones a incluir"""
    analysis: AttemptAnalysis
    sections: Optional[List[ReportSection]] = None
