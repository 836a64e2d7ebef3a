"""
Modelos de analítica de presentaciones

- QuestionAnalysis / RankedSubmission: agregaciones locales (SubmissionAggregator)
- *Result: respuestas del servicio de IA, validadas antes de usarse
- ReportSection: secciones opcionales del reporte PDF
"""
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# AGREGACIONES LOCALES
# =============================================================================

class QuestionAnalysis(BaseModel):
    """Puntaje promedio de una pregunta sobre las respuestas calificadas"""
    question_id: int
    text: str
    type: str
    average_score: float
    std_dev: float = 0.0  # Desviación estándar poblacional
    graded_count: int


class RankedSubmission(BaseModel):
    """Entrega resumida para tablas de ranking/participación"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    first_name: str
    last_name: str
    score: Optional[float] = None
    fraud_attempts: int = 0
    time_outside_eval: int = 0  # segundos

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


# =============================================================================
# RESULTADOS DE IA
# =============================================================================

class ScheduleAnalysisResult(BaseModel):
    """Análisis general de una presentación"""
    evaluation_title: str
    overall_summary: str
    strengths: List[str] = Field(default_factory=list)
    areas_for_improvement: List[str] = Field(default_factory=list)
    key_observations: List[str] = Field(default_factory=list)
    recommendations: str = ""
    conclusions: Optional[str] = None
    top_students: List[str] = Field(default_factory=list)
    students_to_improve: List[str] = Field(default_factory=list)


class RiskPredictionResult(BaseModel):
    """Predicción de riesgo de bajo rendimiento"""
    at_risk_students: List[str] = Field(default_factory=list)
    explanation: str


class BiasedQuestion(BaseModel):
    question_text: str
    reason: str


class QuestionBiasAnalysisResult(BaseModel):
    """Preguntas potencialmente sesgadas"""
    biased_questions: List[BiasedQuestion] = Field(default_factory=list)
    explanation: str


class ParticipationAnalysisResult(BaseModel):
    """Participación y compromiso"""
    summary: str
    highlights: List[str] = Field(default_factory=list)


class PlagiarismPair(BaseModel):
    student_a: str
    student_b: str
    question_text: str
    similarity: float = Field(..., ge=0.0, le=1.0)


class PlagiarismAnalysisResult(BaseModel):
    """Pares de respuestas similares (texto o código)"""
    pairs: List[PlagiarismPair] = Field(default_factory=list)
    summary: str = ""


class PersonalizedRecommendationResult(BaseModel):
    student_name: str
    recommendations: str


class PersonalizedRecommendationsResult(BaseModel):
    students: List[PersonalizedRecommendationResult] = Field(default_factory=list)


class SentimentCase(BaseModel):
    student_name: str
    sentiment: str
    quote: str
    explanation: str


class SentimentAnalysisResult(BaseModel):
    """Sentimiento en respuestas abiertas"""
    summary: str
    relevant_cases: List[SentimentCase] = Field(default_factory=list)


class AnalysisKind(str, Enum):
    """Análisis disponibles en ScheduleAnalyzer"""
    GENERAL = "general"
    RISK = "risk"
    BIAS = "bias"
    PARTICIPATION = "participation"
    PLAGIARISM_TEXT = "plagiarism_text"
    PLAGIARISM_CODE = "plagiarism_code"
    SENTIMENT = "sentiment"
    RECOMMENDATIONS = "recommendations"


class AttemptAnalysis(BaseModel):
    """Resultados de IA de una presentación; sólo se completan los análisis pedidos"""
    attempt_id: int
    general: Optional[ScheduleAnalysisResult] = None
    risk_prediction: Optional[RiskPredictionResult] = None
    question_bias: Optional[QuestionBiasAnalysisResult] = None
    participation: Optional[ParticipationAnalysisResult] = None
    plagiarism_text: Optional[PlagiarismAnalysisResult] = None
    plagiarism_code: Optional[PlagiarismAnalysisResult] = None
    sentiment: Optional[SentimentAnalysisResult] = None
    personalized_recommendations: List[PersonalizedRecommendationResult] = Field(default_factory=list)


# =============================================================================
# REPORTE
# =============================================================================

class ReportSection(str, Enum):
    """Secciones del reporte que el usuario puede activar"""
    GENERAL = "general"
    BIAS = "bias"
    QUESTION_TABLE = "question_table"
    RANKING_TABLE = "ranking_table"
    PARTICIPATION_TABLE = "participation_table"
    TEXT_PLAGIARISM_TABLE = "text_plagiarism_table"
    CODE_PLAGIARISM_TABLE = "code_plagiarism_table"
    SENTIMENT = "sentiment"


class ReportData(BaseModel):
    """Todo lo que el ReportExporter necesita para dibujar un reporte"""
    evaluation_title: str
    analysis: ScheduleAnalysisResult
    submissions: List[RankedSubmission] = Field(default_factory=list)
    question_analysis: List[QuestionAnalysis] = Field(default_factory=list)
    risk_prediction: Optional[RiskPredictionResult] = None
    question_bias: Optional[QuestionBiasAnalysisResult] = None
    participation: Optional[ParticipationAnalysisResult] = None
    plagiarism_text: Optional[PlagiarismAnalysisResult] = None
    plagiarism_code: Optional[PlagiarismAnalysisResult] = None
    personalized_recommendations: List[PersonalizedRecommendationResult] = Field(default_factory=list)
    sentiment: Optional[SentimentAnalysisResult] = None
    sections: List[ReportSection] = Field(default_factory=lambda: list(ReportSection))
