"""
Modelos de dominio (pydantic) independientes de la persistencia
"""
from .evaluation import QuestionType, QuestionData, EvaluationExport, check_question_language
from .analytics import (
    QuestionAnalysis,
    RankedSubmission,
    ScheduleAnalysisResult,
    RiskPredictionResult,
    BiasedQuestion,
    QuestionBiasAnalysisResult,
    ParticipationAnalysisResult,
    PlagiarismPair,
    PlagiarismAnalysisResult,
    PersonalizedRecommendationResult,
    PersonalizedRecommendationsResult,
    SentimentCase,
    SentimentAnalysisResult,
    AnalysisKind,
    AttemptAnalysis,
    ReportSection,
    ReportData,
)

__all__ = [
    "QuestionType",
    "QuestionData",
    "EvaluationExport",
    "check_question_language",
    "QuestionAnalysis",
    "RankedSubmission",
    "ScheduleAnalysisResult",
    "RiskPredictionResult",
    "BiasedQuestion",
    "QuestionBiasAnalysisResult",
    "ParticipationAnalysisResult",
    "PlagiarismPair",
    "PlagiarismAnalysisResult",
    "PersonalizedRecommendationResult",
    "PersonalizedRecommendationsResult",
    "SentimentCase",
    "SentimentAnalysisResult",
    "AnalysisKind",
    "AttemptAnalysis",
    "ReportSection",
    "ReportData",
]
