"""
Schemas (pydantic) de requests y responses de la API
"""
from .common import APIResponse, ErrorDetail, ErrorResponse
from .evaluations import (
    EvaluationCreate,
    EvaluationDetailResponse,
    EvaluationResponse,
    EvaluationUpdate,
    GenerateQuestionRequest,
    GeneratedQuestionResponse,
    QuestionCreate,
    QuestionResponse,
    QuestionUpdate,
)
from .attempts import (
    AnalysisRequest,
    AnswerResponse,
    AttemptCreate,
    AttemptResponse,
    AttemptUpdate,
    ReportRequest,
    SubmissionDetail,
    SubmissionSummary,
)

__all__ = [
    "APIResponse",
    "ErrorDetail",
    "ErrorResponse",
    "EvaluationCreate",
    "EvaluationDetailResponse",
    "EvaluationResponse",
    "EvaluationUpdate",
    "GenerateQuestionRequest",
    "GeneratedQuestionResponse",
    "QuestionCreate",
    "QuestionResponse",
    "QuestionUpdate",
    "AnalysisRequest",
    "AnswerResponse",
    "AttemptCreate",
    "AttemptResponse",
    "AttemptUpdate",
    "ReportRequest",
    "SubmissionDetail",
    "SubmissionSummary",
]
