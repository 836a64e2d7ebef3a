"""
Dependencias de FastAPI (inyección de sesión, repositorios, servicios y LLM)

En tests se reemplazan con `app.dependency_overrides`, p. ej.:

    app.dependency_overrides[get_llm_provider] = lambda: MockLLMProvider({...})
"""
import logging
from typing import Optional

from fastapi import Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..database.repositories import (
    EvaluationRepository,
    QuestionRepository,
    SubmissionRepository,
)
from ..llm.base import LLMProvider
from ..llm.factory import LLMProviderFactory
from ..services.attempt_scheduler import AttemptScheduler
from ..services.evaluation_transfer import EvaluationTransfer
from ..services.question_generator import QuestionGenerator
from ..services.report_exporter import ReportExporter
from ..services.schedule_analyzer import ScheduleAnalyzer
from ..services.submission_aggregator import SubmissionAggregator
from .exceptions import GenerationError

logger = logging.getLogger(__name__)

CONFIG_ERROR_MESSAGE = "Error de configuración del sistema. Contacta al administrador."

_llm_provider: Optional[LLMProvider] = None


# =============================================================================
# REPOSITORIOS
# =============================================================================

def get_evaluation_repository(db: Session = Depends(get_db)) -> EvaluationRepository:
    return EvaluationRepository(db)


def get_question_repository(db: Session = Depends(get_db)) -> QuestionRepository:
    return QuestionRepository(db)


def get_submission_repository(db: Session = Depends(get_db)) -> SubmissionRepository:
    return SubmissionRepository(db)


# =============================================================================
# LLM
# =============================================================================

def get_llm_provider() -> LLMProvider:
    """
    Proveedor LLM compartido, creado desde el entorno en el primer uso.

    Raises:
        GenerationError: Configuración inválida (p. ej. falta GEMINI_API_KEY)
    """
    global _llm_provider
    if _llm_provider is None:
        try:
            _llm_provider = LLMProviderFactory.create_from_env()
        except ValueError as e:
            logger.error(f"LLM provider configuration error: {e}")
            raise GenerationError(CONFIG_ERROR_MESSAGE, operation="configure_llm") from e
        logger.info("LLM provider initialized", extra=_llm_provider.get_model_info())
    return _llm_provider


def reset_llm_provider() -> None:
    """Descarta el proveedor cacheado (tests / cambio de configuración)."""
    global _llm_provider
    _llm_provider = None


# =============================================================================
# SERVICIOS
# =============================================================================

def get_attempt_scheduler(db: Session = Depends(get_db)) -> AttemptScheduler:
    return AttemptScheduler(db)


def get_submission_aggregator(db: Session = Depends(get_db)) -> SubmissionAggregator:
    return SubmissionAggregator(db)


def get_evaluation_transfer(db: Session = Depends(get_db)) -> EvaluationTransfer:
    return EvaluationTransfer(db)


def get_report_exporter(db: Session = Depends(get_db)) -> ReportExporter:
    return ReportExporter(db)


def get_question_generator(
    llm_provider: LLMProvider = Depends(get_llm_provider),
) -> QuestionGenerator:
    return QuestionGenerator(llm_provider)


def get_schedule_analyzer(
    db: Session = Depends(get_db),
    llm_provider: LLMProvider = Depends(get_llm_provider),
) -> ScheduleAnalyzer:
    return ScheduleAnalyzer(db, llm_provider)
