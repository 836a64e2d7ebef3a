"""
Evaluation export / import (JSON)

El documento exportado no incluye ids ni timestamps, de modo que importarlo
crea una evaluación nueva equivalente.
"""
import logging
import re
from typing import Any, Dict

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from ..api.exceptions import ExportError, ValidationError
from ..core import metrics
from ..core.constants import EXPORT_FILENAME_FALLBACK, EXPORT_FILENAME_SUFFIX
from ..database.models import EvaluationDB
from ..database.repositories import EvaluationRepository
from ..models.evaluation import EvaluationExport, QuestionData

logger = logging.getLogger(__name__)

_NON_ALNUM = re.compile(r"[^a-z0-9]")


def export_filename(title: str) -> str:
    """
    Nombre de archivo de exportación.

    >>> export_filename("Parcial 1: Árboles")
    'parcial1rboles_evaluacion.json'
    """
    base = _NON_ALNUM.sub("", (title or "").lower())
    return f"{base or EXPORT_FILENAME_FALLBACK}{EXPORT_FILENAME_SUFFIX}"


def _format_errors(error: PydanticValidationError) -> list:
    return [
        {"loc": ".".join(str(part) for part in err["loc"]), "msg": err["msg"]}
        for err in error.errors()
    ]


class EvaluationTransfer:
    """Exporta e importa evaluaciones en el formato JSON portable"""

    def __init__(self, db: Session):
        self.evaluations = EvaluationRepository(db)

    def export_evaluation(self, evaluation_id: int) -> EvaluationExport:
        """
        Raises:
            ExportError: La evaluación no existe
        """
        evaluation = self.evaluations.get_by_id(evaluation_id, load_questions=True)
        if evaluation is None:
            raise ExportError("evaluation", evaluation_id)

        document = EvaluationExport(
            title=evaluation.title,
            description=evaluation.description,
            help_url=evaluation.help_url,
            questions=[
                QuestionData(
                    text=q.text,
                    type=q.type,
                    language=q.language,
                    answer=q.answer,
                )
                for q in evaluation.questions
            ],
        )
        logger.info(
            "Evaluation exported",
            extra={"evaluation_id": evaluation_id, "questions": len(document.questions)},
        )
        return document

    def export_payload(self, evaluation_id: int) -> Dict[str, Any]:
        """Documento serializado con los nombres de campo del formato (helpUrl)."""
        return self.export_evaluation(evaluation_id).model_dump(mode="json", by_alias=True)

    def import_evaluation(self, raw: Any) -> EvaluationDB:
        """
        Crea una evaluación (y sus preguntas) a partir de un documento sin tipar.

        Args:
            raw: dict decodificado de JSON

        Returns:
            EvaluationDB creada

        Raises:
            ValidationError: El documento no cumple el formato
        """
        if isinstance(raw, EvaluationExport):
            document = raw
        else:
            try:
                document = EvaluationExport.model_validate(raw)
            except PydanticValidationError as e:
                raise ValidationError("Invalid evaluation document", {"errors": _format_errors(e)}) from e

        evaluation = self.evaluations.create_with_questions(
            title=document.title,
            description=document.description,
            help_url=document.help_url,
            questions=[
                {
                    "text": q.text,
                    "type": q.type.value,
                    "language": q.language,
                    "answer": q.answer,
                }
                for q in document.questions
            ],
        )

        metrics.evaluations_imported_total.inc()
        logger.info(
            "Evaluation imported",
            extra={"evaluation_id": evaluation.id, "questions": len(document.questions)},
        )
        return evaluation
