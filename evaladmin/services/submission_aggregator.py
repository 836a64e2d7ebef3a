"""
Submission Aggregator - Estadísticas por pregunta de una presentación
"""
import logging
import statistics
from typing import Dict, List

from sqlalchemy.orm import Session

from ..api.exceptions import NotFoundError
from ..database.models import AnswerDB
from ..database.repositories import AnswerRepository, AttemptRepository, SubmissionRepository
from ..models.analytics import QuestionAnalysis, RankedSubmission

logger = logging.getLogger(__name__)


class SubmissionAggregator:
    """Agregaciones de sólo lectura sobre entregas y respuestas"""

    def __init__(self, db: Session):
        self.attempts = AttemptRepository(db)
        self.answers = AnswerRepository(db)
        self.submissions = SubmissionRepository(db)

    def _ensure_attempt(self, attempt_id: int) -> None:
        if self.attempts.get_by_id(attempt_id) is None:
            raise NotFoundError("attempt", attempt_id)

    def analyze_questions(self, attempt_id: int) -> List[QuestionAnalysis]:
        """
        Puntaje promedio por pregunta sobre las respuestas calificadas.

        Las respuestas sin score se ignoran. Si no hay ninguna calificada el
        resultado es una lista vacía.

        Returns:
            QuestionAnalysis ordenados por question_id

        Raises:
            NotFoundError: La presentación no existe
        """
        self._ensure_attempt(attempt_id)

        grouped: Dict[int, List[AnswerDB]] = {}
        for answer in self.answers.get_graded_by_attempt(attempt_id):
            grouped.setdefault(answer.question_id, []).append(answer)

        results = []
        for question_id in sorted(grouped):
            answers = grouped[question_id]
            scores = [answer.score for answer in answers]
            question = answers[0].question
            results.append(
                QuestionAnalysis(
                    question_id=question_id,
                    text=question.text,
                    type=question.type,
                    average_score=statistics.fmean(scores),
                    std_dev=statistics.pstdev(scores) if len(scores) > 1 else 0.0,
                    graded_count=len(scores),
                )
            )

        logger.debug(
            "Question analysis computed",
            extra={"attempt_id": attempt_id, "questions": len(results)},
        )
        return results

    def rank_submissions(self, attempt_id: int) -> List[RankedSubmission]:
        """
        Entregas ordenadas por puntaje descendente; las no calificadas al final,
        y a igual puntaje la más temprana primero.

        Raises:
            NotFoundError: La presentación no existe
        """
        self._ensure_attempt(attempt_id)

        submissions = self.submissions.get_by_attempt(attempt_id)
        ordered = sorted(
            submissions,
            key=lambda s: (s.score is None, -(s.score or 0.0), s.submitted_at, s.id),
        )
        return [RankedSubmission.model_validate(s) for s in ordered]
