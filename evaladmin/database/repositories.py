"""
Repository pattern for database operations

Provides:
- EvaluationRepository: Evaluaciones (y creación con preguntas en una transacción)
- QuestionRepository: Preguntas de una evaluación
- AttemptRepository: Presentaciones agendadas
- SubmissionRepository: Entregas de estudiantes
- AnswerRepository: Respuestas (lecturas para agregación)

TRANSACTION MANAGEMENT:
Cada método de escritura hace commit inmediatamente y hace rollback + re-raise
si falla. Para operaciones atómicas de varios pasos usar
`evaladmin.database.transaction.transaction`.

Los repositorios devuelven None cuando un registro no existe; la traducción a
errores de dominio (NotFoundError, ConflictError, ...) la hacen los servicios.
Excepción: SubmissionRepository.create rechaza entregas por encima del tope
de la presentación (ConflictError).
"""
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import desc, func
from sqlalchemy.orm import Session, selectinload

from ..api.exceptions import ConflictError
from .models import AnswerDB, AttemptDB, EvaluationDB, QuestionDB, SubmissionDB
from .transaction import transaction

logger = logging.getLogger(__name__)


def _apply_changes(instance: Any, changes: Dict[str, Any], allowed: Iterable[str]) -> None:
    allowed = set(allowed)
    for field, value in changes.items():
        if field not in allowed:
            raise ValueError(f"Field '{field}' cannot be updated on {type(instance).__name__}")
        setattr(instance, field, value)


class EvaluationRepository:
    """Repository for evaluation operations"""

    UPDATABLE_FIELDS = ("title", "description", "help_url")

    def __init__(self, db_session: Session):
        self.db = db_session

    def create(
        self,
        title: str,
        description: Optional[str] = None,
        help_url: Optional[str] = None,
    ) -> EvaluationDB:
        try:
            evaluation = EvaluationDB(title=title, description=description, help_url=help_url)
            self.db.add(evaluation)
            self.db.commit()
            self.db.refresh(evaluation)
            return evaluation
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create evaluation: {e}", extra={"title": title})
            raise

    def create_with_questions(
        self,
        title: str,
        description: Optional[str],
        help_url: Optional[str],
        questions: List[Dict[str, Any]],
    ) -> EvaluationDB:
        """
        Crea una evaluación con sus preguntas en una única transacción.

        Args:
            title, description, help_url: Campos de la evaluación
            questions: Dicts con text, type, language, answer

        Returns:
            EvaluationDB con `questions` cargadas
        """
        evaluation = EvaluationDB(title=title, description=description, help_url=help_url)
        evaluation.questions = [QuestionDB(**question) for question in questions]

        with transaction(self.db, "Create evaluation with questions"):
            self.db.add(evaluation)

        self.db.refresh(evaluation)
        return evaluation

    def get_by_id(self, evaluation_id: int, load_questions: bool = False) -> Optional[EvaluationDB]:
        """
        Get evaluation by ID.

        Args:
            evaluation_id: ID de la evaluación
            load_questions: Carga las preguntas en la misma operación (evita N+1)
        """
        query = self.db.query(EvaluationDB).filter(EvaluationDB.id == evaluation_id)
        if load_questions:
            query = query.options(selectinload(EvaluationDB.questions))
        return query.first()

    def get_all(self, limit: Optional[int] = None, offset: int = 0) -> List[EvaluationDB]:
        """Evaluaciones más recientes primero (todas si limit es None)."""
        query = self.db.query(EvaluationDB).order_by(desc(EvaluationDB.created_at), desc(EvaluationDB.id))
        if limit is not None:
            query = query.limit(limit)
        if offset:
            query = query.offset(offset)
        return query.all()

    def update(self, evaluation: EvaluationDB, **changes: Any) -> EvaluationDB:
        try:
            _apply_changes(evaluation, changes, self.UPDATABLE_FIELDS)
            self.db.commit()
            self.db.refresh(evaluation)
            return evaluation
        except Exception as e:
            self.db.rollback()
            logger.error(
                f"Failed to update evaluation: {e}",
                extra={"evaluation_id": evaluation.id, "fields": sorted(changes)},
            )
            raise

    def delete(self, evaluation: EvaluationDB) -> None:
        """Borra la evaluación y, en cascada, sus preguntas."""
        try:
            self.db.delete(evaluation)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to delete evaluation: {e}", extra={"evaluation_id": evaluation.id})
            raise


class QuestionRepository:
    """Repository for question operations"""

    UPDATABLE_FIELDS = ("text", "type", "language", "answer")

    def __init__(self, db_session: Session):
        self.db = db_session

    def create(
        self,
        evaluation_id: int,
        text: str,
        type: str,
        language: Optional[str] = None,
        answer: Optional[str] = None,
    ) -> QuestionDB:
        try:
            question = QuestionDB(
                evaluation_id=evaluation_id,
                text=text,
                type=type,
                language=language,
                answer=answer,
            )
            self.db.add(question)
            self.db.commit()
            self.db.refresh(question)
            return question
        except Exception as e:
            self.db.rollback()
            logger.error(
                f"Failed to create question: {e}",
                extra={"evaluation_id": evaluation_id, "type": type},
            )
            raise

    def get_by_id(self, question_id: int) -> Optional[QuestionDB]:
        return self.db.query(QuestionDB).filter(QuestionDB.id == question_id).first()

    def get_by_evaluation(self, evaluation_id: int) -> List[QuestionDB]:
        """Preguntas en orden de creación."""
        return (
            self.db.query(QuestionDB)
            .filter(QuestionDB.evaluation_id == evaluation_id)
            .order_by(QuestionDB.created_at, QuestionDB.id)
            .all()
        )

    def update(self, question: QuestionDB, **changes: Any) -> QuestionDB:
        try:
            _apply_changes(question, changes, self.UPDATABLE_FIELDS)
            self.db.commit()
            self.db.refresh(question)
            return question
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update question: {e}", extra={"question_id": question.id})
            raise

    def delete(self, question: QuestionDB) -> None:
        try:
            self.db.delete(question)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to delete question: {e}", extra={"question_id": question.id})
            raise


class AttemptRepository:
    """Repository for scheduled attempt operations"""

    UPDATABLE_FIELDS = ("unique_code", "start_time", "end_time", "max_submissions")

    def __init__(self, db_session: Session):
        self.db = db_session

    def create(
        self,
        evaluation_id: int,
        unique_code: str,
        start_time,
        end_time,
        max_submissions: Optional[int] = None,
    ) -> AttemptDB:
        try:
            attempt = AttemptDB(
                evaluation_id=evaluation_id,
                unique_code=unique_code,
                start_time=start_time,
                end_time=end_time,
                max_submissions=max_submissions,
            )
            self.db.add(attempt)
            self.db.commit()
            self.db.refresh(attempt)
            return attempt
        except Exception as e:
            self.db.rollback()
            logger.error(
                f"Failed to create attempt: {e}",
                extra={"evaluation_id": evaluation_id, "unique_code": unique_code},
            )
            raise

    def get_by_id(self, attempt_id: int, load_evaluation: bool = False) -> Optional[AttemptDB]:
        query = self.db.query(AttemptDB).filter(AttemptDB.id == attempt_id)
        if load_evaluation:
            query = query.options(selectinload(AttemptDB.evaluation))
        return query.first()

    def get_by_code(self, unique_code: str) -> Optional[AttemptDB]:
        return self.db.query(AttemptDB).filter(AttemptDB.unique_code == unique_code).first()

    def count_by_evaluation(self, evaluation_id: int) -> int:
        return (
            self.db.query(func.count(AttemptDB.id))
            .filter(AttemptDB.evaluation_id == evaluation_id)
            .scalar()
        )

    def get_all_with_counts(
        self,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Tuple[AttemptDB, int]]:
        """
        Presentaciones ordenadas por start_time descendente, con su evaluación
        cargada y la cantidad de entregas.

        Args:
            limit: Máximo de filas; None devuelve todas
            offset: Filas a saltear

        Returns:
            Lista de tuplas (AttemptDB, submission_count)

        Performance:
            1 query agregada + 1 query (selectinload) para las evaluaciones
        """
        query = (
            self.db.query(AttemptDB, func.count(SubmissionDB.id).label("submission_count"))
            .outerjoin(SubmissionDB, SubmissionDB.attempt_id == AttemptDB.id)
            .options(selectinload(AttemptDB.evaluation))
            .group_by(AttemptDB.id)
            .order_by(desc(AttemptDB.start_time), desc(AttemptDB.id))
        )
        if limit is not None:
            query = query.limit(limit)
        if offset:
            query = query.offset(offset)
        rows = query.all()
        return [(attempt, count) for attempt, count in rows]

    def update(self, attempt: AttemptDB, **changes: Any) -> AttemptDB:
        try:
            _apply_changes(attempt, changes, self.UPDATABLE_FIELDS)
            self.db.commit()
            self.db.refresh(attempt)
            return attempt
        except Exception as e:
            self.db.rollback()
            logger.error(
                f"Failed to update attempt: {e}",
                extra={"attempt_id": attempt.id, "fields": sorted(changes)},
            )
            raise

    def delete(self, attempt: AttemptDB) -> None:
        """Borra la presentación; las entregas y respuestas caen en cascada."""
        attempt_id = attempt.id
        with transaction(self.db, f"Delete attempt {attempt_id}"):
            self.db.delete(attempt)


class SubmissionRepository:
    """Repository for student submissions (lectura para el panel de administración)"""

    def __init__(self, db_session: Session):
        self.db = db_session

    def create(
        self,
        attempt_id: int,
        first_name: str,
        last_name: str,
        answers: Optional[List[Dict[str, Any]]] = None,
        score: Optional[float] = None,
        fraud_attempts: int = 0,
        time_outside_eval: int = 0,
        submitted_at=None,
    ) -> SubmissionDB:
        """
        Registra una entrega con sus respuestas.

        Las entregas las crea el flujo del estudiante; este método existe para
        seeds, importaciones y tests.

        Args:
            answers: Dicts con question_id, content, score

        Raises:
            ConflictError: La presentación ya alcanzó su tope de entregas
        """
        attempt = self.db.get(AttemptDB, attempt_id)
        if attempt is not None and attempt.max_submissions is not None:
            submission_count = self.count_by_attempt(attempt_id)
            if submission_count >= attempt.max_submissions:
                raise ConflictError(
                    "Attempt has reached its submission limit",
                    {
                        "attempt_id": attempt_id,
                        "max_submissions": attempt.max_submissions,
                        "submission_count": submission_count,
                    },
                )

        submission = SubmissionDB(
            attempt_id=attempt_id,
            first_name=first_name,
            last_name=last_name,
            score=score,
            fraud_attempts=fraud_attempts,
            time_outside_eval=time_outside_eval,
        )
        if submitted_at is not None:
            submission.submitted_at = submitted_at
        submission.answers = [AnswerDB(**answer) for answer in (answers or [])]

        with transaction(self.db, "Create submission with answers"):
            self.db.add(submission)

        self.db.refresh(submission)
        return submission

    def get_by_id(self, submission_id: int, load_answers: bool = False) -> Optional[SubmissionDB]:
        query = self.db.query(SubmissionDB).filter(SubmissionDB.id == submission_id)
        if load_answers:
            query = query.options(
                selectinload(SubmissionDB.answers).selectinload(AnswerDB.question)
            )
        return query.first()

    def get_by_attempt(self, attempt_id: int, load_answers: bool = False) -> List[SubmissionDB]:
        """Entregas más recientes primero."""
        query = self.db.query(SubmissionDB).filter(SubmissionDB.attempt_id == attempt_id)
        if load_answers:
            query = query.options(
                selectinload(SubmissionDB.answers).selectinload(AnswerDB.question)
            )
        return query.order_by(desc(SubmissionDB.submitted_at), desc(SubmissionDB.id)).all()

    def count_by_attempt(self, attempt_id: int) -> int:
        return (
            self.db.query(func.count(SubmissionDB.id))
            .filter(SubmissionDB.attempt_id == attempt_id)
            .scalar()
        )


class AnswerRepository:
    """Repository for answers"""

    def __init__(self, db_session: Session):
        self.db = db_session

    def get_graded_by_attempt(self, attempt_id: int) -> List[AnswerDB]:
        """
        Respuestas calificadas (score no nulo) de todas las entregas de una presentación,
        con su pregunta cargada.
        """
        return (
            self.db.query(AnswerDB)
            .join(SubmissionDB, AnswerDB.submission_id == SubmissionDB.id)
            .filter(SubmissionDB.attempt_id == attempt_id)
            .filter(AnswerDB.score.isnot(None))
            .options(selectinload(AnswerDB.question))
            .order_by(AnswerDB.question_id, AnswerDB.id)
            .all()
        )

    def count_by_question(self, question_id: int) -> int:
        return (
            self.db.query(func.count(AnswerDB.id))
            .filter(AnswerDB.question_id == question_id)
            .scalar()
        )
