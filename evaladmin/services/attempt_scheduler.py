"""
Attempt Scheduler - Agenda de presentaciones

Valida la ventana horaria y el código de acceso antes de persistir y aplica la
política de borrado: una presentación con entregas sólo se borra con `force=True`
(en ese caso las entregas y sus respuestas se borran con ella).
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..api.exceptions import ConflictError, NotFoundError, ValidationError
from ..core import metrics
from ..core.constants import UNIQUE_CODE_MAX_LENGTH, to_naive_utc
from ..database.models import AttemptDB
from ..database.repositories import (
    AttemptRepository,
    EvaluationRepository,
    SubmissionRepository,
)

logger = logging.getLogger(__name__)


def validate_unique_code(unique_code: Any) -> str:
    """
    Normaliza y valida un código de acceso.

    Raises:
        ValidationError: Código vacío o de más de 8 caracteres
    """
    if not isinstance(unique_code, str) or not unique_code.strip():
        raise ValidationError("unique_code must not be empty", {"field": "unique_code"})
    code = unique_code.strip()
    if len(code) > UNIQUE_CODE_MAX_LENGTH:
        raise ValidationError(
            f"unique_code must be at most {UNIQUE_CODE_MAX_LENGTH} characters",
            {"field": "unique_code", "length": len(code)},
        )
    return code


def validate_window(start_time: datetime, end_time: datetime) -> Tuple[datetime, datetime]:
    """
    Raises:
        ValidationError: start_time >= end_time
    """
    if not isinstance(start_time, datetime) or not isinstance(end_time, datetime):
        raise ValidationError("start_time and end_time must be datetimes")
    start, end = to_naive_utc(start_time), to_naive_utc(end_time)
    if start >= end:
        raise ValidationError(
            "start_time must be before end_time",
            {"start_time": start.isoformat(), "end_time": end.isoformat()},
        )
    return start, end


def validate_max_submissions(max_submissions: Any) -> Optional[int]:
    """None = sin tope; si no, entero positivo."""
    if max_submissions is None:
        return None
    if isinstance(max_submissions, bool) or not isinstance(max_submissions, int) or max_submissions <= 0:
        raise ValidationError(
            "max_submissions must be a positive integer",
            {"field": "max_submissions", "value": max_submissions},
        )
    return max_submissions


class AttemptScheduler:
    """Alta, edición, baja y listado de presentaciones"""

    def __init__(self, db: Session):
        self.db = db
        self.attempts = AttemptRepository(db)
        self.evaluations = EvaluationRepository(db)
        self.submissions = SubmissionRepository(db)

    def _ensure_code_available(self, code: str, exclude_id: Optional[int] = None) -> None:
        existing = self.attempts.get_by_code(code)
        if existing is not None and existing.id != exclude_id:
            raise ConflictError(
                f"unique_code '{code}' is already in use",
                {"unique_code": code, "attempt_id": existing.id},
            )

    def create(
        self,
        evaluation_id: int,
        unique_code: str,
        start_time: datetime,
        end_time: datetime,
        max_submissions: Optional[int] = None,
    ) -> AttemptDB:
        """
        Agenda una presentación.

        Raises:
            ValidationError: Ventana, código o tope inválidos
            NotFoundError: La evaluación no existe
            ConflictError: El código ya está en uso
        """
        code = validate_unique_code(unique_code)
        start, end = validate_window(start_time, end_time)
        max_submissions = validate_max_submissions(max_submissions)

        if self.evaluations.get_by_id(evaluation_id) is None:
            raise NotFoundError("evaluation", evaluation_id)
        self._ensure_code_available(code)

        try:
            attempt = self.attempts.create(
                evaluation_id=evaluation_id,
                unique_code=code,
                start_time=start,
                end_time=end,
                max_submissions=max_submissions,
            )
        except IntegrityError as e:
            # Carrera con otro request por el mismo código
            raise ConflictError(f"unique_code '{code}' is already in use", {"unique_code": code}) from e

        metrics.attempts_scheduled_total.inc()
        logger.info(
            "Attempt scheduled",
            extra={"attempt_id": attempt.id, "evaluation_id": evaluation_id, "unique_code": code},
        )
        return attempt

    def get(self, attempt_id: int) -> AttemptDB:
        attempt = self.attempts.get_by_id(attempt_id, load_evaluation=True)
        if attempt is None:
            raise NotFoundError("attempt", attempt_id)
        return attempt

    def list(self, limit: Optional[int] = None, offset: int = 0) -> List[Tuple[AttemptDB, int]]:
        """
        Presentaciones (start_time desc) con la cantidad de entregas de cada una.

        Sin `limit` devuelve todas; la API pagina pasando limit/offset.
        """
        return self.attempts.get_all_with_counts(limit=limit, offset=offset)

    def update(self, attempt_id: int, **changes: Any) -> AttemptDB:
        """
        Modifica código, ventana o tope de entregas.

        Args:
            attempt_id: ID de la presentación
            **changes: unique_code, start_time, end_time, max_submissions
                (max_submissions=None quita el tope)

        Raises:
            ValidationError: Campo no editable o valores resultantes inválidos
            NotFoundError: La presentación no existe
            ConflictError: El nuevo código ya está en uso o el tope queda por debajo de las entregas existentes
        """
        invalid = sorted(set(changes) - set(AttemptRepository.UPDATABLE_FIELDS))
        if invalid:
            raise ValidationError(
                f"Fields cannot be updated: {', '.join(invalid)}",
                {"fields": invalid, "allowed": list(AttemptRepository.UPDATABLE_FIELDS)},
            )

        attempt = self.get(attempt_id)
        updates: Dict[str, Any] = {}

        if "unique_code" in changes:
            code = validate_unique_code(changes["unique_code"])
            if code != attempt.unique_code:
                self._ensure_code_available(code, exclude_id=attempt.id)
            updates["unique_code"] = code

        # La ventana se valida completa, aunque sólo cambie un extremo
        start, end = validate_window(
            changes.get("start_time", attempt.start_time),
            changes.get("end_time", attempt.end_time),
        )
        if "start_time" in changes:
            updates["start_time"] = start
        if "end_time" in changes:
            updates["end_time"] = end

        if "max_submissions" in changes:
            max_submissions = validate_max_submissions(changes["max_submissions"])
            if max_submissions is not None:
                submission_count = self.submissions.count_by_attempt(attempt.id)
                if max_submissions < submission_count:
                    raise ConflictError(
                        "max_submissions cannot be lower than the current submission count",
                        {
                            "attempt_id": attempt.id,
                            "max_submissions": max_submissions,
                            "submission_count": submission_count,
                        },
                    )
            updates["max_submissions"] = max_submissions

        if not updates:
            return attempt

        try:
            attempt = self.attempts.update(attempt, **updates)
        except IntegrityError as e:
            raise ConflictError(
                f"unique_code '{updates.get('unique_code')}' is already in use",
                {"unique_code": updates.get("unique_code")},
            ) from e

        logger.info("Attempt updated", extra={"attempt_id": attempt.id, "fields": sorted(updates)})
        return attempt

    def delete(self, attempt_id: int, force: bool = False) -> None:
        """
        Borra una presentación.

        Args:
            attempt_id: ID de la presentación
            force: Borrar también las entregas existentes

        Raises:
            NotFoundError: La presentación no existe
            ConflictError: Tiene entregas y force es False
        """
        attempt = self.get(attempt_id)
        submission_count = self.submissions.count_by_attempt(attempt.id)

        if submission_count and not force:
            raise ConflictError(
                "Attempt has submissions; delete with force=true to remove them too",
                {"attempt_id": attempt.id, "submission_count": submission_count},
            )

        self.attempts.delete(attempt)
        metrics.attempts_deleted_total.labels(forced=str(bool(submission_count)).lower()).inc()
        logger.info(
            "Attempt deleted",
            extra={"attempt_id": attempt_id, "deleted_submissions": submission_count},
        )
