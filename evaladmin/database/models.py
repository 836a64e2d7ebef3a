"""
SQLAlchemy ORM models for persistence

Models:
- EvaluationDB: Evaluaciones (conjuntos de preguntas)
- QuestionDB: Preguntas CODE / TEXT de una evaluación
- AttemptDB: Presentaciones agendadas (ventana horaria + código único)
- SubmissionDB: Entregas de estudiantes para una presentación
- AnswerDB: Respuesta a una pregunta dentro de una entrega
"""
from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from ..core.constants import UNIQUE_CODE_MAX_LENGTH, utc_now
from .base import Base, BaseModel


class EvaluationDB(Base, BaseModel):
    """
    Evaluación: título, descripción, URL de ayuda y sus preguntas.

    Borrar una evaluación borra sus preguntas. Las presentaciones (attempts)
    la referencian pero no le pertenecen: mientras existan, el borrado se rechaza.
    """

    __tablename__ = "evaluations"

    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    help_url = Column(String(500), nullable=True)

    questions = relationship(
        "QuestionDB",
        back_populates="evaluation",
        cascade="all, delete-orphan",
        order_by="QuestionDB.id",
    )
    attempts = relationship("AttemptDB", back_populates="evaluation", passive_deletes="all")

    __table_args__ = (
        Index("idx_evaluations_created", "created_at"),
        CheckConstraint("length(trim(title)) > 0", name="ck_evaluation_title_not_empty"),
    )


class QuestionDB(Base, BaseModel):
    """Pregunta de una evaluación. `language` sólo es obligatorio para CODE."""

    __tablename__ = "questions"

    evaluation_id = Column(
        Integer, ForeignKey("evaluations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    text = Column(Text, nullable=False)
    type = Column(String(10), nullable=False)  # CODE | TEXT
    language = Column(String(50), nullable=True)  # 'python', 'javascript', ...
    answer = Column(Text, nullable=True)  # Respuesta de referencia

    evaluation = relationship("EvaluationDB", back_populates="questions")
    answers = relationship("AnswerDB", back_populates="question", passive_deletes="all")

    __table_args__ = (
        CheckConstraint("type IN ('CODE', 'TEXT')", name="ck_question_type_valid"),
        CheckConstraint(
            "type <> 'CODE' OR language IS NOT NULL", name="ck_question_code_language"
        ),
    )


class AttemptDB(Base, BaseModel):
    """
    Presentación agendada de una evaluación.

    La ventana es [start_time, end_time). `max_submissions` es un tope opcional
    de entregas.
    """

    __tablename__ = "attempts"

    evaluation_id = Column(
        Integer, ForeignKey("evaluations.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    unique_code = Column(String(UNIQUE_CODE_MAX_LENGTH), nullable=False, unique=True)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    max_submissions = Column(Integer, nullable=True)

    evaluation = relationship("EvaluationDB", back_populates="attempts")
    submissions = relationship(
        "SubmissionDB",
        back_populates="attempt",
        cascade="all, delete-orphan",
        order_by="SubmissionDB.submitted_at.desc()",
    )

    __table_args__ = (
        Index("idx_attempts_start_time", "start_time"),
        CheckConstraint("start_time < end_time", name="ck_attempt_window_valid"),
        CheckConstraint(
            "max_submissions IS NULL OR max_submissions > 0", name="ck_attempt_max_submissions_positive"
        ),
    )


class SubmissionDB(Base, BaseModel):
    """Entrega de un estudiante. `score` es NULL hasta que se califica."""

    __tablename__ = "submissions"

    attempt_id = Column(
        Integer, ForeignKey("attempts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    score = Column(Float, nullable=True)

    # Integridad
    fraud_attempts = Column(Integer, default=0, nullable=False)
    time_outside_eval = Column(Integer, default=0, nullable=False)  # segundos

    submitted_at = Column(DateTime, default=utc_now, nullable=False)

    attempt = relationship("AttemptDB", back_populates="submissions")
    answers = relationship(
        "AnswerDB",
        back_populates="submission",
        cascade="all, delete-orphan",
        order_by="AnswerDB.question_id",
    )

    __table_args__ = (
        Index("idx_submissions_attempt_submitted", "attempt_id", "submitted_at"),
        CheckConstraint("fraud_attempts >= 0", name="ck_submission_fraud_nonnegative"),
        CheckConstraint("time_outside_eval >= 0", name="ck_submission_time_outside_nonnegative"),
    )


class AnswerDB(Base, BaseModel):
    """Respuesta a una pregunta. `score` es NULL hasta que se califica."""

    __tablename__ = "answers"

    submission_id = Column(
        Integer, ForeignKey("submissions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    question_id = Column(
        Integer, ForeignKey("questions.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    content = Column(Text, nullable=True)  # Texto o código entregado
    score = Column(Float, nullable=True)

    submission = relationship("SubmissionDB", back_populates="answers")
    question = relationship("QuestionDB", back_populates="answers")

    __table_args__ = (
        Index("idx_answers_submission_question", "submission_id", "question_id"),
    )
