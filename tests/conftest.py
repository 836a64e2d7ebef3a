"""
Fixtures compartidas: base SQLite en memoria por test, cliente HTTP y LLM simulado
"""
import asyncio
from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from evaladmin.api.deps import get_llm_provider, reset_llm_provider
from evaladmin.api.main import create_app
from evaladmin.database import (
    AttemptRepository,
    EvaluationRepository,
    SubmissionRepository,
    init_database,
)
from evaladmin.llm.mock import MockLLMProvider

T0 = datetime(2025, 3, 10, 9, 0, 0)


def run(coro):
    """Ejecuta una corrutina en un event loop nuevo."""
    return asyncio.run(coro)


@pytest.fixture
def db_config():
    config = init_database("sqlite://", create_tables=True)
    yield config
    config.drop_tables()
    config.dispose()


@pytest.fixture
def db(db_config):
    session = db_config.SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def llm():
    return MockLLMProvider({"response": "## Pregunta\n\nEnunciado generado"})


@pytest.fixture
def app(db_config, llm):
    application = create_app()
    application.dependency_overrides[get_llm_provider] = lambda: llm
    yield application
    application.dependency_overrides.clear()
    reset_llm_provider()


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def evaluation(db):
    """Evaluación con una pregunta CODE y una TEXT."""
    return EvaluationRepository(db).create_with_questions(
        title="Midterm",
        description="Parcial de estructuras de datos",
        help_url="https://example.edu/ayuda",
        questions=[
            {"text": "Invertir una lista", "type": "CODE", "language": "python", "answer": "l[::-1]"},
            {"text": "¿Qué es un heap?", "type": "TEXT", "language": None, "answer": None},
        ],
    )


@pytest.fixture
def attempt(db, evaluation):
    return AttemptRepository(db).create(
        evaluation_id=evaluation.id,
        unique_code="ABC123",
        start_time=T0,
        end_time=T0 + timedelta(hours=1),
    )


@pytest.fixture
def graded_submissions(db, evaluation, attempt):
    """
    Tres entregas: la pregunta CODE tiene puntajes 2, 4 y 6; la TEXT sólo una
    respuesta calificada (8) y dos sin calificar.
    """
    code_q, text_q = evaluation.questions
    repo = SubmissionRepository(db)
    rows = [
        ("Ana", "García", 5.0, 2.0, 8.0, 0, 0),
        ("Bruno", "Díaz", 7.0, 4.0, None, 1, 120),
        ("Carla", "Ruiz", None, 6.0, None, 0, 30),
    ]
    submissions = []
    for minute, (first, last, score, code_score, text_score, fraud, outside) in enumerate(rows):
        submissions.append(
            repo.create(
                attempt_id=attempt.id,
                first_name=first,
                last_name=last,
                score=score,
                fraud_attempts=fraud,
                time_outside_eval=outside,
                submitted_at=T0 + timedelta(minutes=10 + minute),
                answers=[
                    {"question_id": code_q.id, "content": "def f(l): return l[::-1]", "score": code_score},
                    {"question_id": text_q.id, "content": "Un árbol binario completo", "score": text_score},
                ],
            )
        )
    return submissions
