"""
Tests de export/import de evaluaciones
"""
import json

import pytest

from evaladmin.api.exceptions import ExportError, ValidationError
from evaladmin.database import EvaluationDB, EvaluationRepository
from evaladmin.services.evaluation_transfer import EvaluationTransfer, export_filename


@pytest.fixture
def transfer(db):
    return EvaluationTransfer(db)


def test_export_document_shape(transfer, evaluation):
    payload = transfer.export_payload(evaluation.id)

    assert payload == {
        "title": "Midterm",
        "description": "Parcial de estructuras de datos",
        "helpUrl": "https://example.edu/ayuda",
        "questions": [
            {"text": "Invertir una lista", "type": "CODE", "language": "python", "answer": "l[::-1]"},
            {"text": "¿Qué es un heap?", "type": "TEXT", "language": None, "answer": None},
        ],
    }


def test_export_missing_evaluation(transfer):
    with pytest.raises(ExportError):
        transfer.export_evaluation(999)


def test_round_trip_preserves_content(transfer, evaluation, db):
    payload = json.loads(json.dumps(transfer.export_payload(evaluation.id)))

    imported = transfer.import_evaluation(payload)

    assert imported.id != evaluation.id
    assert imported.title == evaluation.title
    assert imported.description == evaluation.description
    assert imported.help_url == evaluation.help_url
    assert [
        (q.text, q.type, q.language, q.answer) for q in imported.questions
    ] == [
        (q.text, q.type, q.language, q.answer) for q in evaluation.questions
    ]
    assert {q.id for q in imported.questions}.isdisjoint({q.id for q in evaluation.questions})
    assert db.query(EvaluationDB).count() == 2


@pytest.mark.parametrize(
    "document",
    [
        {"description": "sin título"},
        {"title": "   "},
        {"title": "Quiz", "questions": [{"text": "x", "type": "ESSAY"}]},
        {"title": "Quiz", "questions": [{"text": "Escribir un bucle", "type": "CODE"}]},
        {"title": "Quiz", "questions": "no es una lista"},
        ["no", "es", "un", "objeto"],
    ],
)
def test_import_rejects_invalid_documents(transfer, db, document):
    with pytest.raises(ValidationError) as exc_info:
        transfer.import_evaluation(document)

    assert exc_info.value.extra["errors"]
    assert db.query(EvaluationDB).count() == 0


def test_import_without_questions(transfer):
    imported = transfer.import_evaluation({"title": "Vacía"})
    assert imported.questions == []
    assert imported.description is None


def test_export_evaluation_without_questions(transfer, db):
    evaluation = EvaluationRepository(db).create(title="Borrador", description="Sin preguntas")

    payload = transfer.export_payload(evaluation.id)

    assert payload == {"title": "Borrador", "description": "Sin preguntas", "helpUrl": None, "questions": []}


@pytest.mark.parametrize(
    "title, expected",
    [
        ("Midterm", "midterm_evaluacion.json"),
        ("Parcial 1: Árboles", "parcial1rboles_evaluacion.json"),
        ("¡¿?!", "evaluacion_evaluacion.json"),
    ],
)
def test_export_filename(title, expected):
    assert export_filename(title) == expected
