"""
Tests de SubmissionAggregator
"""
from datetime import timedelta

import pytest

from evaladmin.api.exceptions import NotFoundError
from evaladmin.database import AttemptRepository, SubmissionRepository
from evaladmin.services.submission_aggregator import SubmissionAggregator
from tests.conftest import T0


@pytest.fixture
def aggregator(db):
    return SubmissionAggregator(db)


def test_no_graded_answers_returns_empty_list(aggregator, attempt):
    assert aggregator.analyze_questions(attempt.id) == []


def test_average_per_question(aggregator, attempt, evaluation, graded_submissions):
    code_q, text_q = evaluation.questions

    results = aggregator.analyze_questions(attempt.id)

    assert [r.question_id for r in results] == [code_q.id, text_q.id]

    code = results[0]
    assert code.text == "Invertir una lista"
    assert code.type == "CODE"
    assert code.average_score == pytest.approx(4.0)
    assert code.graded_count == 3
    assert code.std_dev == pytest.approx(1.63299, rel=1e-4)

    # Las respuestas sin score no cuentan
    text = results[1]
    assert text.average_score == pytest.approx(8.0)
    assert text.graded_count == 1
    assert text.std_dev == 0.0


def test_unknown_attempt(aggregator):
    with pytest.raises(NotFoundError):
        aggregator.analyze_questions(999)


def test_rank_submissions(aggregator, attempt, graded_submissions):
    ranked = aggregator.rank_submissions(attempt.id)

    # Bruno (7) > Ana (5) > Carla (sin calificar)
    assert [s.full_name for s in ranked] == ["Bruno Díaz", "Ana García", "Carla Ruiz"]
    assert ranked[-1].score is None
    assert ranked[0].time_outside_eval == 120


def test_ignores_answers_from_other_attempts(aggregator, db, evaluation, attempt, graded_submissions):
    code_q, text_q = evaluation.questions
    other = AttemptRepository(db).create(evaluation.id, "OTRO1", T0 + timedelta(days=1), T0 + timedelta(days=1, hours=1))
    SubmissionRepository(db).create(
        attempt_id=other.id,
        first_name="Dana",
        last_name="López",
        answers=[
            {"question_id": code_q.id, "content": "return l", "score": 10.0},
            {"question_id": text_q.id, "content": "Una cola", "score": 0.0},
        ],
    )

    results = aggregator.analyze_questions(attempt.id)

    assert [(r.average_score, r.graded_count) for r in results] == [(4.0, 3), (8.0, 1)]
    assert [(r.average_score, r.graded_count) for r in aggregator.analyze_questions(other.id)] == [
        (10.0, 1),
        (0.0, 1),
    ]
