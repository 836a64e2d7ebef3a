"""
Tests de la API de presentaciones, entregas y analítica
"""
import json
from datetime import timedelta

from tests.conftest import T0

API = "/api/v1"


def iso(value):
    return value.isoformat()


def schedule(client, evaluation_id, code="ABC123", start=T0, end=T0 + timedelta(hours=1), **extra):
    return client.post(
        f"{API}/attempts",
        json={
            "evaluation_id": evaluation_id,
            "unique_code": code,
            "start_time": iso(start),
            "end_time": iso(end),
            **extra,
        },
    )


def test_schedule_and_list(client, evaluation):
    response = schedule(client, evaluation.id)
    assert response.status_code == 201, response.text

    data = client.get(f"{API}/attempts").json()["data"]

    assert len(data) == 1
    assert data[0]["evaluation_title"] == "Midterm"
    assert data[0]["unique_code"] == "ABC123"
    assert data[0]["submission_count"] == 0
    assert data[0]["start_time"].startswith("2025-03-10T09:00:00")


def test_duplicate_code_conflicts(client, evaluation):
    assert schedule(client, evaluation.id).status_code == 201

    response = schedule(client, evaluation.id, start=T0 + timedelta(days=1), end=T0 + timedelta(days=1, hours=1))

    assert response.status_code == 409
    assert response.json()["error"]["code"] == "CONFLICT"


def test_invalid_window(client, evaluation):
    response = schedule(client, evaluation.id, end=T0)
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


def test_code_too_long(client, evaluation):
    response = schedule(client, evaluation.id, code="TOOLONGCODE")
    assert response.status_code == 400


def test_unknown_evaluation(client):
    response = schedule(client, 999)
    assert response.status_code == 404


def test_patch_attempt(client, attempt):
    response = client.patch(
        f"{API}/attempts/{attempt.id}",
        json={"end_time": iso(T0 + timedelta(hours=2)), "max_submissions": 25},
    )

    assert response.status_code == 200
    assert response.json()["data"]["max_submissions"] == 25

    cleared = client.patch(f"{API}/attempts/{attempt.id}", json={"max_submissions": None})
    assert cleared.json()["data"]["max_submissions"] is None


def test_delete_requires_force_with_submissions(client, attempt, graded_submissions):
    response = client.delete(f"{API}/attempts/{attempt.id}")
    assert response.status_code == 409

    response = client.delete(f"{API}/attempts/{attempt.id}", params={"force": "true"})
    assert response.status_code == 200
    assert client.get(f"{API}/attempts/{attempt.id}").status_code == 404


def test_submissions_and_detail(client, attempt, graded_submissions):
    data = client.get(f"{API}/attempts/{attempt.id}/submissions").json()["data"]

    # Más recientes primero
    assert [s["first_name"] for s in data] == ["Carla", "Bruno", "Ana"]

    detail = client.get(f"{API}/submissions/{data[-1]['id']}").json()["data"]
    assert detail["last_name"] == "García"
    assert [a["question"]["type"] for a in detail["answers"]] == ["CODE", "TEXT"]
    assert detail["answers"][0]["score"] == 2.0


def test_submission_not_found(client):
    assert client.get(f"{API}/submissions/999").status_code == 404


def test_question_analysis(client, attempt, graded_submissions):
    data = client.get(f"{API}/attempts/{attempt.id}/question-analysis").json()["data"]

    assert [(q["type"], q["average_score"], q["graded_count"]) for q in data] == [
        ("CODE", 4.0, 3),
        ("TEXT", 8.0, 1),
    ]


def test_question_analysis_empty(client, attempt):
    response = client.get(f"{API}/attempts/{attempt.id}/question-analysis")
    assert response.status_code == 200
    assert response.json()["data"] == []


def test_analysis_and_report(client, llm, attempt, graded_submissions):
    general = {
        "evaluation_title": "Midterm",
        "overall_summary": "Resumen",
        "strengths": ["a"],
        "areas_for_improvement": ["b"],
        "key_observations": ["c"],
        "recommendations": "Repasar",
    }
    llm.config["response"] = json.dumps(general)

    response = client.post(f"{API}/attempts/{attempt.id}/analysis", json={"kinds": ["general"]})
    assert response.status_code == 200, response.text
    analysis = response.json()["data"]
    assert analysis["general"]["overall_summary"] == "Resumen"

    report = client.post(
        f"{API}/attempts/{attempt.id}/report",
        json={"analysis": analysis, "sections": ["general", "question_table", "ranking_table"]},
    )

    assert report.status_code == 200
    assert report.headers["content-type"] == "application/pdf"
    assert 'filename="reporte_ia_Midterm.pdf"' in report.headers["content-disposition"]
    assert report.content.startswith(b"%PDF")


def test_analysis_invalid_ai_response(client, llm, attempt):
    llm.config["response"] = "esto no es JSON"

    response = client.post(f"{API}/attempts/{attempt.id}/analysis", json={"kinds": ["risk"]})

    assert response.status_code == 502
    assert response.json()["error"]["code"] == "GENERATION_FAILED"


def test_report_for_missing_attempt(client):
    response = client.post(
        f"{API}/attempts/999/report",
        json={"analysis": {"attempt_id": 999, "general": {"evaluation_title": "x", "overall_summary": "y"}}},
    )
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "EXPORT_FAILED"


def test_metrics_endpoint(client, evaluation):
    schedule(client, evaluation.id)

    response = client.get("/metrics")

    assert response.status_code == 200
    assert "evaladmin_attempts_scheduled_total" in response.text


def test_report_rejects_analysis_of_other_attempt(client, evaluation, attempt):
    other = schedule(client, evaluation.id, code="OTRO1").json()["data"]
    general = {"evaluation_title": "Midterm", "overall_summary": "Resumen"}

    response = client.post(
        f"{API}/attempts/{attempt.id}/report",
        json={"analysis": {"attempt_id": other["id"], "general": general}},
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


def test_duplicate_code_across_evaluations_conflicts(client, evaluation):
    other = client.post(f"{API}/evaluations", json={"title": "Final"}).json()["data"]
    assert schedule(client, evaluation.id).status_code == 201

    response = schedule(client, other["id"])

    assert response.status_code == 409
    assert response.json()["error"]["details"]["unique_code"] == "ABC123"


def test_lowering_max_submissions_below_count_conflicts(client, attempt, graded_submissions):
    response = client.patch(f"{API}/attempts/{attempt.id}", json={"max_submissions": 2})

    assert response.status_code == 409
    assert response.json()["error"]["details"]["submission_count"] == 3
