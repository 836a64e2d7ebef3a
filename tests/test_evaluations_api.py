"""
Tests de la API de evaluaciones y preguntas
"""
from datetime import timedelta

from evaladmin.database import AttemptRepository, QuestionDB
from tests.conftest import T0

API = "/api/v1"


def create_evaluation(client, **overrides):
    payload = {
        "title": "Midterm",
        "description": "Parcial",
        "help_url": "https://example.edu",
        "questions": [
            {"text": "Invertir una lista", "type": "CODE", "language": "python"},
            {"text": "¿Qué es un heap?", "type": "TEXT"},
        ],
    }
    payload.update(overrides)
    response = client.post(f"{API}/evaluations", json=payload)
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestEvaluationCrud:
    def test_create_and_get(self, client):
        created = create_evaluation(client)

        response = client.get(f"{API}/evaluations/{created['id']}")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["title"] == "Midterm"
        assert [q["type"] for q in body["data"]["questions"]] == ["CODE", "TEXT"]

    def test_list(self, client):
        create_evaluation(client, title="Primera")
        create_evaluation(client, title="Segunda")

        data = client.get(f"{API}/evaluations").json()["data"]

        assert [e["title"] for e in data] == ["Segunda", "Primera"]

    def test_update(self, client):
        created = create_evaluation(client)

        response = client.patch(f"{API}/evaluations/{created['id']}", json={"title": "Final"})

        assert response.status_code == 200
        assert response.json()["data"]["title"] == "Final"
        assert response.json()["data"]["description"] == "Parcial"

    def test_blank_title_rejected(self, client):
        response = client.post(f"{API}/evaluations", json={"title": "  "})
        assert response.status_code == 422
        assert response.json()["success"] is False

    def test_unknown_evaluation(self, client):
        response = client.get(f"{API}/evaluations/999")

        assert response.status_code == 404
        assert response.json() == {
            "success": False,
            "error": {
                "code": "EVALUATION_NOT_FOUND",
                "message": "evaluation '999' not found",
                "details": {"resource": "evaluation", "id": 999},
            },
        }

    def test_delete_removes_questions(self, client, db):
        created = create_evaluation(client)

        response = client.delete(f"{API}/evaluations/{created['id']}")

        assert response.status_code == 200
        assert client.get(f"{API}/evaluations/{created['id']}").status_code == 404
        assert db.query(QuestionDB).count() == 0

    def test_delete_with_attempts_conflicts(self, client, db):
        created = create_evaluation(client)
        AttemptRepository(db).create(created["id"], "ABC123", T0, T0 + timedelta(hours=1))

        response = client.delete(f"{API}/evaluations/{created['id']}")

        assert response.status_code == 409
        assert response.json()["error"]["details"]["attempt_count"] == 1


class TestQuestions:
    def test_add_and_list(self, client):
        created = create_evaluation(client, questions=[])

        response = client.post(
            f"{API}/evaluations/{created['id']}/questions",
            json={"text": "Recorrer un árbol", "type": "CODE", "language": "java", "answer": "dfs"},
        )
        assert response.status_code == 201

        questions = client.get(f"{API}/evaluations/{created['id']}/questions").json()["data"]
        assert [(q["text"], q["language"]) for q in questions] == [("Recorrer un árbol", "java")]

    def test_code_question_requires_language(self, client):
        created = create_evaluation(client, questions=[])

        response = client.post(
            f"{API}/evaluations/{created['id']}/questions",
            json={"text": "Escribir un bucle", "type": "CODE"},
        )

        assert response.status_code == 422

    def test_patch_type_to_code_without_language(self, client):
        created = create_evaluation(client)
        text_question = created["questions"][1]

        response = client.patch(f"{API}/questions/{text_question['id']}", json={"type": "CODE"})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_patch_question(self, client):
        created = create_evaluation(client)
        code_question = created["questions"][0]

        response = client.patch(
            f"{API}/questions/{code_question['id']}", json={"language": "go", "answer": "..."}
        )

        assert response.status_code == 200
        assert response.json()["data"]["language"] == "go"

    def test_delete_question(self, client):
        created = create_evaluation(client)

        response = client.delete(f"{API}/questions/{created['questions'][0]['id']}")

        assert response.status_code == 200
        remaining = client.get(f"{API}/evaluations/{created['id']}/questions").json()["data"]
        assert len(remaining) == 1


class TestExportImport:
    def test_export_attachment(self, client):
        created = create_evaluation(client, title="Parcial 1")

        response = client.get(f"{API}/evaluations/{created['id']}/export")

        assert response.status_code == 200
        assert 'filename="parcial1_evaluacion.json"' in response.headers["content-disposition"]
        document = response.json()
        assert document["helpUrl"] == "https://example.edu"
        assert "id" not in document
        assert all("id" not in q for q in document["questions"])

    def test_export_missing(self, client):
        response = client.get(f"{API}/evaluations/999/export")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "EXPORT_FAILED"

    def test_import_round_trip(self, client):
        created = create_evaluation(client)
        document = client.get(f"{API}/evaluations/{created['id']}/export").json()

        response = client.post(f"{API}/evaluations/import", json=document)

        assert response.status_code == 201
        imported = response.json()["data"]
        assert imported["id"] != created["id"]
        assert imported["help_url"] == created["help_url"]
        assert [(q["text"], q["type"], q["language"]) for q in imported["questions"]] == [
            (q["text"], q["type"], q["language"]) for q in created["questions"]
        ]

    def test_import_invalid(self, client):
        response = client.post(
            f"{API}/evaluations/import",
            json={"title": "Quiz", "questions": [{"text": "x", "type": "ESSAY"}]},
        )
        assert response.status_code == 400
        assert response.json()["error"]["details"]["errors"]


class TestGenerateQuestion:
    def test_generates_markdown(self, client, llm):
        response = client.post(
            f"{API}/evaluations/generate-question",
            json={"prompt": "Listas enlazadas", "type": "CODE", "language": "c"},
        )

        assert response.status_code == 200
        assert response.json()["data"]["text"] == "## Pregunta\n\nEnunciado generado"
        assert "Listas enlazadas" in llm.last_prompt

    def test_provider_failure(self, client, llm):
        llm.config["error"] = RuntimeError("quota exceeded")

        response = client.post(
            f"{API}/evaluations/generate-question",
            json={"prompt": "Listas", "type": "TEXT"},
        )

        assert response.status_code == 502
        assert response.json()["error"]["message"] == (
            "No se pudo generar la pregunta. Por favor, inténtelo de nuevo."
        )
