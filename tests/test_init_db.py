"""
Tests del script init_db
"""
import json

from evaladmin.database import EvaluationRepository, get_db_session
from evaladmin.scripts.init_db import main


def test_creates_tables_and_imports(tmp_path, capsys):
    document = {
        "title": "Quiz de grafos",
        "helpUrl": "https://example.edu/grafos",
        "questions": [{"text": "Implementar BFS", "type": "CODE", "language": "python"}],
    }
    path = tmp_path / "quiz_evaluacion.json"
    path.write_text(json.dumps(document), encoding="utf-8")

    main(["--database-url", f"sqlite:///{tmp_path / 'init.db'}", "--import", str(path)])

    with get_db_session() as db:
        evaluations = EvaluationRepository(db).get_all()
        assert [e.title for e in evaluations] == ["Quiz de grafos"]
        assert evaluations[0].help_url == "https://example.edu/grafos"
        assert [q.language for q in evaluations[0].questions] == ["python"]

    assert "Imported 'Quiz de grafos'" in capsys.readouterr().out
