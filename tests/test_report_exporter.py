"""
Tests de ReportExporter
"""
import pytest
from reportlab.platypus import PageBreak, Table

from evaladmin.api.exceptions import ExportError, ValidationError
from evaladmin.models.analytics import (
    AttemptAnalysis,
    PlagiarismAnalysisResult,
    PlagiarismPair,
    RankedSubmission,
    ReportData,
    ReportSection,
    RiskPredictionResult,
    ScheduleAnalysisResult,
    SentimentAnalysisResult,
    SentimentCase,
)
from evaladmin.services.report_exporter import ReportExporter

GENERAL = ScheduleAnalysisResult(
    evaluation_title="Midterm",
    overall_summary="Buen desempeño general.",
    strengths=["Manejo de listas"],
    areas_for_improvement=["Heaps"],
    key_observations=["Una entrega sin calificar"],
    recommendations="Repasar árboles.",
    conclusions="Grupo sólido.",
)


def _analysis(attempt_id=1, **kwargs):
    return AttemptAnalysis(attempt_id=attempt_id, general=GENERAL, **kwargs)


def test_filename():
    assert ReportExporter.filename("Parcial  Final\t2025") == "reporte_ia_Parcial__Final_2025.pdf"


def test_render_full_report(db, attempt, graded_submissions):
    exporter = ReportExporter(db)
    pairs = [PlagiarismPair(student_a="Ana García", student_b="Bruno Díaz",
                            question_text="Invertir una lista", similarity=0.93)]
    analysis = _analysis(
        attempt.id,
        risk_prediction=RiskPredictionResult(at_risk_students=["Carla Ruiz"], explanation="Sin nota."),
        plagiarism_code=PlagiarismAnalysisResult(pairs=pairs, summary="Un par sospechoso."),
        sentiment=SentimentAnalysisResult(
            summary="Mayormente neutral.",
            relevant_cases=[SentimentCase(student_name="Ana García", sentiment="positivo",
                                          quote="Me gustó <mucho>", explanation="Entusiasmo")],
        ),
    )

    report = exporter.build_report_data(attempt.id, analysis)
    pdf = exporter.render(report)

    assert pdf.startswith(b"%PDF")
    assert report.evaluation_title == "Midterm"
    assert [s.full_name for s in report.submissions][0] == "Bruno Díaz"
    assert len(report.question_analysis) == 2
    assert ReportExporter._question_label(pairs[0], report.question_analysis) == "Pregunta 1"


def test_sections_control_story():
    report = ReportData(evaluation_title="Quiz", analysis=GENERAL, sections=[ReportSection.RANKING_TABLE])
    exporter = ReportExporter()

    story = exporter.build_story(report)

    assert sum(isinstance(f, Table) for f in story) == 1
    assert not any(isinstance(f, PageBreak) for f in story)


def test_question_table_starts_new_page():
    report = ReportData(
        evaluation_title="Quiz",
        analysis=GENERAL,
        sections=[ReportSection.GENERAL, ReportSection.QUESTION_TABLE],
    )

    story = ReportExporter().build_story(report)

    assert any(isinstance(f, PageBreak) for f in story)


def test_long_tables_span_pages():
    submissions = [
        RankedSubmission(id=i, first_name=f"Estudiante{i}", last_name="Apellido", score=float(i % 10))
        for i in range(200)
    ]
    report = ReportData(
        evaluation_title="Quiz",
        analysis=GENERAL,
        submissions=submissions,
        sections=[ReportSection.RANKING_TABLE, ReportSection.PARTICIPATION_TABLE],
    )

    exporter = ReportExporter()
    pdf = exporter.render(report)

    assert pdf.startswith(b"%PDF")
    assert exporter.last_page_count > 2


def test_missing_attempt_is_export_error(db):
    with pytest.raises(ExportError):
        ReportExporter(db).build_report_data(999, _analysis())


def test_general_analysis_required(db, attempt):
    with pytest.raises(ValidationError):
        ReportExporter(db).build_report_data(attempt.id, AttemptAnalysis(attempt_id=attempt.id))


def test_analysis_of_other_attempt_rejected(db, attempt):
    with pytest.raises(ValidationError) as exc_info:
        ReportExporter(db).build_report_data(attempt.id, _analysis(attempt.id + 1))
    assert exc_info.value.extra["analysis_attempt_id"] == attempt.id + 1
