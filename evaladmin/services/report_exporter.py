"""
Report Exporter - Reporte PDF del análisis IA de una presentación

Página A4, margen izquierdo 14 mm, ancho útil 180 mm, margen inferior 10 mm.
Antes de cada bloque se verifica el alto disponible (CondPageBreak) y las
tablas se parten entre páginas repitiendo el encabezado.

Uso:
    exporter = ReportExporter(db)
    report = exporter.build_report_data(attempt_id, analysis, sections)
    pdf_bytes = exporter.render(report)
    filename = ReportExporter.filename(report.evaluation_title)
"""
import io
import logging
import re
from typing import Iterable, List, Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import (
    CondPageBreak,
    PageBreak,
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)
from sqlalchemy.orm import Session

from ..api.exceptions import ExportError, ValidationError
from ..core import metrics
from ..core.constants import REPORT_FILENAME_PREFIX
from ..database.repositories import AttemptRepository
from ..models.analytics import (
    AttemptAnalysis,
    PlagiarismPair,
    QuestionAnalysis,
    ReportData,
    ReportSection,
)
from .submission_aggregator import SubmissionAggregator

logger = logging.getLogger(__name__)

PAGE_WIDTH, PAGE_HEIGHT = A4
LEFT_MARGIN = 14 * mm
TEXT_WIDTH = 180 * mm
TOP_MARGIN = 15 * mm
BOTTOM_MARGIN = 10 * mm

BLUE = colors.Color(41 / 255, 128 / 255, 185 / 255)
RED = colors.Color(185 / 255, 41 / 255, 41 / 255)
INDIGO = colors.Color(41 / 255, 41 / 255, 185 / 255)

_WHITESPACE = re.compile(r"\s")


def _fmt(value: Optional[float], digits: int = 1) -> str:
    return "N/A" if value is None else f"{value:.{digits}f}"


class ReportExporter:
    """Arma y dibuja el reporte PDF"""

    def __init__(self, db: Optional[Session] = None):
        self.db = db
        self.last_page_count = 0
        styles = getSampleStyleSheet()
        self.title_style = ParagraphStyle(
            "ReportTitle", parent=styles["Heading1"], fontName="Helvetica-Bold",
            fontSize=20, leading=24, spaceAfter=5 * mm,
        )
        self.heading_style = ParagraphStyle(
            "ReportHeading", parent=styles["Heading2"], fontName="Helvetica-Bold",
            fontSize=14, leading=17, spaceBefore=2 * mm, spaceAfter=2 * mm,
        )
        self.subheading_style = ParagraphStyle(
            "ReportSubheading", parent=styles["Heading3"], fontName="Helvetica-Bold",
            fontSize=12, leading=15, spaceAfter=2 * mm,
        )
        self.body_style = ParagraphStyle(
            "ReportBody", parent=styles["Normal"], fontName="Helvetica",
            fontSize=10, leading=13,
        )
        self.item_style = ParagraphStyle(
            "ReportItem", parent=self.body_style, leftIndent=4 * mm,
        )
        self.detail_style = ParagraphStyle(
            "ReportDetail", parent=self.body_style, leftIndent=6 * mm,
        )
        self.cell_style = ParagraphStyle(
            "ReportCell", parent=self.body_style, fontSize=9, leading=11,
        )
        self.header_cell_style = ParagraphStyle(
            "ReportHeaderCell", parent=self.cell_style, fontName="Helvetica-Bold",
            textColor=colors.white,
        )

    # ------------------------------------------------------------------
    # Datos
    # ------------------------------------------------------------------

    def build_report_data(
        self,
        attempt_id: int,
        analysis: AttemptAnalysis,
        sections: Optional[Iterable[ReportSection]] = None,
    ) -> ReportData:
        """
        Junta el análisis IA con los datos de la presentación.

        Raises:
            ExportError: La presentación no existe
            ValidationError: Falta el análisis general o pertenece a otra presentación
        """
        if self.db is None:
            raise RuntimeError("ReportExporter needs a database session to build report data")

        attempt = AttemptRepository(self.db).get_by_id(attempt_id, load_evaluation=True)
        if attempt is None:
            raise ExportError("attempt", attempt_id)
        if analysis.attempt_id != attempt_id:
            raise ValidationError(
                "The analysis belongs to a different attempt",
                {"attempt_id": attempt_id, "analysis_attempt_id": analysis.attempt_id},
            )
        if analysis.general is None:
            raise ValidationError("The general analysis is required to build a report")

        aggregator = SubmissionAggregator(self.db)
        return ReportData(
            evaluation_title=attempt.evaluation.title,
            analysis=analysis.general,
            submissions=aggregator.rank_submissions(attempt_id),
            question_analysis=aggregator.analyze_questions(attempt_id),
            risk_prediction=analysis.risk_prediction,
            question_bias=analysis.question_bias,
            participation=analysis.participation,
            plagiarism_text=analysis.plagiarism_text,
            plagiarism_code=analysis.plagiarism_code,
            personalized_recommendations=analysis.personalized_recommendations,
            sentiment=analysis.sentiment,
            sections=list(sections) if sections is not None else list(ReportSection),
        )

    @staticmethod
    def filename(evaluation_title: str) -> str:
        """reporte_ia_<título con espacios reemplazados por _>.pdf"""
        return f"{REPORT_FILENAME_PREFIX}{_WHITESPACE.sub('_', evaluation_title)}.pdf"

    # ------------------------------------------------------------------
    # Bloques
    # ------------------------------------------------------------------

    def _p(self, text: str, style: ParagraphStyle) -> Paragraph:
        return Paragraph(escape(text or "").replace("\n", "<br/>"), style)

    def _heading(self, story: List, title: str, style: Optional[ParagraphStyle] = None, needed: float = 15 * mm) -> None:
        story.append(CondPageBreak(needed))
        story.append(self._p(title, style or self.heading_style))

    def _list_section(self, story: List, title: str, items: List[str]) -> None:
        self._heading(story, title, self.subheading_style, needed=min(10 + len(items) * 5, 60) * mm)
        for item in items:
            story.append(self._p(f"- {item}", self.item_style))
        story.append(Spacer(1, 5 * mm))

    def _table(
        self,
        story: List,
        header: List[str],
        rows: List[List[str]],
        col_widths: List[float],
        header_color,
        striped: bool = True,
    ) -> None:
        data = [[self._p(cell, self.header_cell_style) for cell in header]]
        data += [[self._p(str(cell), self.cell_style) for cell in row] for row in rows]

        commands = [
            ("BACKGROUND", (0, 0), (-1, 0), header_color),
            ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ("LINEBELOW", (0, 0), (-1, -1), 0.25, colors.HexColor("#DDDDDD")),
            ("TOPPADDING", (0, 0), (-1, -1), 3),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 3),
        ]
        if striped:
            commands.append(("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#F5F5F5")]))
        else:
            commands.append(("GRID", (0, 0), (-1, -1), 0.5, colors.grey))

        table = Table(data, colWidths=col_widths, repeatRows=1)
        table.setStyle(TableStyle(commands))
        story.append(CondPageBreak(20 * mm))
        story.append(table)
        story.append(Spacer(1, 5 * mm))

    @staticmethod
    def _question_label(pair: PlagiarismPair, questions: List[QuestionAnalysis]) -> str:
        for index, question in enumerate(questions):
            if question.text == pair.question_text:
                return f"Pregunta {index + 1}"
        return "N/A"

    def _plagiarism_rows(self, report: ReportData, pairs: List[PlagiarismPair]) -> List[List[str]]:
        return [
            [
                pair.student_a,
                pair.student_b,
                self._question_label(pair, report.question_analysis),
                f"{pair.similarity * 100:.1f}%",
            ]
            for pair in pairs
        ]

    # ------------------------------------------------------------------
    # Render
    # ------------------------------------------------------------------

    def build_story(self, report: ReportData) -> List:
        """Flowables del reporte en orden de secciones."""
        sections = set(report.sections)
        analysis = report.analysis
        story: List = []

        if ReportSection.GENERAL in sections:
            story.append(self._p(f"Reporte de Análisis IA: {analysis.evaluation_title or report.evaluation_title}",
                                 self.title_style))
            self._heading(story, "Resumen General")
            story.append(self._p(analysis.overall_summary, self.body_style))
            story.append(Spacer(1, 5 * mm))
            self._list_section(story, "Fortalezas Clave", analysis.strengths)
            self._list_section(story, "Áreas de Mejora", analysis.areas_for_improvement)
            self._list_section(story, "Observaciones Clave", analysis.key_observations)

        if report.risk_prediction is not None:
            risk = report.risk_prediction
            self._heading(story, "Predicción de riesgo de bajo rendimiento")
            if risk.at_risk_students:
                story.append(self._p("Estudiantes en riesgo:", self.item_style))
                for name in risk.at_risk_students:
                    story.append(self._p(f"- {name}", self.detail_style))
            else:
                story.append(self._p("No se identificaron estudiantes en riesgo significativo.", self.item_style))
            story.append(self._p("Explicación:", self.item_style))
            story.append(self._p(risk.explanation, self.detail_style))
            story.append(Spacer(1, 5 * mm))

        if ReportSection.BIAS in sections and report.question_bias is not None:
            bias = report.question_bias
            self._heading(story, "Detección de sesgos en preguntas")
            if bias.biased_questions:
                for index, question in enumerate(bias.biased_questions, start=1):
                    story.append(CondPageBreak(12 * mm))
                    story.append(self._p(f"Pregunta {index}: {question.question_text}", self.item_style))
                    story.append(self._p(f"Motivo: {question.reason}", self.detail_style))
            else:
                story.append(self._p("No se detectaron preguntas potencialmente sesgadas.", self.item_style))
            story.append(self._p("Explicación general:", self.item_style))
            story.append(self._p(bias.explanation, self.detail_style))
            story.append(Spacer(1, 5 * mm))

        if ReportSection.QUESTION_TABLE in sections:
            if story:
                story.append(PageBreak())
            story.append(self._p("Análisis por Pregunta", self.heading_style))
            self._table(
                story,
                ["#", "Tipo", "Promedio", "Desviación", "Calificadas"],
                [
                    [i + 1, q.type, _fmt(q.average_score), _fmt(q.std_dev, 2), q.graded_count]
                    for i, q in enumerate(report.question_analysis)
                ],
                [15 * mm, 35 * mm, 45 * mm, 45 * mm, 40 * mm],
                BLUE,
                striped=False,
            )

        if ReportSection.RANKING_TABLE in sections:
            self._heading(story, "Ranking de Participantes", needed=20 * mm)
            self._table(
                story,
                ["Rank", "Estudiante", "Calificación", "Intentos Fraude", "Tiempo Fuera (min)"],
                [
                    [i + 1, s.full_name, _fmt(s.score), s.fraud_attempts, f"{s.time_outside_eval / 60:.1f}"]
                    for i, s in enumerate(report.submissions)
                ],
                [15 * mm, 65 * mm, 30 * mm, 30 * mm, 40 * mm],
                BLUE,
            )

        if ReportSection.PARTICIPATION_TABLE in sections:
            self._heading(story, "Tabla de participación y compromiso")
            if report.participation is not None:
                story.append(self._p(report.participation.summary, self.body_style))
                for highlight in report.participation.highlights:
                    story.append(self._p(f"- {highlight}", self.item_style))
                story.append(Spacer(1, 3 * mm))
            self._table(
                story,
                ["Estudiante", "Calificación", "Intentos Fraude", "Tiempo fuera (min)"],
                [
                    [s.full_name, _fmt(s.score), s.fraud_attempts, f"{s.time_outside_eval / 60:.1f}"]
                    for s in report.submissions
                ],
                [80 * mm, 30 * mm, 30 * mm, 40 * mm],
                BLUE,
            )

        plagiarism_tables = (
            (ReportSection.TEXT_PLAGIARISM_TABLE, report.plagiarism_text,
             "Tabla de plagio/similitud en preguntas de texto", RED),
            (ReportSection.CODE_PLAGIARISM_TABLE, report.plagiarism_code,
             "Tabla de plagio/similitud en preguntas de código", INDIGO),
        )
        for section, result, title, color in plagiarism_tables:
            if section in sections and result is not None and result.pairs:
                self._heading(story, title)
                if result.summary:
                    story.append(self._p(result.summary, self.body_style))
                    story.append(Spacer(1, 2 * mm))
                self._table(
                    story,
                    ["Estudiante A", "Estudiante B", "Pregunta", "Similitud"],
                    self._plagiarism_rows(report, result.pairs),
                    [55 * mm, 55 * mm, 40 * mm, 30 * mm],
                    color,
                )

        if analysis.top_students:
            self._list_section(story, "Estudiantes Destacados", analysis.top_students)
        if analysis.students_to_improve:
            self._list_section(story, "Estudiantes a Mejorar", analysis.students_to_improve)

        if ReportSection.GENERAL in sections:
            self._heading(story, "Recomendaciones", self.subheading_style)
            story.append(self._p(analysis.recommendations, self.body_style))
            story.append(Spacer(1, 10 * mm))
            if analysis.conclusions:
                self._heading(story, "Conclusiones", self.subheading_style)
                story.append(self._p(analysis.conclusions, self.body_style))
                story.append(Spacer(1, 10 * mm))

        if report.personalized_recommendations:
            self._heading(story, "Recomendaciones Personalizadas por Estudiante")
            for recommendation in report.personalized_recommendations:
                story.append(CondPageBreak(20 * mm))
                story.append(self._p(f"Estudiante: {recommendation.student_name}", self.item_style))
                story.append(self._p(recommendation.recommendations, self.detail_style))
                story.append(Spacer(1, 5 * mm))

        if ReportSection.SENTIMENT in sections and report.sentiment is not None:
            sentiment = report.sentiment
            self._heading(story, "Análisis de Sentimiento en Respuestas Abiertas")
            story.append(self._p(sentiment.summary, self.body_style))
            story.append(Spacer(1, 5 * mm))
            if sentiment.relevant_cases:
                self._table(
                    story,
                    ["Estudiante", "Sentimiento", "Cita Relevante", "Explicación"],
                    [[c.student_name, c.sentiment, c.quote, c.explanation] for c in sentiment.relevant_cases],
                    [35 * mm, 25 * mm, 60 * mm, 60 * mm],
                    BLUE,
                )

        if not story:
            story.append(self._p(f"Reporte de Análisis IA: {report.evaluation_title}", self.title_style))
            story.append(self._p("No se seleccionaron secciones para el reporte.", self.body_style))

        return story

    def render(self, report: ReportData) -> bytes:
        """
        Dibuja el reporte.

        Returns:
            Contenido del PDF
        """
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            leftMargin=LEFT_MARGIN,
            rightMargin=PAGE_WIDTH - LEFT_MARGIN - TEXT_WIDTH,
            topMargin=TOP_MARGIN,
            bottomMargin=BOTTOM_MARGIN,
            title=f"Reporte de Análisis IA: {report.evaluation_title}",
        )
        doc.build(self.build_story(report))
        pdf = buffer.getvalue()
        self.last_page_count = doc.page

        metrics.reports_generated_total.inc()
        logger.info(
            "Report rendered",
            extra={
                "evaluation_title": report.evaluation_title,
                "sections": [s.value for s in report.sections],
                "bytes": len(pdf),
                "pages": self.last_page_count,
            },
        )
        return pdf
