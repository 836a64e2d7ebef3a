"""
Schedule Analyzer - Analítica de presentaciones con IA

Para cada análisis pedido se envía un prompt que exige JSON, y la respuesta se
valida contra el modelo pydantic correspondiente antes de devolverla. Una
respuesta que no parsea o no valida corta la operación con GenerationError.

Uso:
    analyzer = ScheduleAnalyzer(db, llm_provider)
    result = await analyzer.analyze(attempt_id, [AnalysisKind.GENERAL, AnalysisKind.RISK])
"""
import json
import logging
import re
from typing import Any, Dict, Iterable, List, Type

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from ..api.exceptions import GenerationError, NotFoundError
from ..core import metrics
from ..database.repositories import AttemptRepository, SubmissionRepository
from ..llm.base import LLMMessage, LLMProvider, LLMRole
from ..models.analytics import (
    AnalysisKind,
    AttemptAnalysis,
    ParticipationAnalysisResult,
    PersonalizedRecommendationsResult,
    PlagiarismAnalysisResult,
    QuestionBiasAnalysisResult,
    RiskPredictionResult,
    ScheduleAnalysisResult,
    SentimentAnalysisResult,
)
from .submission_aggregator import SubmissionAggregator

logger = logging.getLogger(__name__)

_JSON_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)

SYSTEM_PROMPT = (
    "Eres un analista pedagógico experto en evaluaciones académicas. "
    "Respondes SOLO con JSON válido, sin texto adicional ni bloques de código."
)

# kind -> (campo en AttemptAnalysis, modelo de respuesta, instrucción + formato)
ANALYSES: Dict[AnalysisKind, tuple] = {
    AnalysisKind.GENERAL: (
        "general",
        ScheduleAnalysisResult,
        """Analiza el desempeño general del grupo en esta presentación.
Formato:
{
  "evaluation_title": "...",
  "overall_summary": "...",
  "strengths": ["..."],
  "areas_for_improvement": ["..."],
  "key_observations": ["..."],
  "recommendations": "...",
  "conclusions": "...",
  "top_students": ["Nombre Apellido"],
  "students_to_improve": ["Nombre Apellido"]
}""",
    ),
    AnalysisKind.RISK: (
        "risk_prediction",
        RiskPredictionResult,
        """Identifica estudiantes en riesgo de bajo rendimiento (puntaje bajo, intentos
de fraude, mucho tiempo fuera de la evaluación).
Formato:
{"at_risk_students": ["Nombre Apellido"], "explanation": "..."}""",
    ),
    AnalysisKind.BIAS: (
        "question_bias",
        QuestionBiasAnalysisResult,
        """Detecta preguntas potencialmente sesgadas o ambiguas a partir de su enunciado
y de la distribución de puntajes.
Formato:
{"biased_questions": [{"question_text": "...", "reason": "..."}], "explanation": "..."}""",
    ),
    AnalysisKind.PARTICIPATION: (
        "participation",
        ParticipationAnalysisResult,
        """Resume la participación y el compromiso de los estudiantes.
Formato:
{"summary": "...", "highlights": ["..."]}""",
    ),
    AnalysisKind.PLAGIARISM_TEXT: (
        "plagiarism_text",
        PlagiarismAnalysisResult,
        """Compara las respuestas a preguntas TEXT entre estudiantes y reporta los pares
con similitud sospechosa (similarity entre 0 y 1).
Formato:
{"pairs": [{"student_a": "...", "student_b": "...", "question_text": "...", "similarity": 0.0}], "summary": "..."}""",
    ),
    AnalysisKind.PLAGIARISM_CODE: (
        "plagiarism_code",
        PlagiarismAnalysisResult,
        """Compara las respuestas a preguntas CODE entre estudiantes (estructura, nombres,
lógica) y reporta los pares con similitud sospechosa (similarity entre 0 y 1).
Formato:
{"pairs": [{"student_a": "...", "student_b": "...", "question_text": "...", "similarity": 0.0}], "summary": "..."}""",
    ),
    AnalysisKind.SENTIMENT: (
        "sentiment",
        SentimentAnalysisResult,
        """Analiza el sentimiento expresado en las respuestas abiertas (TEXT).
Formato:
{"summary": "...", "relevant_cases": [{"student_name": "...", "sentiment": "positivo|neutral|negativo", "quote": "...", "explanation": "..."}]}""",
    ),
    AnalysisKind.RECOMMENDATIONS: (
        "personalized_recommendations",
        PersonalizedRecommendationsResult,
        """Escribe recomendaciones de estudio personalizadas para cada estudiante.
Formato:
{"students": [{"student_name": "Nombre Apellido", "recommendations": "..."}]}""",
    ),
}


def parse_json_response(content: str) -> Any:
    """
    Decodifica el JSON de una respuesta LLM quitando delimitadores ```json.

    Raises:
        ValueError: El contenido no es JSON válido
    """
    text = _JSON_FENCE.sub("", (content or "").strip()).strip()
    if not text:
        raise ValueError("LLM returned empty content")
    return json.loads(text)


class ScheduleAnalyzer:
    """Analítica con IA de una presentación"""

    TEMPERATURE = 0.4
    MAX_TOKENS = 4096
    ANSWER_PREVIEW_CHARS = 600

    def __init__(self, db: Session, llm_provider: LLMProvider):
        self.llm_provider = llm_provider
        self.attempts = AttemptRepository(db)
        self.submissions = SubmissionRepository(db)
        self.aggregator = SubmissionAggregator(db)

    def build_context(self, attempt_id: int) -> Dict[str, Any]:
        """
        Datos de la presentación que se envían al modelo.

        Raises:
            NotFoundError: La presentación no existe
        """
        attempt = self.attempts.get_by_id(attempt_id, load_evaluation=True)
        if attempt is None:
            raise NotFoundError("attempt", attempt_id)

        evaluation = attempt.evaluation
        submissions = self.submissions.get_by_attempt(attempt_id, load_answers=True)

        return {
            "evaluation_title": evaluation.title,
            "evaluation_description": evaluation.description,
            "questions": [
                {"id": q.id, "type": q.type, "language": q.language, "text": q.text}
                for q in evaluation.questions
            ],
            "question_analysis": [
                qa.model_dump() for qa in self.aggregator.analyze_questions(attempt_id)
            ],
            "submissions": [
                {
                    "student": f"{s.first_name} {s.last_name}",
                    "score": s.score,
                    "fraud_attempts": s.fraud_attempts,
                    "time_outside_eval_seconds": s.time_outside_eval,
                    "answers": [
                        {
                            "question_id": a.question_id,
                            "question_type": a.question.type,
                            "score": a.score,
                            "content": (a.content or "")[: self.ANSWER_PREVIEW_CHARS],
                        }
                        for a in s.answers
                    ],
                }
                for s in submissions
            ],
        }

    @staticmethod
    def build_prompt(kind: AnalysisKind, context: Dict[str, Any]) -> str:
        instruction = ANALYSES[kind][2]
        return (
            f"{instruction}\n\n"
            f"Datos de la presentación (JSON):\n"
            f"{json.dumps(context, ensure_ascii=False, indent=2, default=str)}\n\n"
            f"Responde SOLO en formato JSON válido."
        )

    async def _run(self, kind: AnalysisKind, context: Dict[str, Any]) -> BaseModel:
        model: Type[BaseModel] = ANALYSES[kind][1]
        prompt = self.build_prompt(kind, context)

        try:
            response = await self.llm_provider.generate(
                messages=[
                    LLMMessage(role=LLMRole.SYSTEM, content=SYSTEM_PROMPT),
                    LLMMessage(role=LLMRole.USER, content=prompt),
                ],
                temperature=self.TEMPERATURE,
                max_tokens=self.MAX_TOKENS,
            )
            return model.model_validate(parse_json_response(response.content))
        except (ValueError, PydanticValidationError) as e:
            # json.JSONDecodeError es subclase de ValueError
            logger.warning(
                f"Invalid AI analysis response: {e}",
                extra={"kind": kind.value, "error_type": type(e).__name__},
            )
            metrics.generation_failures_total.labels(operation=f"analysis_{kind.value}").inc()
            raise GenerationError(
                "La respuesta del servicio de IA no tiene el formato esperado. Por favor, inténtelo de nuevo.",
                operation=f"analysis_{kind.value}",
            ) from e
        except Exception as e:
            logger.error(
                f"AI analysis failed: {e}",
                exc_info=True,
                extra={"kind": kind.value, "error_type": type(e).__name__},
            )
            metrics.generation_failures_total.labels(operation=f"analysis_{kind.value}").inc()
            raise GenerationError(operation=f"analysis_{kind.value}") from e

    async def analyze(self, attempt_id: int, kinds: Iterable[AnalysisKind]) -> AttemptAnalysis:
        """
        Ejecuta los análisis pedidos, en orden, sobre una presentación.

        Args:
            attempt_id: ID de la presentación
            kinds: Análisis a ejecutar (duplicados se ignoran)

        Returns:
            AttemptAnalysis con los campos pedidos completos

        Raises:
            NotFoundError: La presentación no existe
            GenerationError: Falla del proveedor o respuesta inválida
        """
        requested: List[AnalysisKind] = []
        for kind in kinds:
            kind = AnalysisKind(kind)
            if kind not in requested:
                requested.append(kind)

        context = self.build_context(attempt_id)
        result = AttemptAnalysis(attempt_id=attempt_id)

        logger.info(
            "Running attempt analysis",
            extra={"attempt_id": attempt_id, "kinds": [k.value for k in requested]},
        )

        for kind in requested:
            field = ANALYSES[kind][0]
            parsed = await self._run(kind, context)
            if kind == AnalysisKind.RECOMMENDATIONS:
                result.personalized_recommendations = parsed.students
            else:
                setattr(result, field, parsed)

        return result
