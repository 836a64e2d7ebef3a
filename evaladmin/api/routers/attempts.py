"""
Router de presentaciones (attempts), entregas y analítica
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from ...core.constants import MAX_PAGE_LIMIT
from ...database.models import AttemptDB
from ...database.repositories import SubmissionRepository
from ...models.analytics import AttemptAnalysis, QuestionAnalysis
from ...services.attempt_scheduler import AttemptScheduler
from ...services.report_exporter import ReportExporter
from ...services.schedule_analyzer import ScheduleAnalyzer
from ...services.submission_aggregator import SubmissionAggregator
from ..deps import (
    get_attempt_scheduler,
    get_report_exporter,
    get_schedule_analyzer,
    get_submission_aggregator,
    get_submission_repository,
)
from ..exceptions import NotFoundError
from ..schemas.attempts import (
    AnalysisRequest,
    AttemptCreate,
    AttemptResponse,
    AttemptUpdate,
    ReportRequest,
    SubmissionDetail,
    SubmissionSummary,
)
from ..schemas.common import APIResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Attempts"])


def _to_response(attempt: AttemptDB, submission_count: int) -> AttemptResponse:
    response = AttemptResponse.model_validate(attempt)
    response.evaluation_title = attempt.evaluation.title if attempt.evaluation else None
    response.submission_count = submission_count
    return response


@router.get(
    "/attempts",
    response_model=APIResponse[List[AttemptResponse]],
    summary="Listar presentaciones",
    description="Presentaciones ordenadas por inicio (más recientes primero), con título de la evaluación y cantidad de entregas",
)
async def list_attempts(
    limit: Optional[int] = Query(None, ge=1, le=MAX_PAGE_LIMIT, description="Sin limit se devuelven todas"),
    offset: int = Query(0, ge=0),
    scheduler: AttemptScheduler = Depends(get_attempt_scheduler),
) -> APIResponse[List[AttemptResponse]]:
    rows = scheduler.list(limit=limit, offset=offset)
    return APIResponse(
        success=True,
        message=f"Retrieved {len(rows)} attempts",
        data=[_to_response(attempt, count) for attempt, count in rows],
    )


@router.post(
    "/attempts",
    response_model=APIResponse[AttemptResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Agendar presentación",
)
async def create_attempt(
    payload: AttemptCreate,
    scheduler: AttemptScheduler = Depends(get_attempt_scheduler),
) -> APIResponse[AttemptResponse]:
    attempt = scheduler.create(
        evaluation_id=payload.evaluation_id,
        unique_code=payload.unique_code,
        start_time=payload.start_time,
        end_time=payload.end_time,
        max_submissions=payload.max_submissions,
    )
    return APIResponse(
        success=True,
        message="Attempt scheduled",
        data=_to_response(attempt, 0),
    )


@router.get(
    "/attempts/{attempt_id}",
    response_model=APIResponse[AttemptResponse],
    summary="Obtener presentación",
)
async def get_attempt(
    attempt_id: int,
    scheduler: AttemptScheduler = Depends(get_attempt_scheduler),
) -> APIResponse[AttemptResponse]:
    attempt = scheduler.get(attempt_id)
    return APIResponse(
        success=True,
        data=_to_response(attempt, scheduler.submissions.count_by_attempt(attempt_id)),
    )


@router.patch(
    "/attempts/{attempt_id}",
    response_model=APIResponse[AttemptResponse],
    summary="Editar presentación",
    description="Sólo se aplican los campos enviados; la ventana resultante se valida completa",
)
async def update_attempt(
    attempt_id: int,
    payload: AttemptUpdate,
    scheduler: AttemptScheduler = Depends(get_attempt_scheduler),
) -> APIResponse[AttemptResponse]:
    attempt = scheduler.update(attempt_id, **payload.model_dump(exclude_unset=True))
    return APIResponse(
        success=True,
        message="Attempt updated",
        data=_to_response(attempt, scheduler.submissions.count_by_attempt(attempt_id)),
    )


@router.delete(
    "/attempts/{attempt_id}",
    response_model=APIResponse[None],
    summary="Borrar presentación",
    description="Con entregas existentes requiere `force=true`, que borra también entregas y respuestas",
)
async def delete_attempt(
    attempt_id: int,
    force: bool = Query(False, description="Borrar también las entregas"),
    scheduler: AttemptScheduler = Depends(get_attempt_scheduler),
) -> APIResponse[None]:
    scheduler.delete(attempt_id, force=force)
    return APIResponse(success=True, message="Attempt deleted")


# =============================================================================
# ENTREGAS
# =============================================================================

@router.get(
    "/attempts/{attempt_id}/submissions",
    response_model=APIResponse[List[SubmissionSummary]],
    summary="Entregas de una presentación",
    description="Más recientes primero",
)
async def list_submissions(
    attempt_id: int,
    scheduler: AttemptScheduler = Depends(get_attempt_scheduler),
    submission_repo: SubmissionRepository = Depends(get_submission_repository),
) -> APIResponse[List[SubmissionSummary]]:
    scheduler.get(attempt_id)
    submissions = submission_repo.get_by_attempt(attempt_id)
    return APIResponse(
        success=True,
        data=[SubmissionSummary.model_validate(s) for s in submissions],
    )


@router.get(
    "/submissions/{submission_id}",
    response_model=APIResponse[SubmissionDetail],
    summary="Detalle de una entrega",
)
async def get_submission(
    submission_id: int,
    submission_repo: SubmissionRepository = Depends(get_submission_repository),
) -> APIResponse[SubmissionDetail]:
    submission = submission_repo.get_by_id(submission_id, load_answers=True)
    if submission is None:
        raise NotFoundError("submission", submission_id)
    return APIResponse(success=True, data=SubmissionDetail.model_validate(submission))


# =============================================================================
# ANALÍTICA
# =============================================================================

@router.get(
    "/attempts/{attempt_id}/question-analysis",
    response_model=APIResponse[List[QuestionAnalysis]],
    summary="Puntaje promedio por pregunta",
    description="Sólo considera respuestas calificadas; lista vacía si no hay ninguna",
)
async def get_question_analysis(
    attempt_id: int,
    aggregator: SubmissionAggregator = Depends(get_submission_aggregator),
) -> APIResponse[List[QuestionAnalysis]]:
    return APIResponse(success=True, data=aggregator.analyze_questions(attempt_id))


@router.post(
    "/attempts/{attempt_id}/analysis",
    response_model=APIResponse[AttemptAnalysis],
    summary="Análisis con IA",
    description="Ejecuta los análisis pedidos (general, risk, bias, participation, plagiarism_text, plagiarism_code, sentiment, recommendations)",
)
async def analyze_attempt(
    attempt_id: int,
    payload: AnalysisRequest,
    analyzer: ScheduleAnalyzer = Depends(get_schedule_analyzer),
) -> APIResponse[AttemptAnalysis]:
    analysis = await analyzer.analyze(attempt_id, payload.kinds)
    return APIResponse(success=True, message="Analysis completed", data=analysis)


@router.post(
    "/attempts/{attempt_id}/report",
    response_class=Response,
    summary="Reporte PDF",
    description="Genera el PDF a partir de los resultados de /analysis y las secciones elegidas",
    responses={200: {"content": {"application/pdf": {}}}},
)
async def export_report(
    attempt_id: int,
    payload: ReportRequest,
    exporter: ReportExporter = Depends(get_report_exporter),
) -> Response:
    report = exporter.build_report_data(attempt_id, payload.analysis, payload.sections)
    pdf = exporter.render(report)
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{ReportExporter.filename(report.evaluation_title)}"'
        },
    )
