"""
Router de evaluaciones y preguntas

Incluye export/import JSON y generación de enunciados con IA.
"""
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Query, status
from fastapi.responses import JSONResponse

from ...core.constants import MAX_PAGE_LIMIT
from ...database.models import EvaluationDB, QuestionDB
from ...database.repositories import (
    AnswerRepository,
    AttemptRepository,
    EvaluationRepository,
    QuestionRepository,
)
from ...models.evaluation import check_question_language
from ...services.evaluation_transfer import EvaluationTransfer, export_filename
from ...services.question_generator import QuestionGenerator
from ..deps import (
    get_evaluation_repository,
    get_evaluation_transfer,
    get_question_generator,
    get_question_repository,
)
from ..exceptions import ConflictError, NotFoundError, ValidationError
from ..schemas.common import APIResponse
from ..schemas.evaluations import (
    EvaluationCreate,
    EvaluationDetailResponse,
    EvaluationResponse,
    EvaluationUpdate,
    GenerateQuestionRequest,
    GeneratedQuestionResponse,
    QuestionCreate,
    QuestionResponse,
    QuestionUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Evaluations"])


def _get_evaluation_or_404(
    evaluation_repo: EvaluationRepository,
    evaluation_id: int,
    load_questions: bool = False,
) -> EvaluationDB:
    evaluation = evaluation_repo.get_by_id(evaluation_id, load_questions=load_questions)
    if evaluation is None:
        raise NotFoundError("evaluation", evaluation_id)
    return evaluation


def _get_question_or_404(question_repo: QuestionRepository, question_id: int) -> QuestionDB:
    question = question_repo.get_by_id(question_id)
    if question is None:
        raise NotFoundError("question", question_id)
    return question


# =============================================================================
# EVALUACIONES
# =============================================================================

@router.get(
    "/evaluations",
    response_model=APIResponse[List[EvaluationResponse]],
    summary="Listar evaluaciones",
    description="Evaluaciones ordenadas por fecha de creación (más recientes primero)",
)
async def list_evaluations(
    limit: Optional[int] = Query(None, ge=1, le=MAX_PAGE_LIMIT, description="Sin limit se devuelven todas"),
    offset: int = Query(0, ge=0),
    evaluation_repo: EvaluationRepository = Depends(get_evaluation_repository),
) -> APIResponse[List[EvaluationResponse]]:
    evaluations = evaluation_repo.get_all(limit=limit, offset=offset)
    return APIResponse(
        success=True,
        message=f"Retrieved {len(evaluations)} evaluations",
        data=[EvaluationResponse.model_validate(e) for e in evaluations],
    )


@router.post(
    "/evaluations",
    response_model=APIResponse[EvaluationDetailResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Crear evaluación",
    description="Crea una evaluación, opcionalmente con sus preguntas (una sola transacción)",
)
async def create_evaluation(
    payload: EvaluationCreate,
    evaluation_repo: EvaluationRepository = Depends(get_evaluation_repository),
) -> APIResponse[EvaluationDetailResponse]:
    evaluation = evaluation_repo.create_with_questions(
        title=payload.title,
        description=payload.description,
        help_url=payload.help_url,
        questions=[
            {"text": q.text, "type": q.type.value, "language": q.language, "answer": q.answer}
            for q in payload.questions
        ],
    )
    logger.info("Evaluation created", extra={"evaluation_id": evaluation.id})
    return APIResponse(
        success=True,
        message="Evaluation created",
        data=EvaluationDetailResponse.model_validate(evaluation),
    )


@router.post(
    "/evaluations/import",
    response_model=APIResponse[EvaluationDetailResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Importar evaluación",
    description="Crea una evaluación a partir de un documento JSON exportado",
)
async def import_evaluation(
    document: Dict[str, Any] = Body(..., description="Documento {title, description, helpUrl, questions}"),
    transfer: EvaluationTransfer = Depends(get_evaluation_transfer),
) -> APIResponse[EvaluationDetailResponse]:
    evaluation = transfer.import_evaluation(document)
    return APIResponse(
        success=True,
        message=f"Evaluation imported with {len(evaluation.questions)} questions",
        data=EvaluationDetailResponse.model_validate(evaluation),
    )


@router.post(
    "/evaluations/generate-question",
    response_model=APIResponse[GeneratedQuestionResponse],
    summary="Generar enunciado con IA",
    description="Redacta una pregunta en Markdown a partir de una solicitud libre",
)
async def generate_question(
    payload: GenerateQuestionRequest,
    generator: QuestionGenerator = Depends(get_question_generator),
) -> APIResponse[GeneratedQuestionResponse]:
    text = await generator.generate(payload.prompt, payload.type.value, payload.language)
    return APIResponse(
        success=True,
        message="Question generated",
        data=GeneratedQuestionResponse(text=text, type=payload.type, language=payload.language),
    )


@router.get(
    "/evaluations/{evaluation_id}",
    response_model=APIResponse[EvaluationDetailResponse],
    summary="Obtener evaluación",
)
async def get_evaluation(
    evaluation_id: int,
    evaluation_repo: EvaluationRepository = Depends(get_evaluation_repository),
) -> APIResponse[EvaluationDetailResponse]:
    evaluation = _get_evaluation_or_404(evaluation_repo, evaluation_id, load_questions=True)
    return APIResponse(
        success=True,
        data=EvaluationDetailResponse.model_validate(evaluation),
    )


@router.patch(
    "/evaluations/{evaluation_id}",
    response_model=APIResponse[EvaluationResponse],
    summary="Editar evaluación",
)
async def update_evaluation(
    evaluation_id: int,
    payload: EvaluationUpdate,
    evaluation_repo: EvaluationRepository = Depends(get_evaluation_repository),
) -> APIResponse[EvaluationResponse]:
    evaluation = _get_evaluation_or_404(evaluation_repo, evaluation_id)
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("title", "") is None:
        raise ValidationError("title must not be empty", {"field": "title"})
    if changes:
        evaluation = evaluation_repo.update(evaluation, **changes)
    return APIResponse(
        success=True,
        message="Evaluation updated",
        data=EvaluationResponse.model_validate(evaluation),
    )


@router.delete(
    "/evaluations/{evaluation_id}",
    response_model=APIResponse[None],
    summary="Borrar evaluación",
    description="Borra la evaluación y sus preguntas. Se rechaza si tiene presentaciones agendadas.",
)
async def delete_evaluation(
    evaluation_id: int,
    evaluation_repo: EvaluationRepository = Depends(get_evaluation_repository),
) -> APIResponse[None]:
    evaluation = _get_evaluation_or_404(evaluation_repo, evaluation_id)

    attempt_count = AttemptRepository(evaluation_repo.db).count_by_evaluation(evaluation_id)
    if attempt_count:
        raise ConflictError(
            "Evaluation has scheduled attempts; delete them first",
            {"evaluation_id": evaluation_id, "attempt_count": attempt_count},
        )

    evaluation_repo.delete(evaluation)
    logger.info("Evaluation deleted", extra={"evaluation_id": evaluation_id})
    return APIResponse(success=True, message="Evaluation deleted")


@router.get(
    "/evaluations/{evaluation_id}/export",
    summary="Exportar evaluación",
    description="Descarga la evaluación como documento JSON portable (sin ids ni fechas)",
)
async def export_evaluation(
    evaluation_id: int,
    transfer: EvaluationTransfer = Depends(get_evaluation_transfer),
) -> JSONResponse:
    document = transfer.export_evaluation(evaluation_id)
    return JSONResponse(
        content=document.model_dump(mode="json", by_alias=True),
        headers={
            "Content-Disposition": f'attachment; filename="{export_filename(document.title)}"'
        },
    )


# =============================================================================
# PREGUNTAS
# =============================================================================

@router.get(
    "/evaluations/{evaluation_id}/questions",
    response_model=APIResponse[List[QuestionResponse]],
    summary="Listar preguntas de una evaluación",
)
async def list_questions(
    evaluation_id: int,
    evaluation_repo: EvaluationRepository = Depends(get_evaluation_repository),
    question_repo: QuestionRepository = Depends(get_question_repository),
) -> APIResponse[List[QuestionResponse]]:
    _get_evaluation_or_404(evaluation_repo, evaluation_id)
    questions = question_repo.get_by_evaluation(evaluation_id)
    return APIResponse(
        success=True,
        data=[QuestionResponse.model_validate(q) for q in questions],
    )


@router.post(
    "/evaluations/{evaluation_id}/questions",
    response_model=APIResponse[QuestionResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Agregar pregunta",
)
async def create_question(
    evaluation_id: int,
    payload: QuestionCreate,
    evaluation_repo: EvaluationRepository = Depends(get_evaluation_repository),
    question_repo: QuestionRepository = Depends(get_question_repository),
) -> APIResponse[QuestionResponse]:
    _get_evaluation_or_404(evaluation_repo, evaluation_id)
    question = question_repo.create(
        evaluation_id=evaluation_id,
        text=payload.text,
        type=payload.type.value,
        language=payload.language,
        answer=payload.answer,
    )
    return APIResponse(
        success=True,
        message="Question created",
        data=QuestionResponse.model_validate(question),
    )


@router.patch(
    "/questions/{question_id}",
    response_model=APIResponse[QuestionResponse],
    summary="Editar pregunta",
)
async def update_question(
    question_id: int,
    payload: QuestionUpdate,
    question_repo: QuestionRepository = Depends(get_question_repository),
) -> APIResponse[QuestionResponse]:
    question = _get_question_or_404(question_repo, question_id)
    changes = payload.model_dump(exclude_unset=True)
    if "type" in changes:
        if changes["type"] is None:
            raise ValidationError("type must not be null", {"field": "type"})
        changes["type"] = changes["type"].value
    if "text" in changes and changes["text"] is None:
        raise ValidationError("text must not be null", {"field": "text"})

    try:
        check_question_language(
            changes.get("type", question.type),
            changes.get("language", question.language),
        )
    except ValueError as e:
        raise ValidationError(str(e), {"field": "language"}) from e

    if changes:
        question = question_repo.update(question, **changes)
    return APIResponse(
        success=True,
        message="Question updated",
        data=QuestionResponse.model_validate(question),
    )


@router.delete(
    "/questions/{question_id}",
    response_model=APIResponse[None],
    summary="Borrar pregunta",
    description="Se rechaza si ya existen respuestas de estudiantes a la pregunta",
)
async def delete_question(
    question_id: int,
    question_repo: QuestionRepository = Depends(get_question_repository),
) -> APIResponse[None]:
    question = _get_question_or_404(question_repo, question_id)

    answer_count = AnswerRepository(question_repo.db).count_by_question(question_id)
    if answer_count:
        raise ConflictError(
            "Question already has answers",
            {"question_id": question_id, "answer_count": answer_count},
        )

    question_repo.delete(question)
    return APIResponse(success=True, message="Question deleted")
