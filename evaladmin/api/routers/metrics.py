"""
Endpoint de Prometheus Metrics.

Endpoint:
- GET /metrics - Métricas en formato Prometheus (ver core/metrics.py)
"""
import logging

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Monitoring"])


@router.get(
    "/metrics",
    summary="Prometheus Metrics",
    description="""
    Expone métricas del sistema en formato Prometheus.

    **Métricas disponibles**:
    - `evaladmin_attempts_scheduled_total` - Presentaciones agendadas
    - `evaladmin_attempts_deleted_total` - Presentaciones eliminadas
    - `evaladmin_evaluations_imported_total` - Evaluaciones importadas
    - `evaladmin_llm_requests_total` - Llamadas al proveedor LLM
    - `evaladmin_llm_call_duration_seconds` - Latencia de llamadas LLM
    - `evaladmin_generation_failures_total` - Fallos de generación con IA
    - `evaladmin_reports_generated_total` - Reportes PDF generados
    """,
    response_class=Response,
    responses={200: {"description": "Métricas en formato Prometheus", "content": {"text/plain": {}}}},
)
async def get_metrics() -> Response:
    """
    Expone métricas de Prometheus para scraping.

    Returns:
        Response con métricas en formato text/plain
    """
    metrics_output = generate_latest()
    logger.debug("Exported Prometheus metrics", extra={"size_bytes": len(metrics_output)})
    return Response(content=metrics_output, media_type=CONTENT_TYPE_LATEST)
