"""
Prometheus metrics

Métricas expuestas en GET /metrics (ver api/routers/metrics.py).
"""
from prometheus_client import Counter, Histogram

attempts_scheduled_total = Counter(
    "evaladmin_attempts_scheduled_total",
    "Presentaciones agendadas",
)

attempts_deleted_total = Counter(
    "evaladmin_attempts_deleted_total",
    "Presentaciones eliminadas",
    ["forced"],
)

evaluations_imported_total = Counter(
    "evaladmin_evaluations_imported_total",
    "Evaluaciones importadas desde JSON",
)

llm_requests_total = Counter(
    "evaladmin_llm_requests_total",
    "Llamadas al proveedor LLM",
    ["provider", "status"],
)

llm_call_duration_seconds = Histogram(
    "evaladmin_llm_call_duration_seconds",
    "Duración de llamadas al proveedor LLM",
    ["provider"],
    buckets=(0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
)

generation_failures_total = Counter(
    "evaladmin_generation_failures_total",
    "Fallos de generación con IA expuestos al usuario",
    ["operation"],
)

reports_generated_total = Counter(
    "evaladmin_reports_generated_total",
    "Reportes PDF generados",
)
