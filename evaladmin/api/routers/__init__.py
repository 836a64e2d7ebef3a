"""
Routers de la API
"""
from .attempts import router as attempts_router
from .evaluations import router as evaluations_router
from .metrics import router as metrics_router

__all__ = ["attempts_router", "evaluations_router", "metrics_router"]
