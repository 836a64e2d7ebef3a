"""
Aplicación FastAPI de EvalAdmin

Ejecutar:
    uvicorn evaladmin.api.main:app --reload
    python devops/scripts/run_api.py

Environment:
    API_PREFIX: Prefijo de las rutas (default /api/v1)
    CORS_ORIGINS: Orígenes permitidos separados por coma (default *)
    LOG_LEVEL: Nivel de log
"""
import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..core.logging_config import setup_logging
from ..database import get_db_config
from .exceptions import EvalAdminAPIException
from .routers import attempts_router, evaluations_router, metrics_router
from .schemas.common import ErrorDetail, ErrorResponse

logger = logging.getLogger(__name__)

DEFAULT_API_PREFIX = "/api/v1"


def _error_response(status_code: int, code: str, message: str, details: dict) -> JSONResponse:
    body = ErrorResponse(error=ErrorDetail(code=code, message=message, details=details))
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


async def evaladmin_exception_handler(request: Request, exc: EvalAdminAPIException) -> JSONResponse:
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        f"{exc.error_code}: {exc.detail}",
        extra={"path": request.url.path, "status_code": exc.status_code, "error_code": exc.error_code},
    )
    return _error_response(exc.status_code, exc.error_code or "ERROR", exc.detail, exc.extra)


async def request_validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"loc": ".".join(str(part) for part in err["loc"]), "msg": err["msg"]}
        for err in exc.errors()
    ]
    logger.info("Request validation failed", extra={"path": request.url.path, "errors": len(errors)})
    return _error_response(422, "REQUEST_VALIDATION_ERROR", "Invalid request", {"errors": errors})


@asynccontextmanager
async def lifespan(app: FastAPI):
    get_db_config().create_tables()
    logger.info("EvalAdmin API started", extra={"version": __version__})
    yield
    logger.info("EvalAdmin API stopped")


def create_app() -> FastAPI:
    """Construye la aplicación con middlewares, handlers y routers."""
    setup_logging()

    app = FastAPI(
        title="EvalAdmin API",
        description="Administración de evaluaciones, presentaciones y analítica con IA",
        version=__version__,
        lifespan=lifespan,
    )

    origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(EvalAdminAPIException, evaladmin_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)

    prefix = os.getenv("API_PREFIX", DEFAULT_API_PREFIX)
    app.include_router(evaluations_router, prefix=prefix)
    app.include_router(attempts_router, prefix=prefix)
    app.include_router(metrics_router)

    @app.get("/health", tags=["Monitoring"], summary="Health check")
    async def health():
        return {"status": "ok", "version": __version__}

    return app


app = create_app()
