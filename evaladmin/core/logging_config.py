"""
Logging configuration

Todos los módulos usan `logging.getLogger(__name__)` y pasan contexto
estructurado con `extra={...}`. Este módulo sólo configura handlers y niveles.
"""
import logging
import logging.config
import os
from typing import Optional

DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def setup_logging(level: Optional[str] = None) -> None:
    """
    Configura el logging de la aplicación.

    Args:
        level: Nivel de log (DEBUG, INFO, ...). Si no se indica se lee LOG_LEVEL (default INFO)
    """
    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {"format": DEFAULT_FORMAT},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
            },
        },
        "loggers": {
            "evaladmin": {"level": level},
            # SQL echo is controlled by DATABASE_ECHO, keep the engine logger quiet otherwise
            "sqlalchemy.engine": {"level": "WARNING"},
            "httpx": {"level": "WARNING"},
        },
        "root": {"level": "WARNING", "handlers": ["console"]},
    })

    logging.getLogger(__name__).debug("Logging configured", extra={"level": level})
