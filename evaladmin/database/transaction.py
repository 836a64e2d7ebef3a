"""
Transaction management

Los métodos de los repositorios hacen commit inmediatamente. Para operaciones
que deben ser atómicas (importar una evaluación con sus preguntas, borrar una
presentación con sus entregas) se usa `transaction()`:

    with transaction(db, "Import evaluation"):
        db.add(evaluation)
        db.add_all(questions)
"""
import logging
from contextlib import contextmanager
from typing import Generator

from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


@contextmanager
def transaction(db: Session, description: str = "transaction") -> Generator[Session, None, None]:
    """
    Commit al salir sin errores, rollback y re-raise en caso contrario.

    Args:
        db: Sesión SQLAlchemy
        description: Texto para los logs
    """
    try:
        yield db
        db.commit()
        logger.debug("Transaction committed", extra={"description": description})
    except Exception as e:
        db.rollback()
        logger.error(
            f"Transaction rolled back: {description}: {e}",
            extra={"description": description, "error_type": type(e).__name__},
        )
        raise
