"""
Constantes compartidas y helpers de tiempo
"""
from datetime import datetime, timezone
from typing import Optional


# Attempts
UNIQUE_CODE_MAX_LENGTH = 8

# Listados
MAX_PAGE_LIMIT = 500

# Export
EXPORT_FILENAME_SUFFIX = "_evaluacion.json"
EXPORT_FILENAME_FALLBACK = "evaluacion"
REPORT_FILENAME_PREFIX = "reporte_ia_"


def utc_now() -> datetime:
    """Timestamp actual en UTC, sin tzinfo (formato de almacenamiento)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Normaliza un datetime al formato de almacenamiento (UTC naive).

    Los valores con tzinfo se convierten a UTC; los naive se asumen ya en UTC.

    Args:
        value: datetime a normalizar (o None)

    Returns:
        datetime naive en UTC, o None
    """
    if value is None:
        return None
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value
