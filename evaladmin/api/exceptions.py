"""
Excepciones personalizadas para la API REST

Los servicios lanzan estas excepciones directamente; el handler registrado en
api/main.py las serializa como:

    {"success": false, "error": {"code": "...", "message": "...", "details": {...}}}
"""
from typing import Any, Dict, Optional
from fastapi import HTTPException, status


class EvalAdminAPIException(HTTPException):
    """Excepción base para la API de EvalAdmin"""

    def __init__(
        self,
        status_code: int,
        detail: str,
        headers: Optional[Dict[str, str]] = None,
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code
        self.extra = extra or {}


class ValidationError(EvalAdminAPIException):
    """Valores de campos inválidos (ventana horaria, código, tipo de pregunta...)"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=message,
            error_code="VALIDATION_ERROR",
            extra=details or {}
        )


class NotFoundError(EvalAdminAPIException):
    """Registro inexistente"""

    def __init__(self, resource: str, resource_id: Any):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{resource} '{resource_id}' not found",
            error_code=f"{resource.upper()}_NOT_FOUND",
            extra={"resource": resource, "id": resource_id}
        )


class ConflictError(EvalAdminAPIException):
    """Conflicto con el estado actual (código duplicado, dependencias existentes)"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=message,
            error_code="CONFLICT",
            extra=details or {}
        )


class GenerationError(EvalAdminAPIException):
    """
    Falla del servicio de IA (error de red, respuesta vacía o inválida).

    El mensaje es para el usuario; la causa original sólo se loguea.
    """

    DEFAULT_MESSAGE = "No se pudo generar el contenido con IA. Por favor, inténtelo de nuevo."

    def __init__(self, message: Optional[str] = None, operation: Optional[str] = None):
        super().__init__(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=message or self.DEFAULT_MESSAGE,
            error_code="GENERATION_FAILED",
            extra={"operation": operation} if operation else {}
        )


class ExportError(EvalAdminAPIException):
    """El registro de origen no existe al momento de exportar"""

    def __init__(self, resource: str, resource_id: Any):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Cannot export {resource} '{resource_id}': record not found",
            error_code="EXPORT_FAILED",
            extra={"resource": resource, "id": resource_id}
        )
