"""
Excepciones HTTP con código de error para el envelope de respuesta.
"""
from typing import Any, Optional

from fastapi import HTTPException, status


class ApiError(HTTPException):
    """HTTPException que además transporta un código de error y datos opcionales."""

    def __init__(
        self,
        status_code: int,
        message: str,
        error: Optional[str] = None,
        data: Any = None,
        headers: Optional[dict] = None,
    ):
        super().__init__(status_code=status_code, detail=message, headers=headers)
        self.error = error
        self.data = data


class AuthenticationError(ApiError):
    def __init__(self, message: str = "No autenticado", error: str = "unauthenticated"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            message=message,
            error=error,
            headers={"WWW-Authenticate": "Bearer"},
        )


class AuthorizationError(ApiError):
    def __init__(self, message: str = "No tiene permisos para acceder a este recurso", error: str = "forbidden"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, message=message, error=error)


class UpstreamError(ApiError):
    """El servicio de envío a SUNAT respondió con un error de negocio."""

    def __init__(self, message: str, error_code: Optional[str] = None, data: Any = None):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            message=message,
            error=error_code or "UNKNOWN",
            data=data,
        )
