"""
Errores de API estructurados (status code + mensaje + detalle opcional).

Los servicios lanzan estas excepciones; `app.core.exceptions` las convierte
en la respuesta estándar `{statusCode, data, message, success, errors}`.
"""
from typing import Any, List, Optional


class ApiError(Exception):
    status_code = 500
    default_message = "Something went wrong"

    def __init__(self, message: Optional[str] = None, errors: Optional[List[Any]] = None, status_code: Optional[int] = None):
        self.message = message or self.default_message
        self.errors = list(errors or [])
        if status_code is not None:
            self.status_code = status_code
        self.data = None
        self.success = False
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.status_code}, {self.message!r})"


class ValidationError(ApiError):
    status_code = 400
    default_message = "Invalid request"


class Unauthorized(ApiError):
    status_code = 401
    default_message = "Unauthorized request"


class Forbidden(ApiError):
    status_code = 403
    default_message = "Forbidden"


class NotFound(ApiError):
    status_code = 404
    default_message = "Resource not found"


class Conflict(ApiError):
    status_code = 409
    default_message = "Resource already exists"


class TooManyRequests(ApiError):
    status_code = 429
    default_message = "Too many attempts, wait a moment"


class InternalError(ApiError):
    status_code = 500
    default_message = "Something went wrong"
