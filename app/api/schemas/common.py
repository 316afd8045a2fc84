"""Envelope estándar de respuesta: `{statusCode, data, message, success}`."""
from typing import Any

from pydantic import BaseModel, model_validator


class ApiResponse(BaseModel):
    statusCode: int = 200
    data: Any = None
    message: str = "Success"
    success: bool = True

    @model_validator(mode="after")
    def _derive_success(self):
        self.success = self.statusCode < 400
        return self


def ok(data: Any = None, message: str = "Success", status_code: int = 200) -> ApiResponse:
    return ApiResponse(statusCode=status_code, data=data, message=message)
