"""
Esquemas Pydantic para operaciones de autenticación.

- Aceptan snake_case y también camelCase (clientes web existentes).
- La validación de presencia se hace en los servicios (400 con mensaje propio).
"""

from typing import Optional
from pydantic import AliasChoices, BaseModel, Field


class LoginPayload(BaseModel):
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class RefreshPayload(BaseModel):
    refresh_token: Optional[str] = Field(
        None, validation_alias=AliasChoices("refresh_token", "refreshToken")
    )


class ChangePasswordPayload(BaseModel):
    old_password: Optional[str] = Field(
        None, validation_alias=AliasChoices("old_password", "oldPassword")
    )
    new_password: Optional[str] = Field(
        None, validation_alias=AliasChoices("new_password", "newPassword")
    )


class TokenPairOut(BaseModel):
    access_token: str
    refresh_token: str
