"""
Esquemas Pydantic para la colección `user`.

Reglas clave:
- Campos en snake_case.
- `username` y `email` se guardan siempre en minúsculas.
- La respuesta pública nunca incluye `password_hash` ni `refresh_token`.
- Timestamps en ISO-8601 UTC.
"""

from typing import Optional
from pydantic import AliasChoices, BaseModel, Field


class AccountOut(BaseModel):
    """Respuesta pública de cuenta (sin secretos)."""
    id: str
    username: str
    email: str
    full_name: str
    avatar: Optional[str] = ""
    cover_image: Optional[str] = ""
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class AccountUpdate(BaseModel):
    full_name: Optional[str] = Field(None, validation_alias=AliasChoices("full_name", "fullName"))
    email: Optional[str] = None
