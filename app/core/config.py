"""Configuración central de la aplicación (Pydantic Settings).

- Carga variables desde .env en la raíz del repo.
- Agrupa ajustes por área: App, CORS, Mongo, Auth/JWT, Argon2, Rate limit, Storage.
"""
from datetime import timedelta
from pathlib import Path
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resuelve el .env ubicado en la raíz (independiente del CWD)
ENV_FILE = Path(__file__).resolve().parents[2] / ".env"


class AuthConfig(BaseModel):
    """Secretos y expiraciones de los tokens, inyectados explícitamente."""

    model_config = ConfigDict(frozen=True)

    access_secret: Optional[str]
    access_ttl: timedelta
    refresh_secret: Optional[str]
    refresh_ttl: timedelta
    algorithm: str = "HS256"


class Settings(BaseSettings):
    """Conjunto de variables de configuración con valores por defecto razonables.

    Nota: los valores pueden sobreescribirse vía variables de entorno (.env).
    """
    # App
    app_name: str = "VidTube API"
    api_prefix: str = "/api/v1"
    log_level: str = "INFO"

    # CORS
    cors_origins: list[str] = ["http://localhost:5173", "http://127.0.0.1:5173"]
    cors_allow_any: bool = False

    # Mongo
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_db: str = "vidtube"
    mongo_tls: bool = False
    # TLS relax options (dev only)
    mongo_tls_insecure: bool = False
    mongo_tls_allow_invalid_hostnames: bool = False

    # Auth / JWT (secretos distintos para access y refresh)
    access_token_secret: str | None = Field(
        None,
        validation_alias=AliasChoices("ACCESS_TOKEN_SECRET", "VIDTUBE_ACCESS_TOKEN_SECRET"),
    )
    access_token_expire_minutes: int = 60 * 24
    refresh_token_secret: str | None = Field(
        None,
        validation_alias=AliasChoices("REFRESH_TOKEN_SECRET", "VIDTUBE_REFRESH_TOKEN_SECRET"),
    )
    refresh_token_expire_days: int = 10
    jwt_algorithm: str = "HS256"

    # Cookies de sesión (accessToken / refreshToken)
    cookie_secure: bool = True
    cookie_samesite: str = "lax"

    # Argon2id
    argon2_time_cost: int = 2
    argon2_memory_cost: int = 51200
    argon2_parallelism: int = 2

    # Rate limit de login (por IP)
    login_rate_per_min: int = 10

    # Storage (R2)
    r2_bucket: str | None = None
    r2_endpoint: str | None = None
    r2_region: str = "auto"
    r2_access_key: str | None = None
    r2_secret_key: str | None = None
    r2_public_base_url: str | None = None

    # --- Utilidades derivadas / helpers ---
    @property
    def api_prefix_normalized(self) -> str:
        """Devuelve `api_prefix` con formato consistente.

        - Siempre inicia con '/'
        - Sin '/' final (excepto cuando es solo '/')
        - Si está vacío, devuelve ""
        """
        pref = (self.api_prefix or "").strip()
        if not pref:
            return ""
        if not pref.startswith('/'):
            pref = '/' + pref
        if len(pref) > 1 and pref.endswith('/'):
            pref = pref[:-1]
        return pref

    @property
    def storage_configured(self) -> bool:
        return bool(self.r2_bucket and self.r2_access_key and self.r2_secret_key)

    def auth_config(self) -> AuthConfig:
        """Construye la configuración de tokens que se inyecta en codec y sesiones."""
        return AuthConfig(
            access_secret=self.access_token_secret,
            access_ttl=timedelta(minutes=self.access_token_expire_minutes),
            refresh_secret=self.refresh_token_secret,
            refresh_ttl=timedelta(days=self.refresh_token_expire_days),
            algorithm=self.jwt_algorithm,
        )

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # no fallar si hay variables no usadas
        populate_by_name=True,
    )


settings = Settings()
