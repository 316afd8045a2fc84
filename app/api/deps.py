"""
Dependencias reutilizables para routers (FastAPI Depends).

- Construcción de repositorios/servicios sobre la DB asíncrona.
- Autenticación: extrae y valida el access token (cookie o Bearer) y carga la cuenta.
- Mantener esta capa delgada: sin lógica de negocio pesada.
"""
from functools import lru_cache
from typing import Any, Dict, Optional

from fastapi import Depends, Request

from app.core import errors
from app.core.config import AuthConfig, settings
from app.infrastructure.db.mongo_async import get_async_db
from app.infrastructure.security import token_codec
from app.infrastructure.security.passwords import Argon2PasswordHasher
from app.infrastructure.storage.r2 import ObjectStorage
from app.repositories.like_repo import LikeRepository
from app.repositories.subscription_repo import SubscriptionRepository
from app.repositories.user_repo import UserRepository, public_account
from app.repositories.video_repo import VideoRepository
from app.repositories.watch_history_repo import WatchHistoryRepository
from app.services.session_manager import SessionManager

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"


def get_db():
    return get_async_db()


def get_user_repo(db=Depends(get_db)) -> UserRepository:
    return UserRepository(db)


def get_video_repo(db=Depends(get_db)) -> VideoRepository:
    return VideoRepository(db)


def get_subscription_repo(db=Depends(get_db)) -> SubscriptionRepository:
    return SubscriptionRepository(db)


def get_like_repo(db=Depends(get_db)) -> LikeRepository:
    return LikeRepository(db)


def get_watch_history_repo(db=Depends(get_db)) -> WatchHistoryRepository:
    return WatchHistoryRepository(db)


@lru_cache
def get_password_hasher() -> Argon2PasswordHasher:
    return Argon2PasswordHasher(
        time_cost=settings.argon2_time_cost,
        memory_cost=settings.argon2_memory_cost,
        parallelism=settings.argon2_parallelism,
    )


@lru_cache
def get_storage() -> ObjectStorage:
    return ObjectStorage(settings)


def get_auth_config() -> AuthConfig:
    return settings.auth_config()


def get_session_manager(
    users: UserRepository = Depends(get_user_repo),
    hasher: Argon2PasswordHasher = Depends(get_password_hasher),
    config: AuthConfig = Depends(get_auth_config),
) -> SessionManager:
    return SessionManager(users, hasher, config)


def extract_bearer(request: Request) -> Optional[str]:
    """Cookie `accessToken` primero; si no, `Authorization: Bearer <token>`."""
    token = request.cookies.get(ACCESS_COOKIE)
    if token:
        return token
    authorization = request.headers.get("Authorization") or ""
    if authorization.startswith("Bearer "):
        return authorization.split(" ", 1)[1].strip() or None
    return None


async def verify_request(
    request: Request,
    users: UserRepository = Depends(get_user_repo),
    config: AuthConfig = Depends(get_auth_config),
) -> Dict[str, Any]:
    token = extract_bearer(request)
    if not token:
        raise errors.Unauthorized("Unauthorized request")
    try:
        payload = token_codec.verify(token, config.access_secret, config.algorithm)
    except token_codec.TokenExpired as e:
        raise errors.Unauthorized("Access token expired") from e
    except token_codec.TokenError as e:
        raise errors.Unauthorized("Invalid access token") from e
    except token_codec.TokenConfigError as e:
        raise errors.InternalError("Something went wrong while verifying tokens") from e

    account = await users.find_by_id(payload.get("_id"), public=True)
    if not account:
        raise errors.Unauthorized("Invalid Access Token")

    user = public_account(account)
    request.state.user = user
    return user


async def optional_user(
    request: Request,
    users: UserRepository = Depends(get_user_repo),
    config: AuthConfig = Depends(get_auth_config),
) -> Optional[Dict[str, Any]]:
    """Igual que verify_request pero sin exigir sesión (listados públicos)."""
    if not extract_bearer(request):
        return None
    try:
        return await verify_request(request, users, config)
    except errors.Unauthorized:
        return None
