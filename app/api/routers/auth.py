"""Rutas de autenticación: registro, login, refresh, logout y cambio de contraseña."""
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Request, Response, UploadFile, status

from app.api.deps import (
    ACCESS_COOKIE,
    REFRESH_COOKIE,
    get_password_hasher,
    get_session_manager,
    get_storage,
    get_user_repo,
    verify_request,
)
from app.api.schemas.auth import ChangePasswordPayload, LoginPayload, RefreshPayload, TokenPairOut
from app.api.schemas.common import ApiResponse, ok
from app.api.schemas.user import AccountOut
from app.core import errors, rate_limit
from app.core.config import settings
from app.services import account_service
from app.services.session_manager import SessionManager

router = APIRouter(prefix="/users", tags=["Auth"])


def _cookie_options() -> dict:
    return {"httponly": True, "secure": settings.cookie_secure, "samesite": settings.cookie_samesite}


def _set_session_cookies(response: Response, access_token: str, refresh_token: str) -> None:
    opts = _cookie_options()
    response.set_cookie(ACCESS_COOKIE, access_token, max_age=settings.access_token_expire_minutes * 60, **opts)
    response.set_cookie(REFRESH_COOKIE, refresh_token, max_age=settings.refresh_token_expire_days * 86400, **opts)


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else ""


@router.post(
    "/register",
    response_model=ApiResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Registrar cuenta",
    description="Crea la cuenta (multipart) con avatar/portada opcionales.",
)
async def register(
    username: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    full_name: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    avatar: Optional[UploadFile] = File(None),
    cover_image: Optional[UploadFile] = File(None),
    users=Depends(get_user_repo),
    hasher=Depends(get_password_hasher),
    storage=Depends(get_storage),
):
    created = await account_service.register(
        users,
        hasher,
        storage,
        username=username,
        email=email,
        full_name=full_name,
        password=password,
        avatar=avatar,
        cover_image=cover_image,
    )
    return ok(AccountOut(**created).model_dump(), "User registered successfully", status.HTTP_201_CREATED)


@router.post(
    "/login",
    response_model=ApiResponse,
    summary="Login con username o email",
    description="Verifica credenciales, emite access/refresh y los entrega en body y cookies.",
)
async def login(
    payload: LoginPayload,
    request: Request,
    response: Response,
    sessions: SessionManager = Depends(get_session_manager),
):
    # Rate limit por IP
    if not rate_limit.allow((_client_ip(request), "/users/login"), limit=settings.login_rate_per_min):
        raise errors.TooManyRequests("Too many login attempts, wait a moment")
    res = await sessions.login(username=payload.username, email=payload.email, password=payload.password)
    _set_session_cookies(response, res["access_token"], res["refresh_token"])
    data = {
        "user": AccountOut(**res["user"]).model_dump(),
        "access_token": res["access_token"],
        "refresh_token": res["refresh_token"],
    }
    return ok(data, "User logged in successfully")


@router.post(
    "/logout",
    response_model=ApiResponse,
    summary="Cerrar sesión",
    description="Invalida el refresh token guardado y borra las cookies.",
)
async def logout(
    response: Response,
    user=Depends(verify_request),
    sessions: SessionManager = Depends(get_session_manager),
):
    await sessions.logout(user["id"])
    opts = _cookie_options()
    response.delete_cookie(ACCESS_COOKIE, **opts)
    response.delete_cookie(REFRESH_COOKIE, **opts)
    return ok({}, "User logged out successfully")


@router.post(
    "/refresh-token",
    response_model=ApiResponse,
    summary="Rotar refresh token",
    description="Canjea el refresh token (cookie o body) por un par nuevo; el anterior queda inválido.",
)
async def refresh_token(
    request: Request,
    response: Response,
    payload: Optional[RefreshPayload] = None,
    sessions: SessionManager = Depends(get_session_manager),
):
    presented = request.cookies.get(REFRESH_COOKIE) or (payload.refresh_token if payload else None)
    pair = await sessions.refresh(presented)
    _set_session_cookies(response, pair["access_token"], pair["refresh_token"])
    return ok(TokenPairOut(**pair).model_dump(), "Access token refreshed successfully")


@router.post(
    "/change-password",
    response_model=ApiResponse,
    summary="Cambiar contraseña",
)
async def change_password(
    payload: ChangePasswordPayload,
    user=Depends(verify_request),
    sessions: SessionManager = Depends(get_session_manager),
):
    await sessions.change_password(user["id"], payload.old_password, payload.new_password)
    return ok({}, "Password changed successfully")


@router.get(
    "/current-user",
    response_model=ApiResponse,
    summary="Cuenta autenticada",
)
async def current_user(user=Depends(verify_request)):
    return ok(AccountOut(**user).model_dump(), "Current user fetched successfully")
