"""
Endpoints de perfil de la cuenta autenticada, perfil de canal e historial.

La API delega en `services/account_service.py` (API delgada, servicios con la lógica).
"""
from fastapi import APIRouter, Depends, File, UploadFile

from app.api.deps import get_storage, get_user_repo, get_watch_history_repo, verify_request
from app.api.schemas.common import ApiResponse, ok
from app.api.schemas.user import AccountOut, AccountUpdate
from app.services import account_service

router = APIRouter(prefix="/users", tags=["Users"])


@router.patch("/update-account", response_model=ApiResponse, summary="Actualizar nombre y email")
async def update_account(payload: AccountUpdate, user=Depends(verify_request), users=Depends(get_user_repo)):
    updated = await account_service.update_account_details(
        users, user["id"], full_name=payload.full_name, email=payload.email
    )
    return ok(AccountOut(**updated).model_dump(), "Account details updated successfully")


@router.patch("/avatar", response_model=ApiResponse, summary="Actualizar avatar")
async def update_avatar(
    avatar: UploadFile = File(None),
    user=Depends(verify_request),
    users=Depends(get_user_repo),
    storage=Depends(get_storage),
):
    updated = await account_service.update_image(users, storage, user, avatar, field="avatar")
    return ok(AccountOut(**updated).model_dump(), "Avatar updated successfully")


@router.patch("/cover-image", response_model=ApiResponse, summary="Actualizar portada")
async def update_cover_image(
    cover_image: UploadFile = File(None),
    user=Depends(verify_request),
    users=Depends(get_user_repo),
    storage=Depends(get_storage),
):
    updated = await account_service.update_image(users, storage, user, cover_image, field="cover_image")
    return ok(AccountOut(**updated).model_dump(), "Cover image updated successfully")


@router.get("/c/{username}", response_model=ApiResponse, summary="Perfil de canal")
async def channel_profile(username: str, user=Depends(verify_request), users=Depends(get_user_repo)):
    channel = await account_service.get_channel_profile(users, username, viewer_id=user["id"])
    return ok(channel, "Channel fetched successfully")


@router.get("/history", response_model=ApiResponse, summary="Historial de reproducción")
async def watch_history(user=Depends(verify_request), history=Depends(get_watch_history_repo)):
    items = await account_service.get_watch_history(history, user["id"])
    return ok(items, "Watch history fetched successfully")
