"""Endpoints de `video`: listado, publicación, detalle, edición, borrado y progreso."""
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from app.api.deps import (
    get_like_repo,
    get_storage,
    get_video_repo,
    get_watch_history_repo,
    optional_user,
    verify_request,
)
from app.api.schemas.common import ApiResponse, ok
from app.api.schemas.video import ProgressPayload, VideoListQuery
from app.services import video_service

router = APIRouter(prefix="/videos", tags=["Videos"])


@router.get("", response_model=ApiResponse, summary="Listar videos (paginado)")
async def list_videos(
    q: VideoListQuery = Depends(),
    viewer=Depends(optional_user),
    videos=Depends(get_video_repo),
):
    page = await video_service.list_videos(
        videos,
        viewer=viewer,
        page=q.page,
        limit=q.limit,
        query=q.query,
        sort_by=q.sort_by,
        sort_type=q.sort_type,
        user_id=q.user_id,
    )
    return ok(page, "Videos fetched successfully")


@router.post("", response_model=ApiResponse, status_code=status.HTTP_201_CREATED, summary="Publicar video")
async def publish_video(
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    tags: Optional[str] = Form(None),
    duration: Optional[float] = Form(None),
    video_file: Optional[UploadFile] = File(None),
    thumbnail: Optional[UploadFile] = File(None),
    user=Depends(verify_request),
    videos=Depends(get_video_repo),
    storage=Depends(get_storage),
):
    video = await video_service.publish_video(
        videos,
        storage,
        user,
        title=title,
        description=description,
        video_file=video_file,
        thumbnail=thumbnail,
        tags=tags,
        duration=duration,
    )
    return ok(video, "Video published successfully", status.HTTP_201_CREATED)


@router.get("/{video_id}", response_model=ApiResponse, summary="Detalle de video")
async def get_video(
    video_id: str,
    user=Depends(verify_request),
    videos=Depends(get_video_repo),
    history=Depends(get_watch_history_repo),
):
    video = await video_service.get_video(videos, history, video_id, user)
    return ok(video, "Video fetched successfully")


@router.patch("/{video_id}", response_model=ApiResponse, summary="Editar video")
async def update_video(
    video_id: str,
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    thumbnail: Optional[UploadFile] = File(None),
    user=Depends(verify_request),
    videos=Depends(get_video_repo),
    storage=Depends(get_storage),
):
    video = await video_service.update_video(
        videos, storage, user, video_id, title=title, description=description, thumbnail=thumbnail
    )
    return ok(video, "Video updated successfully")


@router.delete("/{video_id}", response_model=ApiResponse, summary="Borrar video")
async def delete_video(
    video_id: str,
    user=Depends(verify_request),
    videos=Depends(get_video_repo),
    likes=Depends(get_like_repo),
    history=Depends(get_watch_history_repo),
    storage=Depends(get_storage),
):
    await video_service.delete_video(videos, likes, history, storage, user, video_id)
    return ok({}, "Video deleted successfully")


@router.patch("/toggle/publish/{video_id}", response_model=ApiResponse, summary="Publicar/ocultar video")
async def toggle_publish(video_id: str, user=Depends(verify_request), videos=Depends(get_video_repo)):
    video = await video_service.toggle_publish(videos, user, video_id)
    return ok(video, "Publish status toggled successfully")


@router.patch("/{video_id}/progress", response_model=ApiResponse, summary="Guardar progreso de reproducción")
async def record_progress(
    video_id: str,
    payload: ProgressPayload,
    user=Depends(verify_request),
    videos=Depends(get_video_repo),
    history=Depends(get_watch_history_repo),
):
    await video_service.record_progress(videos, history, user, video_id, payload.progress)
    return ok({}, "Progress saved")
