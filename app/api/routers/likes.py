"""Endpoints de likes/dislikes sobre videos."""
from typing import Optional

from fastapi import APIRouter, Depends

from app.api.deps import get_like_repo, get_video_repo, verify_request
from app.api.schemas.common import ApiResponse, ok
from app.api.schemas.video import ReactionPayload
from app.services import like_service

router = APIRouter(prefix="/likes", tags=["Likes"])


@router.post("/toggle/v/{video_id}", response_model=ApiResponse, summary="Like/dislike de video")
async def toggle_video_like(
    video_id: str,
    payload: Optional[ReactionPayload] = None,
    user=Depends(verify_request),
    likes=Depends(get_like_repo),
    videos=Depends(get_video_repo),
):
    is_like = payload.is_like if payload else True
    res = await like_service.toggle_video_reaction(likes, videos, user, video_id, is_like)
    return ok(res, "Reaction updated successfully")


@router.get("/videos", response_model=ApiResponse, summary="Videos con like")
async def liked_videos(user=Depends(verify_request), likes=Depends(get_like_repo)):
    items = await like_service.list_liked_videos(likes, user)
    return ok(items, "Liked videos fetched successfully")
