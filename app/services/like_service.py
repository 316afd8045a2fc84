"""
Service layer for likes: like/dislike toggling on videos.
"""
from typing import Any, Dict, List, Optional

from app.core import errors
from app.infrastructure.db.ids import serialize_doc
from app.repositories.like_repo import LikeRepository
from app.repositories.video_repo import VideoRepository


async def toggle_video_reaction(
    likes: LikeRepository,
    videos: VideoRepository,
    user: Dict[str, Any],
    video_id: str,
    is_like: bool = True,
) -> Dict[str, Optional[str]]:
    """Misma reacción otra vez la quita; la contraria la invierte; si no hay, la crea."""
    video = await videos.find_by_id(video_id)
    # un video oculto solo existe para su dueño
    if not video or (not video.get("is_published") and str(video.get("owner")) != str(user["id"])):
        raise errors.NotFound("Video not found")

    current = await likes.find(video_id, user["id"])
    if current and bool(current.get("is_like")) == bool(is_like):
        await likes.remove(video_id, user["id"])
        return {"reaction": None}
    await likes.set_reaction(video_id, user["id"], is_like)
    return {"reaction": "like" if is_like else "dislike"}


async def list_liked_videos(likes: LikeRepository, user: Dict[str, Any]) -> List[Dict[str, Any]]:
    return serialize_doc(await likes.list_liked_videos(user["id"]))
