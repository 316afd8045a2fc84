"""
Lógica de videos: publicar, listar, detalle (con vistas/historial), edición y borrado.
"""
import logging
from typing import Any, Dict, List, Optional

from app.core import errors
from app.infrastructure.db.ids import parse_object_id, serialize_doc
from app.infrastructure.storage.r2 import ObjectStorage, StorageError
from app.repositories.like_repo import LikeRepository
from app.repositories.video_repo import VideoRepository
from app.repositories.watch_history_repo import WatchHistoryRepository

_log = logging.getLogger("vidtube.videos")

MAX_PAGE_SIZE = 100


def parse_tags(raw: Optional[str]) -> List[str]:
    """'a, B,a' → ['a', 'b'] (minúsculas, sin vacíos ni duplicados)."""
    out: List[str] = []
    for t in (raw or "").split(","):
        tt = t.strip().lower()
        if tt and tt not in out:
            out.append(tt)
    return out


def _require_owner(video: Optional[Dict[str, Any]], user: Dict[str, Any]) -> Dict[str, Any]:
    if not video:
        raise errors.NotFound("Video not found")
    if str(video.get("owner")) != str(user["id"]):
        raise errors.Forbidden("Only the owner can modify this video")
    return video


async def publish_video(
    videos: VideoRepository,
    storage: ObjectStorage,
    user: Dict[str, Any],
    *,
    title: Optional[str],
    description: Optional[str],
    video_file=None,
    thumbnail=None,
    tags: Optional[str] = None,
    duration: Optional[float] = None,
) -> Dict[str, Any]:
    title = (title or "").strip()
    description = (description or "").strip()
    if not title or not description:
        raise errors.ValidationError("Please provide title, and description")
    if video_file is None or not getattr(video_file, "filename", None):
        raise errors.ValidationError("Video file is required")
    if thumbnail is None or not getattr(thumbnail, "filename", None):
        raise errors.ValidationError("Thumbnail is required")
    if duration is not None and duration < 0:
        raise errors.ValidationError("Duration must be positive")

    if await videos.find_by_owner_and_title(user["id"], title):
        raise errors.Conflict("Video with the same title already exists")

    try:
        video_url = await storage.upload(video_file, prefix="videos/")
        thumb_url = await storage.upload(thumbnail, prefix="thumbnails/")
    except StorageError as e:
        raise errors.InternalError("Error while uploading video files") from e

    video_id = await videos.insert_video(
        {
            "title": title,
            "description": description,
            "video_file": video_url,
            "thumbnail": thumb_url,
            "tags": parse_tags(tags),
            "duration": float(duration or 0),
            "owner": parse_object_id(user["id"]),
        }
    )
    _log.info("Video publicado video_id=%s owner=%s", video_id, user["id"])
    return serialize_doc(await videos.find_by_id(video_id))


async def list_videos(
    videos: VideoRepository,
    *,
    viewer: Optional[Dict[str, Any]] = None,
    page: int = 1,
    limit: int = 10,
    query: Optional[str] = None,
    sort_by: str = "created_at",
    sort_type: str = "desc",
    user_id: Optional[str] = None,
) -> Dict[str, Any]:
    if user_id is not None and parse_object_id(user_id) is None:
        raise errors.ValidationError("Invalid user id")
    # El dueño ve también sus videos no publicados
    include_unpublished = bool(viewer and user_id and str(viewer["id"]) == str(user_id))
    result = await videos.list_videos(
        page=max(1, page),
        limit=min(max(1, limit), MAX_PAGE_SIZE),
        query=query,
        sort_by=sort_by,
        sort_type=sort_type,
        owner_id=user_id,
        include_unpublished=include_unpublished,
    )
    return serialize_doc(result)


async def get_video(
    videos: VideoRepository,
    history: WatchHistoryRepository,
    video_id: str,
    viewer: Dict[str, Any],
) -> Dict[str, Any]:
    video = await videos.get_detail(video_id, viewer["id"])
    if not video:
        raise errors.NotFound("Video not found")
    owner_id = (video.get("owner") or {}).get("_id")
    if not video.get("is_published") and str(owner_id) != str(viewer["id"]):
        raise errors.NotFound("Video not found")

    await videos.increment_views(video_id)
    await history.record(video_id, viewer["id"])
    video["views"] = int(video.get("views") or 0) + 1
    return serialize_doc(video)


async def update_video(
    videos: VideoRepository,
    storage: ObjectStorage,
    user: Dict[str, Any],
    video_id: str,
    *,
    title: Optional[str] = None,
    description: Optional[str] = None,
    thumbnail=None,
) -> Dict[str, Any]:
    video = _require_owner(await videos.find_by_id(video_id), user)
    fields: Dict[str, Any] = {}
    if title is not None:
        if not title.strip():
            raise errors.ValidationError("Title cannot be empty")
        fields["title"] = title.strip()
    if description is not None:
        if not description.strip():
            raise errors.ValidationError("Description cannot be empty")
        fields["description"] = description.strip()
    if thumbnail is not None and getattr(thumbnail, "filename", None):
        try:
            fields["thumbnail"] = await storage.upload(thumbnail, prefix="thumbnails/")
        except StorageError as e:
            raise errors.ValidationError("Error while uploading thumbnail") from e
    if not fields:
        raise errors.ValidationError("Nothing to update")

    updated = await videos.update_video(video_id, fields)
    if "thumbnail" in fields and video.get("thumbnail"):
        await storage.delete_by_url(video["thumbnail"])
    return serialize_doc(updated)


async def delete_video(
    videos: VideoRepository,
    likes: LikeRepository,
    history: WatchHistoryRepository,
    storage: ObjectStorage,
    user: Dict[str, Any],
    video_id: str,
) -> None:
    video = _require_owner(await videos.find_by_id(video_id), user)
    if not await videos.delete_video(video_id):
        raise errors.NotFound("Video not found")
    await likes.delete_for_video(video_id)
    await history.delete_for_video(video_id)
    for url in (video.get("video_file"), video.get("thumbnail")):
        if url:
            await storage.delete_by_url(url)
    _log.info("Video borrado video_id=%s owner=%s", video_id, user["id"])


async def toggle_publish(videos: VideoRepository, user: Dict[str, Any], video_id: str) -> Dict[str, Any]:
    video = _require_owner(await videos.find_by_id(video_id), user)
    updated = await videos.update_video(video_id, {"is_published": not bool(video.get("is_published"))})
    return serialize_doc(updated)


async def record_progress(
    videos: VideoRepository,
    history: WatchHistoryRepository,
    user: Dict[str, Any],
    video_id: str,
    progress: Optional[float],
) -> None:
    if progress is None or progress < 0:
        raise errors.ValidationError("Progress must be a positive number of seconds")
    if not await videos.find_by_id(video_id):
        raise errors.NotFound("Video not found")
    await history.record(video_id, user["id"], progress=progress)
