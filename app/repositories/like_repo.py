"""Repo de la colección `like`: una reacción (like/dislike) por cuenta y video."""
from typing import Any, Dict, List, Optional

from app.core.time import now_iso
from app.infrastructure.db.ids import parse_object_id
from app.repositories.video_repo import owner_lookup

COLLECTION = "like"


def liked_videos_pipeline(user_id: Any) -> List[Dict[str, Any]]:
    return [
        {"$match": {"liked_by": parse_object_id(user_id), "is_like": True}},
        {"$sort": {"updated_at": -1}},
        {
            "$lookup": {
                "from": "video",
                "localField": "video",
                "foreignField": "_id",
                "as": "video",
                "pipeline": [{"$match": {"is_published": True}}, *owner_lookup()],
            }
        },
        {"$unwind": "$video"},
        {"$replaceRoot": {"newRoot": "$video"}},
    ]


class LikeRepository:
    def __init__(self, db) -> None:
        self.coll = db[COLLECTION]

    async def find(self, video_id: Any, user_id: Any) -> Optional[Dict[str, Any]]:
        return await self.coll.find_one(
            {"video": parse_object_id(video_id), "liked_by": parse_object_id(user_id)}
        )

    async def set_reaction(self, video_id: Any, user_id: Any, is_like: bool) -> None:
        """Upsert de la reacción (crea o invierte)."""
        now = now_iso()
        await self.coll.update_one(
            {"video": parse_object_id(video_id), "liked_by": parse_object_id(user_id)},
            {"$set": {"is_like": bool(is_like), "updated_at": now}, "$setOnInsert": {"created_at": now}},
            upsert=True,
        )

    async def remove(self, video_id: Any, user_id: Any) -> bool:
        res = await self.coll.delete_one(
            {"video": parse_object_id(video_id), "liked_by": parse_object_id(user_id)}
        )
        return res.deleted_count == 1

    async def delete_for_video(self, video_id: Any) -> int:
        res = await self.coll.delete_many({"video": parse_object_id(video_id)})
        return res.deleted_count

    async def list_liked_videos(self, user_id: Any) -> List[Dict[str, Any]]:
        return await self.coll.aggregate(liked_videos_pipeline(user_id)).to_list(length=None)
