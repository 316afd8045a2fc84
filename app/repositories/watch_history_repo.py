"""Repo de la colección `watch_history` (una fila por cuenta y video, con progreso)."""
from typing import Any, Dict, List, Optional

from app.core.time import now_iso
from app.infrastructure.db.ids import parse_object_id
from app.repositories.video_repo import owner_lookup

COLLECTION = "watch_history"


def watch_history_pipeline(owner_id: Any) -> List[Dict[str, Any]]:
    """Historial más reciente primero, unido con el video y su dueño."""
    return [
        {"$match": {"owner": parse_object_id(owner_id)}},
        {"$sort": {"updated_at": -1}},
        {
            "$lookup": {
                "from": "video",
                "localField": "video",
                "foreignField": "_id",
                "as": "video",
                "pipeline": [*owner_lookup()],
            }
        },
        {"$unwind": "$video"},
        {"$project": {"_id": 0, "video": 1, "progress": 1, "watched_at": "$updated_at"}},
    ]


class WatchHistoryRepository:
    def __init__(self, db) -> None:
        self.coll = db[COLLECTION]

    async def record(self, video_id: Any, owner_id: Any, progress: Optional[float] = None) -> None:
        """Upsert por (video, owner); sin `progress` conserva el valor previo."""
        now = now_iso()
        set_ops: Dict[str, Any] = {"updated_at": now}
        on_insert: Dict[str, Any] = {"created_at": now}
        if progress is None:
            on_insert["progress"] = 0
        else:
            set_ops["progress"] = float(progress)
        await self.coll.update_one(
            {"video": parse_object_id(video_id), "owner": parse_object_id(owner_id)},
            {"$set": set_ops, "$setOnInsert": on_insert},
            upsert=True,
        )

    async def delete_for_video(self, video_id: Any) -> int:
        res = await self.coll.delete_many({"video": parse_object_id(video_id)})
        return res.deleted_count

    async def list_for_owner(self, owner_id: Any) -> List[Dict[str, Any]]:
        return await self.coll.aggregate(watch_history_pipeline(owner_id)).to_list(length=None)
