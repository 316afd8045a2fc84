"""Repo de la colección `subscription` (suscriptor → canal, ambos `user`)."""
from typing import Any, Dict, List, Optional

from pymongo.errors import DuplicateKeyError

from app.core.time import now_iso
from app.infrastructure.db.ids import parse_object_id
from app.repositories.video_repo import owner_lookup

COLLECTION = "subscription"


def subscribers_pipeline(channel_id: Any) -> List[Dict[str, Any]]:
    return [
        {"$match": {"channel": parse_object_id(channel_id)}},
        {"$sort": {"created_at": -1}},
        *owner_lookup("subscriber", "subscriber"),
        {"$project": {"_id": 0, "subscriber": 1, "created_at": 1}},
    ]


def subscribed_channels_pipeline(subscriber_id: Any) -> List[Dict[str, Any]]:
    return [
        {"$match": {"subscriber": parse_object_id(subscriber_id)}},
        {"$sort": {"created_at": -1}},
        *owner_lookup("channel", "channel"),
        {"$project": {"_id": 0, "channel": 1, "created_at": 1}},
    ]


class SubscriptionRepository:
    def __init__(self, db) -> None:
        self.coll = db[COLLECTION]

    async def find(self, subscriber_id: Any, channel_id: Any) -> Optional[Dict[str, Any]]:
        return await self.coll.find_one(
            {"subscriber": parse_object_id(subscriber_id), "channel": parse_object_id(channel_id)}
        )

    async def subscribe(self, subscriber_id: Any, channel_id: Any) -> bool:
        """Crea la suscripción; True aunque ya existiera (índice único)."""
        now = now_iso()
        try:
            await self.coll.insert_one(
                {
                    "subscriber": parse_object_id(subscriber_id),
                    "channel": parse_object_id(channel_id),
                    "created_at": now,
                    "updated_at": now,
                }
            )
        except DuplicateKeyError:
            pass
        return True

    async def unsubscribe(self, subscriber_id: Any, channel_id: Any) -> bool:
        res = await self.coll.delete_one(
            {"subscriber": parse_object_id(subscriber_id), "channel": parse_object_id(channel_id)}
        )
        return res.deleted_count == 1

    async def list_subscribers(self, channel_id: Any) -> List[Dict[str, Any]]:
        return await self.coll.aggregate(subscribers_pipeline(channel_id)).to_list(length=None)

    async def list_subscribed_channels(self, subscriber_id: Any) -> List[Dict[str, Any]]:
        return await self.coll.aggregate(subscribed_channels_pipeline(subscriber_id)).to_list(length=None)
