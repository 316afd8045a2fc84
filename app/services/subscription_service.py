"""
Service layer for subscriptions: toggle and listings.
"""
from typing import Any, Dict, List

from app.core import errors
from app.infrastructure.db.ids import parse_object_id, serialize_doc
from app.repositories.subscription_repo import SubscriptionRepository
from app.repositories.user_repo import UserRepository


async def toggle_subscription(
    subscriptions: SubscriptionRepository,
    users: UserRepository,
    subscriber: Dict[str, Any],
    channel_id: str,
) -> Dict[str, Any]:
    if parse_object_id(channel_id) is None:
        raise errors.ValidationError("Invalid channel id")
    if str(channel_id) == str(subscriber["id"]):
        raise errors.ValidationError("You cannot subscribe to your own channel")
    if not await users.find_by_id(channel_id, public=True):
        raise errors.NotFound("Channel does not exist")

    if await subscriptions.find(subscriber["id"], channel_id):
        await subscriptions.unsubscribe(subscriber["id"], channel_id)
        return {"subscribed": False}
    await subscriptions.subscribe(subscriber["id"], channel_id)
    return {"subscribed": True}


async def list_subscribers(subscriptions: SubscriptionRepository, channel_id: str) -> List[Dict[str, Any]]:
    if parse_object_id(channel_id) is None:
        raise errors.ValidationError("Invalid channel id")
    return serialize_doc(await subscriptions.list_subscribers(channel_id))


async def list_subscribed_channels(subscriptions: SubscriptionRepository, subscriber_id: str) -> List[Dict[str, Any]]:
    if parse_object_id(subscriber_id) is None:
        raise errors.ValidationError("Invalid subscriber id")
    return serialize_doc(await subscriptions.list_subscribed_channels(subscriber_id))
