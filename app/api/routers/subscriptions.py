"""Endpoints de suscripciones a canales."""
from fastapi import APIRouter, Depends

from app.api.deps import get_subscription_repo, get_user_repo, verify_request
from app.api.schemas.common import ApiResponse, ok
from app.services import subscription_service

router = APIRouter(prefix="/subscriptions", tags=["Subscriptions"])


@router.post("/c/{channel_id}", response_model=ApiResponse, summary="Suscribirse / desuscribirse")
async def toggle_subscription(
    channel_id: str,
    user=Depends(verify_request),
    subscriptions=Depends(get_subscription_repo),
    users=Depends(get_user_repo),
):
    res = await subscription_service.toggle_subscription(subscriptions, users, user, channel_id)
    message = "Subscribed successfully" if res["subscribed"] else "Unsubscribed successfully"
    return ok(res, message)


@router.get("/c/{channel_id}", response_model=ApiResponse, summary="Suscriptores de un canal")
async def channel_subscribers(channel_id: str, user=Depends(verify_request), subscriptions=Depends(get_subscription_repo)):
    items = await subscription_service.list_subscribers(subscriptions, channel_id)
    return ok(items, "Subscribers fetched successfully")


@router.get("/u/{subscriber_id}", response_model=ApiResponse, summary="Canales suscritos")
async def subscribed_channels(subscriber_id: str, user=Depends(verify_request), subscriptions=Depends(get_subscription_repo)):
    items = await subscription_service.list_subscribed_channels(subscriptions, subscriber_id)
    return ok(items, "Subscribed channels fetched successfully")
