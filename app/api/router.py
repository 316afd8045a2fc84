"""Agregador de routers de la API."""
from fastapi import APIRouter
from app.api.routers import auth, health, likes, subscriptions, users, videos

api_router = APIRouter()
api_router.include_router(health.router)
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(videos.router)
api_router.include_router(subscriptions.router)
api_router.include_router(likes.router)
