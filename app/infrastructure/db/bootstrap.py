"""
Bootstrap de la base Mongo: define y aplica validadores (JSON Schema) e índices.
Se ejecuta al inicio de la app para asegurar colecciones mínimas y consistencia.
No tumba la app si algo falla; deja warnings en casos no críticos.
"""
from __future__ import annotations

from typing import Any, Dict, List
import logging
from pymongo.errors import PyMongoError
from app.infrastructure.db.mongo_async import get_async_db

_log = logging.getLogger("vidtube.mongo.bootstrap")


async def _collmod_or_create(name: str, validator: Dict[str, Any] | None) -> None:
    db = get_async_db()
    try:
        if validator:
            # Intenta aplicar validator con collMod
            await db.command({
                "collMod": name,
                "validator": {"$jsonSchema": validator},
                "validationLevel": "moderate",
            })
        else:
            await db.create_collection(name)
    except PyMongoError:
        # Si collMod falla (no existe), intenta crear con validator
        try:
            if name not in await db.list_collection_names():
                if validator:
                    await db.create_collection(name, validator={"$jsonSchema": validator})
                else:
                    await db.create_collection(name)
        except PyMongoError as e:
            _log.warning("No se pudo aplicar validator en '%s': %s", name, e)


async def _ensure_indexes(name: str, indexes: List[Dict[str, Any]]) -> None:
    coll = get_async_db()[name]
    for ix in indexes:
        ix = dict(ix)
        keys = ix.pop("keys")
        try:
            await coll.create_index(keys, **ix)
        except PyMongoError as e:
            # Ignora fallas de índice (e.g., datos no únicos previos)
            _log.warning("No se pudo crear índice en '%s' (%s): %s", name, keys, e)


USER_VALIDATOR = {
    "bsonType": "object",
    "required": ["username", "email", "full_name", "password_hash", "created_at", "updated_at"],
    "properties": {
        "username": {"bsonType": "string", "minLength": 1, "description": "lowercase, trimmed"},
        "email": {"bsonType": "string", "minLength": 3, "description": "lowercase, trimmed"},
        "full_name": {"bsonType": "string", "minLength": 1},
        "password_hash": {"bsonType": "string"},
        "avatar": {"bsonType": "string"},
        "cover_image": {"bsonType": "string"},
        "refresh_token": {"bsonType": ["string", "null"]},
        "created_at": {"bsonType": "string", "minLength": 10},
        "updated_at": {"bsonType": "string", "minLength": 10},
    },
    "additionalProperties": True,
}

VIDEO_VALIDATOR = {
    "bsonType": "object",
    "required": ["title", "description", "video_file", "thumbnail", "owner", "created_at", "updated_at"],
    "properties": {
        "title": {"bsonType": "string", "minLength": 1},
        "description": {"bsonType": "string", "minLength": 1},
        "video_file": {"bsonType": "string"},
        "thumbnail": {"bsonType": "string"},
        "tags": {"bsonType": "array", "items": {"bsonType": "string"}},
        "views": {"bsonType": ["int", "long"], "minimum": 0},
        "duration": {"bsonType": ["double", "int", "long"], "minimum": 0},
        "is_published": {"bsonType": "bool"},
        "owner": {"bsonType": "objectId"},
    },
    "additionalProperties": True,
}

SUBSCRIPTION_VALIDATOR = {
    "bsonType": "object",
    "required": ["subscriber", "channel"],
    "properties": {
        "subscriber": {"bsonType": "objectId"},
        "channel": {"bsonType": "objectId"},
    },
}

LIKE_VALIDATOR = {
    "bsonType": "object",
    "required": ["video", "liked_by", "is_like"],
    "properties": {
        "video": {"bsonType": "objectId"},
        "liked_by": {"bsonType": "objectId"},
        "is_like": {"bsonType": "bool"},
    },
}

WATCH_HISTORY_VALIDATOR = {
    "bsonType": "object",
    "required": ["video", "owner"],
    "properties": {
        "video": {"bsonType": "objectId"},
        "owner": {"bsonType": "objectId"},
        "progress": {"bsonType": ["double", "int", "long"], "minimum": 0},
    },
}


async def ensure_collections() -> None:
    """
    Garantiza colecciones, validadores e índices mínimos.
    """
    await _collmod_or_create("user", USER_VALIDATOR)
    await _ensure_indexes(
        "user",
        [
            {"keys": [("username", 1)], "unique": True, "name": "uniq_username"},
            {"keys": [("email", 1)], "unique": True, "name": "uniq_email"},
        ],
    )

    await _collmod_or_create("video", VIDEO_VALIDATOR)
    await _ensure_indexes(
        "video",
        [
            {"keys": [("owner", 1), ("title", 1)], "unique": True, "name": "uniq_owner_title"},
            {"keys": [("is_published", 1), ("created_at", -1)], "name": "ix_published_created"},
        ],
    )

    await _collmod_or_create("subscription", SUBSCRIPTION_VALIDATOR)
    await _ensure_indexes(
        "subscription",
        [
            {"keys": [("subscriber", 1), ("channel", 1)], "unique": True, "name": "uniq_subscription"},
            {"keys": [("channel", 1)], "name": "ix_channel"},
        ],
    )

    await _collmod_or_create("like", LIKE_VALIDATOR)
    await _ensure_indexes(
        "like",
        [
            {"keys": [("video", 1), ("liked_by", 1)], "unique": True, "name": "uniq_video_liked_by"},
            {"keys": [("liked_by", 1), ("is_like", 1)], "name": "ix_liked_by"},
        ],
    )

    await _collmod_or_create("watch_history", WATCH_HISTORY_VALIDATOR)
    await _ensure_indexes(
        "watch_history",
        [
            {"keys": [("video", 1), ("owner", 1)], "unique": True, "name": "uniq_video_owner"},
            {"keys": [("owner", 1), ("updated_at", -1)], "name": "ix_owner_recent"},
        ],
    )
