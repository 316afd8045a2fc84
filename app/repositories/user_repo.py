"""Persistencia de cuentas (colección `user`) y del refresh token vigente.

- `username` y `email` se guardan en minúsculas y sin espacios.
- Un único `refresh_token` por cuenta: escribirlo reemplaza el anterior.
- Timestamps en ISO-8601 UTC (Z).
"""
from typing import Any, Dict, Optional

from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from app.core import errors
from app.core.time import now_iso
from app.infrastructure.db.ids import parse_object_id

COLLECTION = "user"

# Campos que nunca salen hacia el cliente
SECRET_FIELDS = ("password_hash", "refresh_token")
PUBLIC_PROJECTION = {f: 0 for f in SECRET_FIELDS}


def public_account(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Proyección pública: sin secretos y con `id` (str) en lugar de `_id`."""
    if not doc:
        return None
    out = {k: v for k, v in doc.items() if k not in SECRET_FIELDS}
    if "_id" in out:
        out["id"] = str(out.pop("_id"))
    return out


class UserRepository:
    def __init__(self, db) -> None:
        self.coll = db[COLLECTION]

    async def find_by_username_or_email(self, *, username: Optional[str] = None, email: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """Busca por username O email (normalizados); None si no hay criterio."""
        ors = []
        if username:
            ors.append({"username": username.strip().lower()})
        if email:
            ors.append({"email": email.strip().lower()})
        if not ors:
            return None
        return await self.coll.find_one({"$or": ors})

    async def find_by_id(self, user_id: Any, *, public: bool = False) -> Optional[Dict[str, Any]]:
        oid = parse_object_id(user_id)
        if oid is None:
            return None
        return await self.coll.find_one({"_id": oid}, PUBLIC_PROJECTION if public else None)

    async def find_by_username(self, username: str) -> Optional[Dict[str, Any]]:
        return await self.coll.find_one({"username": (username or "").strip().lower()}, PUBLIC_PROJECTION)

    async def create(self, doc: Dict[str, Any]) -> str:
        """Inserta cuenta con timestamps y devuelve id (str)."""
        data = dict(doc)
        now = now_iso()
        data["username"] = data["username"].strip().lower()
        data["email"] = data["email"].strip().lower()
        data.setdefault("avatar", "")
        data.setdefault("cover_image", "")
        data.setdefault("created_at", now)
        data["updated_at"] = now
        try:
            res = await self.coll.insert_one(data)
        except DuplicateKeyError as e:
            raise errors.Conflict("User with the same email or username already exists") from e
        return str(res.inserted_id)

    async def set_refresh_token(self, user_id: Any, token: str) -> bool:
        """Sobrescribe el refresh token vigente. False si la cuenta no existe."""
        oid = parse_object_id(user_id)
        if oid is None:
            return False
        res = await self.coll.update_one(
            {"_id": oid}, {"$set": {"refresh_token": token, "updated_at": now_iso()}}
        )
        return res.matched_count == 1

    async def swap_refresh_token(self, user_id: Any, expected: str, new: str) -> bool:
        """Compare-and-swap: rota solo si el valor guardado sigue siendo `expected`."""
        oid = parse_object_id(user_id)
        if oid is None or not expected:
            return False
        res = await self.coll.update_one(
            {"_id": oid, "refresh_token": expected},
            {"$set": {"refresh_token": new, "updated_at": now_iso()}},
        )
        return res.modified_count == 1

    async def clear_refresh_token(self, user_id: Any) -> bool:
        """Elimina el refresh token. Devuelve si la cuenta existe (idempotente)."""
        oid = parse_object_id(user_id)
        if oid is None:
            return False
        res = await self.coll.update_one(
            {"_id": oid}, {"$unset": {"refresh_token": ""}, "$set": {"updated_at": now_iso()}}
        )
        return res.matched_count == 1

    async def set_password_hash(self, user_id: Any, password_hash: str) -> bool:
        oid = parse_object_id(user_id)
        if oid is None:
            return False
        res = await self.coll.update_one(
            {"_id": oid}, {"$set": {"password_hash": password_hash, "updated_at": now_iso()}}
        )
        return res.matched_count == 1

    async def update_fields(self, user_id: Any, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Actualiza campos de perfil y devuelve la cuenta (sin secretos)."""
        oid = parse_object_id(user_id)
        if oid is None:
            return None
        set_ops = {k: v for k, v in fields.items() if k not in SECRET_FIELDS and k != "_id"}
        if "email" in set_ops:
            set_ops["email"] = str(set_ops["email"]).strip().lower()
        set_ops["updated_at"] = now_iso()
        try:
            return await self.coll.find_one_and_update(
                {"_id": oid},
                {"$set": set_ops},
                projection=PUBLIC_PROJECTION,
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError as e:
            raise errors.Conflict("User with the same email already exists") from e

    async def aggregate(self, pipeline) -> list:
        return await self.coll.aggregate(pipeline).to_list(length=None)


def channel_profile_pipeline(username: str, viewer_id: Any = None) -> list:
    """Perfil de canal: campos públicos + conteos de suscripción.

    `is_subscribed` indica si `viewer_id` está entre los suscriptores.
    """
    viewer = parse_object_id(viewer_id)
    return [
        {"$match": {"username": (username or "").strip().lower()}},
        {"$lookup": {"from": "subscription", "localField": "_id", "foreignField": "channel", "as": "subscribers"}},
        {"$lookup": {"from": "subscription", "localField": "_id", "foreignField": "subscriber", "as": "subscribed_to"}},
        {
            "$addFields": {
                "subscribers_count": {"$size": "$subscribers"},
                "channels_subscribed_to_count": {"$size": "$subscribed_to"},
                "is_subscribed": {"$in": [viewer, "$subscribers.subscriber"]} if viewer else {"$literal": False},
            }
        },
        {
            "$project": {
                "username": 1,
                "email": 1,
                "full_name": 1,
                "avatar": 1,
                "cover_image": 1,
                "subscribers_count": 1,
                "channels_subscribed_to_count": 1,
                "is_subscribed": 1,
                "created_at": 1,
            }
        },
    ]
