"""
Casos de uso de cuenta: registro, perfil, imágenes, canal e historial.
"""
import logging
from typing import Any, Dict, List, Optional

from pydantic import EmailStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from app.core import errors
from app.infrastructure.db.ids import serialize_doc
from app.infrastructure.security.passwords import Argon2PasswordHasher, hash_if_changed
from app.infrastructure.storage.r2 import ObjectStorage, StorageError
from app.repositories.user_repo import UserRepository, channel_profile_pipeline, public_account
from app.repositories.watch_history_repo import WatchHistoryRepository

_log = logging.getLogger("vidtube.accounts")

_email_adapter = TypeAdapter(EmailStr)


def normalize_email(email: str) -> str:
    try:
        return str(_email_adapter.validate_python(email.strip())).lower()
    except PydanticValidationError as e:
        raise errors.ValidationError("Invalid email", errors=[{"field": "email", "message": "invalid"}]) from e


async def _upload_optional(storage: ObjectStorage, upload, prefix: str) -> str:
    """Sube una imagen opcional del registro; si falla, la cuenta queda sin ella."""
    if upload is None or not getattr(upload, "filename", None):
        return ""
    try:
        return await storage.upload(upload, prefix=prefix)
    except StorageError as e:
        _log.warning("Subida opcional fallida prefix=%s: %s", prefix, e)
        return ""


async def register(
    users: UserRepository,
    hasher: Argon2PasswordHasher,
    storage: ObjectStorage,
    *,
    username: Optional[str],
    email: Optional[str],
    full_name: Optional[str],
    password: Optional[str],
    avatar=None,
    cover_image=None,
) -> Dict[str, Any]:
    if any(not (f or "").strip() for f in (full_name, email, username, password)):
        raise errors.ValidationError("All fields are required")

    username = username.strip().lower()
    email = normalize_email(email)

    if await users.find_by_username_or_email(username=username, email=email):
        raise errors.Conflict("User with the same email or username already exists")

    password_hash = await hash_if_changed(hasher, None, password)
    avatar_url = await _upload_optional(storage, avatar, "avatars/")
    cover_url = await _upload_optional(storage, cover_image, "covers/")
    try:
        user_id = await users.create(
            {
                "username": username,
                "email": email,
                "full_name": full_name.strip(),
                "password_hash": password_hash,
                "avatar": avatar_url,
                "cover_image": cover_url,
            }
        )
    except errors.Conflict:
        # otro registro ganó el índice único: se borran las imágenes ya subidas
        for url in (avatar_url, cover_url):
            if url:
                await storage.delete_by_url(url)
        raise

    created = await users.find_by_id(user_id, public=True)
    if not created:
        raise errors.InternalError("Something went wrong while registering the user")
    _log.info("Cuenta registrada user_id=%s", user_id)
    return public_account(created)


async def update_account_details(users: UserRepository, user_id: Any, *, full_name: Optional[str], email: Optional[str]) -> Dict[str, Any]:
    if not (full_name or "").strip() or not (email or "").strip():
        raise errors.ValidationError("All fields are required")
    updated = await users.update_fields(user_id, {"full_name": full_name.strip(), "email": normalize_email(email)})
    if not updated:
        raise errors.NotFound("User does not exist")
    return public_account(updated)


async def update_image(users: UserRepository, storage: ObjectStorage, user, upload, *, field: str) -> Dict[str, Any]:
    """Reemplaza `avatar` o `cover_image`; borra el objeto anterior (best-effort)."""
    label = "avatar" if field == "avatar" else "cover image"
    if upload is None or not getattr(upload, "filename", None):
        raise errors.ValidationError(f"{label.capitalize()} file is missing")
    try:
        url = await storage.upload(upload, prefix="avatars/" if field == "avatar" else "covers/")
    except StorageError as e:
        raise errors.ValidationError(f"Error while uploading {label}") from e

    updated = await users.update_fields(user["id"], {field: url})
    if not updated:
        raise errors.NotFound("User does not exist")
    previous = user.get(field)
    if previous:
        await storage.delete_by_url(previous)
    return public_account(updated)


async def get_channel_profile(users: UserRepository, username: str, viewer_id: Any = None) -> Dict[str, Any]:
    if not (username or "").strip():
        raise errors.ValidationError("Username is missing")
    docs = await users.aggregate(channel_profile_pipeline(username, viewer_id))
    if not docs:
        raise errors.NotFound("Channel does not exist")
    return serialize_doc(docs[0])


async def get_watch_history(history: WatchHistoryRepository, user_id: Any) -> List[Dict[str, Any]]:
    return serialize_doc(await history.list_for_owner(user_id))
