"""Fixtures compartidas: repositorio de cuentas en memoria, hasher rápido y cliente HTTP."""
import asyncio
import copy
from datetime import timedelta
from typing import Any, Dict, List, Optional

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from app.api import deps
from app.core import rate_limit
from app.core.config import AuthConfig
from app.infrastructure.db.ids import parse_object_id
from app.infrastructure.security.passwords import Argon2PasswordHasher
from app.infrastructure.storage.r2 import StorageError
from app.repositories.user_repo import PUBLIC_PROJECTION
from app.services.session_manager import SessionManager


class FakeUserRepository:
    """Misma interfaz que UserRepository, sobre un dict en memoria."""

    def __init__(self) -> None:
        self.docs: Dict[ObjectId, Dict[str, Any]] = {}
        self.fail_writes = False

    def _public(self, doc):
        return {k: v for k, v in doc.items() if k not in PUBLIC_PROJECTION}

    async def find_by_username_or_email(self, *, username=None, email=None):
        for doc in self.docs.values():
            if username and doc["username"] == username.strip().lower():
                return copy.deepcopy(doc)
            if email and doc["email"] == email.strip().lower():
                return copy.deepcopy(doc)
        return None

    async def find_by_id(self, user_id, *, public=False):
        doc = self.docs.get(parse_object_id(user_id))
        found = None if doc is None else copy.deepcopy(self._public(doc) if public else doc)
        # cede el loop tras leer, como motor: dos refresh concurrentes ven el mismo valor
        await asyncio.sleep(0)
        return found

    async def create(self, doc):
        oid = ObjectId()
        data = dict(doc)
        data["_id"] = oid
        data["username"] = data["username"].strip().lower()
        data["email"] = data["email"].strip().lower()
        data.setdefault("avatar", "")
        data.setdefault("cover_image", "")
        data.setdefault("created_at", "2026-01-01T00:00:00Z")
        data["updated_at"] = data["created_at"]
        self.docs[oid] = data
        return str(oid)

    async def set_refresh_token(self, user_id, token):
        doc = self.docs.get(parse_object_id(user_id))
        if doc is None or self.fail_writes:
            return False
        doc["refresh_token"] = token
        return True

    async def swap_refresh_token(self, user_id, expected, new):
        doc = self.docs.get(parse_object_id(user_id))
        if doc is None or doc.get("refresh_token") != expected:
            return False
        doc["refresh_token"] = new
        return True

    async def clear_refresh_token(self, user_id):
        doc = self.docs.get(parse_object_id(user_id))
        if doc is None:
            return False
        doc.pop("refresh_token", None)
        return True

    async def set_password_hash(self, user_id, password_hash):
        doc = self.docs.get(parse_object_id(user_id))
        if doc is None:
            return False
        doc["password_hash"] = password_hash
        return True

    async def update_fields(self, user_id, fields):
        doc = self.docs.get(parse_object_id(user_id))
        if doc is None:
            return None
        doc.update({k: v for k, v in fields.items() if k not in PUBLIC_PROJECTION})
        return copy.deepcopy(self._public(doc))

    def stored_refresh_token(self, user_id) -> Optional[str]:
        return self.docs[parse_object_id(user_id)].get("refresh_token")


class FakeUpload:
    def __init__(self, filename: str = "file.png", content_type: str = "image/png") -> None:
        self.filename = filename
        self.content_type = content_type


class FakeStorage:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.uploaded: List[str] = []
        self.deleted: List[str] = []

    async def upload(self, upload_file, prefix: str = "uploads/") -> str:
        if self.fail:
            raise StorageError("boom")
        url = f"https://cdn.test/{prefix}{len(self.uploaded)}-{upload_file.filename}"
        self.uploaded.append(url)
        return url

    async def delete_by_url(self, url) -> bool:
        self.deleted.append(url)
        return True


@pytest.fixture
def auth_config() -> AuthConfig:
    return AuthConfig(
        access_secret="test-access-secret",
        access_ttl=timedelta(minutes=15),
        refresh_secret="test-refresh-secret",
        refresh_ttl=timedelta(days=1),
    )


@pytest.fixture
def hasher() -> Argon2PasswordHasher:
    # Parámetros mínimos: los tests no miden costo de hash
    return Argon2PasswordHasher(time_cost=1, memory_cost=8, parallelism=1)


@pytest.fixture
def users() -> FakeUserRepository:
    return FakeUserRepository()


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def sessions(users, hasher, auth_config) -> SessionManager:
    return SessionManager(users, hasher, auth_config)


@pytest.fixture
async def account(users, hasher) -> Dict[str, Any]:
    """Cuenta u1 / u1@x.com / pw1 ya registrada."""
    user_id = await users.create(
        {
            "username": "u1",
            "email": "u1@x.com",
            "full_name": "User One",
            "password_hash": await hasher.hash("pw1"),
        }
    )
    return await users.find_by_id(user_id)


@pytest.fixture
def client(users, hasher, auth_config, storage):
    from app.main import app

    rate_limit.reset()
    app.dependency_overrides[deps.get_user_repo] = lambda: users
    app.dependency_overrides[deps.get_password_hasher] = lambda: hasher
    app.dependency_overrides[deps.get_auth_config] = lambda: auth_config
    app.dependency_overrides[deps.get_storage] = lambda: storage
    # https: las cookies de sesión son `secure`
    test_client = TestClient(app, base_url="https://testserver")
    yield test_client
    app.dependency_overrides.clear()
    rate_limit.reset()
