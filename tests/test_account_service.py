"""Registro, perfil e imágenes de cuenta."""
from unittest.mock import AsyncMock

import pytest
from bson import ObjectId

from app.core import errors
from app.services import account_service

from tests.conftest import FakeStorage, FakeUpload


def test_normalize_email():
    assert account_service.normalize_email("  Foo@Example.COM ") == "foo@example.com"
    with pytest.raises(errors.ValidationError):
        account_service.normalize_email("foo")


class TestRegister:
    async def test_stores_hash_and_returns_public(self, users, hasher, storage):
        out = await account_service.register(
            users, hasher, storage,
            username="U1", email="u1@x.com", full_name="User One", password="pw1",
            avatar=FakeUpload("a.png"),
        )
        assert out["username"] == "u1"
        assert "password_hash" not in out
        stored = await users.find_by_id(out["id"])
        assert await hasher.compare("pw1", stored["password_hash"])
        assert stored["avatar"] == storage.uploaded[0]

    async def test_failed_optional_upload_keeps_registration(self, users, hasher):
        out = await account_service.register(
            users, hasher, FakeStorage(fail=True),
            username="u1", email="u1@x.com", full_name="User One", password="pw1",
            cover_image=FakeUpload(),
        )
        assert out["cover_image"] == ""

    async def test_missing_field(self, users, hasher, storage):
        with pytest.raises(errors.ValidationError) as ei:
            await account_service.register(
                users, hasher, storage, username="u1", email="u1@x.com", full_name="x", password=None
            )
        assert ei.value.message == "All fields are required"

    async def test_duplicate(self, users, hasher, storage, account):
        with pytest.raises(errors.Conflict):
            await account_service.register(
                users, hasher, storage, username="other", email="U1@x.com", full_name="x", password="p"
            )
        assert storage.uploaded == []

    async def test_lost_insert_race_removes_uploaded_images(self, users, hasher, storage):
        async def conflicting_create(doc):
            raise errors.Conflict("User with the same email or username already exists")

        users.create = conflicting_create
        with pytest.raises(errors.Conflict):
            await account_service.register(
                users, hasher, storage,
                username="u1", email="u1@x.com", full_name="User One", password="pw1",
                avatar=FakeUpload("a.png"), cover_image=FakeUpload("c.png"),
            )
        assert len(storage.uploaded) == 2
        assert storage.deleted == storage.uploaded


class TestUpdates:
    async def test_update_details(self, users, account):
        out = await account_service.update_account_details(
            users, account["_id"], full_name=" New ", email="NEW@x.com"
        )
        assert out["full_name"] == "New"
        assert out["email"] == "new@x.com"

    async def test_update_details_requires_both(self, users, account):
        with pytest.raises(errors.ValidationError):
            await account_service.update_account_details(users, account["_id"], full_name="x", email=None)

    async def test_update_image_missing_file(self, users, storage, account):
        with pytest.raises(errors.ValidationError) as ei:
            await account_service.update_image(users, storage, {"id": str(account["_id"])}, None, field="cover_image")
        assert ei.value.message == "Cover image file is missing"

    async def test_update_image_upload_failure(self, users, account):
        user = {"id": str(account["_id"]), "avatar": ""}
        with pytest.raises(errors.ValidationError):
            await account_service.update_image(users, FakeStorage(fail=True), user, FakeUpload(), field="avatar")


class TestChannelAndHistory:
    async def test_channel_profile(self):
        users = AsyncMock()
        oid = ObjectId()
        users.aggregate.return_value = [{"_id": oid, "username": "chan", "subscribers_count": 2, "is_subscribed": True}]
        out = await account_service.get_channel_profile(users, "Chan", viewer_id=str(ObjectId()))
        assert out["id"] == str(oid)
        assert out["subscribers_count"] == 2

    async def test_missing_channel(self):
        users = AsyncMock()
        users.aggregate.return_value = []
        with pytest.raises(errors.NotFound) as ei:
            await account_service.get_channel_profile(users, "ghost")
        assert ei.value.message == "Channel does not exist"

    async def test_watch_history(self):
        history = AsyncMock()
        vid = ObjectId()
        history.list_for_owner.return_value = [{"video": {"_id": vid}, "progress": 3.0}]
        out = await account_service.get_watch_history(history, "u")
        assert out == [{"video": {"id": str(vid)}, "progress": 3.0}]
