"""Servicio de videos con repositorios simulados (AsyncMock)."""
from unittest.mock import AsyncMock

import pytest
from bson import ObjectId

from app.core import errors
from app.services import video_service

from tests.conftest import FakeStorage, FakeUpload


@pytest.fixture
def owner():
    return {"id": str(ObjectId()), "username": "u1"}


@pytest.fixture
def videos():
    repo = AsyncMock()
    repo.find_by_owner_and_title.return_value = None
    return repo


@pytest.fixture
def history():
    return AsyncMock()


def test_parse_tags():
    assert video_service.parse_tags(" a, B,a ,, ") == ["a", "b"]
    assert video_service.parse_tags(None) == []


class TestPublish:
    async def test_uploads_and_inserts(self, videos, owner):
        storage = FakeStorage()
        vid = ObjectId()
        videos.insert_video.return_value = str(vid)
        videos.find_by_id.return_value = {"_id": vid, "title": "T", "owner": ObjectId(owner["id"])}

        out = await video_service.publish_video(
            videos, storage, owner,
            title=" T ", description="D", video_file=FakeUpload("v.mp4", "video/mp4"),
            thumbnail=FakeUpload(), tags="x,y", duration=12.5,
        )

        doc = videos.insert_video.await_args.args[0]
        assert doc["title"] == "T"
        assert doc["tags"] == ["x", "y"]
        assert doc["owner"] == ObjectId(owner["id"])
        assert len(storage.uploaded) == 2
        assert out["id"] == str(vid)

    async def test_requires_title_and_description(self, videos, owner):
        with pytest.raises(errors.ValidationError) as ei:
            await video_service.publish_video(videos, FakeStorage(), owner, title="T", description=" ")
        assert ei.value.message == "Please provide title, and description"

    async def test_requires_files(self, videos, owner):
        with pytest.raises(errors.ValidationError):
            await video_service.publish_video(videos, FakeStorage(), owner, title="T", description="D", thumbnail=FakeUpload())

    async def test_duplicate_title(self, videos, owner):
        videos.find_by_owner_and_title.return_value = {"_id": ObjectId()}
        with pytest.raises(errors.Conflict):
            await video_service.publish_video(
                videos, FakeStorage(), owner, title="T", description="D",
                video_file=FakeUpload("v.mp4"), thumbnail=FakeUpload(),
            )
        videos.insert_video.assert_not_awaited()

    async def test_storage_failure_is_internal(self, videos, owner):
        with pytest.raises(errors.InternalError):
            await video_service.publish_video(
                videos, FakeStorage(fail=True), owner, title="T", description="D",
                video_file=FakeUpload("v.mp4"), thumbnail=FakeUpload(),
            )


class TestList:
    async def test_owner_sees_unpublished(self, videos, owner):
        videos.list_videos.return_value = {"docs": [], "total_docs": 0}
        await video_service.list_videos(videos, viewer=owner, user_id=owner["id"], limit=1000)
        kwargs = videos.list_videos.await_args.kwargs
        assert kwargs["include_unpublished"] is True
        assert kwargs["limit"] == video_service.MAX_PAGE_SIZE

    async def test_anonymous_sees_published_only(self, videos, owner):
        videos.list_videos.return_value = {"docs": []}
        await video_service.list_videos(videos, viewer=None, user_id=owner["id"])
        assert videos.list_videos.await_args.kwargs["include_unpublished"] is False

    async def test_invalid_user_id(self, videos):
        with pytest.raises(errors.ValidationError):
            await video_service.list_videos(videos, user_id="nope")


class TestGetVideo:
    async def test_counts_view_and_records_history(self, videos, history, owner):
        vid = ObjectId()
        videos.get_detail.return_value = {"_id": vid, "is_published": True, "views": 4, "owner": {"_id": ObjectId()}}
        out = await video_service.get_video(videos, history, str(vid), owner)
        assert out["views"] == 5
        videos.increment_views.assert_awaited_once_with(str(vid))
        history.record.assert_awaited_once_with(str(vid), owner["id"])

    async def test_unpublished_hidden_from_others(self, videos, history, owner):
        videos.get_detail.return_value = {"_id": ObjectId(), "is_published": False, "owner": {"_id": ObjectId()}}
        with pytest.raises(errors.NotFound):
            await video_service.get_video(videos, history, "x", owner)
        history.record.assert_not_awaited()

    async def test_unpublished_visible_to_owner(self, videos, history, owner):
        videos.get_detail.return_value = {"_id": ObjectId(), "is_published": False, "owner": {"_id": ObjectId(owner["id"])}}
        out = await video_service.get_video(videos, history, "x", owner)
        assert out["views"] == 1


class TestOwnership:
    async def test_update_by_other_user_is_forbidden(self, videos, owner):
        videos.find_by_id.return_value = {"_id": ObjectId(), "owner": ObjectId()}
        with pytest.raises(errors.Forbidden):
            await video_service.update_video(videos, FakeStorage(), owner, "x", title="New")

    async def test_update_missing_video(self, videos, owner):
        videos.find_by_id.return_value = None
        with pytest.raises(errors.NotFound):
            await video_service.toggle_publish(videos, owner, "x")

    async def test_update_replaces_thumbnail(self, videos, owner):
        storage = FakeStorage()
        videos.find_by_id.return_value = {"_id": ObjectId(), "owner": ObjectId(owner["id"]), "thumbnail": "old"}
        videos.update_video.return_value = {"_id": ObjectId(), "title": "New"}
        await video_service.update_video(videos, storage, owner, "x", title="New", thumbnail=FakeUpload())
        fields = videos.update_video.await_args.args[1]
        assert fields["title"] == "New"
        assert fields["thumbnail"] == storage.uploaded[0]
        assert storage.deleted == ["old"]

    async def test_update_without_fields(self, videos, owner):
        videos.find_by_id.return_value = {"_id": ObjectId(), "owner": ObjectId(owner["id"])}
        with pytest.raises(errors.ValidationError):
            await video_service.update_video(videos, FakeStorage(), owner, "x")

    async def test_toggle_publish_flips_flag(self, videos, owner):
        videos.find_by_id.return_value = {"_id": ObjectId(), "owner": ObjectId(owner["id"]), "is_published": True}
        videos.update_video.return_value = {"is_published": False}
        await video_service.toggle_publish(videos, owner, "x")
        assert videos.update_video.await_args.args[1] == {"is_published": False}

    async def test_delete_cascades(self, videos, history, owner):
        likes = AsyncMock()
        storage = FakeStorage()
        videos.find_by_id.return_value = {
            "_id": ObjectId(), "owner": ObjectId(owner["id"]), "video_file": "v", "thumbnail": "t"
        }
        videos.delete_video.return_value = True
        await video_service.delete_video(videos, likes, history, storage, owner, "x")
        likes.delete_for_video.assert_awaited_once_with("x")
        history.delete_for_video.assert_awaited_once_with("x")
        assert storage.deleted == ["v", "t"]


class TestProgress:
    async def test_records_progress(self, videos, history, owner):
        videos.find_by_id.return_value = {"_id": ObjectId()}
        await video_service.record_progress(videos, history, owner, "x", 42.0)
        history.record.assert_awaited_once_with("x", owner["id"], progress=42.0)

    async def test_negative_progress(self, videos, history, owner):
        with pytest.raises(errors.ValidationError):
            await video_service.record_progress(videos, history, owner, "x", -1)
