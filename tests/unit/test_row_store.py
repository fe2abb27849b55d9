"""Supabase adapters: PostgREST error translation, query building and bucket uploads."""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from postgrest import APIError
from storage3.utils import StorageException

from elearning.config.settings import Settings
from elearning.database.store import (
    DuplicateRowError,
    PolicyRejectedError,
    StoreError,
    SupabaseRowStore,
    translate_api_error,
)
from elearning.storage.exceptions import FileUploadError
from elearning.storage.factory import get_storage_provider
from elearning.storage.local import LocalStorage
from elearning.storage.supabase_storage import SupabaseStorage


def _api_error(code: str) -> APIError:
    return APIError({"message": "denied", "code": code, "hint": None, "details": None})


def _query_chain(data: list[dict] | None = None, error: Exception | None = None) -> MagicMock:
    """A query builder whose filter methods return itself."""
    query = MagicMock()
    for method in ("select", "insert", "update", "delete", "upsert", "eq", "in_", "order", "limit"):
        getattr(query, method).return_value = query
    query.execute = AsyncMock(side_effect=error, return_value=MagicMock(data=data))
    return query


@pytest.mark.parametrize(
    ("code", "expected"),
    [("42501", PolicyRejectedError), ("23505", DuplicateRowError), ("PGRST301", StoreError)],
)
def test_translate_api_error(code: str, expected: type) -> None:
    error = translate_api_error("student_progress", _api_error(code))
    assert type(error) is expected
    assert error.table == "student_progress"


class TestSupabaseRowStore:
    @pytest.mark.asyncio
    async def test_select_applies_filters_and_order(self) -> None:
        query = _query_chain([{"id": "c1"}])
        client = MagicMock()
        client.table.return_value = query

        rows = await SupabaseRowStore(client).select(
            "lessons", filters={"is_deleted": False}, in_filters={"course_id": ("c1",)}, order_by="order_index"
        )

        assert rows == [{"id": "c1"}]
        client.table.assert_called_once_with("lessons")
        query.eq.assert_called_once_with("is_deleted", False)
        query.in_.assert_called_once_with("course_id", ["c1"])
        query.order.assert_called_once_with("order_index", desc=False)

    @pytest.mark.asyncio
    async def test_upsert_uses_conflict_columns(self) -> None:
        query = _query_chain([{"id": "p1"}])
        client = MagicMock()
        client.table.return_value = query

        row = {"user_id": "u", "course_id": "c", "lesson_id": "l", "completed": True}
        await SupabaseRowStore(client).upsert("student_progress", row, on_conflict=("user_id", "course_id", "lesson_id"))

        query.upsert.assert_called_once_with(row, on_conflict="user_id,course_id,lesson_id")

    @pytest.mark.asyncio
    async def test_policy_denial_is_translated(self) -> None:
        client = MagicMock()
        client.table.return_value = _query_chain(error=_api_error("42501"))

        with pytest.raises(PolicyRejectedError):
            await SupabaseRowStore(client).insert("courses", {"title": "x"})


class TestStorage:
    @pytest.mark.asyncio
    async def test_bucket_upload_returns_public_url(self) -> None:
        bucket = MagicMock()
        bucket.upload = AsyncMock()
        bucket.get_public_url = AsyncMock(return_value="https://cdn/course-covers/a.png")
        client = MagicMock()
        client.storage.from_.return_value = bucket

        url = await SupabaseStorage(client, "course-thumbnails").upload(b"img", "course-covers/a.png", "image/png")

        assert url == "https://cdn/course-covers/a.png"
        client.storage.from_.assert_called_with("course-thumbnails")
        bucket.upload.assert_awaited_once_with("course-covers/a.png", b"img", {"content-type": "image/png"})

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [StorageException("bucket missing"), httpx.ConnectError("unreachable")])
    async def test_bucket_failure_is_wrapped(self, error: Exception) -> None:
        bucket = MagicMock()
        bucket.upload = AsyncMock(side_effect=error)
        client = MagicMock()
        client.storage.from_.return_value = bucket

        with pytest.raises(FileUploadError):
            await SupabaseStorage(client, "course-thumbnails").upload(b"img", "k.png")

    @pytest.mark.asyncio
    async def test_programming_errors_are_not_wrapped(self) -> None:
        bucket = MagicMock()
        bucket.upload = AsyncMock(side_effect=TypeError("bad arguments"))
        client = MagicMock()
        client.storage.from_.return_value = bucket

        with pytest.raises(TypeError):
            await SupabaseStorage(client, "course-thumbnails").upload(b"img", "k.png")

    def test_factory(self, tmp_path) -> None:
        settings = Settings(LOCAL_STORAGE_PATH=str(tmp_path), STORAGE_PROVIDER="local")
        assert isinstance(get_storage_provider(settings, MagicMock()), LocalStorage)

        settings = Settings(LOCAL_STORAGE_PATH=str(tmp_path), STORAGE_PROVIDER="supabase")
        assert isinstance(get_storage_provider(settings, MagicMock()), SupabaseStorage)
