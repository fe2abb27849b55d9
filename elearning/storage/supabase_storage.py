"""Supabase object storage implementation."""

import logging

import httpx
from storage3.utils import StorageException
from supabase import AsyncClient

from .base import AbstractStorage
from .exceptions import FileUploadError


logger = logging.getLogger(__name__)


class SupabaseStorage(AbstractStorage):
    """Bucket-backed storage that hands out public URLs."""

    def __init__(self, client: AsyncClient, bucket_name: str) -> None:
        self._client = client
        self.bucket_name = bucket_name

    async def upload(self, file_content: bytes, key: str, content_type: str | None = None) -> str:
        """Upload to the bucket and return the object's public URL."""
        bucket = self._client.storage.from_(self.bucket_name)
        file_options = {"content-type": content_type} if content_type else None
        try:
            await bucket.upload(key, file_content, file_options)
            return await bucket.get_public_url(key)
        except (StorageException, httpx.HTTPError) as e:
            logger.exception(f"Upload to bucket {self.bucket_name} failed for {key}")
            msg = f"Failed to upload {key}: {e}"
            raise FileUploadError(msg) from e
