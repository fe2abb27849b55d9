"""Local filesystem storage implementation."""

from pathlib import Path

import aiofiles

from .base import AbstractStorage
from .exceptions import FileUploadError


class LocalStorage(AbstractStorage):
    """Local filesystem storage provider used for development."""

    def __init__(self, base_path: str | Path, base_url: str) -> None:
        """Initialize local storage with base path.

        Args:
            base_path: Base directory path for storing files
            base_url: URL prefix the files are served from
        """
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)
        self.base_url = base_url.rstrip("/")

    def _get_full_path(self, key: str) -> Path:
        return self.base_path / key

    async def upload(self, file_content: bytes, key: str, content_type: str | None = None) -> str:  # noqa: ARG002
        """Write the file below the base path and return its served URL."""
        try:
            path = self._get_full_path(key)
            path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(path, "wb") as f:
                await f.write(file_content)
        except OSError as e:
            msg = f"Failed to upload file locally: {key}"
            raise FileUploadError(msg) from e
        return f"{self.base_url}/{key}"
