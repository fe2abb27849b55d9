"""Abstract storage interface for different storage providers."""

from abc import ABC, abstractmethod


class AbstractStorage(ABC):
    """Abstract base class for storage providers."""

    @abstractmethod
    async def upload(self, file_content: bytes, key: str, content_type: str | None = None) -> str:
        """Upload file content to storage.

        Args:
            file_content: The file content as bytes
            key: The storage key/path for the file
            content_type: Optional MIME type stored with the object

        Returns
        -------
            Public URL of the stored object.

        Raises
        ------
            FileUploadError: If the upload fails.
        """
        raise NotImplementedError
