"""Storage provider factory for creating the appropriate storage instance."""

from supabase import AsyncClient

from elearning.config.settings import Settings

from .base import AbstractStorage
from .local import LocalStorage
from .supabase_storage import SupabaseStorage


def get_storage_provider(settings: Settings, client: AsyncClient | None = None) -> AbstractStorage:
    """Get the configured storage provider instance.

    Falls back to local storage when Supabase storage is requested but no
    client is available.
    """
    if settings.STORAGE_PROVIDER == "supabase" and client is not None:
        return SupabaseStorage(client, bucket_name=settings.COURSE_COVER_BUCKET)

    return LocalStorage(base_path=settings.LOCAL_STORAGE_PATH, base_url=settings.LOCAL_STORAGE_BASE_URL)
