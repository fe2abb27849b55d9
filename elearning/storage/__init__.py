"""Storage module for course cover uploads with multiple providers."""

from .base import AbstractStorage
from .factory import get_storage_provider
from .local import LocalStorage
from .supabase_storage import SupabaseStorage


__all__ = [
    "AbstractStorage",
    "LocalStorage",
    "SupabaseStorage",
    "get_storage_provider",
]
