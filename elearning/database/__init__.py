"""Row store access for the hosted data service."""

from .store import DuplicateRowError, PolicyRejectedError, Row, RowStore, StoreError, SupabaseRowStore


__all__ = [
    "DuplicateRowError",
    "PolicyRejectedError",
    "Row",
    "RowStore",
    "StoreError",
    "SupabaseRowStore",
]
