"""Row store boundary for the hosted relational data service.

Feature modules talk to `RowStore` only. The Supabase implementation lives
beside it and translates PostgREST failures into the three error kinds the
application distinguishes: transient failures, row-level policy rejections and
unique-key conflicts.
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Any, Protocol

import httpx
from postgrest import APIError
from supabase import AsyncClient


logger = logging.getLogger(__name__)

Row = dict[str, Any]

# Postgres SQLSTATE codes surfaced by PostgREST
INSUFFICIENT_PRIVILEGE = "42501"
UNIQUE_VIOLATION = "23505"


class StoreError(Exception):
    """Base exception for row store operations."""

    def __init__(self, table: str, message: str) -> None:
        self.table = table
        self.message = message
        super().__init__(f"{table}: {message}")


class PolicyRejectedError(StoreError):
    """Raised when a row-level security policy denies the operation."""


class DuplicateRowError(StoreError):
    """Raised when an insert collides with a unique key."""


class RowStore(Protocol):
    """Minimal select/insert/update/delete/upsert surface over named collections."""

    async def select(
        self,
        table: str,
        *,
        filters: Mapping[str, Any] | None = None,
        in_filters: Mapping[str, Sequence[Any]] | None = None,
        order_by: str | None = None,
        descending: bool = False,
        columns: str = "*",
    ) -> list[Row]: ...

    async def select_one(self, table: str, *, filters: Mapping[str, Any], columns: str = "*") -> Row | None: ...

    async def insert(self, table: str, row: Mapping[str, Any]) -> Row: ...

    async def update(self, table: str, values: Mapping[str, Any], *, filters: Mapping[str, Any]) -> list[Row]: ...

    async def delete(self, table: str, *, filters: Mapping[str, Any]) -> int: ...

    async def upsert(self, table: str, row: Mapping[str, Any], *, on_conflict: Sequence[str]) -> Row: ...


def translate_api_error(table: str, error: APIError) -> StoreError:
    """Map a PostgREST error onto the store error hierarchy."""
    message = error.message or str(error)
    if error.code == INSUFFICIENT_PRIVILEGE:
        return PolicyRejectedError(table, message)
    if error.code == UNIQUE_VIOLATION:
        return DuplicateRowError(table, message)
    return StoreError(table, message)


class SupabaseRowStore:
    """`RowStore` backed by the Supabase PostgREST client."""

    def __init__(self, client: AsyncClient) -> None:
        self._client = client

    async def _execute(self, table: str, query: Any) -> list[Row]:
        try:
            response = await query.execute()
        except APIError as e:
            raise translate_api_error(table, e) from e
        except httpx.HTTPError as e:
            raise StoreError(table, f"request failed: {e}") from e
        return list(response.data or [])

    @staticmethod
    def _apply_filters(query: Any, filters: Mapping[str, Any] | None) -> Any:
        for column, value in (filters or {}).items():
            query = query.eq(column, value)
        return query

    async def select(
        self,
        table: str,
        *,
        filters: Mapping[str, Any] | None = None,
        in_filters: Mapping[str, Sequence[Any]] | None = None,
        order_by: str | None = None,
        descending: bool = False,
        columns: str = "*",
    ) -> list[Row]:
        query = self._apply_filters(self._client.table(table).select(columns), filters)
        for column, values in (in_filters or {}).items():
            query = query.in_(column, list(values))
        if order_by:
            query = query.order(order_by, desc=descending)
        return await self._execute(table, query)

    async def select_one(self, table: str, *, filters: Mapping[str, Any], columns: str = "*") -> Row | None:
        query = self._apply_filters(self._client.table(table).select(columns), filters).limit(1)
        rows = await self._execute(table, query)
        return rows[0] if rows else None

    async def insert(self, table: str, row: Mapping[str, Any]) -> Row:
        rows = await self._execute(table, self._client.table(table).insert(dict(row)))
        if not rows:
            raise StoreError(table, "insert returned no row")
        return rows[0]

    async def update(self, table: str, values: Mapping[str, Any], *, filters: Mapping[str, Any]) -> list[Row]:
        query = self._apply_filters(self._client.table(table).update(dict(values)), filters)
        return await self._execute(table, query)

    async def delete(self, table: str, *, filters: Mapping[str, Any]) -> int:
        query = self._apply_filters(self._client.table(table).delete(), filters)
        return len(await self._execute(table, query))

    async def upsert(self, table: str, row: Mapping[str, Any], *, on_conflict: Sequence[str]) -> Row:
        query = self._client.table(table).upsert(dict(row), on_conflict=",".join(on_conflict))
        rows = await self._execute(table, query)
        if not rows:
            raise StoreError(table, "upsert returned no row")
        return rows[0]
