"""In-memory stand-ins for the hosted auth provider and row store."""

import asyncio
import itertools
import uuid
from collections.abc import Mapping, Sequence
from datetime import UTC, datetime
from typing import Any

from elearning.auth.exceptions import InvalidCredentialsError
from elearning.auth.models import AuthSession, AuthUser, SessionEvent
from elearning.database.store import DuplicateRowError, Row


def make_session(
    user_id: str = "user-1",
    email: str | None = "ada@example.com",
    metadata: Mapping[str, Any] | None = None,
    confirmed_at: datetime | None = None,
) -> AuthSession:
    return AuthSession(
        access_token=f"token-{user_id}",
        user=AuthUser(id=user_id, email=email, user_metadata=dict(metadata or {}), email_confirmed_at=confirmed_at),
    )


class FakeSubscription:
    def __init__(self, gateway: "FakeAuthGateway", callback) -> None:
        self._gateway = gateway
        self._callback = callback
        self.active = True

    def unsubscribe(self) -> None:
        self.active = False
        if self._callback in self._gateway.callbacks:
            self._gateway.callbacks.remove(self._callback)


class FakeAuthGateway:
    """Scriptable `AuthGateway`.

    `probe_gate`, when set, holds every `get_session` call until the event is
    set, which lets tests exercise the probe timeout.
    """

    def __init__(self, session: AuthSession | None = None) -> None:
        self.session = session
        self.callbacks: list = []
        self.subscriptions: list[FakeSubscription] = []
        self.probe_gate: asyncio.Event | None = None
        self.probe_calls = 0
        self.probe_error: Exception | None = None
        self.accounts: dict[str, tuple[str, AuthSession]] = {}
        self.sign_ups: list[dict[str, Any]] = []
        self.sign_up_opens_session = False
        self.sign_up_confirmed_at: datetime | None = None
        # Awaited after the SIGNED_IN event, before sign_up returns
        self.after_sign_up = None
        self.password_updates: list[str] = []
        self.sign_out_error: Exception | None = None
        self.sign_out_calls = 0

    def emit(self, event: SessionEvent, session: AuthSession | None) -> None:
        for callback in list(self.callbacks):
            callback(event, session)

    def add_account(self, email: str, password: str, session: AuthSession) -> None:
        self.accounts[email] = (password, session)

    async def get_session(self) -> AuthSession | None:
        self.probe_calls += 1
        if self.probe_gate is not None:
            await self.probe_gate.wait()
        if self.probe_error is not None:
            raise self.probe_error
        return self.session

    def on_session_change(self, callback) -> FakeSubscription:
        self.callbacks.append(callback)
        subscription = FakeSubscription(self, callback)
        self.subscriptions.append(subscription)
        return subscription

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        account = self.accounts.get(email)
        if account is None or account[0] != password:
            raise InvalidCredentialsError
        self.session = account[1]
        self.emit(SessionEvent.SIGNED_IN, self.session)
        return self.session

    async def sign_up(
        self, email: str, password: str, metadata: Mapping[str, Any], redirect_to: str | None = None
    ) -> AuthSession | None:
        self.sign_ups.append({"email": email, "password": password, "metadata": dict(metadata), "redirect_to": redirect_to})
        if not self.sign_up_opens_session:
            return None
        session = make_session(f"user-{len(self.sign_ups)}", email, metadata, self.sign_up_confirmed_at)
        self.session = session
        self.emit(SessionEvent.SIGNED_IN, session)
        if self.after_sign_up is not None:
            await self.after_sign_up()
        return session

    async def update_password(self, new_password: str) -> None:
        self.password_updates.append(new_password)

    async def sign_out(self) -> None:
        self.sign_out_calls += 1
        if self.sign_out_error is not None:
            raise self.sign_out_error
        self.session = None
        self.emit(SessionEvent.SIGNED_OUT, None)


class InMemoryRowStore:
    """`RowStore` over plain dicts with unique keys and failure injection."""

    UNIQUE_KEYS: dict[str, tuple[str, ...]] = {
        "enrollments": ("user_id", "course_id"),
        "student_progress": ("user_id", "course_id", "lesson_id"),
    }

    def __init__(self, tables: Mapping[str, list[Row]] | None = None) -> None:
        self.tables: dict[str, list[Row]] = {name: [dict(row) for row in rows] for name, rows in (tables or {}).items()}
        self.calls: list[tuple[str, str]] = []
        self._failures: dict[tuple[str, str], list[Exception]] = {}
        self._clock = itertools.count()
        self.upsert_gate: asyncio.Event | None = None
        self.active_upserts = 0
        self.max_active_upserts = 0

    def fail_next(self, op: str, table: str, error: Exception, times: int = 1) -> None:
        self._failures.setdefault((op, table), []).extend([error] * times)

    def _check(self, op: str, table: str) -> None:
        self.calls.append((op, table))
        pending = self._failures.get((op, table))
        if pending:
            raise pending.pop(0)

    def rows(self, table: str) -> list[Row]:
        return self.tables.setdefault(table, [])

    @staticmethod
    def _matches(row: Row, filters: Mapping[str, Any] | None, in_filters: Mapping[str, Sequence[Any]] | None) -> bool:
        for key, value in (filters or {}).items():
            if row.get(key) != value:
                return False
        for key, values in (in_filters or {}).items():
            if row.get(key) not in values:
                return False
        return True

    def _duplicate(self, table: str, row: Mapping[str, Any]) -> bool:
        key = self.UNIQUE_KEYS.get(table)
        if key is None:
            return False
        return any(all(existing.get(k) == row.get(k) for k in key) for existing in self.rows(table))

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
        self._check("select", table)
        result = [dict(row) for row in self.rows(table) if self._matches(row, filters, in_filters)]
        if order_by:
            result.sort(key=lambda row: row.get(order_by) or 0, reverse=descending)
        return result

    async def select_one(self, table: str, *, filters: Mapping[str, Any], columns: str = "*") -> Row | None:
        rows = await self.select(table, filters=filters, columns=columns)
        return rows[0] if rows else None

    async def insert(self, table: str, row: Mapping[str, Any]) -> Row:
        self._check("insert", table)
        if self._duplicate(table, row):
            raise DuplicateRowError(table, "duplicate key value violates unique constraint")
        stored = {"id": str(uuid.uuid4()), "created_at": next(self._clock), **row}
        self.rows(table).append(stored)
        return dict(stored)

    async def update(self, table: str, values: Mapping[str, Any], *, filters: Mapping[str, Any]) -> list[Row]:
        self._check("update", table)
        updated = []
        for row in self.rows(table):
            if self._matches(row, filters, None):
                row.update(values)
                updated.append(dict(row))
        return updated

    async def delete(self, table: str, *, filters: Mapping[str, Any]) -> int:
        self._check("delete", table)
        before = len(self.rows(table))
        self.tables[table] = [row for row in self.rows(table) if not self._matches(row, filters, None)]
        return before - len(self.tables[table])

    async def upsert(self, table: str, row: Mapping[str, Any], *, on_conflict: Sequence[str]) -> Row:
        self.active_upserts += 1
        self.max_active_upserts = max(self.max_active_upserts, self.active_upserts)
        try:
            if self.upsert_gate is not None:
                await self.upsert_gate.wait()
            else:
                await asyncio.sleep(0)
            self._check("upsert", table)
            for existing in self.rows(table):
                if all(existing.get(k) == row.get(k) for k in on_conflict):
                    existing.update(row)
                    return dict(existing)
            stored = {"id": str(uuid.uuid4()), **row}
            self.rows(table).append(stored)
            return dict(stored)
        finally:
            self.active_upserts -= 1


def utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=UTC)
