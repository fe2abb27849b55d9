"""Email-confirmation marker detection.

A session is treated as "just confirmed" when any of three markers holds: the
browser URL fragment carries a confirmation redirect, the account's
`email_confirmed_at` lies inside a short window, or a locally persisted
pending-confirmation flag exists for the e-mail. Detection never mutates
anything; the reconciler clears the fragment when it acts on a match.
"""

import asyncio
import json
import logging
from collections.abc import Callable, Collection
from datetime import UTC, datetime, timedelta
from enum import StrEnum
from pathlib import Path
from urllib.parse import parse_qs

import aiofiles

from .models import AuthSession


logger = logging.getLogger(__name__)

CONFIRMATION_TYPES = frozenset({"signup", "email"})


class ConfirmationMarker(StrEnum):
    FRAGMENT = "fragment"
    RECENT_CONFIRMATION = "recent_confirmation"
    PENDING_FLAG = "pending_flag"


def parse_fragment(fragment: str) -> dict[str, str]:
    """Parse `#a=1&b=2` style fragments into a flat dict (first value wins)."""
    params = parse_qs(fragment.lstrip("#"))
    return {key: values[0] for key, values in params.items() if values}


def fragment_has_confirmation_marker(fragment: str) -> bool:
    params = parse_fragment(fragment)
    kind = params.get("type")
    if kind in CONFIRMATION_TYPES:
        return True
    return bool(params.get("access_token")) and bool(kind)


class UrlFragment:
    """The browser location fragment as last reported by the front end."""

    def __init__(self, value: str = "") -> None:
        self._value = value

    def read(self) -> str:
        return self._value

    def replace(self, value: str) -> None:
        self._value = value

    def clear(self) -> None:
        # Equivalent of history.replaceState: no navigation, fragment gone
        self._value = ""


class PendingConfirmationStore:
    """E-mails awaiting confirmation, persisted as a JSON list on disk."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._lock = asyncio.Lock()

    @staticmethod
    def _key(email: str) -> str:
        return email.strip().lower()

    async def _load(self) -> set[str]:
        if not self.path.exists():
            return set()
        async with aiofiles.open(self.path, encoding="utf-8") as f:
            raw = await f.read()
        try:
            return set(json.loads(raw or "[]"))
        except json.JSONDecodeError:
            logger.warning(f"Pending confirmation file {self.path} is corrupt, starting empty")
            return set()

    async def _save(self, emails: set[str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(self.path, "w", encoding="utf-8") as f:
            await f.write(json.dumps(sorted(emails)))

    async def mark(self, email: str) -> None:
        async with self._lock:
            emails = await self._load()
            emails.add(self._key(email))
            await self._save(emails)

    async def is_pending(self, email: str) -> bool:
        async with self._lock:
            return self._key(email) in await self._load()

    async def clear(self, email: str) -> None:
        async with self._lock:
            emails = await self._load()
            if self._key(email) in emails:
                emails.discard(self._key(email))
                await self._save(emails)


class ConfirmationDetector:
    """Decides whether a session belongs to a user who just confirmed their e-mail."""

    def __init__(
        self,
        fragment: UrlFragment,
        pending: PendingConfirmationStore,
        window_seconds: float,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.fragment = fragment
        self.pending = pending
        self.window = timedelta(seconds=window_seconds)
        self._clock = clock or (lambda: datetime.now(UTC))

    def _recently_confirmed(self, confirmed_at: datetime | None) -> bool:
        if confirmed_at is None:
            return False
        if confirmed_at.tzinfo is None:
            confirmed_at = confirmed_at.replace(tzinfo=UTC)
        return abs(self._clock() - confirmed_at) <= self.window

    async def detect(self, session: AuthSession, acknowledged: Collection[str] = ()) -> ConfirmationMarker | None:
        """Return the first matching marker for `session`, or None.

        Users in `acknowledged` already passed the confirmation screen and are
        exempt from the recency marker.
        """
        if fragment_has_confirmation_marker(self.fragment.read()):
            return ConfirmationMarker.FRAGMENT

        user = session.user
        if user.id not in acknowledged and self._recently_confirmed(user.email_confirmed_at):
            return ConfirmationMarker.RECENT_CONFIRMATION

        if user.email and await self.pending.is_pending(user.email):
            return ConfirmationMarker.PENDING_FLAG

        return None
