"""Boundary to the hosted auth provider.

`AuthGateway` is the only surface the reconciler and account service use.
`SupabaseAuthGateway` adapts the Supabase async client to it and converts the
SDK's session objects into `AuthSession` values.
"""

import logging
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any, Protocol

import httpx
from supabase import AsyncClient, AuthApiError, AuthError

from .exceptions import AuthGatewayError, InvalidCredentialsError
from .models import AuthSession, AuthUser, SessionEvent


logger = logging.getLogger(__name__)

SessionCallback = Callable[[SessionEvent, AuthSession | None], None]


class Subscription(Protocol):
    def unsubscribe(self) -> None: ...


class AuthGateway(Protocol):
    """Auth operations consumed by the application shell."""

    async def get_session(self) -> AuthSession | None: ...

    def on_session_change(self, callback: SessionCallback) -> Subscription: ...

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession: ...

    async def sign_up(
        self, email: str, password: str, metadata: Mapping[str, Any], redirect_to: str | None = None
    ) -> AuthSession | None: ...

    async def update_password(self, new_password: str) -> None: ...

    async def sign_out(self) -> None: ...


def _parse_timestamp(value: Any) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def to_auth_session(session: Any) -> AuthSession | None:
    """Convert a Supabase `Session` into an `AuthSession`."""
    if session is None or session.user is None:
        return None
    user = session.user
    return AuthSession(
        access_token=session.access_token,
        user=AuthUser(
            id=str(user.id),
            email=user.email,
            user_metadata=dict(user.user_metadata or {}),
            email_confirmed_at=_parse_timestamp(getattr(user, "email_confirmed_at", None)),
        ),
    )


class SupabaseAuthGateway:
    """`AuthGateway` backed by the Supabase auth client."""

    def __init__(self, client: AsyncClient) -> None:
        self._client = client

    async def get_session(self) -> AuthSession | None:
        try:
            session = await self._client.auth.get_session()
        except (AuthError, httpx.HTTPError) as e:
            msg = f"Session probe failed: {e}"
            raise AuthGatewayError(msg) from e
        return to_auth_session(session)

    def on_session_change(self, callback: SessionCallback) -> Subscription:
        def forward(event: str, session: Any) -> None:
            try:
                session_event = SessionEvent(event)
            except ValueError:
                logger.debug(f"Ignoring auth event {event}")
                return
            callback(session_event, to_auth_session(session))

        return self._client.auth.on_auth_state_change(forward)

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        try:
            response = await self._client.auth.sign_in_with_password({"email": email, "password": password})
        except AuthApiError as e:
            if e.status == 400:
                raise InvalidCredentialsError(e.message) from e
            msg = f"Sign-in failed: {e.message}"
            raise AuthGatewayError(msg) from e
        except (AuthError, httpx.HTTPError) as e:
            msg = f"Sign-in failed: {e}"
            raise AuthGatewayError(msg) from e

        session = to_auth_session(response.session)
        if session is None:
            raise InvalidCredentialsError
        return session

    async def sign_up(
        self, email: str, password: str, metadata: Mapping[str, Any], redirect_to: str | None = None
    ) -> AuthSession | None:
        options: dict[str, Any] = {"data": dict(metadata)}
        if redirect_to:
            options["email_redirect_to"] = redirect_to
        try:
            response = await self._client.auth.sign_up({"email": email, "password": password, "options": options})
        except (AuthError, httpx.HTTPError) as e:
            msg = f"Registration failed: {e}"
            raise AuthGatewayError(msg) from e
        return to_auth_session(response.session)

    async def update_password(self, new_password: str) -> None:
        try:
            await self._client.auth.update_user({"password": new_password})
        except (AuthError, httpx.HTTPError) as e:
            msg = f"Password update failed: {e}"
            raise AuthGatewayError(msg) from e

    async def sign_out(self) -> None:
        try:
            await self._client.auth.sign_out()
        except (AuthError, httpx.HTTPError) as e:
            msg = f"Sign-out failed: {e}"
            raise AuthGatewayError(msg) from e
