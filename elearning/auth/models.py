"""Identity, session and view-state models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict


class Role(StrEnum):
    TEACHER = "teacher"
    STUDENT = "student"


class SessionEvent(StrEnum):
    """Session-change events emitted by the auth provider."""

    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"
    PASSWORD_RECOVERY = "PASSWORD_RECOVERY"


class CurrentUser(BaseModel):
    """Application-level identity derived from a session and profile."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    email: str
    role: Role
    avatar: str | None = None


@dataclass(frozen=True)
class AuthUser:
    """Provider account record attached to a session."""

    id: str
    email: str | None
    user_metadata: dict[str, Any] = field(default_factory=dict)
    email_confirmed_at: datetime | None = None


@dataclass(frozen=True)
class AuthSession:
    """Opaque proof of authentication plus the account it belongs to."""

    access_token: str
    user: AuthUser


# View state: exactly one of these is current at any time.


@dataclass(frozen=True)
class AwaitingAuth:
    kind: ClassVar[str] = "awaiting_auth"


@dataclass(frozen=True)
class ConfirmingEmail:
    email: str | None = None
    kind: ClassVar[str] = "confirming_email"


@dataclass(frozen=True)
class Authenticated:
    user: CurrentUser
    kind: ClassVar[str] = "authenticated"


ViewState = AwaitingAuth | ConfirmingEmail | Authenticated
