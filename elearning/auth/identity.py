"""Derivation of the application identity from session and profile data.

Sources are merged in priority order: the fetched profile row, then the
metadata the auth provider stored at sign-up, then values synthesized from the
e-mail address. Role and name are always present afterwards.
"""

import logging
from collections.abc import Mapping
from typing import Any

from elearning.database.store import RowStore, StoreError

from .models import AuthUser, CurrentUser, Role


logger = logging.getLogger(__name__)

DEFAULT_DISPLAY_NAME = "Student"
DEFAULT_ROLE = Role.STUDENT


def _coerce_role(value: Any) -> Role | None:
    try:
        return Role(value)
    except ValueError:
        return None


def _email_local_part(email: str | None) -> str | None:
    if not email:
        return None
    return email.split("@", 1)[0] or None


def derive_current_user(
    user_id: str,
    email: str | None,
    profile: Mapping[str, Any] | None,
    metadata: Mapping[str, Any] | None,
) -> CurrentUser:
    """Merge profile, provider metadata and e-mail fallbacks into a `CurrentUser`."""
    profile = profile or {}
    metadata = metadata or {}

    role = _coerce_role(profile.get("role")) or _coerce_role(metadata.get("role")) or DEFAULT_ROLE
    name = (
        profile.get("full_name")
        or metadata.get("name")
        or _email_local_part(email)
        or DEFAULT_DISPLAY_NAME
    )

    return CurrentUser(
        id=user_id,
        name=name,
        email=email or "",
        role=role,
        avatar=profile.get("avatar_url") or None,
    )


async def fetch_profile(store: RowStore, user_id: str) -> dict[str, Any] | None:
    """Load the profile row, or None when it is missing or cannot be fetched."""
    try:
        return await store.select_one("profiles", filters={"id": user_id}, columns="full_name, role, avatar_url")
    except StoreError as e:
        logger.warning(f"Profile fetch failed for user {user_id}, falling back to metadata: {e}")
        return None


async def resolve_identity(store: RowStore, user: AuthUser) -> CurrentUser:
    """Build a fresh identity for `user`. Never raises on profile fetch failure."""
    profile = await fetch_profile(store, user.id)
    return derive_current_user(user.id, user.email, profile, user.user_metadata)
