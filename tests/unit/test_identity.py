"""Identity derivation from profile rows, provider metadata and e-mail."""

import pytest

from elearning.auth.identity import derive_current_user, resolve_identity
from elearning.auth.models import AuthUser, Role
from elearning.database.store import StoreError


class TestDeriveCurrentUser:
    def test_profile_takes_precedence(self) -> None:
        user = derive_current_user(
            "u1",
            "ada@example.com",
            {"full_name": "Ada Lovelace", "role": "teacher", "avatar_url": "https://img/ada.png"},
            {"name": "Ada L", "role": "student"},
        )
        assert user.name == "Ada Lovelace"
        assert user.role == Role.TEACHER
        assert user.avatar == "https://img/ada.png"

    def test_metadata_used_without_profile(self) -> None:
        user = derive_current_user("u1", "ada@example.com", None, {"name": "Ada L", "role": "teacher"})
        assert user.name == "Ada L"
        assert user.role == Role.TEACHER

    def test_email_local_part_is_the_name_fallback(self) -> None:
        user = derive_current_user("u1", "ada@example.com", {}, {})
        assert user.name == "ada"
        assert user.role == Role.STUDENT

    def test_literal_fallback_without_email(self) -> None:
        user = derive_current_user("u1", None, None, None)
        assert user.name == "Student"
        assert user.email == ""

    def test_unknown_role_counts_as_absent(self) -> None:
        user = derive_current_user("u1", "a@b.c", {"role": "admin"}, {"role": "teacher"})
        assert user.role == Role.TEACHER

        user = derive_current_user("u1", "a@b.c", {"role": "admin"}, {"role": "owner"})
        assert user.role == Role.STUDENT


class TestResolveIdentity:
    @pytest.mark.asyncio
    async def test_reads_profile_row(self, store) -> None:
        user = await resolve_identity(store, AuthUser(id="teacher-1", email="grace@example.com"))
        assert user.name == "Grace Teacher"
        assert user.role == Role.TEACHER

    @pytest.mark.asyncio
    async def test_store_failure_falls_back_to_metadata(self, store) -> None:
        store.fail_next("select", "profiles", StoreError("profiles", "connection reset"))
        user = await resolve_identity(
            store,
            AuthUser(id="teacher-1", email="grace@example.com", user_metadata={"name": "G", "role": "teacher"}),
        )
        assert user.name == "G"
        assert user.role == Role.TEACHER
