"""Password checks applied before any call to the auth provider."""

from __future__ import annotations

from elearning.exceptions import ValidationError


class PasswordPolicyError(ValidationError):
    """Raised when a password does not satisfy policy requirements."""


def validate_password_policy(password: str, *, min_length: int) -> None:
    if len(password) < min_length:
        message = f"Password must be at least {min_length} characters"
        raise PasswordPolicyError(message)


def validate_password_change(new_password: str, confirm_password: str, *, min_length: int) -> None:
    """Validate a password change form: confirmation first, then length."""
    if new_password != confirm_password:
        message = "Passwords do not match"
        raise PasswordPolicyError(message)
    validate_password_policy(new_password, min_length=min_length)
