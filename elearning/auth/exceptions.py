"""Authentication-specific exceptions."""

from fastapi import HTTPException, status


class AuthenticationError(HTTPException):
    """Base authentication error."""

    def __init__(self, detail: str = "Authentication failed") -> None:
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


class InvalidCredentialsError(AuthenticationError):
    """Invalid credentials provided."""

    def __init__(self, detail: str = "Invalid email or password") -> None:
        super().__init__(detail=detail)


class NotAuthenticatedError(AuthenticationError):
    """No authenticated user in the current view state."""

    def __init__(self) -> None:
        super().__init__(detail="Authentication required")


class InvalidInviteCodeError(HTTPException):
    """Teacher registration attempted with a wrong or disabled invite code."""

    def __init__(self) -> None:
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid Faculty Access Code. Please contact the administrator.",
        )


class AuthorizationError(HTTPException):
    """User is authenticated but lacks permissions."""

    def __init__(self, detail: str = "Insufficient permissions") -> None:
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class RoleRequiredError(HTTPException):
    """Authenticated user does not have the role an operation needs."""

    def __init__(self, role: str) -> None:
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=f"This action requires the {role} role")


class AuthGatewayError(Exception):
    """The auth provider could not complete a request (network, HTTP, provider error)."""
