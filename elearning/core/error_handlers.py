"""Centralized error handling system with proper categorization.

This module provides:
1. Error categories and codes shared by every endpoint
2. Consistent error response formatting
3. Exception handlers for auth, domain, data-service and storage failures
"""

import logging
from typing import Any
from uuid import uuid4

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

from elearning.auth.exceptions import (
    AuthenticationError,
    AuthGatewayError,
    AuthorizationError,
    InvalidCredentialsError,
    InvalidInviteCodeError,
    RoleRequiredError,
)
from elearning.database.store import DuplicateRowError, PolicyRejectedError, StoreError
from elearning.exceptions import EnrollmentRequiredError, ResourceNotFoundError, ValidationError
from elearning.storage.exceptions import StorageError


logger = logging.getLogger(__name__)


# === Error Categories ===


class ErrorCategory:
    """Error category constants."""

    AUTHENTICATION = "AUTHENTICATION_ERROR"
    AUTHORIZATION = "AUTHORIZATION_ERROR"
    VALIDATION = "VALIDATION_ERROR"
    DATABASE = "DATABASE_ERROR"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    EXTERNAL_SERVICE = "EXTERNAL_SERVICE_ERROR"
    INTERNAL = "INTERNAL_ERROR"


class ErrorCode:
    """Specific error codes for better client handling."""

    # Authentication errors
    AUTH_REQUIRED = "AUTH_REQUIRED"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"

    # Authorization errors
    ACCESS_DENIED = "ACCESS_DENIED"
    INSUFFICIENT_PERMISSIONS = "INSUFFICIENT_PERMISSIONS"
    ENROLLMENT_REQUIRED = "ENROLLMENT_REQUIRED"
    INVALID_INVITE_CODE = "INVALID_INVITE_CODE"
    POLICY_REJECTED = "POLICY_REJECTED"

    # Validation errors
    INVALID_INPUT = "INVALID_INPUT"

    # Database errors
    DB_UNIQUE_VIOLATION = "DB_UNIQUE_VIOLATION"

    # Resource errors
    NOT_FOUND = "NOT_FOUND"

    # External service errors
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"

    # Internal errors
    INTERNAL = "INTERNAL_ERROR"


# === Error Response Formatting ===


def format_error_response(
    category: str,
    code: str,
    detail: str,
    status_code: int,
    suggestions: list[str] | None = None,
    metadata: dict[str, Any] | None = None,
) -> JSONResponse:
    """Format a consistent error response."""
    content: dict[str, Any] = {
        "error": {
            "category": category,
            "code": code,
            "detail": detail,
        }
    }

    if suggestions:
        content["error"]["suggestions"] = suggestions

    if metadata:
        content["error"]["metadata"] = metadata

    return JSONResponse(status_code=status_code, content=content)


# === Exception Handlers ===


async def handle_authentication_errors(request: Request, exc: AuthenticationError) -> JSONResponse:
    """Handle authentication-related errors."""
    logger.warning(f"Authentication error on {request.method} {request.url.path}: {exc.detail}")

    if isinstance(exc, InvalidCredentialsError):
        code = ErrorCode.INVALID_CREDENTIALS
        suggestions = ["Check your credentials and try again"]
    else:
        code = ErrorCode.AUTH_REQUIRED
        suggestions = ["Please log in to access this resource"]

    return format_error_response(
        category=ErrorCategory.AUTHENTICATION,
        code=code,
        detail=exc.detail,
        status_code=status.HTTP_401_UNAUTHORIZED,
        suggestions=suggestions,
    )


async def handle_authorization_errors(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle authorization errors (403)."""
    logger.warning(f"Authorization error on {request.method} {request.url.path}: {exc.detail}")

    if isinstance(exc, InvalidInviteCodeError):
        code = ErrorCode.INVALID_INVITE_CODE
    elif isinstance(exc, RoleRequiredError):
        code = ErrorCode.INSUFFICIENT_PERMISSIONS
    else:
        code = ErrorCode.ACCESS_DENIED

    return format_error_response(
        category=ErrorCategory.AUTHORIZATION,
        code=code,
        detail=exc.detail,
        status_code=status.HTTP_403_FORBIDDEN,
    )


async def handle_enrollment_errors(request: Request, exc: EnrollmentRequiredError) -> JSONResponse:
    """Lesson content or progress requested for a course the student has not joined."""
    logger.info(f"Enrollment required on {request.method} {request.url.path}: {exc.course_id}")

    return format_error_response(
        category=ErrorCategory.AUTHORIZATION,
        code=ErrorCode.ENROLLMENT_REQUIRED,
        detail=exc.message,
        status_code=status.HTTP_403_FORBIDDEN,
        suggestions=["Enroll in the course to access its lessons"],
        metadata={"course_id": exc.course_id},
    )


async def handle_validation_errors(request: Request, exc: ValidationError) -> JSONResponse:
    """Handle domain validation errors raised before any network call."""
    logger.info(f"Validation error on {request.method} {request.url.path}", extra={"error": str(exc)})

    return format_error_response(
        category=ErrorCategory.VALIDATION,
        code=ErrorCode.INVALID_INPUT,
        detail=exc.message,
        status_code=status.HTTP_400_BAD_REQUEST,
    )


async def handle_store_errors(request: Request, exc: StoreError) -> JSONResponse:
    """Handle failures reported by the hosted data service."""
    if isinstance(exc, PolicyRejectedError):
        logger.warning(f"Policy rejected {request.method} {request.url.path}: {exc}")
        return format_error_response(
            category=ErrorCategory.AUTHORIZATION,
            code=ErrorCode.POLICY_REJECTED,
            detail="The data service rejected this change",
            status_code=status.HTTP_403_FORBIDDEN,
            metadata={"table": exc.table},
        )

    if isinstance(exc, DuplicateRowError):
        logger.info(f"Duplicate row on {request.method} {request.url.path}: {exc}")
        return format_error_response(
            category=ErrorCategory.DATABASE,
            code=ErrorCode.DB_UNIQUE_VIOLATION,
            detail="This resource already exists",
            status_code=status.HTTP_409_CONFLICT,
        )

    logger.error(f"Data service error on {request.method} {request.url.path}: {exc}")
    return format_error_response(
        category=ErrorCategory.DATABASE,
        code=ErrorCode.SERVICE_UNAVAILABLE,
        detail="The data service is unavailable",
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        suggestions=["Please try again later"],
    )


async def handle_external_service_errors(request: Request, exc: Exception) -> JSONResponse:
    """Handle auth provider and object storage failures."""
    logger.error(f"External service error on {request.method} {request.url.path}: {exc}")

    service = "Authentication" if isinstance(exc, AuthGatewayError) else "Storage"
    return format_error_response(
        category=ErrorCategory.EXTERNAL_SERVICE,
        code=ErrorCode.SERVICE_UNAVAILABLE,
        detail=f"{service} service error: {exc}",
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        suggestions=["The service is temporarily unavailable", "Please try again later"],
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach every handler above to `app`."""

    @app.exception_handler(ResourceNotFoundError)
    async def resource_not_found_handler(_request: Request, exc: ResourceNotFoundError) -> JSONResponse:
        return format_error_response(
            category=ErrorCategory.RESOURCE_NOT_FOUND,
            code=ErrorCode.NOT_FOUND,
            detail=str(exc),
            status_code=status.HTTP_404_NOT_FOUND,
            suggestions=["The requested resource does not exist"],
        )

    app.add_exception_handler(AuthenticationError, handle_authentication_errors)
    app.add_exception_handler(AuthorizationError, handle_authorization_errors)
    app.add_exception_handler(RoleRequiredError, handle_authorization_errors)
    app.add_exception_handler(InvalidInviteCodeError, handle_authorization_errors)
    app.add_exception_handler(EnrollmentRequiredError, handle_enrollment_errors)
    app.add_exception_handler(ValidationError, handle_validation_errors)
    app.add_exception_handler(StoreError, handle_store_errors)
    app.add_exception_handler(AuthGatewayError, handle_external_service_errors)
    app.add_exception_handler(StorageError, handle_external_service_errors)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Global exception handler for unhandled errors."""
        error_id = uuid4()
        logger.error(
            f"Unhandled error {error_id} on {request.method} {request.url.path}",
            exc_info=exc,
        )
        return format_error_response(
            category=ErrorCategory.INTERNAL,
            code=ErrorCode.INTERNAL,
            detail="An unexpected error occurred",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            metadata={"error_id": str(error_id)},
        )
