"""Session and account endpoints.

Every response that changes the session reports the resulting view state so
the front end can render the right screen without a second request.
"""

import logging

from fastapi import APIRouter, Request, status

from elearning.core.dependencies import CurrentUserDep, ShellDep
from elearning.middleware.security import auth_rate_limit

from .schemas import (
    FragmentRequest,
    LoginRequest,
    MessageResponse,
    PasswordChangeRequest,
    ProfileUpdateRequest,
    RegisterRequest,
    RegisterResponse,
    ViewStateResponse,
)


router = APIRouter(prefix="/api/v1/auth", tags=["auth"])
logger = logging.getLogger(__name__)


@router.get("/session")
async def get_session_state(shell: ShellDep) -> ViewStateResponse:
    """Return the current view state."""
    return ViewStateResponse.from_state(shell.state)


@router.post("/session/fragment")
async def submit_fragment(data: FragmentRequest, shell: ShellDep) -> ViewStateResponse:
    """Hand over the browser's URL fragment, e.g. after an e-mail confirmation redirect."""
    shell.reconciler.fragment.replace(data.fragment.removeprefix("#"))
    state = await shell.reconciler.recheck()
    return ViewStateResponse.from_state(state)


@router.post("/session/continue")
async def continue_after_confirmation(shell: ShellDep) -> ViewStateResponse:
    """Acknowledge the confirmation screen and continue to the dashboard."""
    state = await shell.reconciler.continue_after_confirmation()
    await shell.settle()
    return ViewStateResponse.from_state(state)


@router.post("/login")
@auth_rate_limit
async def login(request: Request, data: LoginRequest, shell: ShellDep) -> ViewStateResponse:  # noqa: ARG001
    """Login with email and password."""
    state = await shell.accounts.login(data.email, data.password)
    await shell.settle()
    return ViewStateResponse.from_state(state)


@router.post("/register", status_code=status.HTTP_201_CREATED)
@auth_rate_limit
async def register(request: Request, data: RegisterRequest, shell: ShellDep) -> RegisterResponse:  # noqa: ARG001
    """Create a new account."""
    result = await shell.accounts.register(data.name, data.email, data.password, data.role, data.invite_code)
    await shell.settle()
    return RegisterResponse(
        email=result.email,
        confirmation_required=result.confirmation_required,
        state=ViewStateResponse.from_state(result.state),
    )


@router.post("/logout")
async def logout(shell: ShellDep) -> MessageResponse:
    """Sign out; the local session is cleared even if the provider call fails."""
    remote_ok = await shell.reconciler.sign_out()
    await shell.settle()
    if not remote_ok:
        return MessageResponse(message="Signed out locally")
    return MessageResponse(message="Signed out")


@router.post("/password")
async def change_password(data: PasswordChangeRequest, shell: ShellDep, _user: CurrentUserDep) -> MessageResponse:
    await shell.accounts.change_password(data.new_password, data.confirm_password)
    return MessageResponse(message="Password updated successfully!")


@router.patch("/profile")
async def update_profile(data: ProfileUpdateRequest, shell: ShellDep, user: CurrentUserDep) -> ViewStateResponse:
    """Rename the signed-in user."""
    state = await shell.accounts.update_profile(user, data.full_name)
    return ViewStateResponse.from_state(state)
