"""Request and response models for the account and session endpoints."""

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from .models import Authenticated, ConfirmingEmail, CurrentUser, Role, ViewState


class ViewStateResponse(BaseModel):
    """The view the front end should render."""

    state: str
    user: CurrentUser | None = None
    email: str | None = None

    @classmethod
    def from_state(cls, state: ViewState) -> "ViewStateResponse":
        if isinstance(state, Authenticated):
            return cls(state=state.kind, user=state.user, email=state.user.email)
        if isinstance(state, ConfirmingEmail):
            return cls(state=state.kind, email=state.email)
        return cls(state=state.kind)


class LoginRequest(BaseModel):
    """Login request model."""

    email: EmailStr
    password: str = Field(min_length=1)


class RegisterRequest(BaseModel):
    """Registration request; `invite_code` is only read for teachers."""

    name: str = Field(min_length=1, max_length=200)
    email: EmailStr
    password: str
    role: Role = Role.STUDENT
    invite_code: str | None = None


class RegisterResponse(BaseModel):
    email: str
    confirmation_required: bool
    state: ViewStateResponse


class PasswordChangeRequest(BaseModel):
    new_password: str
    confirm_password: str


class ProfileUpdateRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    full_name: str = Field(min_length=1, max_length=200)


class FragmentRequest(BaseModel):
    """URL fragment as seen by the browser, without the leading '#'."""

    fragment: str = ""


class MessageResponse(BaseModel):
    """Generic message response."""

    message: str
