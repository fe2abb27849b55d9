"""Account flows: login, registration, password and profile changes.

The view state itself is only ever changed by the `SessionReconciler`; these
flows call the provider and then let the reconciler catch up with the
resulting session events.
"""

import hmac
import logging
from dataclasses import dataclass

from elearning.database.store import RowStore
from elearning.exceptions import ValidationError

from .confirmation import PendingConfirmationStore
from .exceptions import InvalidInviteCodeError, NotAuthenticatedError
from .gateway import AuthGateway
from .models import AwaitingAuth, ConfirmingEmail, CurrentUser, Role, ViewState
from .password_policy import validate_password_change, validate_password_policy
from .reconciler import SessionReconciler


logger = logging.getLogger(__name__)

PROFILES_TABLE = "profiles"


@dataclass(frozen=True)
class RegistrationResult:
    """Outcome of a sign-up: whether the user still has to confirm the e-mail."""

    email: str
    confirmation_required: bool
    state: ViewState


class AccountService:
    """Account operations for the single user of the shell."""

    def __init__(
        self,
        auth: AuthGateway,
        store: RowStore,
        reconciler: SessionReconciler,
        pending: PendingConfirmationStore,
        *,
        invite_code: str = "",
        password_min_length: int = 6,
        email_redirect_url: str | None = None,
    ) -> None:
        self._auth = auth
        self._store = store
        self._reconciler = reconciler
        self._pending = pending
        self._invite_code = invite_code
        self._password_min_length = password_min_length
        self._email_redirect_url = email_redirect_url

    def verify_invite_code(self, code: str | None) -> bool:
        """Constant-time check of a faculty invite code; an unset code rejects everything."""
        if not self._invite_code or not code:
            return False
        return hmac.compare_digest(code.encode(), self._invite_code.encode())

    async def _settled_state(self) -> ViewState:
        await self._reconciler.settle()
        if isinstance(self._reconciler.state, AwaitingAuth):
            # Provider did not emit a session event; reconcile from a fresh probe
            return await self._reconciler.recheck()
        return self._reconciler.state

    async def login(self, email: str, password: str) -> ViewState:
        await self._auth.sign_in_with_password(email, password)
        logger.info(f"Signed in {email}")
        return await self._settled_state()

    async def register(
        self,
        name: str,
        email: str,
        password: str,
        role: Role = Role.STUDENT,
        invite_code: str | None = None,
    ) -> RegistrationResult:
        """Create an account; teachers must present the faculty invite code.

        Returns
        -------
            RegistrationResult: `confirmation_required` is True when the provider
            did not open a session and a confirmation e-mail was sent.
        """
        if role == Role.TEACHER and not self.verify_invite_code(invite_code):
            logger.warning(f"Teacher registration for {email} rejected: invalid invite code")
            raise InvalidInviteCodeError
        validate_password_policy(password, min_length=self._password_min_length)

        session = await self._auth.sign_up(
            email,
            password,
            {"name": name, "role": role.value},
            redirect_to=self._email_redirect_url,
        )
        if session is None:
            await self._pending.mark(email)
            logger.info(f"Registered {email} as {role}; awaiting e-mail confirmation")
            return RegistrationResult(email, True, self._reconciler.state)

        # Auto-confirmed accounts carry a fresh confirmation timestamp
        self._reconciler.acknowledge(session.user.id)
        logger.info(f"Registered {email} as {role} with an immediate session")
        state = await self._settled_state()
        if isinstance(state, ConfirmingEmail):
            # The sign-in event was reconciled before sign-up returned
            state = await self._reconciler.continue_after_confirmation()
        return RegistrationResult(email, False, state)

    async def change_password(self, new_password: str, confirm_password: str) -> None:
        if self._reconciler.current_user is None:
            raise NotAuthenticatedError
        validate_password_change(new_password, confirm_password, min_length=self._password_min_length)
        await self._auth.update_password(new_password)
        logger.info(f"Password changed for user {self._reconciler.current_user.id}")

    async def update_profile(self, user: CurrentUser, full_name: str) -> ViewState:
        """Rename the user's profile and rebuild the identity from it."""
        name = full_name.strip()
        if not name:
            msg = "Name cannot be empty"
            raise ValidationError(msg)
        await self._store.update(PROFILES_TABLE, {"full_name": name}, filters={"id": user.id})
        return await self._reconciler.refresh_identity()
