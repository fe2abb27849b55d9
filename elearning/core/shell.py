"""The application shell: one reconciler, one catalog and the active student's workspace.

`AppShell` is built once per process. It follows the reconciler's view state:
when a student becomes authenticated it loads their enrollments and progress
into a `StudentWorkspace`, and it discards the workspace on any other state.
"""

import asyncio
import logging
from collections.abc import Coroutine
from dataclasses import dataclass
from typing import Any

from supabase import AsyncClient

from elearning.auth.confirmation import ConfirmationDetector, PendingConfirmationStore, UrlFragment
from elearning.auth.exceptions import NotAuthenticatedError, RoleRequiredError
from elearning.auth.gateway import SupabaseAuthGateway
from elearning.auth.models import Authenticated, CurrentUser, Role, ViewState
from elearning.auth.reconciler import SessionReconciler
from elearning.auth.service import AccountService
from elearning.config.settings import Settings
from elearning.courses.service import CourseCatalog
from elearning.database.client import create_supabase_client
from elearning.database.store import RowStore, StoreError, SupabaseRowStore
from elearning.enrollments.service import EnrollmentGate
from elearning.progress.service import ProgressSynchronizer
from elearning.storage.factory import get_storage_provider


logger = logging.getLogger(__name__)


@dataclass
class StudentWorkspace:
    """Per-student state that only exists while that student is signed in."""

    user: CurrentUser
    enrollments: EnrollmentGate
    progress: ProgressSynchronizer


class AppShell:
    """Owns every stateful component of a running shell process."""

    def __init__(
        self,
        reconciler: SessionReconciler,
        catalog: CourseCatalog,
        accounts: AccountService,
        store: RowStore,
        *,
        progress_max_attempts: int = 3,
        progress_retry_delay: float = 0.5,
        client: AsyncClient | None = None,
    ) -> None:
        self.reconciler = reconciler
        self.catalog = catalog
        self.accounts = accounts
        self.store = store
        self.client = client
        self._progress_max_attempts = progress_max_attempts
        self._progress_retry_delay = progress_retry_delay

        self._workspace: StudentWorkspace | None = None
        self._activation: asyncio.Task | None = None
        self._activating_user: str | None = None
        self._background: set[asyncio.Task] = set()
        self._closed = False

        reconciler.add_listener(self._on_view_state)

    # --- view state tracking ---------------------------------------------------

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._background.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Shell background task failed", exc_info=task.exception())

    def _on_view_state(self, state: ViewState) -> None:
        if self._closed:
            return
        user = state.user if isinstance(state, Authenticated) else None

        if user is None or user.role != Role.STUDENT:
            self._discard_workspace()
            if user is not None and not self.catalog.loaded:
                self._spawn(self._load_catalog())
            return

        if self._workspace is not None and self._workspace.user.id == user.id:
            # Same student, e.g. after a profile rename
            self._workspace.user = user
            return
        if self._activating_user == user.id:
            return

        self._discard_workspace()
        self._start_activation(user)

    def _start_activation(self, user: CurrentUser) -> None:
        self._activating_user = user.id
        self._activation = self._spawn(self._activate(user))

    def _discard_workspace(self) -> None:
        if self._activation is not None and not self._activation.done():
            self._activation.cancel()
        self._activation = None
        self._activating_user = None

        workspace, self._workspace = self._workspace, None
        if workspace is not None:
            logger.info(f"Discarding workspace of user {workspace.user.id}")
            self._spawn(workspace.progress.close())

    async def _load_catalog(self) -> None:
        try:
            await self.catalog.load()
        except StoreError as e:
            logger.warning(f"Course catalog load failed: {e}")

    async def _activate(self, user: CurrentUser) -> None:
        try:
            await self._build_workspace(user)
        finally:
            if self._activating_user == user.id:
                self._activating_user = None

    async def _build_workspace(self, user: CurrentUser) -> None:
        enrollments = EnrollmentGate(self.store, user.id)
        progress = ProgressSynchronizer(
            self.store,
            user.id,
            enrollments,
            max_attempts=self._progress_max_attempts,
            retry_delay=self._progress_retry_delay,
        )
        try:
            await enrollments.load()
        except StoreError as e:
            logger.warning(f"Could not load enrollments for {user.id}: {e}")
        try:
            await progress.load()
        except StoreError as e:
            logger.warning(f"Could not load progress for {user.id}: {e}")
        if not self.catalog.loaded:
            await self._load_catalog()

        current = self.reconciler.current_user
        if self._closed or current is None or current.id != user.id:
            logger.info(f"Dropping workspace for {user.id}: identity changed during load")
            await progress.close()
            return
        self._workspace = StudentWorkspace(user=current, enrollments=enrollments, progress=progress)
        logger.info(f"Workspace ready for student {user.id}")

    # --- accessors -------------------------------------------------------------

    @property
    def state(self) -> ViewState:
        return self.reconciler.state

    def require_user(self, role: Role | None = None) -> CurrentUser:
        user = self.reconciler.current_user
        if user is None:
            raise NotAuthenticatedError
        if role is not None and user.role != role:
            raise RoleRequiredError(role)
        return user

    async def student_workspace(self) -> StudentWorkspace:
        """The signed-in student's workspace, waiting for it to finish loading."""
        user = self.require_user(Role.STUDENT)
        if self._workspace is None and self._activating_user is None and not self._closed:
            # The last activation failed
            self._start_activation(user)

        activation = self._activation
        if activation is not None and not activation.done():
            await asyncio.wait({activation})
        workspace = self._workspace
        if workspace is None or workspace.user.id != user.id:
            if activation is not None and not activation.cancelled() and activation.exception() is not None:
                raise activation.exception()
            raise NotAuthenticatedError
        return workspace

    async def ready_catalog(self) -> CourseCatalog:
        if not self.catalog.loaded:
            await self.catalog.load()
        return self.catalog

    # --- lifecycle -------------------------------------------------------------

    async def start(self) -> ViewState:
        return await self.reconciler.start()

    async def settle(self) -> None:
        """Wait for session reconciliation and workspace loading to finish."""
        await self.reconciler.settle()
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    async def close(self) -> None:
        await self.reconciler.close()
        self._discard_workspace()
        self._closed = True
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)
        logger.info("Application shell closed")


async def create_shell(settings: Settings) -> AppShell:
    """Build the shell and every collaborator around one Supabase client."""
    client = await create_supabase_client(settings)
    auth = SupabaseAuthGateway(client)
    store = SupabaseRowStore(client)
    pending = PendingConfirmationStore(settings.PENDING_CONFIRMATION_PATH)
    detector = ConfirmationDetector(UrlFragment(), pending, settings.EMAIL_CONFIRMATION_WINDOW_SECONDS)
    reconciler = SessionReconciler(auth, store, detector, probe_timeout=settings.SESSION_PROBE_TIMEOUT_SECONDS)
    catalog = CourseCatalog(
        store,
        get_storage_provider(settings, client),
        default_thumbnail=settings.DEFAULT_COURSE_THUMBNAIL,
    )
    accounts = AccountService(
        auth,
        store,
        reconciler,
        pending,
        invite_code=settings.TEACHER_INVITE_CODE,
        password_min_length=settings.PASSWORD_MIN_LENGTH,
        email_redirect_url=settings.EMAIL_REDIRECT_URL or None,
    )
    return AppShell(
        reconciler,
        catalog,
        accounts,
        store,
        progress_max_attempts=settings.PROGRESS_WRITE_MAX_ATTEMPTS,
        progress_retry_delay=settings.PROGRESS_WRITE_RETRY_DELAY_SECONDS,
        client=client,
    )
