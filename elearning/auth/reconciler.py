"""Session reconciliation state machine.

`SessionReconciler` turns three asynchronous inputs (the initial session probe,
the provider's session-change stream and the user's "continue" acknowledgement
on the confirmation screen) into one `ViewState`:

    AwaitingAuth ──sign-in──▶ Authenticated(user)
         │                          │
         └──confirmation marker──▶ ConfirmingEmail ──continue──▶ Authenticated(user)

Any event without a session, and any sign-out, returns to `AwaitingAuth`.
Every state write happens through `_commit`, which refuses writes once the
reconciler is closed; every await is followed by a closed check before identity
work continues.
"""

import asyncio
import logging
from collections.abc import Callable, Coroutine
from functools import partial
from typing import Any

from elearning.database.store import RowStore

from .confirmation import ConfirmationDetector, UrlFragment
from .exceptions import AuthGatewayError
from .gateway import AuthGateway, Subscription
from .identity import resolve_identity
from .models import (
    AuthSession,
    Authenticated,
    AwaitingAuth,
    ConfirmingEmail,
    CurrentUser,
    SessionEvent,
    ViewState,
)


logger = logging.getLogger(__name__)

StateListener = Callable[[ViewState], None]

# Events that may establish an authenticated view
SIGN_IN_EVENTS = frozenset({SessionEvent.SIGNED_IN, SessionEvent.INITIAL_SESSION})


class SessionReconciler:
    """Owns the single current `ViewState` of the application shell."""

    def __init__(
        self,
        auth: AuthGateway,
        store: RowStore,
        detector: ConfirmationDetector,
        *,
        probe_timeout: float,
    ) -> None:
        self._auth = auth
        self._store = store
        self._detector = detector
        self._probe_timeout = probe_timeout

        self._state: ViewState = AwaitingAuth()
        # Bumped on every handled event and committed transition; a late probe only applies if unchanged
        self._generation = 0
        self._closed = False
        self._subscription: Subscription | None = None
        self._probe: asyncio.Task | None = None
        self._tasks: set[asyncio.Task] = set()
        self._event_lock = asyncio.Lock()
        self._listeners: list[StateListener] = []
        self._acknowledged: set[str] = set()

    @property
    def state(self) -> ViewState:
        return self._state

    @property
    def current_user(self) -> CurrentUser | None:
        return self._state.user if isinstance(self._state, Authenticated) else None

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def fragment(self) -> UrlFragment:
        return self._detector.fragment

    def add_listener(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    def acknowledge(self, user_id: str) -> None:
        """Exempt `user_id` from the recency marker, e.g. for a session sign-up opened itself."""
        self._acknowledged.add(user_id)

    # --- internals -------------------------------------------------------

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Session reconciliation task failed", exc_info=task.exception())

    def _commit(self, state: ViewState) -> bool:
        """Write the view state slot. Returns False when the write was refused."""
        if self._closed:
            logger.debug(f"Dropping {state.kind} transition after teardown")
            return False
        if state == self._state:
            return True

        previous = self._state
        self._state = state
        self._generation += 1
        logger.info(f"View state {previous.kind} -> {state.kind}")

        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("View state listener failed")
        return True

    async def _reconcile_session(self, session: AuthSession | None, *, authenticate: bool) -> None:
        """Apply the confirmation check and, when allowed, resolve the identity."""
        if session is None:
            self._commit(AwaitingAuth())
            return

        marker = await self._detector.detect(session, self._acknowledged)
        if self._closed:
            return
        if marker is not None:
            logger.info(f"Email confirmation detected ({marker}) for {session.user.email}")
            self._detector.fragment.clear()
            self._commit(ConfirmingEmail(email=session.user.email))
            return

        # Confirmation must be acknowledged before a dashboard is shown
        if not authenticate or isinstance(self._state, ConfirmingEmail):
            return

        user = await resolve_identity(self._store, session.user)
        if self._closed or isinstance(self._state, ConfirmingEmail):
            return
        self._commit(Authenticated(user))

    async def _probe_session(self) -> AuthSession | None:
        try:
            return await asyncio.wait_for(self._auth.get_session(), timeout=self._probe_timeout)
        except TimeoutError:
            logger.warning(f"Session probe timed out after {self._probe_timeout}s")
        except AuthGatewayError as e:
            logger.warning(f"Session probe failed: {e}")
        return None

    # --- inputs ----------------------------------------------------------

    async def start(self) -> ViewState:
        """Subscribe to session changes and run the bounded initial probe.

        Returns as soon as the probe resolves or times out. A probe that
        resolves late is still reconciled, unless the reconciler was closed or
        another transition happened in the meantime.
        """
        if self._closed:
            msg = "SessionReconciler is closed"
            raise RuntimeError(msg)
        if self._subscription is None:
            self._subscription = self._auth.on_session_change(self._on_session_change)

        generation = self._generation
        self._probe = asyncio.create_task(self._auth.get_session())
        try:
            session = await asyncio.wait_for(asyncio.shield(self._probe), timeout=self._probe_timeout)
        except TimeoutError:
            logger.warning(
                f"Session probe exceeded {self._probe_timeout}s; showing sign-in until it resolves"
            )
            self._probe.add_done_callback(partial(self._on_late_probe, generation))
            return self._state
        except AuthGatewayError as e:
            logger.warning(f"Session probe failed, treating as signed out: {e}")
            return self._state

        async with self._event_lock:
            if not self._closed and generation == self._generation:
                await self._reconcile_session(session, authenticate=True)
        return self._state

    def _on_late_probe(self, generation: int, probe: asyncio.Task) -> None:
        if probe.cancelled() or self._closed:
            return
        if probe.exception() is not None:
            logger.warning(f"Late session probe failed: {probe.exception()}")
            return
        self._spawn(self._apply_late_probe(generation, probe.result()))

    async def _apply_late_probe(self, generation: int, session: AuthSession | None) -> None:
        async with self._event_lock:
            if self._closed or generation != self._generation:
                logger.info("Discarding late session probe result")
                return
            await self._reconcile_session(session, authenticate=True)

    def _on_session_change(self, event: SessionEvent, session: AuthSession | None) -> None:
        # Called synchronously by the provider; work is queued in emission order
        if self._closed:
            return
        self._spawn(self._handle_event(event, session))

    async def _handle_event(self, event: SessionEvent, session: AuthSession | None) -> None:
        async with self._event_lock:
            if self._closed:
                return
            self._generation += 1
            logger.debug(f"Session event {event} (session={'yes' if session else 'no'})")

            if session is None or event == SessionEvent.SIGNED_OUT:
                self._commit(AwaitingAuth())
            elif event in SIGN_IN_EVENTS:
                await self._reconcile_session(session, authenticate=True)
            elif event == SessionEvent.TOKEN_REFRESHED:
                # A confirmation redirect can arrive after the first sign-in event
                await self._reconcile_session(session, authenticate=False)
            elif event == SessionEvent.USER_UPDATED and isinstance(self._state, Authenticated):
                user = await resolve_identity(self._store, session.user)
                if isinstance(self._state, Authenticated):
                    self._commit(Authenticated(user))

    async def continue_after_confirmation(self) -> ViewState:
        """Handle the user's acknowledgement on the confirmation screen."""
        async with self._event_lock:
            session = await self._probe_session()
            if self._closed:
                return self._state
            if session is None:
                self._commit(AwaitingAuth())
                return self._state

            self._acknowledged.add(session.user.id)
            if session.user.email:
                await self._detector.pending.clear(session.user.email)
            self._detector.fragment.clear()

            user = await resolve_identity(self._store, session.user)
            self._commit(Authenticated(user))
            return self._state

    async def recheck(self) -> ViewState:
        """Re-probe the session and reconcile it, e.g. after a new URL fragment."""
        async with self._event_lock:
            session = await self._probe_session()
            if self._closed:
                return self._state
            await self._reconcile_session(session, authenticate=True)
            return self._state

    async def refresh_identity(self) -> ViewState:
        """Rebuild the identity from source, e.g. after a profile edit."""
        async with self._event_lock:
            if not isinstance(self._state, Authenticated):
                return self._state
            session = await self._probe_session()
            if self._closed:
                return self._state
            if session is None:
                self._commit(AwaitingAuth())
                return self._state
            user = await resolve_identity(self._store, session.user)
            if isinstance(self._state, Authenticated):
                self._commit(Authenticated(user))
            return self._state

    async def sign_out(self) -> bool:
        """Sign out remotely, then always clear the local session.

        Returns whether the provider acknowledged the sign-out.
        """
        remote_ok = True
        try:
            await self._auth.sign_out()
        except AuthGatewayError:
            remote_ok = False
            logger.exception("Remote sign-out failed; clearing local session anyway")

        async with self._event_lock:
            self._commit(AwaitingAuth())
        return remote_ok

    async def settle(self) -> None:
        """Wait until queued session events have been reconciled."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        """Release the subscription and cancel in-flight reconciliation."""
        if self._closed:
            return
        self._closed = True

        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

        pending = list(self._tasks)
        if self._probe is not None and not self._probe.done():
            pending.append(self._probe)
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        self._listeners.clear()
        logger.info("Session reconciler closed")
