"""Shared fixtures: in-memory collaborators and a fully wired application shell."""

import os

import pytest
import pytest_asyncio


os.environ.setdefault("ENVIRONMENT", "test")

from elearning.auth.confirmation import ConfirmationDetector, PendingConfirmationStore, UrlFragment
from elearning.auth.reconciler import SessionReconciler
from elearning.auth.service import AccountService
from elearning.core.shell import AppShell
from elearning.courses.service import CourseCatalog
from elearning.middleware.security import limiter
from elearning.storage.local import LocalStorage
from tests.fixtures.fakes import FakeAuthGateway, InMemoryRowStore
from tests.fixtures.seed import DEFAULT_THUMBNAIL, INVITE_CODE, seed_tables


@pytest.fixture(autouse=True)
def reset_rate_limits():
    limiter.reset()
    yield


@pytest.fixture
def store() -> InMemoryRowStore:
    return InMemoryRowStore(seed_tables())


@pytest.fixture
def auth() -> FakeAuthGateway:
    return FakeAuthGateway()


@pytest.fixture
def fragment() -> UrlFragment:
    return UrlFragment()


@pytest.fixture
def pending(tmp_path) -> PendingConfirmationStore:
    return PendingConfirmationStore(tmp_path / "pending.json")


@pytest.fixture
def detector(fragment, pending) -> ConfirmationDetector:
    return ConfirmationDetector(fragment, pending, window_seconds=120)


@pytest_asyncio.fixture
async def reconciler(auth, store, detector):
    reconciler = SessionReconciler(auth, store, detector, probe_timeout=0.2)
    yield reconciler
    await reconciler.close()


@pytest_asyncio.fixture
async def shell(auth, store, detector, pending, tmp_path):
    """A shell wired to in-memory collaborators; not started."""
    reconciler = SessionReconciler(auth, store, detector, probe_timeout=0.2)
    catalog = CourseCatalog(
        store,
        LocalStorage(base_path=tmp_path / "uploads", base_url="http://testserver/uploads"),
        default_thumbnail=DEFAULT_THUMBNAIL,
    )
    accounts = AccountService(auth, store, reconciler, pending, invite_code=INVITE_CODE, password_min_length=6)
    shell = AppShell(reconciler, catalog, accounts, store, progress_max_attempts=2, progress_retry_delay=0)
    yield shell
    await shell.close()
