"""Pytest configuration and fixtures for fiscalhub.

Services run against the in-memory Backend Service fakes in tests/fakes.py.
The RetryExecutor fixture records its backoff delays instead of sleeping.
"""

import uuid
from collections.abc import Awaitable, Callable

import pytest

from fiscalhub.application.dtos.capability import CapabilityFlags
from fiscalhub.application.dtos.identity import Identity
from fiscalhub.application.services import (
    AccountantService,
    AssignmentGraph,
    CapabilityFlagsService,
    ClientService,
    FileService,
    FolderService,
    RetryExecutor,
    RetryPolicy,
)
from fiscalhub.core.constants import TABLE_APP_PERMISSIONS, TABLE_USER_ROLES
from fiscalhub.core.session import SessionContext
from tests.fakes import (
    FakeProvisioningClient,
    InMemoryBlobStore,
    InMemoryChangeFeed,
    InMemoryRowStore,
)

SessionFactory = Callable[..., Awaitable[SessionContext]]


@pytest.fixture
def feed() -> InMemoryChangeFeed:
    return InMemoryChangeFeed()


@pytest.fixture
def store(feed: InMemoryChangeFeed) -> InMemoryRowStore:
    """Row store that publishes every write to the feed fixture."""
    return InMemoryRowStore(feed=feed)


@pytest.fixture
def blobs() -> InMemoryBlobStore:
    return InMemoryBlobStore()


@pytest.fixture
def sleeps() -> list[float]:
    """Delays requested by the executor fixture, in order."""
    return []


@pytest.fixture
def executor(sleeps: list[float]) -> RetryExecutor:
    """RetryExecutor (3 retries, 1s base) with recorded sleeps and jitter fixed at 0.5."""

    async def _sleep(delay: float) -> None:
        sleeps.append(delay)

    return RetryExecutor(
        RetryPolicy(max_retries=3, base_delay=1.0),
        sleep=_sleep,
        random_source=lambda: 0.5,
    )


@pytest.fixture
def graph(store: InMemoryRowStore, executor: RetryExecutor) -> AssignmentGraph:
    return AssignmentGraph(store, executor)


@pytest.fixture
def client_service(
    store: InMemoryRowStore, executor: RetryExecutor, graph: AssignmentGraph
) -> ClientService:
    return ClientService(store, executor, graph)


@pytest.fixture
def folder_service(
    store: InMemoryRowStore, blobs: InMemoryBlobStore, executor: RetryExecutor
) -> FolderService:
    return FolderService(store, blobs, executor)


@pytest.fixture
def file_service(
    store: InMemoryRowStore, blobs: InMemoryBlobStore, executor: RetryExecutor
) -> FileService:
    return FileService(store, blobs, executor, signed_url_expiry=600)


@pytest.fixture
def provisioning(store: InMemoryRowStore) -> FakeProvisioningClient:
    return FakeProvisioningClient(store)


@pytest.fixture
def accountant_service(
    store: InMemoryRowStore,
    provisioning: FakeProvisioningClient,
    executor: RetryExecutor,
    graph: AssignmentGraph,
) -> AccountantService:
    return AccountantService(store, provisioning, executor, graph)


@pytest.fixture
def flags_service(store: InMemoryRowStore, executor: RetryExecutor) -> CapabilityFlagsService:
    return CapabilityFlagsService(store, executor)


@pytest.fixture
def make_session(
    store: InMemoryRowStore, executor: RetryExecutor, feed: InMemoryChangeFeed
) -> SessionFactory:
    """Factory: seed role rows (and optionally the flags row), return an initialized session.

    Usage: session = await make_session("admin") or make_session("user", flags=CapabilityFlags(...)).
    """

    async def _make(
        *roles: str,
        identity_id: str | None = None,
        email: str | None = None,
        flags: CapabilityFlags | None = None,
        realtime_enabled: bool = True,
    ) -> SessionContext:
        uid = identity_id or str(uuid.uuid4())
        for role in roles:
            store.seed(TABLE_USER_ROLES, user_id=uid, role=role)
        if flags is not None and not store.tables[TABLE_APP_PERMISSIONS]:
            store.seed(TABLE_APP_PERMISSIONS, **flags.to_row())
        session = SessionContext(store, executor, feed=feed, realtime_enabled=realtime_enabled)
        return await session.init(Identity(id=uid, email=email or f"{uid[:8]}@example.com"))

    return _make
