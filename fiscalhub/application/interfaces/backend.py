"""Backend Service interfaces (ports).

Protocols define the contracts the external Backend Service adapters must
fulfill (DIP). Row operations return RemoteResponse; blob stores raise
StorageException subclasses; the change feed yields ChangeEvent.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from fiscalhub.application.dtos.realtime import ChangeEvent
    from fiscalhub.application.dtos.result import RemoteResponse
    from fiscalhub.application.query import RowQuery


class IRowStore(Protocol):
    """Row CRUD against named relational collections."""

    async def execute(self, query: RowQuery) -> RemoteResponse[Any]:
        """Run the query; errors come back in response.error, not raised."""
        ...


class IBlobStore(Protocol):
    """Blob storage keyed by storage_path."""

    async def upload(
        self,
        path: str,
        content: bytes,
        content_type: str | None = None,
        upsert: bool = False,
    ) -> dict[str, Any]:
        """Store bytes under path. Returns {'path': ...}."""
        ...

    async def download(self, path: str) -> bytes:
        """Return the stored bytes."""
        ...

    async def remove(self, path: str) -> bool:
        """Delete the blob. Returns True if deleted, False if it did not exist."""
        ...

    async def create_signed_url(self, path: str, expires_in: int) -> str:
        """Return a temporary download URL."""
        ...


class IChangeFeed(Protocol):
    """Per-table realtime change stream."""

    def subscribe(self, table: str) -> AsyncIterator[ChangeEvent]:
        """Yield change events for table until the consumer stops iterating."""
        ...

    async def publish(self, table: str, event: ChangeEvent) -> bool:
        """Publish an event on the table channel. Returns False if unavailable."""
        ...


class IAuthClient(Protocol):
    """Backend authentication."""

    async def sign_in_with_password(
        self, email: str, password: str
    ) -> RemoteResponse[dict[str, Any]]:
        """Return {'access_token': ..., 'user': {'id', 'email', ...}}."""
        ...

    async def sign_out(self) -> RemoteResponse[None]:
        """Revoke the current backend session."""
        ...


class IProvisioningClient(Protocol):
    """Privileged RPCs (admin-only, executed server-side, idempotent on resend)."""

    async def create_identity(
        self, email: str, password: str, full_name: str, role: str
    ) -> RemoteResponse[dict[str, Any]]:
        """Create (or reuse) an identity and ensure it holds role."""
        ...

    async def update_credentials(
        self,
        user_id: str,
        email: str | None = None,
        password: str | None = None,
    ) -> RemoteResponse[dict[str, Any]]:
        """Change the identity's login email and/or password."""
        ...
