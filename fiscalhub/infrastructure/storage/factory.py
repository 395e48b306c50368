"""Blob store factory: creates the local or remote backend from settings."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fiscalhub.application.interfaces.backend import IBlobStore

if TYPE_CHECKING:
    from fiscalhub.core.config import Settings
    from fiscalhub.infrastructure.backend._rest_client import BackendRESTClient


class BlobStoreFactory:
    """Factory for blob store instances based on configuration."""

    @staticmethod
    def create_blob_store(
        settings: "Settings | None" = None,
        client: "BackendRESTClient | None" = None,
    ) -> IBlobStore:
        """Create a blob store from settings.

        Args:
            settings: Application settings; if None, uses get_settings().
            client: Backend client for the remote backend; if None, the shared one.

        Returns:
            LocalBlobStore or RemoteBlobStore.

        Raises:
            ValueError: Unknown backend or missing required config.
        """
        from fiscalhub.core.config import get_settings

        s = settings or get_settings()
        backend = s.storage_backend.lower()

        if backend == "local":
            from fiscalhub.infrastructure.storage.local_blob_store import LocalBlobStore

            if not s.storage_root:
                raise ValueError("STORAGE_ROOT required for local backend")
            return LocalBlobStore(storage_root=s.storage_root)
        if backend == "remote":
            from fiscalhub.infrastructure.backend.client import get_backend_client
            from fiscalhub.infrastructure.storage.remote_blob_store import RemoteBlobStore

            backend_client = client or get_backend_client()
            if backend_client is None:
                raise ValueError("Backend Service client not initialized (call init_backend())")
            return RemoteBlobStore(backend_client, s.storage_bucket)
        raise ValueError(
            f"Unknown storage backend: {backend}. Supported: 'local', 'remote'"
        )
