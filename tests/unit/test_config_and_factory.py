"""Tests for Settings validation, RetryPolicy.from_settings and BlobStoreFactory."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from fiscalhub.application.services.retry_executor import RetryPolicy
from fiscalhub.core.config import Settings
from fiscalhub.infrastructure.backend import client as backend_client
from fiscalhub.infrastructure.backend._rest_client import BackendRESTClient
from fiscalhub.infrastructure.storage.factory import BlobStoreFactory
from fiscalhub.infrastructure.storage.local_blob_store import LocalBlobStore
from fiscalhub.infrastructure.storage.remote_blob_store import RemoteBlobStore


class TestSettings:
    def test_defaults(self) -> None:
        s = Settings(_env_file=None)
        assert s.retry_max_retries == 3
        assert s.retry_base_delay_seconds == 1.0
        assert s.storage_backend == "local"

    def test_urls(self) -> None:
        s = Settings(_env_file=None, backend_url="https://backend.test/")
        assert s.rest_url == "https://backend.test/rest/v1"
        assert s.auth_url == "https://backend.test/auth/v1"
        assert s.functions_url == "https://backend.test/functions/v1"
        assert s.storage_url == "https://backend.test/storage/v1"

    def test_publishable_key_alias(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BACKEND_PUBLISHABLE_KEY", "pk-123")
        assert Settings(_env_file=None).backend_anon_key.get_secret_value() == "pk-123"

    @pytest.mark.parametrize(
        "overrides",
        [
            {"retry_max_retries": -1},
            {"retry_base_delay_seconds": 0},
            {"storage_backend": "s3"},
            {"storage_backend": "remote"},
        ],
    )
    def test_invalid_settings(self, overrides: dict) -> None:
        with pytest.raises(ValidationError):
            Settings(_env_file=None, **overrides)

    def test_retry_policy_from_settings(self) -> None:
        s = Settings(_env_file=None, retry_max_retries=5, retry_base_delay_seconds=0.25)
        assert RetryPolicy.from_settings(s) == RetryPolicy(max_retries=5, base_delay=0.25)


class TestBlobStoreFactory:
    def test_local(self, tmp_path: Path) -> None:
        s = Settings(_env_file=None, storage_backend="local", storage_root=str(tmp_path))
        store = BlobStoreFactory.create_blob_store(s)
        assert isinstance(store, LocalBlobStore)
        assert store.storage_root == tmp_path.resolve()

    def test_remote_with_client(self) -> None:
        s = Settings(_env_file=None, storage_backend="remote", backend_url="https://backend.test")
        store = BlobStoreFactory.create_blob_store(s, BackendRESTClient("https://backend.test", "k"))
        assert isinstance(store, RemoteBlobStore)
        assert store.bucket == "fiscal-files"

    def test_remote_without_client(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(backend_client, "_backend_client", None)
        s = Settings(_env_file=None, storage_backend="remote", backend_url="https://backend.test")
        with pytest.raises(ValueError, match="init_backend"):
            BlobStoreFactory.create_blob_store(s)


class TestBackendLifecycle:
    async def test_init_without_config(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(backend_client, "_backend_client", None)
        monkeypatch.setattr(backend_client, "get_settings", lambda: Settings(_env_file=None))
        assert backend_client.init_backend() is False
        assert backend_client.get_backend_client() is None

    async def test_init_and_close(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(backend_client, "_backend_client", None)
        monkeypatch.setattr(
            backend_client,
            "get_settings",
            lambda: Settings(_env_file=None, backend_url="https://backend.test", backend_anon_key="k"),
        )
        assert backend_client.init_backend() is True
        client = backend_client.get_backend_client()
        assert client is not None
        assert client.rest_url == "https://backend.test/rest/v1"
        assert backend_client.init_backend() is True
        assert backend_client.get_backend_client() is client
        await backend_client.close_backend()
        assert backend_client.get_backend_client() is None
