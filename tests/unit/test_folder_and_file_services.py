"""Tests for FolderService and FileService (records + blobs)."""

import pytest

from fiscalhub.application.services.file_service import FileService
from fiscalhub.application.services.folder_service import FolderService
from fiscalhub.core.constants import TABLE_CLIENTS, TABLE_FILES, TABLE_FOLDERS
from fiscalhub.domain.enums import ErrorKind
from fiscalhub.infrastructure.exceptions import StorageUploadError
from tests.fakes import InMemoryBlobStore, InMemoryRowStore


@pytest.fixture
def client_id(store: InMemoryRowStore) -> str:
    return store.seed(TABLE_CLIENTS, name="Acme", cnpj="12345678000195")["id"]


@pytest.fixture
async def folder_id(folder_service: FolderService, client_id: str) -> str:
    result = await folder_service.create_folder({"client_id": client_id, "name": "2024"})
    return result.data.id


class TestFolderService:
    async def test_create_and_list(self, folder_service: FolderService, client_id: str) -> None:
        await folder_service.create_folder({"client_id": client_id, "name": " Notas "}, created_by="u1")
        await folder_service.create_folder({"client_id": client_id, "name": "Recibos"})
        result = await folder_service.list_folders(client_id)
        assert [f.name for f in result.data] == ["Recibos", "Notas"]
        assert result.count == 2
        assert result.data[1].created_by == "u1"

    async def test_create_requires_name(self, folder_service: FolderService, client_id: str) -> None:
        result = await folder_service.create_folder({"client_id": client_id, "name": "   "})
        assert not result.success
        assert result.error_kind is None

    async def test_rename(self, folder_service: FolderService, folder_id: str) -> None:
        renamed = await folder_service.rename_folder(folder_id, "2025")
        assert renamed.data.name == "2025"
        assert (await folder_service.rename_folder("missing", "x")).is_not_found

    async def test_file_counts(
        self,
        folder_service: FolderService,
        file_service: FileService,
        client_id: str,
        folder_id: str,
    ) -> None:
        empty = (await folder_service.create_folder({"client_id": client_id, "name": "Empty"})).data
        await file_service.upload_file(folder_id, "a.pdf", b"a")
        await file_service.upload_file(folder_id, "b.pdf", b"b")
        result = await folder_service.list_folders_with_file_count(client_id)
        counts = {f.id: f.file_count for f in result.data}
        assert counts == {folder_id: 2, empty.id: 0}

    async def test_file_counts_no_folders(self, folder_service: FolderService) -> None:
        result = await folder_service.list_folders_with_file_count("nobody")
        assert result.success
        assert result.data == []

    async def test_folder_with_files(
        self, folder_service: FolderService, file_service: FileService, folder_id: str
    ) -> None:
        await file_service.upload_file(folder_id, "old.pdf", b"1")
        await file_service.upload_file(folder_id, "new.pdf", b"2")
        folder = (await folder_service.get_folder_with_files(folder_id)).data
        assert folder.file_count == 2
        assert [f.name for f in folder.files] == ["new.pdf", "old.pdf"]

    async def test_remove_folder_removes_blobs_and_rows(
        self,
        folder_service: FolderService,
        file_service: FileService,
        store: InMemoryRowStore,
        blobs: InMemoryBlobStore,
        folder_id: str,
    ) -> None:
        await file_service.upload_file(folder_id, "a.pdf", b"a")
        assert (await folder_service.remove_folder(folder_id)).success
        assert blobs.blobs == {}
        assert store.rows(TABLE_FOLDERS) == []
        assert store.rows(TABLE_FILES) == []

    async def test_remove_folder_survives_blob_failure(
        self,
        folder_service: FolderService,
        file_service: FileService,
        store: InMemoryRowStore,
        blobs: InMemoryBlobStore,
        folder_id: str,
    ) -> None:
        await file_service.upload_file(folder_id, "a.pdf", b"a")
        blobs.remove_error = StorageUploadError("x", "offline")
        assert (await folder_service.remove_folder(folder_id)).success
        assert store.rows(TABLE_FOLDERS) == []

    async def test_denied_folder_delete_keeps_blobs(
        self,
        folder_service: FolderService,
        file_service: FileService,
        store: InMemoryRowStore,
        blobs: InMemoryBlobStore,
        folder_id: str,
    ) -> None:
        """A failed row delete leaves every file record pointing at an existing blob."""
        record = (await file_service.upload_file(folder_id, "a.pdf", b"a")).data
        store.fail_next(TABLE_FOLDERS, "permission denied", "42501")

        removed = await folder_service.remove_folder(folder_id)

        assert not removed.success
        assert removed.error_kind is ErrorKind.FORBIDDEN
        assert [r["id"] for r in store.rows(TABLE_FILES)] == [record.id]
        assert record.storage_path in blobs.blobs
        assert blobs.removed == []
        assert (await file_service.download_file(record.id)).data == b"a"


class TestFileService:
    async def test_upload_stores_blob_then_record(
        self, file_service: FileService, blobs: InMemoryBlobStore, client_id: str, folder_id: str
    ) -> None:
        result = await file_service.upload_file(
            folder_id, "nota.pdf", b"%PDF", "application/pdf", uploaded_by="u1"
        )
        assert result.success
        record = result.data
        assert record.name == "nota.pdf"
        assert record.size == 4
        assert record.mime_type == "application/pdf"
        assert record.uploaded_by == "u1"
        assert record.storage_path.startswith(f"{client_id}/{folder_id}/")
        assert blobs.blobs[record.storage_path] == (b"%PDF", "application/pdf")

    async def test_upload_to_missing_folder(self, file_service: FileService, blobs: InMemoryBlobStore) -> None:
        result = await file_service.upload_file("missing", "a.pdf", b"a")
        assert result.is_not_found
        assert blobs.blobs == {}

    async def test_failed_record_insert_removes_blob(
        self,
        file_service: FileService,
        store: InMemoryRowStore,
        blobs: InMemoryBlobStore,
        folder_id: str,
    ) -> None:
        store.fail_next(TABLE_FILES, "permission denied", "42501")
        result = await file_service.upload_file(folder_id, "a.pdf", b"a")
        assert result.is_forbidden
        assert blobs.blobs == {}
        assert len(blobs.removed) == 1

    async def test_failed_blob_upload_creates_no_record(
        self,
        file_service: FileService,
        store: InMemoryRowStore,
        blobs: InMemoryBlobStore,
        sleeps: list[float],
        folder_id: str,
    ) -> None:
        blobs.upload_error = StorageUploadError("x", "offline")
        result = await file_service.upload_file(folder_id, "a.pdf", b"a")
        assert not result.success
        assert result.error_kind is ErrorKind.TRANSIENT
        assert len(sleeps) == 3
        assert store.rows(TABLE_FILES) == []

    async def test_download_and_signed_url(self, file_service: FileService, folder_id: str) -> None:
        record = (await file_service.upload_file(folder_id, "a.pdf", b"bytes")).data
        assert (await file_service.download_file(record.id)).data == b"bytes"
        url = (await file_service.signed_url(record.id)).data
        assert url.endswith("expires_in=600")
        assert (await file_service.signed_url(record.id, expires_in=60)).data.endswith("expires_in=60")

    async def test_rename_and_list(self, file_service: FileService, folder_id: str) -> None:
        first = (await file_service.upload_file(folder_id, "a.pdf", b"a")).data
        await file_service.upload_file(folder_id, "b.pdf", b"b")
        assert (await file_service.rename_file(first.id, "renamed.pdf")).data.name == "renamed.pdf"
        listing = await file_service.list_files(folder_id)
        assert [f.name for f in listing.data] == ["b.pdf", "renamed.pdf"]
        assert listing.count == 2

    async def test_delete_removes_record_then_blob(
        self,
        file_service: FileService,
        store: InMemoryRowStore,
        blobs: InMemoryBlobStore,
        folder_id: str,
    ) -> None:
        record = (await file_service.upload_file(folder_id, "a.pdf", b"a")).data
        assert (await file_service.delete_file(record.id)).success
        assert store.rows(TABLE_FILES) == []
        assert blobs.blobs == {}

    async def test_delete_missing_file(self, file_service: FileService) -> None:
        assert (await file_service.delete_file("missing")).is_not_found
