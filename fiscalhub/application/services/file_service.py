"""File application service: file records and their blobs.

Ordering rules keep the record and blob stores from drifting:
- upload: blob first, then record; a failed record insert removes the blob.
- delete: record first, then blob; a failed blob delete is logged only
  (the file is already gone from every listing).
"""

from __future__ import annotations

import logging
from typing import Any

from fiscalhub.application.dtos.folder import FileRecordResult
from fiscalhub.application.dtos.result import ApiListResult, ApiResult, RemoteResponse
from fiscalhub.application.interfaces.backend import IBlobStore, IRowStore
from fiscalhub.application.query import RowQuery
from fiscalhub.application.services.retry_executor import RetryExecutor
from fiscalhub.core.constants import TABLE_FILES, TABLE_FOLDERS
from fiscalhub.domain.value_objects import StoragePath
from fiscalhub.schemas.folder import FileRename, FileUpload
from fiscalhub.schemas.validation import parse_input

logger = logging.getLogger(__name__)

DEFAULT_SIGNED_URL_EXPIRY = 3600


def _one(response: RemoteResponse[Any]) -> RemoteResponse[FileRecordResult]:
    if response.error is not None:
        return RemoteResponse(error=response.error)
    return RemoteResponse(data=FileRecordResult.from_row(response.data))


class FileService:
    """File records in folders, with bytes in the blob store."""

    def __init__(
        self,
        store: IRowStore,
        blobs: IBlobStore,
        executor: RetryExecutor,
        signed_url_expiry: int = DEFAULT_SIGNED_URL_EXPIRY,
    ) -> None:
        self._store = store
        self._blobs = blobs
        self._executor = executor
        self._signed_url_expiry = signed_url_expiry

    async def list_files(self, folder_id: str) -> ApiListResult[FileRecordResult]:
        """Files of folder_id, newest upload first."""

        async def _list() -> RemoteResponse[list[FileRecordResult]]:
            response = await self._store.execute(
                RowQuery.on(TABLE_FILES)
                .select("*", count=True)
                .eq("folder_id", folder_id)
                .order("uploaded_at", desc=True)
            )
            if response.error is not None:
                return RemoteResponse(error=response.error)
            files = [FileRecordResult.from_row(r) for r in response.data or []]
            return RemoteResponse(data=files, count=response.count)

        return await self._executor.execute_list(_list)

    async def get_file(self, file_id: str) -> ApiResult[FileRecordResult]:
        async def _get() -> RemoteResponse[FileRecordResult]:
            return _one(
                await self._store.execute(
                    RowQuery.on(TABLE_FILES).select("*").eq("id", file_id).single()
                )
            )

        return await self._executor.execute(_get)

    async def upload_file(
        self,
        folder_id: str,
        name: str,
        content: bytes,
        content_type: str | None = None,
        uploaded_by: str | None = None,
    ) -> ApiResult[FileRecordResult]:
        """Store content and create its record in folder_id."""
        payload, error = parse_input(
            FileUpload, {"folder_id": folder_id, "name": name, "content_type": content_type}
        )
        if payload is None:
            return ApiResult.fail(error or "Invalid file data")

        folder = await self._folder_client_id(folder_id)
        if not folder.success or folder.data is None:
            return ApiResult.fail(folder.error or "", folder.error_kind, folder.error_code)
        path = StoragePath.for_upload(folder.data, folder_id, payload.name).value

        async def _upload() -> RemoteResponse[dict[str, Any]]:
            # upsert: a retried upload after a lost response overwrites its own blob
            return RemoteResponse(
                data=await self._blobs.upload(path, content, payload.content_type, upsert=True)
            )

        uploaded = await self._executor.execute(_upload)
        if not uploaded.success:
            return ApiResult.fail(uploaded.error or "", uploaded.error_kind, uploaded.error_code)

        row = {
            "folder_id": folder_id,
            "name": payload.name,
            "file_path": path,
            "file_size": len(content),
            "file_type": payload.content_type,
            "uploaded_by": uploaded_by,
        }

        async def _insert() -> RemoteResponse[FileRecordResult]:
            return _one(await self._store.execute(RowQuery.on(TABLE_FILES).insert(row).single()))

        created = await self._executor.execute(_insert)
        if not created.success:
            await self._remove_blob(path)
        else:
            logger.info("Uploaded %s (%d bytes) to folder %s", path, len(content), folder_id)
        return created

    async def rename_file(self, file_id: str, name: str) -> ApiResult[FileRecordResult]:
        payload, error = parse_input(FileRename, {"name": name})
        if payload is None:
            return ApiResult.fail(error or "Invalid file name")

        async def _rename() -> RemoteResponse[FileRecordResult]:
            return _one(
                await self._store.execute(
                    RowQuery.on(TABLE_FILES).update({"name": payload.name}).eq("id", file_id).single()
                )
            )

        return await self._executor.execute(_rename)

    async def delete_file(self, file_id: str) -> ApiResult[None]:
        """Delete the record, then its blob."""
        record = await self.get_file(file_id)
        if not record.success or record.data is None:
            return ApiResult.fail(record.error or "", record.error_kind, record.error_code)

        async def _delete() -> RemoteResponse[None]:
            response = await self._store.execute(RowQuery.on(TABLE_FILES).delete().eq("id", file_id))
            return RemoteResponse(error=response.error)

        deleted = await self._executor.execute(_delete)
        if deleted.success and record.data.storage_path:
            await self._remove_blob(record.data.storage_path)
        return deleted

    async def download_file(self, file_id: str) -> ApiResult[bytes]:
        record = await self.get_file(file_id)
        if not record.success or record.data is None:
            return ApiResult.fail(record.error or "", record.error_kind, record.error_code)
        path = record.data.storage_path

        async def _download() -> RemoteResponse[bytes]:
            return RemoteResponse(data=await self._blobs.download(path))

        return await self._executor.execute(_download)

    async def signed_url(self, file_id: str, expires_in: int | None = None) -> ApiResult[str]:
        """Temporary download URL for the file's blob."""
        record = await self.get_file(file_id)
        if not record.success or record.data is None:
            return ApiResult.fail(record.error or "", record.error_kind, record.error_code)
        path = record.data.storage_path
        expiry = expires_in or self._signed_url_expiry

        async def _sign() -> RemoteResponse[str]:
            return RemoteResponse(data=await self._blobs.create_signed_url(path, expiry))

        return await self._executor.execute(_sign)

    async def _folder_client_id(self, folder_id: str) -> ApiResult[str]:
        async def _get() -> RemoteResponse[str]:
            response = await self._store.execute(
                RowQuery.on(TABLE_FOLDERS).select("id, client_id").eq("id", folder_id).single()
            )
            if response.error is not None:
                return RemoteResponse(error=response.error)
            return RemoteResponse(data=str(response.data["client_id"]))

        return await self._executor.execute(_get)

    async def _remove_blob(self, path: str) -> None:
        async def _remove() -> RemoteResponse[bool]:
            return RemoteResponse(data=await self._blobs.remove(path))

        result = await self._executor.execute(_remove)
        if not result.success:
            logger.warning("Orphaned blob %s left in storage: %s", path, result.error)
