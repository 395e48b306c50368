"""Folder application service: folders of a client and their file aggregates."""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import replace
from typing import Any

from fiscalhub.application.dtos.folder import FileRecordResult, FolderResult
from fiscalhub.application.dtos.result import ApiListResult, ApiResult, RemoteResponse
from fiscalhub.application.interfaces.backend import IBlobStore, IRowStore
from fiscalhub.application.query import RowQuery
from fiscalhub.application.services.retry_executor import RetryExecutor
from fiscalhub.core.constants import TABLE_FILES, TABLE_FOLDERS
from fiscalhub.schemas.folder import FolderCreate, FolderRename
from fiscalhub.schemas.validation import parse_input

logger = logging.getLogger(__name__)


def _one(response: RemoteResponse[Any]) -> RemoteResponse[FolderResult]:
    if response.error is not None:
        return RemoteResponse(error=response.error)
    return RemoteResponse(data=FolderResult.from_row(response.data))


class FolderService:
    """Folders (named containers of file records, owned by one client)."""

    def __init__(self, store: IRowStore, blobs: IBlobStore, executor: RetryExecutor) -> None:
        self._store = store
        self._blobs = blobs
        self._executor = executor

    async def list_folders(self, client_id: str) -> ApiListResult[FolderResult]:
        """Folders of client_id, newest first."""

        async def _list() -> RemoteResponse[list[FolderResult]]:
            response = await self._store.execute(
                RowQuery.on(TABLE_FOLDERS)
                .select("*", count=True)
                .eq("client_id", client_id)
                .order("created_at", desc=True)
            )
            if response.error is not None:
                return RemoteResponse(error=response.error)
            folders = [FolderResult.from_row(r) for r in response.data or []]
            return RemoteResponse(data=folders, count=response.count)

        return await self._executor.execute_list(_list)

    async def list_folders_with_file_count(self, client_id: str) -> ApiListResult[FolderResult]:
        """Folders of client_id with file_count set."""

        async def _list() -> RemoteResponse[list[FolderResult]]:
            folders = await self._store.execute(
                RowQuery.on(TABLE_FOLDERS)
                .select("*", count=True)
                .eq("client_id", client_id)
                .order("created_at", desc=True)
            )
            if folders.error is not None:
                return RemoteResponse(error=folders.error)
            rows = folders.data or []
            if not rows:
                return RemoteResponse(data=[], count=folders.count or 0)
            files = await self._store.execute(
                RowQuery.on(TABLE_FILES).select("id, folder_id").in_(
                    "folder_id", [str(r["id"]) for r in rows]
                )
            )
            if files.error is not None:
                return RemoteResponse(error=files.error)
            counts = Counter(str(f["folder_id"]) for f in files.data or [])
            result = [
                replace(FolderResult.from_row(r), file_count=counts.get(str(r["id"]), 0))
                for r in rows
            ]
            return RemoteResponse(data=result, count=folders.count)

        return await self._executor.execute_list(_list)

    async def get_folder(self, folder_id: str) -> ApiResult[FolderResult]:
        async def _get() -> RemoteResponse[FolderResult]:
            return _one(
                await self._store.execute(
                    RowQuery.on(TABLE_FOLDERS).select("*").eq("id", folder_id).single()
                )
            )

        return await self._executor.execute(_get)

    async def get_folder_with_files(self, folder_id: str) -> ApiResult[FolderResult]:
        """Folder with its file records (newest upload first) and file_count."""

        async def _get() -> RemoteResponse[FolderResult]:
            folder = await self._store.execute(
                RowQuery.on(TABLE_FOLDERS).select("*").eq("id", folder_id).single()
            )
            if folder.error is not None:
                return RemoteResponse(error=folder.error)
            files = await self._store.execute(
                RowQuery.on(TABLE_FILES)
                .select("*")
                .eq("folder_id", folder_id)
                .order("uploaded_at", desc=True)
            )
            if files.error is not None:
                return RemoteResponse(error=files.error)
            records = tuple(FileRecordResult.from_row(f) for f in files.data or [])
            return RemoteResponse(
                data=replace(
                    FolderResult.from_row(folder.data), files=records, file_count=len(records)
                )
            )

        return await self._executor.execute(_get)

    async def create_folder(
        self,
        data: FolderCreate | dict[str, Any],
        created_by: str | None = None,
    ) -> ApiResult[FolderResult]:
        payload, error = parse_input(FolderCreate, data)
        if payload is None:
            return ApiResult.fail(error or "Invalid folder data")
        row = {"client_id": payload.client_id, "name": payload.name, "created_by": created_by}

        async def _create() -> RemoteResponse[FolderResult]:
            return _one(await self._store.execute(RowQuery.on(TABLE_FOLDERS).insert(row).single()))

        return await self._executor.execute(_create)

    async def rename_folder(self, folder_id: str, name: str) -> ApiResult[FolderResult]:
        payload, error = parse_input(FolderRename, {"name": name})
        if payload is None:
            return ApiResult.fail(error or "Invalid folder name")

        async def _rename() -> RemoteResponse[FolderResult]:
            return _one(
                await self._store.execute(
                    RowQuery.on(TABLE_FOLDERS)
                    .update({"name": payload.name})
                    .eq("id", folder_id)
                    .single()
                )
            )

        return await self._executor.execute(_rename)

    async def remove_folder(self, folder_id: str) -> ApiResult[None]:
        """Remove the folder row (file rows cascade), then each file's blob.

        Blobs are only removed once the row delete succeeded; a blob that
        cannot be removed is logged.
        """

        async def _paths() -> RemoteResponse[list[str]]:
            response = await self._store.execute(
                RowQuery.on(TABLE_FILES).select("id, file_path").eq("folder_id", folder_id)
            )
            if response.error is not None:
                return RemoteResponse(error=response.error)
            return RemoteResponse(data=[r["file_path"] for r in response.data or [] if r.get("file_path")])

        paths = await self._executor.execute_list(_paths)
        if not paths.success:
            return ApiResult.fail(paths.error or "", paths.error_kind, paths.error_code)

        async def _remove() -> RemoteResponse[None]:
            response = await self._store.execute(RowQuery.on(TABLE_FOLDERS).delete().eq("id", folder_id))
            return RemoteResponse(error=response.error)

        result = await self._executor.execute(_remove)
        if not result.success:
            return result

        for path in paths.data:

            async def _remove_blob(path: str = path) -> RemoteResponse[bool]:
                return RemoteResponse(data=await self._blobs.remove(path))

            removed = await self._executor.execute(_remove_blob)
            if not removed.success:
                logger.warning("Could not remove blob %s of folder %s: %s", path, folder_id, removed.error)
        return result
