"""Blob store backed by the Backend Service storage bucket (httpx)."""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from fiscalhub.infrastructure.backend._rest_client import BackendRESTClient
from fiscalhub.infrastructure.exceptions import (
    StorageAlreadyExistsError,
    StorageDeleteError,
    StorageDownloadError,
    StorageException,
    StorageNotFoundError,
    StoragePermissionError,
    StorageUploadError,
)

logger = logging.getLogger(__name__)


def _quoted(path: str) -> str:
    return quote(path, safe="/")


class RemoteBlobStore:
    """IBlobStore over /storage/v1 of the Backend Service, one bucket."""

    def __init__(self, client: BackendRESTClient, bucket: str) -> None:
        self._client = client
        self.bucket = bucket

    def _object_url(self, *parts: str) -> str:
        return "/".join([self._client.storage_url, "object", *parts])

    def _raise_for_status(
        self,
        resp: httpx.Response,
        path: str,
        operation: str,
        fallback: type[StorageException],
    ) -> None:
        if resp.status_code < 400:
            return
        if resp.status_code == 404:
            raise StorageNotFoundError(path)
        if resp.status_code in (401, 403):
            raise StoragePermissionError(path, operation)
        if resp.status_code == 409:
            raise StorageAlreadyExistsError(path)
        raise fallback(path, f"HTTP {resp.status_code}: {resp.text}")

    async def upload(
        self,
        path: str,
        content: bytes,
        content_type: str | None = None,
        upsert: bool = False,
    ) -> dict[str, Any]:
        try:
            resp = await self._client.http.post(
                self._object_url(self.bucket, _quoted(path)),
                headers=self._client.headers(
                    {
                        "Content-Type": content_type or "application/octet-stream",
                        "x-upsert": "true" if upsert else "false",
                    }
                ),
                content=content,
            )
        except httpx.HTTPError as e:
            raise StorageUploadError(path, str(e)) from e
        self._raise_for_status(resp, path, "upload", StorageUploadError)
        return {"path": path}

    async def download(self, path: str) -> bytes:
        try:
            resp = await self._client.http.get(
                self._object_url("authenticated", self.bucket, _quoted(path)),
                headers=self._client.headers(),
            )
        except httpx.HTTPError as e:
            raise StorageDownloadError(path, str(e)) from e
        self._raise_for_status(resp, path, "download", StorageDownloadError)
        return resp.content

    async def remove(self, path: str) -> bool:
        """Delete one object. Returns False if nothing was removed."""
        try:
            resp = await self._client.http.request(
                "DELETE",
                self._object_url(self.bucket),
                headers=self._client.headers({"Content-Type": "application/json"}),
                json={"prefixes": [path]},
            )
        except httpx.HTTPError as e:
            raise StorageDeleteError(path, str(e)) from e
        if resp.status_code == 404:
            return False
        self._raise_for_status(resp, path, "delete", StorageDeleteError)
        removed = resp.json() if resp.content else []
        return bool(removed)

    async def create_signed_url(self, path: str, expires_in: int) -> str:
        try:
            resp = await self._client.http.post(
                self._object_url("sign", self.bucket, _quoted(path)),
                headers=self._client.headers({"Content-Type": "application/json"}),
                json={"expiresIn": expires_in},
            )
        except httpx.HTTPError as e:
            raise StorageDownloadError(path, str(e)) from e
        self._raise_for_status(resp, path, "sign", StorageDownloadError)
        signed = resp.json().get("signedURL") or resp.json().get("signedUrl")
        if not signed:
            raise StorageDownloadError(path, "no signed URL in response")
        return signed if signed.startswith("http") else f"{self._client.storage_url}{signed}"
