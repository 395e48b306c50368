"""Local filesystem blob store with path validation and atomic writes."""

from __future__ import annotations

import json
import os
import secrets
import tempfile
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

import aiofiles
import aiofiles.os

from fiscalhub.infrastructure.exceptions import (
    StorageAlreadyExistsError,
    StorageDeleteError,
    StorageDownloadError,
    StorageNotFoundError,
    StoragePermissionError,
    StorageUploadError,
)
from fiscalhub.shared.utils.datetime import utc_now


class LocalBlobStore:
    """Blob store rooted at a directory (development and tests).

    Paths are validated against storage_root. Writes use temp file + rename.
    Content type is kept in a .meta.json sidecar. Signed URLs are in-memory tokens.
    """

    _download_tokens: dict[str, tuple[str, datetime]]

    def __init__(self, storage_root: str, base_url: str | None = None) -> None:
        self.storage_root = Path(storage_root).resolve()
        self.base_url = base_url.rstrip("/") if base_url else None
        self.storage_root.mkdir(parents=True, exist_ok=True, mode=0o750)
        self._download_tokens = {}

    def _get_full_path(self, path: str) -> Path:
        """Resolve and validate path under storage_root. Raises StoragePermissionError if traversal."""
        full_path = (self.storage_root / path).resolve()
        try:
            full_path.relative_to(self.storage_root)
        except ValueError as e:
            raise StoragePermissionError(path, "path_validation") from e
        if full_path == self.storage_root:
            raise StoragePermissionError(path, "path_validation")
        return full_path

    @staticmethod
    def _meta_path(file_path: Path) -> Path:
        return file_path.with_suffix(file_path.suffix + ".meta.json")

    async def upload(
        self,
        path: str,
        content: bytes,
        content_type: str | None = None,
        upsert: bool = False,
    ) -> dict[str, Any]:
        """Write content atomically. Existing path fails unless upsert."""
        try:
            target_path = self._get_full_path(path)
            if target_path.exists() and not upsert:
                raise StorageAlreadyExistsError(path)
            target_path.parent.mkdir(parents=True, exist_ok=True, mode=0o750)

            temp_fd, temp_path = tempfile.mkstemp(
                dir=target_path.parent,
                prefix=".tmp_",
                suffix=target_path.suffix,
            )
            os.close(temp_fd)
            try:
                async with aiofiles.open(temp_path, "wb") as f:
                    await f.write(content)
                os.chmod(temp_path, 0o640)
                os.replace(temp_path, target_path)
            finally:
                if Path(temp_path).exists():
                    os.unlink(temp_path)

            meta = {
                "content_type": content_type or "application/octet-stream",
                "size": len(content),
                "uploaded_at": utc_now().isoformat(),
            }
            async with aiofiles.open(self._meta_path(target_path), "w") as f:
                await f.write(json.dumps(meta, indent=2))
            return {"path": path}
        except (StorageAlreadyExistsError, StoragePermissionError):
            raise
        except Exception as e:
            raise StorageUploadError(path, str(e)) from e

    async def download(self, path: str) -> bytes:
        try:
            file_path = self._get_full_path(path)
            if not file_path.is_file():
                raise StorageNotFoundError(path)
            async with aiofiles.open(file_path, "rb") as f:
                return await f.read()
        except (StorageNotFoundError, StoragePermissionError):
            raise
        except Exception as e:
            raise StorageDownloadError(path, str(e)) from e

    async def remove(self, path: str) -> bool:
        """Delete blob and sidecar; prune empty parent dirs. Returns True if deleted."""
        try:
            file_path = self._get_full_path(path)
            if not file_path.exists():
                return False
            await aiofiles.os.remove(file_path)
            meta_path = self._meta_path(file_path)
            if meta_path.exists():
                await aiofiles.os.remove(meta_path)
            parent = file_path.parent
            while parent != self.storage_root:
                try:
                    if any(parent.iterdir()):
                        break
                    parent.rmdir()
                    parent = parent.parent
                except OSError:
                    break
            return True
        except StoragePermissionError:
            raise
        except Exception as e:
            raise StorageDeleteError(path, str(e)) from e

    async def create_signed_url(self, path: str, expires_in: int) -> str:
        """Return a token download URL valid for expires_in seconds."""
        if not self._get_full_path(path).is_file():
            raise StorageNotFoundError(path)
        token = secrets.token_urlsafe(32)
        self._download_tokens[token] = (path, utc_now() + timedelta(seconds=expires_in))
        self._cleanup_expired_tokens()
        url = f"/storage/download/{token}"
        return f"{self.base_url}{url}" if self.base_url else url

    def validate_download_token(self, token: str) -> str | None:
        """Return the blob path if token is valid and not expired."""
        entry = self._download_tokens.get(token)
        if entry is None:
            return None
        path, expires_at = entry
        if utc_now() > expires_at:
            del self._download_tokens[token]
            return None
        return path

    def _cleanup_expired_tokens(self) -> None:
        now = utc_now()
        for token in [t for t, (_, exp) in self._download_tokens.items() if exp <= now]:
            del self._download_tokens[token]
