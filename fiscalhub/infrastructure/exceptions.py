"""Infrastructure exceptions for blob storage operations.

Storage errors extend FiscalHubException so services can normalize them
into result envelopes consistently.
"""

from fiscalhub.domain.enums import ErrorKind
from fiscalhub.domain.exceptions import FiscalHubException


class StorageException(FiscalHubException):
    """Base exception for storage operations.

    kind is read by RetryExecutor; errors without a stable class are transient.
    """

    kind: ErrorKind = ErrorKind.TRANSIENT


class StorageNotFoundError(StorageException):
    """Blob not found in storage."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, file_path: str) -> None:
        super().__init__(
            f"File not found: {file_path}",
            "STORAGE_NOT_FOUND",
            {"file_path": file_path},
        )


class StorageUploadError(StorageException):
    """Blob upload failed."""

    def __init__(self, file_path: str, reason: str) -> None:
        super().__init__(
            f"Failed to upload file: {file_path}",
            "STORAGE_UPLOAD_ERROR",
            {"file_path": file_path, "reason": reason},
        )


class StorageDownloadError(StorageException):
    """Blob download failed."""

    def __init__(self, file_path: str, reason: str) -> None:
        super().__init__(
            f"Failed to download file: {file_path}",
            "STORAGE_DOWNLOAD_ERROR",
            {"file_path": file_path, "reason": reason},
        )


class StorageDeleteError(StorageException):
    """Blob deletion failed."""

    def __init__(self, file_path: str, reason: str) -> None:
        super().__init__(
            f"Failed to delete file: {file_path}",
            "STORAGE_DELETE_ERROR",
            {"file_path": file_path, "reason": reason},
        )


class StorageAlreadyExistsError(StorageException):
    """Blob already exists and upsert was not requested."""

    kind = ErrorKind.CONFLICT

    def __init__(self, file_path: str) -> None:
        super().__init__(
            f"File already exists: {file_path}",
            "STORAGE_EXISTS_ERROR",
            {"file_path": file_path},
        )


class StoragePermissionError(StorageException):
    """Path escapes the storage root or the operation is not allowed."""

    kind = ErrorKind.FORBIDDEN

    def __init__(self, file_path: str, operation: str) -> None:
        super().__init__(
            f"Permission denied for {operation} on {file_path}",
            "STORAGE_PERMISSION_ERROR",
            {"file_path": file_path, "operation": operation},
        )
