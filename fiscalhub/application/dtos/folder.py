"""DTOs for folders and file records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from fiscalhub.shared.utils.datetime import parse_timestamp


@dataclass(frozen=True)
class FileRecordResult:
    """File record; bytes live in the blob store under storage_path."""

    id: str
    folder_id: str
    name: str
    storage_path: str
    size: int | None
    mime_type: str | None
    uploaded_by: str | None
    uploaded_at: datetime | None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> FileRecordResult:
        return cls(
            id=str(row["id"]),
            folder_id=str(row["folder_id"]),
            name=row.get("name") or "",
            storage_path=row.get("file_path") or "",
            size=row.get("file_size"),
            mime_type=row.get("file_type"),
            uploaded_by=row.get("uploaded_by"),
            uploaded_at=parse_timestamp(row.get("uploaded_at")),
        )


@dataclass(frozen=True)
class FolderResult:
    """Folder read-model. file_count / files are set only by the aggregate reads."""

    id: str
    client_id: str
    name: str
    created_by: str | None
    created_at: datetime | None
    file_count: int | None = None
    files: tuple[FileRecordResult, ...] = field(default=())

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> FolderResult:
        return cls(
            id=str(row["id"]),
            client_id=str(row["client_id"]),
            name=row.get("name") or "",
            created_by=row.get("created_by"),
            created_at=parse_timestamp(row.get("created_at")),
        )
