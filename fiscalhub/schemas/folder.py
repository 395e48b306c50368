"""Folder and file input schemas."""

from pydantic import BaseModel, Field, field_validator


class _NamedInput(BaseModel):
    """Base for inputs with a trimmed, non-empty name."""

    name: str = Field(..., min_length=1, max_length=255)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v: object) -> object:
        return v.strip() if isinstance(v, str) else v


class FolderCreate(_NamedInput):
    """Input for creating a folder under a client."""

    client_id: str = Field(..., min_length=1)


class FolderRename(_NamedInput):
    pass


class FileUpload(_NamedInput):
    """Metadata for an upload; the bytes are passed separately."""

    folder_id: str = Field(..., min_length=1)
    content_type: str | None = None


class FileRename(_NamedInput):
    pass
