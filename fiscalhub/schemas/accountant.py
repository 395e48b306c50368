"""Accountant input schemas."""

from pydantic import BaseModel, EmailStr, Field, field_validator


class AccountantCreate(BaseModel):
    """Input for creating an accountant identity (privileged RPC)."""

    email: EmailStr
    password: str = Field(..., min_length=8)
    full_name: str = Field(..., min_length=2, max_length=255)

    @field_validator("full_name", mode="before")
    @classmethod
    def strip_full_name(cls, v: object) -> object:
        return v.strip() if isinstance(v, str) else v


class AccountantUpdate(BaseModel):
    """Input for updating an accountant; an empty new_password means unchanged."""

    email: EmailStr | None = None
    full_name: str | None = Field(default=None, min_length=2, max_length=255)
    new_password: str | None = None

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, v: str | None) -> str | None:
        if not v:
            return None
        if len(v) < 8:
            raise ValueError("new_password must be at least 8 characters")
        return v
