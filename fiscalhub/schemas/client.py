"""Client input schemas."""

from pydantic import BaseModel, Field, field_validator

from fiscalhub.domain.value_objects import Cnpj


def _normalize_cnpj(value: object) -> object:
    """Strip punctuation so '12.345.678/0001-95' validates as 14 digits."""
    if isinstance(value, str):
        try:
            return Cnpj.parse(value).value
        except ValueError as e:
            raise ValueError("CNPJ must have 14 digits") from e
    return value


class ClientCreate(BaseModel):
    """Input for creating a client."""

    name: str = Field(..., min_length=2, max_length=255)
    cnpj: str = Field(..., min_length=14, max_length=14)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v: object) -> object:
        return v.strip() if isinstance(v, str) else v

    @field_validator("cnpj", mode="before")
    @classmethod
    def normalize_cnpj(cls, v: object) -> object:
        return _normalize_cnpj(v)


class ClientUpdate(BaseModel):
    """Input for updating a client (partial)."""

    name: str | None = Field(default=None, min_length=2, max_length=255)
    cnpj: str | None = Field(default=None, min_length=14, max_length=14)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v: object) -> object:
        return v.strip() if isinstance(v, str) else v

    @field_validator("cnpj", mode="before")
    @classmethod
    def normalize_cnpj(cls, v: object) -> object:
        return _normalize_cnpj(v)
