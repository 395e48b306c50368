"""DTOs for client (tenant entity) use cases."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from fiscalhub.shared.utils.datetime import parse_timestamp


@dataclass(frozen=True)
class ClientResult:
    """Client read-model."""

    id: str
    name: str
    cnpj: str
    created_at: datetime | None
    created_by: str | None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> ClientResult:
        return cls(
            id=str(row["id"]),
            name=row.get("name") or "",
            cnpj=row.get("cnpj") or "",
            created_at=parse_timestamp(row.get("created_at")),
            created_by=row.get("created_by"),
        )
