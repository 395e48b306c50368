"""DTOs for assignment edges (accountant <-> client) and joined summaries."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from fiscalhub.application.dtos.client import ClientResult
from fiscalhub.shared.utils.datetime import parse_timestamp


@dataclass(frozen=True)
class AssignmentResult:
    """One edge; at most one per (accountant_id, client_id)."""

    id: str
    accountant_id: str
    client_id: str
    created_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> AssignmentResult:
        return cls(
            id=str(row["id"]),
            accountant_id=str(row["accountant_id"]),
            client_id=str(row["client_id"]),
            created_at=parse_timestamp(row.get("created_at")),
        )


@dataclass(frozen=True)
class LinkedClient:
    """Client summary seen from an accountant's side of an edge."""

    assignment_id: str
    client_id: str
    name: str
    cnpj: str
    created_at: datetime | None = None
    created_by: str | None = None

    @classmethod
    def from_rows(cls, edge: dict[str, Any], client: dict[str, Any]) -> LinkedClient:
        return cls(
            assignment_id=str(edge["id"]),
            client_id=str(client["id"]),
            name=client.get("name") or "",
            cnpj=client.get("cnpj") or "",
            created_at=parse_timestamp(client.get("created_at")),
            created_by=client.get("created_by"),
        )

    def to_client(self) -> ClientResult:
        return ClientResult(
            id=self.client_id,
            name=self.name,
            cnpj=self.cnpj,
            created_at=self.created_at,
            created_by=self.created_by,
        )


@dataclass(frozen=True)
class LinkedAccountant:
    """Accountant summary seen from a client's side of an edge."""

    assignment_id: str
    accountant_id: str
    email: str
    full_name: str | None = None

    @classmethod
    def from_rows(cls, edge: dict[str, Any], profile: dict[str, Any]) -> LinkedAccountant:
        return cls(
            assignment_id=str(edge["id"]),
            accountant_id=str(profile["id"]),
            email=profile.get("email") or "",
            full_name=profile.get("full_name"),
        )
